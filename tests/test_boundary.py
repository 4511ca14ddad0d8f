from __future__ import annotations

import pytest

from magnetostaticanalysis.exceptions import MalformedInputError
from magnetostaticanalysis.fea.pre.boundary import FirstBoundary, FirstBoundaryProvider, FirstBoundaryValue


def test_conditions_sorted_by_node(small_grid):
    provider = FirstBoundaryProvider(small_grid)
    conditions = provider.get_conditions([FirstBoundary(7, 1.5), FirstBoundary(2), FirstBoundary(0, -1.0)])
    assert conditions == (
        FirstBoundaryValue(0, -1.0),
        FirstBoundaryValue(2, 0.0),
        FirstBoundaryValue(7, 1.5),
    )


def test_duplicate_node_keeps_last_value(small_grid):
    conditions = FirstBoundaryProvider(small_grid).get_conditions(
        [FirstBoundary(3, 1.0), FirstBoundary(3, 2.0)]
    )
    assert conditions == (FirstBoundaryValue(3, 2.0),)


@pytest.mark.parametrize("node_index", [-1, 20])
def test_node_outside_grid(small_grid, node_index):
    with pytest.raises(MalformedInputError):
        FirstBoundaryProvider(small_grid).get_conditions([FirstBoundary(node_index)])


def test_no_conditions(small_grid):
    assert FirstBoundaryProvider(small_grid).get_conditions([]) == ()
