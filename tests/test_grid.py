from __future__ import annotations

import numpy as np
import pytest

from magnetostaticanalysis.exceptions import MalformedInputError
from magnetostaticanalysis.fea.pre.grid import Element, GridBuilder, Node2D, rectangular_grid


def test_rectangular_grid_numbering(small_grid):
    assert small_grid.number_of_nodes == 5 * 4
    assert small_grid.number_of_elements == 4 * 3

    lower_left, upper_right = small_grid.bounds
    assert lower_left == Node2D(0.0, 0.0)
    assert upper_right == Node2D(2.0, 1.5)

    first = small_grid.elements[0]
    assert first.node_indexes == (0, 1, 5, 6)
    assert small_grid.element_steps(first) == pytest.approx((0.4, 0.5))


def test_coordinates_are_read_only(small_grid):
    with pytest.raises(ValueError):
        small_grid.coordinates[0, 0] = 1.0


def test_material_table_is_indexed_by_row_and_column():
    table = [[0, 1], [2, 3], [4, 5]]
    grid = rectangular_grid([0.0, 1.0, 2.0], [0.0, 1.0, 2.0, 3.0], table)
    assert [e.material_id for e in grid.elements] == [0, 1, 2, 3, 4, 5]


def test_material_selector_callable():
    grid = rectangular_grid([0.0, 1.0, 2.0], [0.0, 1.0], lambda i, j: 7 + i)
    assert [e.material_id for e in grid.elements] == [7, 8]


def test_material_table_shape_mismatch():
    with pytest.raises(MalformedInputError):
        rectangular_grid([0.0, 1.0, 2.0], [0.0, 1.0], [[0, 1, 2]])


def test_breakpoints_must_increase():
    with pytest.raises(MalformedInputError):
        rectangular_grid([0.0, 1.0, 1.0], [0.0, 1.0])


def test_node_within_bounds_is_inclusive():
    lower_left, upper_right = Node2D(0.0, 0.0), Node2D(1.0, 2.0)
    assert Node2D(0.0, 2.0).is_within(lower_left, upper_right)
    assert Node2D(0.5, 1.0).is_within(lower_left, upper_right)
    assert not Node2D(1.0000001, 1.0).is_within(lower_left, upper_right)


def test_builder_accepts_plain_tuples():
    grid = (
        GridBuilder()
        .set_nodes([(0, 0), (1, 0), (0, 1), (1, 1)])
        .set_elements([((0, 1, 2, 3), 0)])
        .build()
    )
    np.testing.assert_array_equal(grid.elements[0].global_dofs, [0, 1, 2, 3])


@pytest.mark.parametrize(
    "elements",
    [
        [],
        [Element((0, 1, 2), 0)],
        [Element((0, 1, 2, 4), 0)],
        [Element((0, 1, 2, -1), 0)],
        # upper-right first
        [Element((3, 2, 1, 0), 0)],
        # lower-right and upper-left swapped
        [Element((0, 2, 1, 3), 0)],
    ],
)
def test_builder_rejects_malformed_elements(elements):
    builder = GridBuilder().set_nodes([(0, 0), (1, 0), (0, 1), (1, 1)]).set_elements(elements)
    with pytest.raises(MalformedInputError):
        builder.build()


def test_builder_rejects_empty_nodes():
    with pytest.raises(MalformedInputError):
        GridBuilder().set_elements([((0, 1, 2, 3), 0)]).build()
