from __future__ import annotations

import numpy as np
import pytest

from magnetostaticanalysis.exceptions import MalformedInputError
from magnetostaticanalysis.fea.post.field import FieldValue
from magnetostaticanalysis.fea.pre.boundary import FirstBoundary
from magnetostaticanalysis.fea.pre.grid import Node2D, rectangular_grid
from magnetostaticanalysis.fea.pre.io import GridIO, ResultIO

NODES = """\
# x y
0.0 0.0
1.0 0.0
2.0 0.0
0.0 1.0
1.0 1.0
2.0 1.0
"""


def write_case(directory, elements="0 1 3 4\n1 2 4 5\n", materials="0\n1\n", boundaries="0 0.0\n2 1.5\n"):
    (directory / "rz.dat").write_text(NODES)
    (directory / "nvtr.dat").write_text(elements)
    (directory / "nvkat2d.dat").write_text(materials)
    (directory / "l1.dat").write_text(boundaries)
    return directory


def test_read_grid(tmp_path):
    grid_io = GridIO(str(write_case(tmp_path)))
    grid = grid_io.read_grid()

    assert grid.number_of_nodes == 6
    assert [e.node_indexes for e in grid.elements] == [(0, 1, 3, 4), (1, 2, 4, 5)]
    assert [e.material_id for e in grid.elements] == [0, 1]
    assert grid.bounds == (Node2D(0.0, 0.0), Node2D(2.0, 1.0))
    assert grid_io.read_first_boundaries() == [FirstBoundary(0, 0.0), FirstBoundary(2, 1.5)]


def test_read_one_based(tmp_path):
    write_case(tmp_path, elements="1 2 4 5\n2 3 5 6\n", boundaries="1 0.0\n3 0.0\n")
    grid_io = GridIO(str(tmp_path), one_based=True)
    assert grid_io.read_grid().elements[1].node_indexes == (1, 2, 4, 5)
    assert [b.node_index for b in grid_io.read_first_boundaries()] == [0, 2]


def test_extra_element_columns_are_ignored(tmp_path):
    write_case(tmp_path, elements="0 1 3 4 99\n1 2 4 5 99\n")
    assert GridIO(str(tmp_path)).read_grid().elements[0].node_indexes == (0, 1, 3, 4)


@pytest.mark.parametrize(
    "case",
    [
        {"elements": "0 1 3\n1 2 4\n"},
        {"materials": "0\n"},
        {"elements": "0 1 3 4\n1 2 4 6\n"},
        {"elements": "0 1 3 4\n1 2 4 x\n"},
        {"elements": "1 0 4 3\n1 2 4 5\n"},
    ],
)
def test_malformed_grid(tmp_path, case):
    write_case(tmp_path, **case)
    with pytest.raises(MalformedInputError):
        GridIO(str(tmp_path)).read_grid()


def test_boundary_values_default_to_zero(tmp_path):
    write_case(tmp_path, boundaries="0\n5\n")
    assert GridIO(str(tmp_path)).read_first_boundaries() == [FirstBoundary(0), FirstBoundary(5)]


def test_non_integer_boundary_node(tmp_path):
    write_case(tmp_path, boundaries="0.5 1.0\n")
    with pytest.raises(MalformedInputError):
        GridIO(str(tmp_path)).read_first_boundaries()


def test_missing_file(tmp_path):
    with pytest.raises(OSError):
        GridIO(str(tmp_path)).read_nodes()


def test_results_file(tmp_path):
    grid = rectangular_grid([0.0, 1.0, 2.0], [0.0, 1.0], [[0, 1]])
    solution = np.linspace(0.0, 1.0, grid.number_of_nodes)
    values = [
        FieldValue(Node2D(0.5, 0.5), 0.1, 0.2, 0.3, 0.4),
        FieldValue(Node2D(9.0, 9.0), np.nan, np.nan, np.nan, np.nan),
    ]
    filepath = str(tmp_path / "results.h5")

    ResultIO.save(filepath, grid, solution, values, iterations=12, residual_norm=1e-13)
    stored = ResultIO.load(filepath)

    np.testing.assert_array_equal(stored.coordinates, grid.coordinates)
    np.testing.assert_array_equal(stored.connectivity, [[0, 1, 3, 4], [1, 2, 4, 5]])
    np.testing.assert_array_equal(stored.solution, solution)
    np.testing.assert_array_equal(stored.points, [[0.5, 0.5], [9.0, 9.0]])
    np.testing.assert_array_equal(stored.fields[0], [0.1, 0.2, 0.3, 0.4])
    assert np.all(np.isnan(stored.fields[1]))
    assert stored.iterations == 12
    assert stored.residual_norm == 1e-13


def test_load_rejects_non_hdf5(tmp_path):
    filepath = tmp_path / "results.h5"
    filepath.write_text("not hdf5")
    with pytest.raises(MalformedInputError):
        ResultIO.load(str(filepath))
