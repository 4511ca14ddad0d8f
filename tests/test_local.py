from __future__ import annotations

import numpy as np
import pytest

from magnetostaticanalysis.config import CoordinateSystem
from magnetostaticanalysis.exceptions import MalformedInputError
from magnetostaticanalysis.fea.analysis.basis import LocalBasisFunctionsProvider
from magnetostaticanalysis.fea.analysis.local import LocalAssembler
from magnetostaticanalysis.fea.pre.grid import rectangular_grid
from magnetostaticanalysis.fea.pre.material import MaterialRepository

G1 = np.array([[1.0, -1.0], [-1.0, 1.0]])
M1 = np.array([[1.0 / 3.0, 1.0 / 6.0], [1.0 / 6.0, 1.0 / 3.0]])


def make_assembler(grid, nu=1.0, current_density=0.0, **kwargs):
    materials = MaterialRepository([nu], [current_density])
    return LocalAssembler(grid, LocalBasisFunctionsProvider(grid), materials, **kwargs)


def test_unit_square_stiffness(unit_square_grid):
    contribution = make_assembler(unit_square_grid).assemble(unit_square_grid.elements[0])
    expected = np.array([
        [4.0, -1.0, -1.0, -2.0],
        [-1.0, 4.0, -2.0, -1.0],
        [-1.0, -2.0, 4.0, -1.0],
        [-2.0, -1.0, -1.0, 4.0],
    ]) / 6.0
    np.testing.assert_allclose(contribution.matrix, expected, atol=1e-14)
    np.testing.assert_array_equal(contribution.dofs, [0, 1, 2, 3])


def test_rectangle_stiffness_is_tensor_product():
    hx, hy = 2.0, 0.5
    grid = rectangular_grid([1.0, 1.0 + hx], [3.0, 3.0 + hy])
    matrix = make_assembler(grid, nu=3.0).assemble(grid.elements[0]).matrix

    # Local index k = i + 2 j, i along x and j along y
    expected = 3.0 * (hy / hx * np.kron(M1, G1) + hx / hy * np.kron(G1, M1))
    np.testing.assert_allclose(matrix, expected, rtol=1e-13, atol=1e-14)


def test_stiffness_symmetric_with_constant_null_space(small_grid):
    assembler = make_assembler(small_grid, nu=2.5)
    for element in small_grid.elements:
        matrix = assembler.assemble(element).matrix
        np.testing.assert_allclose(matrix, matrix.T, atol=1e-14)
        np.testing.assert_allclose(matrix.sum(axis=1), 0.0, atol=1e-12)
        assert np.all(np.linalg.eigvalsh(matrix) > -1e-12)


def test_stiffness_is_linear_in_nu(small_grid):
    element = small_grid.elements[5]
    base = make_assembler(small_grid, nu=1.0).assemble(element).matrix
    scaled = make_assembler(small_grid, nu=7.0).assemble(element).matrix
    np.testing.assert_allclose(scaled, 7.0 * base, rtol=1e-14)


def test_plane_load_integrates_current(small_grid):
    assembler = make_assembler(small_grid, current_density=4.0)
    for element in small_grid.elements:
        hx, hy = small_grid.element_steps(element)
        vector = assembler.assemble(element).vector
        # Each node receives a quarter of J * area
        np.testing.assert_allclose(vector, 4.0 * hx * hy / 4.0, rtol=1e-13)


def test_axisymmetric_weight():
    x0, x1, y0, y1 = 0.5, 1.5, 0.0, 2.0
    grid = rectangular_grid([x0, x1], [y0, y1])
    assembler = make_assembler(grid, current_density=1.0, coordinate_system=CoordinateSystem.AXISYMMETRIC)
    contribution = assembler.assemble(grid.elements[0])

    # Total load J * ∫ r dA
    assert contribution.vector.sum() == pytest.approx((y1 - y0) * (x1**2 - x0**2) / 2.0, rel=1e-13)
    np.testing.assert_allclose(contribution.matrix, contribution.matrix.T, atol=1e-14)
    np.testing.assert_allclose(contribution.matrix.sum(axis=1), 0.0, atol=1e-12)


def test_two_by_two_rule_is_exact(small_grid):
    element = small_grid.elements[7]
    for system in CoordinateSystem:
        four = make_assembler(small_grid, 1.0, 1.0, coordinate_system=system).assemble(element)
        nine = make_assembler(
            small_grid, 1.0, 1.0, coordinate_system=system, n_integration_points=9
        ).assemble(element)
        np.testing.assert_allclose(four.matrix, nine.matrix, rtol=1e-12, atol=1e-14)
        np.testing.assert_allclose(four.vector, nine.vector, rtol=1e-12)


def test_unknown_material():
    grid = rectangular_grid([0.0, 1.0], [0.0, 1.0], material_ids=3)
    with pytest.raises(MalformedInputError):
        make_assembler(grid).assemble(grid.elements[0])
