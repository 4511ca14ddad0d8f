from __future__ import annotations

import numpy as np
import pytest

from magnetostaticanalysis.fea.analysis.basis import Direction, LinearFunction, LocalBasisFunctionsProvider
from magnetostaticanalysis.fea.pre.grid import Node2D, rectangular_grid


@pytest.fixture
def element_grid():
    return rectangular_grid([1.0, 3.0], [-0.5, 0.5])


def test_linear_function():
    f = LinearFunction(2.0, -1.0)
    assert f(3.0) == 5.0
    assert f.derivative() == LinearFunction(0.0, 2.0)


def test_kronecker_property(element_grid):
    element = element_grid.elements[0]
    functions = LocalBasisFunctionsProvider(element_grid).get_bilinear_functions(element)
    for k, function in enumerate(functions):
        for m, node_index in enumerate(element.node_indexes):
            expected = 1.0 if k == m else 0.0
            assert function.calculate(element_grid.nodes[node_index]) == pytest.approx(expected, abs=1e-15)


def test_partition_of_unity(element_grid):
    element = element_grid.elements[0]
    provider = LocalBasisFunctionsProvider(element_grid)
    rng = np.random.default_rng(0)
    x = rng.uniform(1.0, 3.0, size=20)
    y = rng.uniform(-0.5, 0.5, size=20)

    n, dn_dx, dn_dy = provider.evaluate(element, x, y)
    assert n.shape == (20, 4)
    np.testing.assert_allclose(n.sum(axis=1), 1.0, rtol=0, atol=1e-14)
    np.testing.assert_allclose(dn_dx.sum(axis=1), 0.0, atol=1e-14)
    np.testing.assert_allclose(dn_dy.sum(axis=1), 0.0, atol=1e-14)


def test_derivatives_match_finite_differences(element_grid):
    element = element_grid.elements[0]
    provider = LocalBasisFunctionsProvider(element_grid)
    functions = provider.get_bilinear_functions(element)
    dx = provider.get_bilinear_functions_derivatives(element, Direction.X)
    dy = provider.get_bilinear_functions_derivatives(element, "y")

    point = Node2D(1.7, 0.1)
    h = 1e-6
    for f, fx, fy in zip(functions, dx, dy):
        # Bilinear functions are linear in each variable: central differences are exact up to rounding
        fd_x = (f(point.x + h, point.y) - f(point.x - h, point.y)) / (2 * h)
        fd_y = (f(point.x, point.y + h) - f(point.x, point.y - h)) / (2 * h)
        assert fx.calculate(point) == pytest.approx(fd_x, abs=1e-8)
        assert fy.calculate(point) == pytest.approx(fd_y, abs=1e-8)


def test_reproduces_bilinear_function(element_grid):
    element = element_grid.elements[0]
    functions = LocalBasisFunctionsProvider(element_grid).get_bilinear_functions(element)

    def u(x, y):
        return 0.3 - 1.2 * x + 2.0 * y + 0.7 * x * y

    values = [u(element_grid.nodes[i].x, element_grid.nodes[i].y) for i in element.node_indexes]
    point = Node2D(2.2, -0.1)
    interpolated = sum(v * f.calculate(point) for v, f in zip(values, functions))
    assert interpolated == pytest.approx(u(point.x, point.y), rel=1e-13)


def test_invalid_direction(element_grid):
    provider = LocalBasisFunctionsProvider(element_grid)
    with pytest.raises(ValueError, match="Unknown direction"):
        provider.get_bilinear_functions_derivatives(element_grid.elements[0], "z")
