"""
Bilinear basis functions of an axis-aligned rectangular element.

Each shape function is the product of two one-dimensional linear functions,
N_k(x, y) = X_{k mod 2}(x) · Y_{k div 2}(y), which matches the element winding
(0: lower-left, 1: lower-right, 2: upper-left, 3: upper-right). Partial
derivatives are products of the same kind, with the differentiated factor
replaced by its (constant) slope.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np

from magnetostaticanalysis.fea.pre.grid import Element, Grid, Node2D

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class Direction(StrEnum):
    X = "x"
    Y = "y"


@dataclass(frozen=True)
class LinearFunction:
    """f(t) = slope * t + intercept"""
    slope: float
    intercept: float

    def __call__(self, t: float | npt.NDArray[np.float64]) -> float | npt.NDArray[np.float64]:
        return self.slope * t + self.intercept

    def derivative(self) -> LinearFunction:
        return LinearFunction(0.0, self.slope)


@dataclass(frozen=True)
class LocalBasisFunction:
    """Product of a linear function of x and a linear function of y."""
    fx: LinearFunction
    fy: LinearFunction

    def __call__(
        self,
        x: float | npt.NDArray[np.float64],
        y: float | npt.NDArray[np.float64],
    ) -> float | npt.NDArray[np.float64]:
        return self.fx(x) * self.fy(y)

    def calculate(self, point: Node2D) -> float:
        """Evaluate the function at a point."""
        return self.fx(point.x) * self.fy(point.y)

    def derivative(self, direction: Direction | str) -> LocalBasisFunction:
        """Exact partial derivative with respect to x or y."""
        direction = _as_direction(direction)
        if direction == Direction.X:
            return LocalBasisFunction(self.fx.derivative(), self.fy)
        return LocalBasisFunction(self.fx, self.fy.derivative())


def _as_direction(direction: Direction | str) -> Direction:
    try:
        return Direction(direction)
    except ValueError:
        raise ValueError(f"Unknown direction '{direction}'. Expected 'x' or 'y'.") from None


def _linear_factors(lower: float, upper: float) -> tuple[LinearFunction, LinearFunction]:
    """Falling (1 at lower, 0 at upper) and rising 1D linear functions on [lower, upper]."""
    h = upper - lower
    return (
        LinearFunction(-1.0 / h, upper / h),
        LinearFunction(1.0 / h, -lower / h),
    )


class LocalBasisFunctionsProvider:
    """
    Builds the bilinear shape functions (and their derivatives) of grid elements.
    """
    def __init__(self, grid: Grid) -> None:
        self.grid = grid

    def get_bilinear_functions(self, element: Element) -> list[LocalBasisFunction]:
        """
        Get the four shape functions of an element in the element's local node order.

        Args:
            element: Element of the provider's grid.

        Returns:
            Shape functions [N0, N1, N2, N3].
        """
        lower_left, upper_right = self.grid.element_bounds(element)
        x_factors = _linear_factors(lower_left.x, upper_right.x)
        y_factors = _linear_factors(lower_left.y, upper_right.y)
        return [LocalBasisFunction(x_factors[k % 2], y_factors[k // 2]) for k in range(4)]

    def get_bilinear_functions_derivatives(
        self,
        element: Element,
        direction: Direction | str,
    ) -> list[LocalBasisFunction]:
        """
        Get the partial derivatives of the four shape functions.

        Args:
            element: Element of the provider's grid.
            direction: 'x' or 'y'.

        Raises:
            ValueError: If the direction is unknown.

        Returns:
            Derivatives [dN0, dN1, dN2, dN3] in the requested direction.
        """
        direction = _as_direction(direction)
        return [function.derivative(direction) for function in self.get_bilinear_functions(element)]

    def evaluate(
        self,
        element: Element,
        x: npt.NDArray[np.float64],
        y: npt.NDArray[np.float64],
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """
        Evaluate the shape functions and both derivatives at a set of points.

        Args:
            element: Element of the provider's grid.
            x: x coordinates of the points, shape (n,).
            y: y coordinates of the points, shape (n,).

        Returns:
            Arrays N, dN/dx and dN/dy of shape (n, 4).
        """
        functions = self.get_bilinear_functions(element)
        n = np.column_stack([f(x, y) for f in functions])
        dn_dx = np.column_stack([f.derivative(Direction.X)(x, y) for f in functions])
        dn_dy = np.column_stack([f.derivative(Direction.Y)(x, y) for f in functions])
        return n, dn_dx, dn_dy
