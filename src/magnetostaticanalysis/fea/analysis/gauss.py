from __future__ import annotations

from math import sqrt
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


def gauss_points_weights_quadrilateral(n_points: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Generate Gauss points and weights for a quadrilateral Gaussian integration.

    Quadrilateral is assumed to be a square with vertices at (-1,-1), (1,-1), (1,1), and (-1,1).

    Args:
        n_points: Number of integration points.

    Raises:
        ValueError: If `n_points` is not 1, 4 or 9.

    Returns:
        A tuple containing the Gauss points and weights.
    """
    if n_points == 1:
        return np.array([[0.0, 0.0]]), np.array([4.0])
    elif n_points == 4:
        return np.array([
            [-1.0/sqrt(3.0), -1.0/sqrt(3.0)],
            [+1.0/sqrt(3.0), -1.0/sqrt(3.0)],
            [+1.0/sqrt(3.0), +1.0/sqrt(3.0)],
            [-1.0/sqrt(3.0), +1.0/sqrt(3.0)],
        ]
        ), np.array([1.0, 1.0, 1.0, 1.0])
    elif n_points == 9:
        return np.array([
            [-sqrt(3.0/5.0), -sqrt(3.0/5.0)],
            [0.0, -sqrt(3.0/5.0)],
            [+sqrt(3.0/5.0), -sqrt(3.0/5.0)],
            [-sqrt(3.0/5.0), 0.0],
            [0.0, 0.0],
            [+sqrt(3.0/5.0), 0.0],
            [-sqrt(3.0/5.0), +sqrt(3.0/5.0)],
            [0.0, +sqrt(3.0/5.0)],
            [+sqrt(3.0/5.0), +sqrt(3.0/5.0)],
        ]
        ), np.array([25/81, 40/81, 25/81, 40/81, 64/81, 40/81, 25/81, 40/81, 25/81])
    else:
        raise ValueError(f"Unsupported number of Gauss points: {n_points}. "
                         f"'n_points' must be 1, 4 or 9.")


def map_to_rectangle(
    iso_points: npt.NDArray[np.float64],
    x0: float,
    y0: float,
    hx: float,
    hy: float,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], float]:
    """
    Map points of the reference square [-1, 1]² onto an axis-aligned rectangle.

    Args:
        iso_points: (n, 2) array of reference coordinates (ξ, η).
        x0, y0: Lower-left corner of the rectangle.
        hx, hy: Rectangle sizes.

    Returns:
        x and y coordinates of the mapped points and the (constant) Jacobian determinant.
    """
    x = x0 + 0.5 * (iso_points[:, 0] + 1.0) * hx
    y = y0 + 0.5 * (iso_points[:, 1] + 1.0) * hy
    return x, y, 0.25 * hx * hy
