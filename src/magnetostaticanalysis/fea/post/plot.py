from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from matplotlib.axes import Axes
    from matplotlib.figure import Figure

    from magnetostaticanalysis.fea.post.field import FieldSolver

logger = logging.getLogger(__name__)


def plot_potential(
    field_solver: FieldSolver,
    levels: int = 30,
    show_grid: bool = False,
    ax: Axes | None = None,
) -> Figure:
    """
    Contour plot of the nodal Az solution.

    Args:
        field_solver: Post-processor holding the grid and the solution.
        levels: Number of contour levels.
        show_grid: Draw the element outlines.
        ax: Axes to draw into. A new figure is created if omitted.

    Returns:
        The figure containing the plot.
    """
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots(constrained_layout=True)
    else:
        fig = ax.figure

    grid = field_solver.grid
    x = grid.coordinates[:, 0]
    y = grid.coordinates[:, 1]

    cf = ax.tricontourf(x, y, field_solver.solution, levels=levels, cmap="jet")
    fig.colorbar(cf, ax=ax, label="Az (Wb/m)")

    if show_grid:
        for element in grid.elements:
            # Outline in winding order 0 -> 1 -> 3 -> 2
            outline = np.array([grid.nodes[element.node_indexes[k]].coords for k in (0, 1, 3, 2, 0)])
            ax.plot(outline[:, 0], outline[:, 1], color="gray", lw=0.5)

    ax.set_aspect("equal")
    ax.set_xlabel("X Coordinate")
    ax.set_ylabel("Y Coordinate")
    ax.set_title("Magnetic vector potential Az")
    return fig


def save_potential_plot(field_solver: FieldSolver, filepath: str, levels: int = 30, show_grid: bool = True) -> None:
    """Render :func:`plot_potential` into an image file and release the figure."""
    import matplotlib.pyplot as plt

    fig = plot_potential(field_solver, levels=levels, show_grid=show_grid)
    try:
        fig.savefig(filepath, dpi=150)
        logger.info(f"Potential plot saved to: {filepath}")
    finally:
        plt.close(fig)
