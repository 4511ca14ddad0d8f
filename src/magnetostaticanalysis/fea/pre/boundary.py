"""
Essential (first-type) boundary conditions.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from magnetostaticanalysis.exceptions import MalformedInputError
from magnetostaticanalysis.fea.pre.grid import Grid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FirstBoundary:
    """A node with a prescribed potential, as read from the input."""
    node_index: int
    value: float = 0.0


@dataclass(frozen=True)
class FirstBoundaryValue:
    """A validated prescribed value, ready to be eliminated from the system."""
    node_index: int
    value: float


class FirstBoundaryProvider:
    """
    Validates first-type boundaries against a grid.
    """
    def __init__(self, grid: Grid) -> None:
        self.grid = grid

    def get_conditions(self, boundaries: Iterable[FirstBoundary]) -> tuple[FirstBoundaryValue, ...]:
        """
        Convert boundary definitions into values for elimination.

        A node listed more than once keeps its last value.

        Args:
            boundaries: Boundary definitions.

        Raises:
            MalformedInputError: If a boundary references a node outside the grid.

        Returns:
            Boundary values ordered by node index.
        """
        n_nodes = self.grid.number_of_nodes
        values: dict[int, float] = {}
        for boundary in boundaries:
            if not 0 <= boundary.node_index < n_nodes:
                raise MalformedInputError(
                    f"Boundary references node {boundary.node_index}, but the grid has {n_nodes} nodes."
                )
            if boundary.node_index in values and values[boundary.node_index] != boundary.value:
                logger.debug(f"Node {boundary.node_index} is listed twice; keeping value {boundary.value}.")
            values[boundary.node_index] = float(boundary.value)

        logger.debug(f"Prepared {len(values)} first-type boundary values.")
        return tuple(FirstBoundaryValue(index, value) for index, value in sorted(values.items()))
