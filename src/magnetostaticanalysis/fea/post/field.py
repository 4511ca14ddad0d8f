"""
Field evaluation from the nodal solution.

    Az = Σ q_i N_i
    Bx = Σ q_i ∂N_i/∂y
    By = -Σ q_i ∂N_i/∂x
    |B| = sqrt(Bx² + By²)

The curl sign convention assumes the grid's fixed node winding and axis alignment.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

import numpy as np

from magnetostaticanalysis.exceptions import MalformedInputError
from magnetostaticanalysis.fea.analysis.basis import Direction
from magnetostaticanalysis.fea.post.locator import LinearElementLocator
from magnetostaticanalysis.fea.post.sinks import NullResultSink

if TYPE_CHECKING:
    import numpy.typing as npt

    from magnetostaticanalysis.fea.analysis.basis import LocalBasisFunctionsProvider
    from magnetostaticanalysis.fea.post.locator import ElementLocator
    from magnetostaticanalysis.fea.post.sinks import ResultSink
    from magnetostaticanalysis.fea.pre.grid import Element, Grid, Node2D

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FluxDensity:
    bx: float
    by: float
    magnitude: float

    @classmethod
    def missing(cls) -> FluxDensity:
        return cls(math.nan, math.nan, math.nan)


@dataclass(frozen=True)
class FieldValue:
    """Az and B at a query point. NaN everywhere if the point is outside the grid."""
    point: Node2D
    az: float
    bx: float
    by: float
    b: float

    @property
    def is_missed(self) -> bool:
        return math.isnan(self.az)


class FieldSolver:
    """
    Post-processor evaluating Az and B at arbitrary points of a solved grid.
    """
    def __init__(
        self,
        grid: Grid,
        solution: npt.NDArray[np.float64],
        basis_provider: LocalBasisFunctionsProvider,
        locator: ElementLocator | None = None,
        sink: ResultSink | None = None,
    ) -> None:
        """
        Initialize the post-processor.

        Args:
            grid: Solved grid.
            solution: Nodal values of Az, one per node.
            basis_provider: Source of the element shape functions.
            locator: Element location strategy. Linear scan by default.
            sink: Receiver of reported values. Reports are discarded by default.

        Raises:
            MalformedInputError: If the solution length does not match the grid.
        """
        solution = np.asarray(solution, dtype=np.float64)
        if solution.shape != (grid.number_of_nodes,):
            raise MalformedInputError(
                f"Solution has shape {solution.shape}, expected ({grid.number_of_nodes},)."
            )
        if solution.flags.writeable:
            solution = solution.copy()
            solution.setflags(write=False)

        self.grid = grid
        self.solution = solution
        self.basis_provider = basis_provider
        self.locator = locator if locator is not None else LinearElementLocator(grid)
        self.sink = sink if sink is not None else NullResultSink()

    def area_has(self, point: Node2D) -> bool:
        """Check the point against the global bounding rectangle (first and last node)."""
        return point.is_within(*self.grid.bounds)

    def find_element(self, point: Node2D) -> Element | None:
        """First element containing the point, or None outside the grid."""
        if not self.area_has(point):
            return None
        element = self.locator.find(point)
        if element is None:
            logger.warning(f"Point ({point.x}, {point.y}) is inside the grid bounds but not in any element.")
        return element

    def _calculate_az(self, element: Element, point: Node2D) -> float:
        functions = self.basis_provider.get_bilinear_functions(element)
        return math.fsum(
            self.solution[node_index] * function.calculate(point)
            for node_index, function in zip(element.node_indexes, functions)
        )

    def _calculate_b(self, element: Element, point: Node2D) -> FluxDensity:
        derivatives_x = self.basis_provider.get_bilinear_functions_derivatives(element, Direction.X)
        derivatives_y = self.basis_provider.get_bilinear_functions_derivatives(element, Direction.Y)

        bx = math.fsum(
            self.solution[node_index] * function.calculate(point)
            for node_index, function in zip(element.node_indexes, derivatives_y)
        )
        by = -math.fsum(
            self.solution[node_index] * function.calculate(point)
            for node_index, function in zip(element.node_indexes, derivatives_x)
        )
        return FluxDensity(bx=bx, by=by, magnitude=math.sqrt(bx * bx + by * by))

    def _report_missed_area(self, point: Node2D) -> None:
        self.sink.report_missed_area(point)
        self.sink.report_az(point, math.nan)
        self.sink.report_b(point, math.nan, math.nan, math.nan)

    def get_az(self, point: Node2D) -> float:
        """
        Interpolate Az at a point and report it.

        Returns:
            Az, or NaN if the point is outside the calculation area.
        """
        element = self.find_element(point)
        if element is None:
            self._report_missed_area(point)
            return math.nan

        az = self._calculate_az(element, point)
        self.sink.report_az(point, az)
        return az

    def get_b(self, point: Node2D) -> FluxDensity:
        """
        Compute B = curl(Az) at a point and report it.

        Returns:
            Bx, By and |B|; all NaN if the point is outside the calculation area.
        """
        element = self.find_element(point)
        if element is None:
            self._report_missed_area(point)
            return FluxDensity.missing()

        b = self._calculate_b(element, point)
        self.sink.report_b(point, b.bx, b.by, b.magnitude)
        return b

    def evaluate(self, point: Node2D) -> FieldValue:
        """Az and B at a point, without reporting."""
        element = self.find_element(point)
        if element is None:
            return FieldValue(point, math.nan, math.nan, math.nan, math.nan)
        b = self._calculate_b(element, point)
        return FieldValue(point, self._calculate_az(element, point), b.bx, b.by, b.magnitude)

    def evaluate_many(self, points: Iterable[Node2D]) -> list[FieldValue]:
        return [self.evaluate(point) for point in points]
