"""
Solve-and-evaluate pipeline
===========================
Wires the stages together:

    Grid + Materials -> LocalAssembler -> GlobalAssembler (Portrait + Inserter)
    -> GaussExcluder -> MCG (IC(0)) -> solution -> FieldSolver
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from magnetostaticanalysis.config import LocatorKind, SolverSettings
from magnetostaticanalysis.exceptions import ConvergenceError
from magnetostaticanalysis.fea.analysis.assembler import GaussExcluder, GlobalAssembler
from magnetostaticanalysis.fea.analysis.basis import LocalBasisFunctionsProvider
from magnetostaticanalysis.fea.analysis.local import LocalAssembler
from magnetostaticanalysis.fea.analysis.portrait import Inserter, MatrixPortraitBuilder
from magnetostaticanalysis.fea.post.field import FieldSolver
from magnetostaticanalysis.fea.post.locator import BucketElementLocator, LinearElementLocator
from magnetostaticanalysis.fea.pre.boundary import FirstBoundaryProvider
from magnetostaticanalysis.fea.solvers.preconditioner import IncompleteCholesky
from magnetostaticanalysis.fea.solvers.solver import MCG

if TYPE_CHECKING:
    from magnetostaticanalysis.fea.post.locator import ElementLocator
    from magnetostaticanalysis.fea.post.sinks import ResultSink
    from magnetostaticanalysis.fea.pre.boundary import FirstBoundary
    from magnetostaticanalysis.fea.pre.grid import Grid
    from magnetostaticanalysis.fea.pre.material import MaterialRepository
    from magnetostaticanalysis.fea.solvers.solver import SolverResult

logger = logging.getLogger(__name__)


def make_locator(grid: Grid, kind: LocatorKind) -> ElementLocator:
    if LocatorKind(kind) == LocatorKind.BUCKET:
        return BucketElementLocator(grid)
    return LinearElementLocator(grid)


def solve_equation(
    grid: Grid,
    first_boundaries: Iterable[FirstBoundary],
    materials: MaterialRepository,
    settings: SolverSettings | None = None,
    sink: ResultSink | None = None,
) -> tuple[FieldSolver, SolverResult]:
    """
    Assemble, eliminate boundary values, solve, and prepare field evaluation.

    Args:
        grid: The grid to solve on.
        first_boundaries: Prescribed nodal values.
        materials: Material table indexed by element material id.
        settings: Solver settings; defaults if omitted.
        sink: Receiver of field evaluation reports.

    Raises:
        MalformedInputError: For inconsistent grid, material or boundary data.
        PreconditionerBreakdownError: If the incomplete factorization breaks down.
        ConvergenceError: If CG does not converge and ``settings.accept_unconverged`` is False.

    Returns:
        The field post-processor and the solver result.
    """
    settings = settings if settings is not None else SolverSettings()

    basis_provider = LocalBasisFunctionsProvider(grid)
    local_assembler = LocalAssembler(grid, basis_provider, materials, settings.coordinate_system)
    global_assembler = GlobalAssembler(
        grid, MatrixPortraitBuilder(), local_assembler, Inserter(), GaussExcluder()
    )

    # Validate the boundaries before spending time on assembly
    boundary_values = FirstBoundaryProvider(grid).get_conditions(first_boundaries)

    equation = (
        global_assembler.assemble_equation()
        .apply_first_boundaries(boundary_values)
        .build_equation()
    )

    precondition_matrix = global_assembler.allocate_precondition_matrix()
    solver = MCG(IncompleteCholesky(), tolerance=settings.tolerance, max_iterations=settings.max_iterations)

    try:
        result = solver.set_precondition(equation.matrix, out=precondition_matrix).solve(equation)
    except ConvergenceError as e:
        if not settings.accept_unconverged:
            raise
        logger.warning("Continuing with the best-so-far (unconverged) solution.")
        result = e.result

    field_solver = FieldSolver(
        grid,
        result.solution,
        basis_provider,
        locator=make_locator(grid, settings.locator),
        sink=sink,
    )
    return field_solver, result

