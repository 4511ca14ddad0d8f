"""
Error Taxonomy
==============
Structural input errors are fatal and abort the pipeline before any solve.
Solver errors are raised by the iterative solver and its preconditioner.
Out-of-domain field queries are NOT exceptions: they are reported through the
result sink and evaluate to NaN.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from magnetostaticanalysis.fea.solvers.solver import SolverResult


class MalformedInputError(ValueError):
    """Grid, portrait, material or boundary data is inconsistent."""


class SolverError(RuntimeError):
    """Base class for failures of the linear solver."""


class SolverStateError(SolverError):
    """An operation was called in a solver state that does not allow it."""


class PreconditionerBreakdownError(SolverError):
    """Incomplete factorization hit a non-positive pivot, also with the largest diagonal shift tried."""

    def __init__(self, row: int, pivot: float, shift: float = 0.0) -> None:
        self.row = row
        self.pivot = pivot
        self.shift = shift
        super().__init__(
            f"Incomplete Cholesky factorization broke down at row {row} (pivot = {pivot:.6e}, "
            f"diagonal shift = {shift:.1e}). The matrix is not positive definite on its portrait."
        )


class ConvergenceError(SolverError):
    """
    The iteration cap was reached (or the residual became non-finite) before the tolerance.

    Attributes:
        result: Best-so-far result of the iteration. Callers may decide to accept it.
    """

    def __init__(self, result: SolverResult) -> None:
        self.result = result
        super().__init__(
            f"Conjugate gradients did not converge after {result.iterations} iterations "
            f"(relative residual = {result.residual_norm:.6e})."
        )
