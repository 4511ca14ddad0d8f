"""
Preconditioned conjugate gradients (MCG) for the symmetric positive-definite system.

State machine::

    UNCONFIGURED --set_precondition--> PRECONDITIONED --solve--> SOLVING --> CONVERGED | FAILED
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np

from magnetostaticanalysis.exceptions import ConvergenceError, MalformedInputError, SolverStateError
from magnetostaticanalysis.fea.solvers.preconditioner import IncompleteCholesky

if TYPE_CHECKING:
    import numpy.typing as npt
    import scipy as sp

    from magnetostaticanalysis.fea.analysis.assembler import Equation

logger = logging.getLogger(__name__)

# Iterations between two DEBUG progress messages
LOG_EVERY = 100


class SolverState(StrEnum):
    UNCONFIGURED = "unconfigured"
    PRECONDITIONED = "preconditioned"
    SOLVING = "solving"
    CONVERGED = "converged"
    FAILED = "failed"


@dataclass(frozen=True, eq=False)
class SolverResult:
    """
    Outcome of a conjugate-gradient solve.

    Attributes:
        solution: Nodal solution vector (read-only).
        iterations: Number of CG iterations performed.
        residual_norm: Relative residual ‖b - A x‖ / ‖b‖ of ``solution``.
        converged: Whether the tolerance was reached.
    """
    solution: npt.NDArray[np.float64]
    iterations: int
    residual_norm: float
    converged: bool


class MCG:
    """
    Conjugate-gradient solver with an incomplete Cholesky preconditioner.
    """
    def __init__(
        self,
        preconditioner: IncompleteCholesky | None = None,
        tolerance: float = 1e-12,
        max_iterations: int = 10000,
    ) -> None:
        """
        Initialize the solver.

        Args:
            preconditioner: Preconditioner to factorize and apply. IC(0) by default.
            tolerance: Relative residual norm at which the iteration stops.
            max_iterations: Iteration cap.
        """
        self.preconditioner = preconditioner if preconditioner is not None else IncompleteCholesky()
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.state = SolverState.UNCONFIGURED

    def set_precondition(
        self,
        matrix: sp.sparse.csr_matrix,
        out: sp.sparse.csr_matrix | None = None,
    ) -> MCG:
        """
        Factorize the preconditioner for ``matrix``.

        Args:
            matrix: System matrix.
            out: Portrait-shaped storage for the factor (see ``GlobalAssembler.allocate_precondition_matrix``).

        Raises:
            PreconditionerBreakdownError: If the incomplete factorization breaks down.

        Returns:
            The solver itself, for chaining.
        """
        self.state = SolverState.UNCONFIGURED
        self.preconditioner.factorize(matrix, out=out)
        self.state = SolverState.PRECONDITIONED
        return self

    def solve(
        self,
        equation: Equation,
        initial_guess: npt.NDArray[np.float64] | None = None,
    ) -> SolverResult:
        """
        Run the preconditioned conjugate-gradient iteration.

        Args:
            equation: System to solve.
            initial_guess: Starting vector, zero if omitted.

        Raises:
            SolverStateError: If the preconditioner has not been set.
            MalformedInputError: If the preconditioner was built for a different system size.
            ConvergenceError: If the tolerance is not reached within the iteration cap. The
                best-so-far result is attached to the exception.

        Returns:
            The converged result.
        """
        if self.state == SolverState.UNCONFIGURED or not self.preconditioner.is_factorized:
            raise SolverStateError("set_precondition() must be called before solve().")
        if self.preconditioner.size != equation.size:
            raise MalformedInputError(
                f"Preconditioner has {self.preconditioner.size} equations, system has {equation.size}."
            )

        self.state = SolverState.SOLVING

        a = equation.matrix
        b = np.asarray(equation.rhs, dtype=np.float64)
        x = np.zeros_like(b) if initial_guess is None else np.array(initial_guess, dtype=np.float64)

        b_norm = float(np.linalg.norm(b))
        if b_norm == 0.0:
            x[:] = 0.0
            return self._finish(x, iterations=0, residual_norm=0.0, converged=True)

        r = b - a @ x
        z = self.preconditioner.apply(r)
        p = z.copy()
        rz = float(r @ z)

        residual_norm = float(np.linalg.norm(r)) / b_norm
        best_x, best_residual = x.copy(), residual_norm

        iteration = 0
        while residual_norm >= self.tolerance and iteration < self.max_iterations:
            ap = a @ p
            pap = float(p @ ap)
            if not pap > 0.0:
                logger.warning(f"CG breakdown at iteration {iteration}: pᵀAp = {pap:.6e}.")
                break

            alpha = rz / pap
            x += alpha * p
            r -= alpha * ap
            iteration += 1

            residual_norm = float(np.linalg.norm(r)) / b_norm
            if not np.isfinite(residual_norm):
                logger.warning(f"CG residual became non-finite at iteration {iteration}.")
                break
            if residual_norm < best_residual:
                best_x, best_residual = x.copy(), residual_norm
            if residual_norm < self.tolerance:
                break

            if iteration % LOG_EVERY == 0:
                logger.debug(f"CG iteration {iteration}: relative residual {residual_norm:.6e}")

            z = self.preconditioner.apply(r)
            rz_new = float(r @ z)
            beta = rz_new / rz
            rz = rz_new
            p = z + beta * p

        converged = bool(np.isfinite(residual_norm) and residual_norm < self.tolerance)
        if converged:
            return self._finish(x, iteration, residual_norm, converged=True)
        return self._finish(best_x, iteration, best_residual, converged=False)

    def _finish(
        self,
        x: npt.NDArray[np.float64],
        iterations: int,
        residual_norm: float,
        converged: bool,
    ) -> SolverResult:
        x.setflags(write=False)
        result = SolverResult(solution=x, iterations=iterations, residual_norm=residual_norm, converged=converged)

        if converged:
            self.state = SolverState.CONVERGED
            logger.info(f"CG converged in {iterations} iterations (relative residual {residual_norm:.3e}).")
            return result

        self.state = SolverState.FAILED
        logger.error(f"CG failed after {iterations} iterations (relative residual {residual_norm:.3e}).")
        raise ConvergenceError(result)
