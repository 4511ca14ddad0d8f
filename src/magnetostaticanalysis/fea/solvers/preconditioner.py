from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import scipy as sp

from magnetostaticanalysis.exceptions import (
    MalformedInputError,
    PreconditionerBreakdownError,
    SolverStateError,
)
from magnetostaticanalysis.fea.solvers import kernels

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

# Diagonal shifts A + α·diag(A) tried after a breakdown of the plain factorization
INITIAL_DIAGONAL_SHIFT = 1e-3
MAX_DIAGONAL_SHIFT = 1e3


def _csr_arrays(matrix: sp.sparse.csr_matrix) -> tuple[npt.NDArray[np.int64], npt.NDArray[np.int64]]:
    if not matrix.has_sorted_indices:
        raise MalformedInputError("Matrix portrait must have sorted column indexes.")
    return (
        np.ascontiguousarray(matrix.indptr, dtype=np.int64),
        np.ascontiguousarray(matrix.indices, dtype=np.int64),
    )


def _diagonal_offsets(indptr: npt.NDArray[np.int64], indices: npt.NDArray[np.int64]) -> npt.NDArray[np.int64]:
    n = indptr.size - 1
    rows = np.repeat(np.arange(n, dtype=np.int64), np.diff(indptr))
    diagonal = np.flatnonzero(indices == rows).astype(np.int64)
    if diagonal.size != n:
        raise MalformedInputError("Every row of the matrix portrait must contain its diagonal entry.")
    return diagonal


class IncompleteCholesky:
    """
    IC(0) preconditioner: L Lᵀ ≈ A with L restricted to the lower part of the matrix portrait.

    If the factorization of A breaks down, it is retried on A + α·diag(A) with α growing
    tenfold from ``initial_shift`` up to ``max_shift`` (shifted incomplete Cholesky).
    """
    def __init__(
        self,
        initial_shift: float = INITIAL_DIAGONAL_SHIFT,
        max_shift: float = MAX_DIAGONAL_SHIFT,
    ) -> None:
        self.initial_shift = initial_shift
        self.max_shift = max_shift
        self.shift = 0.0
        self.factor: sp.sparse.csr_matrix | None = None
        self._indptr: npt.NDArray[np.int64] = np.empty(0, dtype=np.int64)
        self._indices: npt.NDArray[np.int64] = np.empty(0, dtype=np.int64)
        self._diagonal: npt.NDArray[np.int64] = np.empty(0, dtype=np.int64)

    @property
    def is_factorized(self) -> bool:
        return self.factor is not None

    @property
    def size(self) -> int:
        return self._indptr.size - 1 if self.is_factorized else 0

    def factorize(
        self,
        matrix: sp.sparse.csr_matrix,
        out: sp.sparse.csr_matrix | None = None,
    ) -> sp.sparse.csr_matrix:
        """
        Compute the incomplete factor of a symmetric positive-definite matrix.

        Args:
            matrix: System matrix (CSR, sorted indexes, diagonal present in every row).
            out: Portrait-shaped storage for the factor. Allocated if omitted.

        Raises:
            MalformedInputError: If ``out`` has a different structure than ``matrix``.
            PreconditionerBreakdownError: If a pivot is not positive even with the largest
                diagonal shift.

        Returns:
            The factor L stored in the portrait of ``matrix`` (upper part zero).
        """
        indptr, indices = _csr_arrays(matrix)
        diagonal = _diagonal_offsets(indptr, indices)

        if out is None:
            out = sp.sparse.csr_matrix(
                (np.zeros(indices.size, dtype=np.float64), indices.copy(), indptr.copy()),
                shape=matrix.shape,
            )
        elif not (
            out.shape == matrix.shape
            and np.array_equal(out.indptr, indptr)
            and np.array_equal(out.indices, indices)
        ):
            raise MalformedInputError("Precondition matrix does not share the portrait of the system matrix.")

        l_data = np.zeros(indices.size, dtype=np.float64)
        a_data = np.ascontiguousarray(matrix.data, dtype=np.float64)
        row, pivot = kernels.ic0_factorize(indptr, indices, a_data, l_data, diagonal)

        shift = 0.0
        if row >= 0:
            logger.debug(f"Incomplete Cholesky broke down at row {row} (pivot = {pivot:.6e}).")
            shifted_data = np.empty_like(a_data)
            candidate = self.initial_shift
            while row >= 0 and candidate <= self.max_shift * (1.0 + 1e-12):
                shift = candidate
                shifted_data[:] = a_data
                shifted_data[diagonal] *= 1.0 + shift
                row, pivot = kernels.ic0_factorize(indptr, indices, shifted_data, l_data, diagonal)
                candidate *= 10.0

        if row >= 0:
            self.factor = None
            self.shift = 0.0
            raise PreconditionerBreakdownError(row=int(row), pivot=float(pivot), shift=shift)
        if shift > 0.0:
            logger.warning(f"Incomplete Cholesky needed a diagonal shift of {shift:.1e} to stay positive definite.")
        self.shift = shift

        out.data[:] = l_data
        self.factor = out
        self._indptr, self._indices, self._diagonal = indptr, indices, diagonal

        logger.debug(f"Incomplete Cholesky factor computed for {matrix.shape[0]} equations.")
        return out

    def apply(self, residual: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Solve L Lᵀ z = r by a forward and a backward substitution.

        Raises:
            SolverStateError: If the preconditioner was not factorized.
        """
        if self.factor is None:
            raise SolverStateError("Preconditioner has not been factorized.")
        l_data = self.factor.data
        y = kernels.forward_substitution(self._indptr, self._indices, l_data, self._diagonal, residual)
        return kernels.backward_substitution(self._indptr, self._indices, l_data, self._diagonal, y)
