"""
JIT-compiled kernels of the incomplete Cholesky preconditioner.

All kernels work on CSR arrays of the full symmetric portrait with sorted column
indexes. The factor L is stored in a data array of the same portrait: entries with
column <= row hold L, entries above the diagonal stay zero.
"""
from __future__ import annotations

import numpy as np
import numpy.typing as npt
import numba as nb


@nb.njit(cache=True)
def ic0_factorize(
    indptr: npt.NDArray[np.int64],
    indices: npt.NDArray[np.int64],
    a_data: npt.NDArray[np.float64],
    l_data: npt.NDArray[np.float64],
    diagonal: npt.NDArray[np.int64],
) -> tuple[int, float]:
    """
    Incomplete Cholesky factorization without fill-in, row by row.

        L[i, j] = (A[i, j] - Σ_{k<j} L[i, k] L[j, k]) / L[j, j]
        L[i, i] = sqrt(A[i, i] - Σ_{k<i} L[i, k]²)

    Args:
        indptr: CSR row pointers.
        indices: CSR column indexes (sorted per row).
        a_data: Values of the system matrix.
        l_data: Output values of the factor (same portrait), overwritten.
        diagonal: Data offsets of the diagonal entries.

    Returns:
        (-1, 0.0) on success, otherwise the row and the value of the first non-positive pivot.
    """
    n = indptr.size - 1
    l_data[:] = 0.0
    for i in range(n):
        row_start = indptr[i]
        for p in range(row_start, indptr[i + 1]):
            j = indices[p]
            if j > i:
                break

            # Sparse dot product of rows i and j over columns k < j
            s = a_data[p]
            pi = row_start
            pj = indptr[j]
            while pi < p and pj < indptr[j + 1]:
                ki = indices[pi]
                kj = indices[pj]
                if kj >= j:
                    break
                if ki == kj:
                    s -= l_data[pi] * l_data[pj]
                    pi += 1
                    pj += 1
                elif ki < kj:
                    pi += 1
                else:
                    pj += 1

            if j < i:
                l_data[p] = s / l_data[diagonal[j]]
            else:
                if not s > 0.0:
                    return i, s
                l_data[p] = np.sqrt(s)
    return -1, 0.0


@nb.njit(cache=True)
def forward_substitution(
    indptr: npt.NDArray[np.int64],
    indices: npt.NDArray[np.int64],
    l_data: npt.NDArray[np.float64],
    diagonal: npt.NDArray[np.int64],
    b: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """Solve L y = b."""
    n = indptr.size - 1
    y = np.empty(n, dtype=np.float64)
    for i in range(n):
        s = b[i]
        for p in range(indptr[i], diagonal[i]):
            s -= l_data[p] * y[indices[p]]
        y[i] = s / l_data[diagonal[i]]
    return y


@nb.njit(cache=True)
def backward_substitution(
    indptr: npt.NDArray[np.int64],
    indices: npt.NDArray[np.int64],
    l_data: npt.NDArray[np.float64],
    diagonal: npt.NDArray[np.int64],
    y: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """Solve Lᵀ x = y, sweeping the rows of L from the bottom (column-oriented)."""
    n = indptr.size - 1
    x = y.copy()
    for i in range(n - 1, -1, -1):
        x[i] /= l_data[diagonal[i]]
        xi = x[i]
        for p in range(indptr[i], diagonal[i]):
            x[indices[p]] -= l_data[p] * xi
    return x
