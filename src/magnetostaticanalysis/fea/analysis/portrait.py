"""
Symbolic structure (portrait) of the global matrix and numeric insertion into it.

The portrait is the full symmetric CSR pattern of the grid: every pair of nodes
sharing an element plus the diagonal of every node, with the column indexes of
each row sorted ascending. Global matrices and the incomplete Cholesky factor
are allocated from the same portrait so that data offsets are interchangeable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import scipy as sp

from magnetostaticanalysis.exceptions import MalformedInputError

if TYPE_CHECKING:
    import numpy.typing as npt

    from magnetostaticanalysis.fea.pre.grid import Grid

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class MatrixPortrait:
    """
    CSR structure of a square matrix.

    Attributes:
        indptr: Row pointers, length size + 1.
        indices: Column indexes, sorted within each row.
    """
    indptr: npt.NDArray[np.int64]
    indices: npt.NDArray[np.int64]

    @property
    def size(self) -> int:
        """Number of rows (and columns)."""
        return self.indptr.size - 1

    @property
    def nnz(self) -> int:
        """Number of stored entries."""
        return self.indices.size

    def allocate(self) -> sp.sparse.csr_matrix:
        """
        Allocate a zero-valued matrix with exactly this structure.

        Returns:
            csr_matrix whose explicit zeros span the whole portrait.
        """
        return sp.sparse.csr_matrix(
            (np.zeros(self.nnz, dtype=np.float64), self.indices.copy(), self.indptr.copy()),
            shape=(self.size, self.size),
        )

    def diagonal_positions(self) -> npt.NDArray[np.int64]:
        """Data offsets of the diagonal entries."""
        rows = np.arange(self.size, dtype=np.int64)
        return self.positions(rows, rows)

    def positions(
        self,
        rows: npt.ArrayLike,
        cols: npt.ArrayLike,
    ) -> npt.NDArray[np.int64]:
        """
        Map (row, col) pairs to offsets in the data array of a portrait-shaped matrix.

        Args:
            rows: Row indexes.
            cols: Column indexes, same length as ``rows``.

        Raises:
            MalformedInputError: If an index lies outside the matrix or a pair is not part
                of the portrait.

        Returns:
            Data offsets, one per pair.
        """
        rows = np.atleast_1d(np.asarray(rows, dtype=np.int64))
        cols = np.atleast_1d(np.asarray(cols, dtype=np.int64))

        n = self.size
        if np.any((rows < 0) | (rows >= n) | (cols < 0) | (cols >= n)):
            raise MalformedInputError(f"Matrix index out of range for a portrait of size {n}.")

        out = np.empty(rows.size, dtype=np.int64)
        for k, (r, c) in enumerate(zip(rows, cols)):
            a, b = self.indptr[r], self.indptr[r + 1]
            offset = a + np.searchsorted(self.indices[a:b], c)
            if offset >= b or self.indices[offset] != c:
                raise MalformedInputError(f"Entry ({r}, {c}) is not part of the matrix portrait.")
            out[k] = offset
        return out

    def scatter(self, dofs: npt.NDArray[np.int64]) -> npt.NDArray[np.int64]:
        """
        Data offsets of a dense block over ``dofs`` × ``dofs``, in C order.
        """
        dofs = np.asarray(dofs, dtype=np.int64)
        n_dofs = dofs.size
        return self.positions(np.repeat(dofs, n_dofs), np.tile(dofs, n_dofs))


class MatrixPortraitBuilder:
    """
    Builds the portrait of the global matrix from element connectivity.
    """
    def build(self, grid: Grid) -> MatrixPortrait:
        """
        Visit every element's node pairs and deduplicate them into a CSR pattern.

        Args:
            grid: The grid to build the portrait for.

        Raises:
            MalformedInputError: If an element references a node outside the grid.

        Returns:
            The portrait with sorted column indexes in each row.
        """
        n = grid.number_of_nodes

        # Diagonal is always present, also for nodes not attached to any element
        row_parts: list[npt.NDArray[np.int64]] = [np.arange(n, dtype=np.int64)]
        col_parts: list[npt.NDArray[np.int64]] = [np.arange(n, dtype=np.int64)]

        for index, element in enumerate(grid.elements):
            dofs = element.global_dofs
            if np.any((dofs < 0) | (dofs >= n)):
                raise MalformedInputError(
                    f"Element {index} references nodes {dofs.tolist()} outside a grid of {n} nodes."
                )
            n_dofs = dofs.size
            row_parts.append(np.repeat(dofs, n_dofs))
            col_parts.append(np.tile(dofs, n_dofs))

        rows = np.concatenate(row_parts)
        cols = np.concatenate(col_parts)

        pattern = sp.sparse.coo_matrix(
            (
                np.ones_like(rows, dtype=np.int8),
                (rows, cols),
            ),
            shape=(n, n)
        ).tocsr()
        pattern.sum_duplicates()
        pattern.sort_indices()

        portrait = MatrixPortrait(
            indptr=np.asarray(pattern.indptr, dtype=np.int64),
            indices=np.asarray(pattern.indices, dtype=np.int64),
        )
        portrait.indptr.setflags(write=False)
        portrait.indices.setflags(write=False)

        logger.debug(f"Matrix portrait built: {portrait.size} rows, {portrait.nnz} entries.")
        return portrait


class Inserter:
    """
    Adds dense local blocks into a portrait-shaped sparse matrix.
    """
    def insert(
        self,
        matrix: sp.sparse.csr_matrix,
        portrait: MatrixPortrait,
        local_matrix: npt.NDArray[np.float64],
        dofs: npt.NDArray[np.int64],
    ) -> None:
        """
        Accumulate ``local_matrix`` at the global positions ``dofs`` × ``dofs``.

        Repeated contributions to the same slot are summed.

        Raises:
            MalformedInputError: If a position is not part of the portrait.
        """
        positions = portrait.scatter(dofs)
        np.add.at(matrix.data, positions, np.asarray(local_matrix, dtype=np.float64).ravel(order="C"))
