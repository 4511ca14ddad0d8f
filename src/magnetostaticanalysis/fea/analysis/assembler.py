"""
Global assembly and elimination of essential boundary conditions.

The stages hand their data over by value:

    GlobalAssembler.assemble_equation()      -> AssembledSystem
    AssembledSystem.apply_first_boundaries() -> AssembledSystem (new copy)
    AssembledSystem.build_equation()         -> Equation (read-only right-hand side)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

import numpy as np
import scipy as sp

from magnetostaticanalysis.exceptions import MalformedInputError

if TYPE_CHECKING:
    import numpy.typing as npt

    from magnetostaticanalysis.fea.analysis.local import LocalAssembler
    from magnetostaticanalysis.fea.analysis.portrait import Inserter, MatrixPortrait, MatrixPortraitBuilder
    from magnetostaticanalysis.fea.pre.boundary import FirstBoundaryValue
    from magnetostaticanalysis.fea.pre.grid import Grid

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Equation:
    """
    Final linear system A x = b handed to the solver.

    Attributes:
        matrix: Symmetric positive-definite system matrix (portrait-shaped CSR).
        rhs: Right-hand side vector (read-only).
        portrait: Structure the matrix was allocated from.
    """
    matrix: sp.sparse.csr_matrix
    rhs: npt.NDArray[np.float64]
    portrait: MatrixPortrait

    @property
    def size(self) -> int:
        return self.rhs.size


class GaussExcluder:
    """
    Eliminates prescribed values from a symmetric system.

    For each boundary node the column entries of the other rows are moved to their
    right-hand side, the row and column are zeroed and the diagonal is set to one.
    The result stays symmetric and reproduces the prescribed values exactly.
    """
    def exclude(
        self,
        matrix: sp.sparse.csr_matrix,
        rhs: npt.NDArray[np.float64],
        portrait: MatrixPortrait,
        boundary: Iterable[FirstBoundaryValue],
    ) -> None:
        """
        Apply boundary values in place.

        Args:
            matrix: Portrait-shaped matrix, modified in place.
            rhs: Right-hand side, modified in place.
            portrait: Structure of ``matrix``.
            boundary: Prescribed (node, value) pairs.

        Raises:
            MalformedInputError: If a boundary node is outside the matrix.
        """
        data = matrix.data
        n = portrait.size
        for condition in boundary:
            node = condition.node_index
            value = condition.value
            if not 0 <= node < n:
                raise MalformedInputError(f"Boundary node {node} is outside a system of {n} equations.")

            a, b = portrait.indptr[node], portrait.indptr[node + 1]
            cols = portrait.indices[a:b]
            off_diagonal = cols != node
            neighbours = cols[off_diagonal]

            # Column entries a_ji of the other rows
            column_positions = portrait.positions(neighbours, np.full(neighbours.size, node))
            rhs[neighbours] -= data[column_positions] * value
            data[column_positions] = 0.0

            # Row entries a_ij
            row_positions = np.arange(a, b)
            data[row_positions[off_diagonal]] = 0.0
            data[row_positions[~off_diagonal]] = 1.0

            rhs[node] = value


@dataclass(frozen=True, eq=False)
class AssembledSystem:
    """
    Assembled (but not yet final) global system.

    Attributes:
        matrix: Global stiffness matrix.
        rhs: Global load vector.
        portrait: Structure of the matrix.
        excluder: Strategy applying essential boundary conditions.
    """
    matrix: sp.sparse.csr_matrix
    rhs: npt.NDArray[np.float64]
    portrait: MatrixPortrait
    excluder: GaussExcluder

    def apply_first_boundaries(self, boundary: Iterable[FirstBoundaryValue]) -> AssembledSystem:
        """
        Eliminate prescribed values.

        Args:
            boundary: Prescribed (node, value) pairs.

        Returns:
            A new system; this one is left untouched.
        """
        boundary = tuple(boundary)
        matrix = self.matrix.copy()
        rhs = self.rhs.copy()
        self.excluder.exclude(matrix, rhs, self.portrait, boundary)
        logger.info(f"Applied {len(boundary)} first-type boundary conditions.")
        return AssembledSystem(matrix=matrix, rhs=rhs, portrait=self.portrait, excluder=self.excluder)

    def build_equation(self) -> Equation:
        """
        Extract the final system for the solver.
        """
        rhs = self.rhs.copy()
        rhs.setflags(write=False)
        return Equation(matrix=self.matrix.copy(), rhs=rhs, portrait=self.portrait)


class GlobalAssembler:
    """
    Drives element iteration and accumulates local contributions into the global system.
    """
    def __init__(
        self,
        grid: Grid,
        portrait_builder: MatrixPortraitBuilder,
        local_assembler: LocalAssembler,
        inserter: Inserter,
        excluder: GaussExcluder,
    ) -> None:
        """
        Initialize the assembler.

        Args:
            grid: The grid to assemble.
            portrait_builder: Builds the global matrix structure.
            local_assembler: Computes element contributions.
            inserter: Adds element blocks into the global matrix.
            excluder: Applies essential boundary conditions.
        """
        self.grid = grid
        self.portrait_builder = portrait_builder
        self.local_assembler = local_assembler
        self.inserter = inserter
        self.excluder = excluder

        self._portrait: MatrixPortrait | None = None

    @property
    def portrait(self) -> MatrixPortrait:
        """Portrait of the global matrix, built on first use."""
        if self._portrait is None:
            self._portrait = self.portrait_builder.build(self.grid)
        return self._portrait

    @property
    def number_of_equations(self) -> int:
        return self.grid.number_of_nodes

    def assemble_equation(self) -> AssembledSystem:
        """
        Assemble the global stiffness matrix and load vector.

        Shared nodes receive the sum of the contributions of all their elements.

        Raises:
            MalformedInputError: If an element is inconsistent with the portrait or uses
                an unknown material.

        Returns:
            The assembled system, ready for boundary elimination.
        """
        portrait = self.portrait
        matrix = portrait.allocate()
        rhs = np.zeros((self.number_of_equations,), dtype=np.float64)

        for element in self.grid.elements:
            contribution = self.local_assembler.assemble(element)
            self.inserter.insert(matrix, portrait, contribution.matrix, contribution.dofs)
            np.add.at(rhs, contribution.dofs, contribution.vector)

        logger.info(
            f"Assembled global system: {self.number_of_equations} equations, "
            f"{portrait.nnz} stored entries, {self.grid.number_of_elements} elements."
        )
        return AssembledSystem(matrix=matrix, rhs=rhs, portrait=portrait, excluder=self.excluder)

    def allocate_precondition_matrix(self) -> sp.sparse.csr_matrix:
        """
        Allocate storage for the preconditioner, shaped like the global matrix portrait.
        """
        return self.portrait.allocate()
