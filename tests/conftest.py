from __future__ import annotations

import logging

import numpy as np
import pytest
import scipy as sp

from magnetostaticanalysis.fea.analysis.assembler import Equation
from magnetostaticanalysis.fea.analysis.portrait import MatrixPortrait
from magnetostaticanalysis.fea.pre.boundary import FirstBoundary
from magnetostaticanalysis.fea.pre.grid import rectangular_grid
from magnetostaticanalysis.fea.pre.material import MaterialRepository


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("magnetostaticanalysis")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def unit_square_grid():
    """Single element [0, 1] x [0, 1]."""
    return rectangular_grid([0.0, 1.0], [0.0, 1.0])


@pytest.fixture
def small_grid():
    """4 x 3 elements on [0, 2] x [0, 1.5] with non-uniform steps."""
    return rectangular_grid([0.0, 0.4, 1.0, 1.5, 2.0], [0.0, 0.5, 1.2, 1.5])


@pytest.fixture
def vacuum():
    return MaterialRepository(nu=[1.0], current_density=[0.0])


@pytest.fixture
def two_materials():
    return MaterialRepository(nu=[1.0, 50.0], current_density=[3.0, -2.0])


def outer_boundary(grid, function=lambda x, y: 0.0):
    """First-type boundaries on every node of the outer rectangle."""
    lower_left, upper_right = grid.bounds
    boundaries = []
    for index, node in enumerate(grid.nodes):
        if node.x in (lower_left.x, upper_right.x) or node.y in (lower_left.y, upper_right.y):
            boundaries.append(FirstBoundary(index, function(node.x, node.y)))
    return boundaries


def make_equation(matrix, rhs) -> Equation:
    """Wrap a (dense or sparse) matrix into an Equation with a portrait of its own."""
    csr = sp.sparse.csr_matrix(matrix, dtype=np.float64)
    csr.sort_indices()
    portrait = MatrixPortrait(
        indptr=np.asarray(csr.indptr, dtype=np.int64),
        indices=np.asarray(csr.indices, dtype=np.int64),
    )
    return Equation(matrix=csr, rhs=np.asarray(rhs, dtype=np.float64), portrait=portrait)


def laplacian_2d(n: int) -> sp.sparse.csr_matrix:
    """Five-point Laplacian on an n x n grid; IC(0) drops its fill-in."""
    t = sp.sparse.diags([-1.0, 2.0, -1.0], [-1, 0, 1], shape=(n, n))
    eye = sp.sparse.identity(n)
    return (sp.sparse.kron(eye, t) + sp.sparse.kron(t, eye)).tocsr()
