from magnetostaticanalysis.fea.solvers.preconditioner import IncompleteCholesky
from magnetostaticanalysis.fea.solvers.solver import MCG, SolverResult, SolverState

__all__ = ["IncompleteCholesky", "MCG", "SolverResult", "SolverState"]
