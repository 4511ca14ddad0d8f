"""
Axisymmetric / plane-parallel magnetostatics with bilinear finite elements.
"""
from magnetostaticanalysis.config import CoordinateSystem, LocatorKind, SolverSettings
from magnetostaticanalysis.exceptions import (
    ConvergenceError,
    MalformedInputError,
    PreconditionerBreakdownError,
    SolverError,
    SolverStateError,
)
from magnetostaticanalysis.pipeline import solve_equation

__all__ = [
    "CoordinateSystem",
    "LocatorKind",
    "SolverSettings",
    "ConvergenceError",
    "MalformedInputError",
    "PreconditionerBreakdownError",
    "SolverError",
    "SolverStateError",
    "solve_equation",
]
