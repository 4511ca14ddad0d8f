"""
Configuration & Constants
=========================
This module serves as the central registry for file names, physical constants
and solver defaults.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (tolerances, μ0, file names)
   scattered throughout the solver code.
2. Defaults: It holds the reference case (material table and evaluation
   points) that the command-line runner solves when no overrides are given.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    EXAMPLE_DATA_PATH (str): Absolute path to the bundled example grid.
    SolverSettings: Tunable parameters of the solve-and-evaluate pipeline.
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, relative to the project root.
    """
    # config.py is in src/magnetostaticanalysis/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


class CoordinateSystem(StrEnum):
    PLANE = "plane"
    AXISYMMETRIC = "axisymmetric"


class LocatorKind(StrEnum):
    LINEAR = "linear"
    BUCKET = "bucket"


@dataclass
class SolverSettings:
    """
    Parameters of the assemble → eliminate → solve → evaluate pipeline.

    Attributes:
        tolerance: Relative residual norm ‖r‖/‖b‖ at which CG stops.
        max_iterations: Iteration cap of the conjugate-gradient loop.
        coordinate_system: Integration weight of the weak form (1 or r).
        locator: Element location strategy used by field evaluation.
        accept_unconverged: Continue with the best-so-far vector when CG hits the cap.
    """
    tolerance: float = 1e-12
    max_iterations: int = 10000
    coordinate_system: CoordinateSystem = CoordinateSystem.PLANE
    locator: LocatorKind = LocatorKind.LINEAR
    accept_unconverged: bool = False

    def __post_init__(self) -> None:
        if not self.tolerance > 0.0:
            raise ValueError(f"Tolerance must be positive, got {self.tolerance}.")
        if self.max_iterations < 1:
            raise ValueError(f"Maximum number of iterations must be >= 1, got {self.max_iterations}.")
        self.coordinate_system = CoordinateSystem(self.coordinate_system)
        self.locator = LocatorKind(self.locator)


# Physical constants
MU0: float = 4.0 * math.pi * 1e-7

# Reference case: air, iron, coil (+J), coil (-J)
DEFAULT_NU: tuple[float, ...] = (MU0, 1000.0 * MU0, MU0, MU0)
DEFAULT_CURRENT_DENSITY: tuple[float, ...] = (0.0, 0.0, 1e7, -1e7)

DEFAULT_EVALUATION_POINTS: tuple[tuple[float, float], ...] = (
    (-1.4900000e-02, 1.4000000e-03),
    (-6.3000000e-03, 3.0000000e-03),
    (0.0000000e+00, 2.2000000e-03),
    (6.3000000e-03, 3.0000000e-03),
    (1.4100000e-02, 3.3000000e-03),
)

# Input file names
NODES_FILE: str = "rz.dat"
ELEMENTS_FILE: str = "nvtr.dat"
MATERIALS_FILE: str = "nvkat2d.dat"
FIRST_BOUNDARIES_FILE: str = "l1.dat"

# Global Paths
ASSETS_PATH: str = get_resource_path("assets")
EXAMPLE_DATA_PATH: str = os.path.join(ASSETS_PATH, "example")
