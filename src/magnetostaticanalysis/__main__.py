"""Command-line interface."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from magnetostaticanalysis.config import (
    DEFAULT_CURRENT_DENSITY,
    DEFAULT_EVALUATION_POINTS,
    DEFAULT_NU,
    EXAMPLE_DATA_PATH,
    CoordinateSystem,
    LocatorKind,
    SolverSettings,
)
from magnetostaticanalysis.exceptions import MalformedInputError, SolverError
from magnetostaticanalysis.fea.post.sinks import ConsoleResultSink
from magnetostaticanalysis.fea.pre.grid import Node2D
from magnetostaticanalysis.fea.pre.io import GridIO, ResultIO
from magnetostaticanalysis.fea.pre.material import MaterialRepository
from magnetostaticanalysis.logging_config import setup_logging
from magnetostaticanalysis.pipeline import solve_equation

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="magnetostaticanalysis",
        description="Solve a 2D magnetostatic problem on a bilinear grid and report Az and B.",
    )
    parser.add_argument(
        "data_dir", nargs="?", default=EXAMPLE_DATA_PATH,
        help="Directory with rz.dat, nvtr.dat, nvkat2d.dat and l1.dat (default: bundled example).",
    )
    parser.add_argument("--one-based", action="store_true", help="Node indexes in the files start at 1.")
    parser.add_argument("--tolerance", type=float, default=SolverSettings.tolerance)
    parser.add_argument("--max-iterations", type=int, default=SolverSettings.max_iterations)
    parser.add_argument(
        "--coordinate-system", choices=[c.value for c in CoordinateSystem], default=CoordinateSystem.PLANE.value,
    )
    parser.add_argument("--locator", choices=[k.value for k in LocatorKind], default=LocatorKind.LINEAR.value)
    parser.add_argument(
        "--accept-unconverged", action="store_true",
        help="Report the best-so-far solution if CG does not converge.",
    )
    parser.add_argument("--output", help="Write the solution and the point values to an HDF5 file.")
    parser.add_argument("--plot", help="Save a contour plot of Az to this image file (e.g. az.png).")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", help="Also write the log to this file.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level), log_file=args.log_file)

    try:
        settings = SolverSettings(
            tolerance=args.tolerance,
            max_iterations=args.max_iterations,
            coordinate_system=CoordinateSystem(args.coordinate_system),
            locator=LocatorKind(args.locator),
            accept_unconverged=args.accept_unconverged,
        )

        grid_io = GridIO(args.data_dir, one_based=args.one_based)
        grid = grid_io.read_grid()
        first_boundaries = grid_io.read_first_boundaries()
        materials = MaterialRepository(DEFAULT_NU, DEFAULT_CURRENT_DENSITY)

        field_solver, result = solve_equation(
            grid, first_boundaries, materials, settings=settings, sink=ConsoleResultSink()
        )
    except (MalformedInputError, OSError) as e:
        logger.error(f"Invalid input: {e}")
        return 1
    except SolverError as e:
        logger.error(str(e))
        return 1

    points = [Node2D(x, y) for x, y in DEFAULT_EVALUATION_POINTS]

    print("Results for Az:")
    for point in points:
        field_solver.get_az(point)

    print("\nResults for B:")
    for point in points:
        field_solver.get_b(point)

    try:
        if args.output:
            ResultIO.save(
                args.output,
                grid,
                result.solution,
                field_solver.evaluate_many(points),
                iterations=result.iterations,
                residual_norm=result.residual_norm,
            )
        if args.plot:
            from magnetostaticanalysis.fea.post.plot import save_potential_plot

            save_potential_plot(field_solver, args.plot)
    except OSError as e:
        logger.error(f"Could not write output: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
