"""
Input/Output
============
Reads the text input files of a case and stores solved results in HDF5.

Input files (whitespace separated, '#' starts a comment):
    rz.dat       one "x y" pair per node; the line order defines node indexes
    nvtr.dat     node indexes of one element per line (first four columns are used)
    nvkat2d.dat  material id of each element, one per line
    l1.dat       "node [value]" per line; the value defaults to 0
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Sequence

import h5py
import numpy as np

from magnetostaticanalysis.config import (
    ELEMENTS_FILE,
    FIRST_BOUNDARIES_FILE,
    MATERIALS_FILE,
    NODES_FILE,
)
from magnetostaticanalysis.exceptions import MalformedInputError
from magnetostaticanalysis.fea.pre.boundary import FirstBoundary
from magnetostaticanalysis.fea.pre.grid import NODES_PER_ELEMENT, Element, GridBuilder, Node2D

if TYPE_CHECKING:
    import numpy.typing as npt

    from magnetostaticanalysis.fea.post.field import FieldValue
    from magnetostaticanalysis.fea.pre.grid import Grid

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("magnetostaticanalysis")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


class GridIO:
    """
    Reader of the grid, material and boundary files of a case directory.
    """
    def __init__(self, directory: str, one_based: bool = False) -> None:
        """
        Args:
            directory: Directory holding the input files.
            one_based: Node indexes in the files start at 1 instead of 0.
        """
        self.directory = directory
        self.index_offset = 1 if one_based else 0

    def _load(self, filename: str, dtype: type) -> npt.NDArray:
        path = os.path.join(self.directory, filename)
        logger.debug(f"Reading {path}")
        try:
            return np.loadtxt(path, dtype=dtype, comments="#", ndmin=2)
        except ValueError as e:
            raise MalformedInputError(f"Could not parse '{path}': {e}") from e

    def read_nodes(self, filename: str = NODES_FILE) -> list[Node2D]:
        """
        Read node coordinates.

        Raises:
            MalformedInputError: If the file is empty or has fewer than two columns.
        """
        data = self._load(filename, np.float64)
        if data.shape[0] == 0 or data.shape[1] < 2:
            raise MalformedInputError(f"'{filename}' must contain at least one 'x y' line.")
        nodes = [Node2D(float(x), float(y)) for x, y in data[:, :2]]
        logger.info(f"Read {len(nodes)} nodes from '{filename}'.")
        return nodes

    def read_materials(self, filename: str = MATERIALS_FILE) -> list[int]:
        """Read one material id per element."""
        data = self._load(filename, np.int64)
        return [int(material_id) for material_id in data.ravel()]

    def read_elements(
        self,
        nodes: Sequence[Node2D],
        material_ids: Sequence[int],
        filename: str = ELEMENTS_FILE,
    ) -> list[Element]:
        """
        Read element connectivity and attach the material ids.

        Args:
            nodes: Nodes read before; used to validate the node indexes.
            material_ids: Material id of each element, in file order.
            filename: Connectivity file.

        Raises:
            MalformedInputError: If an element line has fewer than four indexes, the number
                of elements differs from the number of material ids, or an index is out of range.
        """
        data = self._load(filename, np.int64)
        if data.shape[0] and data.shape[1] < NODES_PER_ELEMENT:
            raise MalformedInputError(
                f"'{filename}' lines must contain {NODES_PER_ELEMENT} node indexes, got {data.shape[1]}."
            )
        if data.shape[0] != len(material_ids):
            raise MalformedInputError(
                f"'{filename}' lists {data.shape[0]} elements but {len(material_ids)} material ids were given."
            )

        connectivity = data[:, :NODES_PER_ELEMENT] - self.index_offset
        if connectivity.size and (connectivity.min() < 0 or connectivity.max() >= len(nodes)):
            raise MalformedInputError(f"'{filename}' references nodes outside of the {len(nodes)} read nodes.")

        elements = [
            Element(tuple(int(i) for i in row), int(material_id))
            for row, material_id in zip(connectivity, material_ids)
        ]
        logger.info(f"Read {len(elements)} elements from '{filename}'.")
        return elements

    def read_first_boundaries(self, filename: str = FIRST_BOUNDARIES_FILE) -> list[FirstBoundary]:
        """Read first-type boundary nodes with optional prescribed values."""
        data = self._load(filename, np.float64)
        if data.shape[0] == 0:
            logger.warning(f"'{filename}' contains no boundary nodes.")
            return []

        indexes = data[:, 0]
        if np.any(indexes != np.round(indexes)):
            raise MalformedInputError(f"'{filename}' contains non-integer node indexes.")
        values = data[:, 1] if data.shape[1] > 1 else np.zeros(data.shape[0])

        boundaries = [
            FirstBoundary(int(index) - self.index_offset, float(value))
            for index, value in zip(indexes, values)
        ]
        logger.info(f"Read {len(boundaries)} first-type boundary nodes from '{filename}'.")
        return boundaries

    def read_grid(self) -> Grid:
        """Read nodes, materials and elements and build the grid."""
        nodes = self.read_nodes()
        material_ids = self.read_materials()
        elements = self.read_elements(nodes, material_ids)
        return GridBuilder().set_nodes(nodes).set_elements(elements).build()


@dataclass(frozen=True, eq=False)
class StoredResults:
    """Content of a results file."""
    coordinates: npt.NDArray[np.float64]
    connectivity: npt.NDArray[np.int64]
    solution: npt.NDArray[np.float64]
    points: npt.NDArray[np.float64]
    fields: npt.NDArray[np.float64]
    iterations: int
    residual_norm: float


class ResultIO:
    """
    Saves and loads solved cases (HDF5).
    """
    @staticmethod
    def save(
        filepath: str,
        grid: Grid,
        solution: npt.NDArray[np.float64],
        values: Sequence[FieldValue] = (),
        iterations: int = 0,
        residual_norm: float = 0.0,
    ) -> None:
        """
        Write the grid, the nodal solution and evaluated field values.

        Args:
            filepath: Output file.
            grid: Solved grid.
            solution: Nodal Az values.
            values: Field values at query points; stored as columns (Az, Bx, By, |B|).
            iterations: CG iterations of the solve.
            residual_norm: Final relative residual of the solve.
        """
        logger.info(f"Saving results to: {filepath}")
        connectivity = np.array([element.node_indexes for element in grid.elements], dtype=np.int64)
        points = np.array([[v.point.x, v.point.y] for v in values], dtype=np.float64).reshape(-1, 2)
        fields = np.array([[v.az, v.bx, v.by, v.b] for v in values], dtype=np.float64).reshape(-1, 4)

        try:
            with h5py.File(filepath, "w") as f:
                f.attrs["version"] = APP_VERSION
                f.attrs["iterations"] = iterations
                f.attrs["residual_norm"] = residual_norm

                grp_grid = f.create_group("grid")
                grp_grid.create_dataset("coordinates", data=grid.coordinates)
                grp_grid.create_dataset("connectivity", data=connectivity)
                grp_grid.create_dataset(
                    "material_ids",
                    data=np.array([element.material_id for element in grid.elements], dtype=np.int64),
                )

                f.create_dataset("solution", data=np.asarray(solution, dtype=np.float64))

                grp_points = f.create_group("points")
                grp_points.create_dataset("coordinates", data=points)
                grp_points.create_dataset("fields", data=fields)
        except OSError:
            logger.exception(f"Failed to save results to: {filepath}")
            raise

        logger.info(f"Results saved to: {filepath}")

    @staticmethod
    def load(filepath: str) -> StoredResults:
        """
        Read a file written by :meth:`save`.

        Raises:
            MalformedInputError: If the file is not a valid HDF5 results file.
        """
        logger.info(f"Loading results from: {filepath}")
        if not h5py.is_hdf5(filepath):
            raise MalformedInputError(f"File '{filepath}' is not a valid HDF5 file.")

        with h5py.File(filepath, "r") as f:
            try:
                return StoredResults(
                    coordinates=f["grid/coordinates"][()],
                    connectivity=f["grid/connectivity"][()],
                    solution=f["solution"][()],
                    points=f["points/coordinates"][()],
                    fields=f["points/fields"][()],
                    iterations=int(f.attrs["iterations"]),
                    residual_norm=float(f.attrs["residual_norm"]),
                )
            except KeyError as e:
                raise MalformedInputError(f"File '{filepath}' is missing results data: {e}") from e
