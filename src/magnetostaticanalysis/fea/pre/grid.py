from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Sequence, Union

import numpy as np

from magnetostaticanalysis.exceptions import MalformedInputError

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

NODES_PER_ELEMENT = 4

# Relative tolerance (w.r.t. element size) for the axis-alignment check
_ALIGNMENT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Node2D:
    """
    A point in the (x, y) plane. Used both for grid nodes and for query points.
    """
    x: float
    y: float

    @property
    def coords(self) -> npt.NDArray[np.float64]:
        """Coordinates of the node as an array [X, Y]."""
        return np.array([self.x, self.y], dtype=np.float64)

    def is_within(self, lower_left: Node2D, upper_right: Node2D) -> bool:
        """
        Check whether the point lies in the closed rectangle spanned by two corners.

        Args:
            lower_left: Corner with the smallest coordinates.
            upper_right: Corner with the largest coordinates.

        Returns:
            True if the point is inside the rectangle or on its edge.
        """
        return lower_left.x <= self.x <= upper_right.x and lower_left.y <= self.y <= upper_right.y


@dataclass(frozen=True)
class Element:
    """
    Bilinear quadrilateral element.

    The node winding is fixed for the whole grid::

        2 ---- 3
        |      |
        0 ---- 1

    so the first node is the lower-left and the last node the upper-right corner.
    """
    node_indexes: tuple[int, ...]
    material_id: int

    @property
    def global_dofs(self) -> npt.NDArray[np.int64]:
        """Global equation numbers of the element nodes."""
        return np.array(self.node_indexes, dtype=np.int64)

    @property
    def number_of_nodes(self) -> int:
        return len(self.node_indexes)


class Grid:
    """
    Immutable mesh of nodes and bilinear elements.

    Instances are created by :class:`GridBuilder` (or :func:`rectangular_grid`),
    which validate the connectivity before the grid is handed to the solver.
    """
    def __init__(self, nodes: tuple[Node2D, ...], elements: tuple[Element, ...]) -> None:
        self._nodes = nodes
        self._elements = elements

        coordinates = np.array([[node.x, node.y] for node in nodes], dtype=np.float64).reshape(-1, 2)
        coordinates.setflags(write=False)
        self._coordinates = coordinates

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(nodes={self.number_of_nodes}, elements={self.number_of_elements})"

    @property
    def nodes(self) -> tuple[Node2D, ...]:
        return self._nodes

    @property
    def elements(self) -> tuple[Element, ...]:
        return self._elements

    @property
    def coordinates(self) -> npt.NDArray[np.float64]:
        """Read-only (n_nodes, 2) array of node coordinates."""
        return self._coordinates

    @property
    def number_of_nodes(self) -> int:
        return len(self._nodes)

    @property
    def number_of_elements(self) -> int:
        return len(self._elements)

    @property
    def bounds(self) -> tuple[Node2D, Node2D]:
        """Global bounding rectangle given by the first and the last node."""
        return self._nodes[0], self._nodes[-1]

    def element_bounds(self, element: Element) -> tuple[Node2D, Node2D]:
        """Bounding rectangle of an element given by its first and last node."""
        return self._nodes[element.node_indexes[0]], self._nodes[element.node_indexes[-1]]

    def element_steps(self, element: Element) -> tuple[float, float]:
        """Element sizes (hx, hy)."""
        lower_left, upper_right = self.element_bounds(element)
        return upper_right.x - lower_left.x, upper_right.y - lower_left.y


NodeLike = Union[Node2D, Sequence[float]]
ElementLike = Union[Element, tuple[Sequence[int], int]]


class GridBuilder:
    """
    Collects nodes and elements and builds a validated :class:`Grid`.
    """
    def __init__(self) -> None:
        self._nodes: list[Node2D] = []
        self._elements: list[Element] = []

    def set_nodes(self, nodes: Iterable[NodeLike]) -> GridBuilder:
        """
        Set the node sequence. The order defines the global node indexes.

        Args:
            nodes: Nodes or (x, y) pairs.

        Returns:
            The builder itself, for chaining.
        """
        self._nodes = [
            node if isinstance(node, Node2D) else Node2D(float(node[0]), float(node[1]))
            for node in nodes
        ]
        return self

    def set_elements(self, elements: Iterable[ElementLike]) -> GridBuilder:
        """
        Set the element sequence.

        Args:
            elements: Elements or (node indexes, material id) pairs.

        Returns:
            The builder itself, for chaining.
        """
        self._elements = [
            element if isinstance(element, Element)
            else Element(tuple(int(i) for i in element[0]), int(element[1]))
            for element in elements
        ]
        return self

    def build(self) -> Grid:
        """
        Validate the collected data and build the grid.

        Raises:
            MalformedInputError: If there are no nodes or elements, an element does not have
                four nodes, references a missing node, or is not an axis-aligned rectangle
                in the expected winding.

        Returns:
            The immutable grid.
        """
        if not self._nodes:
            raise MalformedInputError("Grid has no nodes.")
        if not self._elements:
            raise MalformedInputError("Grid has no elements.")

        n_nodes = len(self._nodes)
        for index, element in enumerate(self._elements):
            if element.number_of_nodes != NODES_PER_ELEMENT:
                raise MalformedInputError(
                    f"Element {index} has {element.number_of_nodes} nodes, expected {NODES_PER_ELEMENT}."
                )
            for node_index in element.node_indexes:
                if not 0 <= node_index < n_nodes:
                    raise MalformedInputError(
                        f"Element {index} references node {node_index}, but the grid has {n_nodes} nodes."
                    )
            self._check_rectangle(index, element)

        grid = Grid(nodes=tuple(self._nodes), elements=tuple(self._elements))
        logger.debug(f"Built {grid}.")
        return grid

    def _check_rectangle(self, index: int, element: Element) -> None:
        p0, p1, p2, p3 = (self._nodes[i] for i in element.node_indexes)
        hx = p3.x - p0.x
        hy = p3.y - p0.y
        if not (hx > 0.0 and hy > 0.0):
            raise MalformedInputError(
                f"Element {index} is degenerate or wound incorrectly (hx={hx}, hy={hy})."
            )

        tolerance = _ALIGNMENT_TOLERANCE * max(hx, hy)
        aligned = (
            abs(p1.x - p3.x) <= tolerance and abs(p1.y - p0.y) <= tolerance
            and abs(p2.x - p0.x) <= tolerance and abs(p2.y - p3.y) <= tolerance
        )
        if not aligned:
            raise MalformedInputError(
                f"Element {index} is not an axis-aligned rectangle in the "
                f"(lower-left, lower-right, upper-left, upper-right) winding."
            )


def rectangular_grid(
    x_breaks: Sequence[float],
    y_breaks: Sequence[float],
    material_ids: int | Callable[[int, int], int] | npt.ArrayLike = 0,
) -> Grid:
    """
    Build a tensor-product grid of bilinear elements.

    Nodes are numbered row by row (x runs fastest), so the first node is the lower-left
    and the last node the upper-right corner of the domain.

    Args:
        x_breaks: Strictly increasing x coordinates of the grid lines.
        y_breaks: Strictly increasing y coordinates of the grid lines.
        material_ids: A single id for all cells, a callable ``f(i, j)`` of the cell
            column/row, or an array of shape (ny - 1, nx - 1).

    Returns:
        The validated grid.
    """
    xs = np.asarray(x_breaks, dtype=np.float64)
    ys = np.asarray(y_breaks, dtype=np.float64)
    if xs.size < 2 or ys.size < 2:
        raise MalformedInputError("A rectangular grid needs at least two breakpoints in each direction.")
    if np.any(np.diff(xs) <= 0.0) or np.any(np.diff(ys) <= 0.0):
        raise MalformedInputError("Grid breakpoints must be strictly increasing.")

    nx, ny = xs.size, ys.size

    if callable(material_ids):
        select = material_ids
    elif np.ndim(material_ids) == 0:
        select = lambda i, j: int(material_ids)  # noqa: E731
    else:
        table = np.asarray(material_ids, dtype=np.int64)
        if table.shape != (ny - 1, nx - 1):
            raise MalformedInputError(
                f"Material table has shape {table.shape}, expected {(ny - 1, nx - 1)}."
            )
        select = lambda i, j: int(table[j, i])  # noqa: E731

    nodes = [Node2D(float(x), float(y)) for y in ys for x in xs]

    elements = []
    for j in range(ny - 1):
        for i in range(nx - 1):
            k = j * nx + i
            elements.append(Element((k, k + 1, k + nx, k + nx + 1), select(i, j)))

    return GridBuilder().set_nodes(nodes).set_elements(elements).build()
