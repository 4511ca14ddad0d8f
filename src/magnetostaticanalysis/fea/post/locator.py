"""
Element location for field queries.

Both locators return the first element, in grid iteration order, whose bounding
rectangle (first node to last node, edges included) contains the point.
"""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Protocol

import numpy as np

if TYPE_CHECKING:
    from magnetostaticanalysis.fea.pre.grid import Element, Grid, Node2D

logger = logging.getLogger(__name__)


class ElementLocator(Protocol):
    def find(self, point: Node2D) -> Element | None: ...


class LinearElementLocator:
    """
    Scans all elements in order. Suitable for small grids.
    """
    def __init__(self, grid: Grid) -> None:
        self.grid = grid

    def find(self, point: Node2D) -> Element | None:
        """
        Find the first element containing the point.

        Returns:
            The element, or None if no element contains the point.
        """
        for element in self.grid.elements:
            if point.is_within(*self.grid.element_bounds(element)):
                return element
        return None


class BucketElementLocator:
    """
    Uniform bucket grid over the element bounding boxes.

    Each element is registered in every bucket its (closed) bounding box touches, in
    element order, so the first matching candidate of a bucket is the lowest-index
    element containing the point.
    """
    def __init__(self, grid: Grid, buckets_per_axis: int | None = None) -> None:
        """
        Initialize the locator.

        Args:
            grid: Grid to index.
            buckets_per_axis: Number of buckets in each direction. Defaults to
                about sqrt(number of elements).
        """
        self.grid = grid

        coordinates = grid.coordinates
        self._x_min, self._y_min = coordinates.min(axis=0)
        x_max, y_max = coordinates.max(axis=0)

        if buckets_per_axis is None:
            buckets_per_axis = max(1, int(math.sqrt(grid.number_of_elements)))
        self._n = buckets_per_axis
        self._dx = (x_max - self._x_min) / self._n or 1.0
        self._dy = (y_max - self._y_min) / self._n or 1.0

        self._buckets: list[list[Element]] = [[] for _ in range(self._n * self._n)]
        for element in grid.elements:
            lower_left, upper_right = grid.element_bounds(element)
            i0, j0 = self._bucket_of(lower_left.x, lower_left.y)
            i1, j1 = self._bucket_of(upper_right.x, upper_right.y)
            for j in range(j0, j1 + 1):
                for i in range(i0, i1 + 1):
                    self._buckets[j * self._n + i].append(element)

        logger.debug(f"Bucket locator built with {self._n}x{self._n} buckets.")

    def _bucket_of(self, x: float, y: float) -> tuple[int, int]:
        i = int(np.clip(math.floor((x - self._x_min) / self._dx), 0, self._n - 1))
        j = int(np.clip(math.floor((y - self._y_min) / self._dy), 0, self._n - 1))
        return i, j

    def find(self, point: Node2D) -> Element | None:
        """
        Find the first element containing the point.

        Returns:
            The element, or None if no element contains the point.
        """
        i, j = self._bucket_of(point.x, point.y)
        for element in self._buckets[j * self._n + i]:
            if point.is_within(*self.grid.element_bounds(element)):
                return element
        return None
