"""Point quadtree for proximity queries over a small, static set of stops.

The tree is a region quadtree with fixed-capacity nodes and lazy,
single-shot subdivision:

* A node stores up to ``capacity`` points in insertion order.
* The first insert that finds the node full subdivides it into four
  children (NE, NW, SE, SW), each covering a quadrant with exactly half
  the parent's half-extents. A node subdivides at most once.
* Points already held by a node are **not** pushed down into the
  children; only later inserts go there. Queries therefore always check a
  node's own points before recursing.

``Region.contains`` is inclusive on all four edges and
``Region.intersects`` treats edge-touching regions as intersecting, so a
point on a quadrant boundary is accepted by whichever child is tried
first.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Point(Generic[T]):
    """An indexed coordinate with an opaque payload.

    ``x`` is the latitude and ``y`` the longitude of the point; the index
    never looks at ``payload``.
    """

    x: float
    y: float
    payload: T


@dataclass(frozen=True, slots=True)
class Region:
    """Axis-aligned rectangle given by its center and half-extents."""

    center_x: float
    center_y: float
    half_width: float
    half_height: float

    def contains(self, point: Point[object]) -> bool:
        return (
            self.center_x - self.half_width <= point.x <= self.center_x + self.half_width
            and self.center_y - self.half_height <= point.y <= self.center_y + self.half_height
        )

    def intersects(self, other: Region) -> bool:
        return not (
            other.center_x - other.half_width > self.center_x + self.half_width
            or other.center_x + other.half_width < self.center_x - self.half_width
            or other.center_y - other.half_height > self.center_y + self.half_height
            or other.center_y + other.half_height < self.center_y - self.half_height
        )

    def quadrants(self) -> tuple[Region, Region, Region, Region]:
        """Child regions in insertion order: NE, NW, SE, SW."""
        x, y = self.center_x, self.center_y
        w, h = self.half_width / 2, self.half_height / 2
        return (
            Region(x + w, y - h, w, h),
            Region(x - w, y - h, w, h),
            Region(x + w, y + h, w, h),
            Region(x - w, y + h, w, h),
        )

    @classmethod
    def around(cls, x: float, y: float, half_extent: float) -> Region:
        """Square region centered on ``(x, y)``."""
        return cls(x, y, half_extent, half_extent)


class _Node(Generic[T]):
    __slots__ = ("boundary", "capacity", "points", "children")

    def __init__(self, boundary: Region, capacity: int) -> None:
        self.boundary = boundary
        self.capacity = capacity
        self.points: list[Point[T]] = []
        # (NE, NW, SE, SW) once subdivided, published in one assignment
        self.children: tuple[_Node[T], _Node[T], _Node[T], _Node[T]] | None = None

    def _subdivide(self) -> tuple[_Node[T], _Node[T], _Node[T], _Node[T]]:
        ne, nw, se, sw = (_Node(quadrant, self.capacity) for quadrant in self.boundary.quadrants())
        children = (ne, nw, se, sw)
        self.children = children
        return children

    def insert(self, point: Point[T]) -> bool:
        if not self.boundary.contains(point):
            return False

        # Iterative descent: repeated coordinates chain one level per capacity points
        node = self
        while len(node.points) >= node.capacity:
            children = node.children if node.children is not None else node._subdivide()
            for child in children:
                if child.boundary.contains(point):
                    node = child
                    break
            else:
                return False
        node.points.append(point)
        return True

    def _preorder(self, region: Region | None = None) -> Iterator[_Node[T]]:
        """Nodes depth-first, children in NW, NE, SW, SE order."""
        stack: list[_Node[T]] = [self]
        while stack:
            node = stack.pop()
            if region is not None and not node.boundary.intersects(region):
                continue
            yield node
            if node.children is not None:
                ne, nw, se, sw = node.children
                stack.extend((se, sw, ne, nw))

    def query(self, region: Region, found: list[Point[T]]) -> list[Point[T]]:
        for node in self._preorder(region):
            found.extend(point for point in node.points if region.contains(point))
        return found

    def walk(self) -> Iterator[Point[T]]:
        for node in self._preorder():
            yield from node.points

    def depth(self) -> int:
        deepest = 0
        levels: list[tuple[_Node[T], int]] = [(self, 1)]
        while levels:
            node, level = levels.pop()
            deepest = max(deepest, level)
            if node.children is not None:
                levels.extend((child, level + 1) for child in node.children)
        return deepest


class QuadTree(Generic[T]):
    """Region quadtree over :class:`Point` records.

    Usage::

        tree: QuadTree[Stop] = QuadTree(Region(-15.84, -70.02, 0.05, 0.05), capacity=4)
        tree.insert(Point(stop.lat, stop.lon, stop))
        nearby = tree.query(Region.around(lat, lon, 0.01))

    Inserts are serialized by an internal lock. Queries take no lock and
    never mutate the tree.
    """

    def __init__(self, boundary: Region, capacity: int = 4) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._root: _Node[T] = _Node(boundary, capacity)
        self._lock = threading.Lock()
        self._size = 0

    @property
    def boundary(self) -> Region:
        return self._root.boundary

    @property
    def capacity(self) -> int:
        return self._root.capacity

    def insert(self, point: Point[T]) -> bool:
        """Insert *point*; return ``False`` when it lies outside the root region."""
        with self._lock:
            inserted = self._root.insert(point)
            if inserted:
                self._size += 1
            return inserted

    def query(self, region: Region) -> list[Point[T]]:
        """Return every stored point inside *region* (inclusive bounds)."""
        return self._root.query(region, [])

    def depth(self) -> int:
        return self._root.depth()

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Point[T]]:
        return self._root.walk()
