"""Sparse visit counter over a coarse lat/lon grid.

:class:`SparseCounter` stores only visited cells, as a singly linked list
of ``(row, col, count)`` nodes kept in first-insertion order. Lookups are
a linear scan, which is fine for the few hundred cells a deployment area
produces.

:class:`CoverageCounter` maps raw coordinates onto grid cells. It is an
owned resource: it accumulates for the life of its owner unless
:meth:`CoverageCounter.reset` is called or ``max_cells`` bounds it.
"""

from __future__ import annotations

import logging
import math
import threading

from pybustrack._constants import DEFAULT_CELL_SIZE_DEG
from pybustrack.exceptions import CoverageLimitError
from pybustrack.models.results import CellCount

_logger = logging.getLogger(__name__)


def cell_for(lat: float, lon: float, cell_size: float = DEFAULT_CELL_SIZE_DEG) -> tuple[int, int]:
    """Grid ``(row, col)`` of a coordinate."""
    return math.floor(lat / cell_size), math.floor(lon / cell_size)


class _CellNode:
    __slots__ = ("row", "col", "count", "next")

    def __init__(self, row: int, col: int) -> None:
        self.row = row
        self.col = col
        self.count = 1
        self.next: _CellNode | None = None


class SparseCounter:
    """Linked-list sparse matrix of positive integer counts."""

    def __init__(self, *, max_cells: int | None = None) -> None:
        self._head: _CellNode | None = None
        self._tail: _CellNode | None = None
        self._cells = 0
        self._max_cells = max_cells

    def record(self, row: int, col: int) -> int:
        """Increment ``(row, col)`` and return its new count.

        Raises :class:`CoverageLimitError` when the cell is new and the
        counter already holds ``max_cells`` cells.
        """
        node = self._head
        while node is not None:
            if node.row == row and node.col == col:
                node.count += 1
                return node.count
            node = node.next

        if self._max_cells is not None and self._cells >= self._max_cells:
            raise CoverageLimitError(
                f"coverage counter is full ({self._max_cells} cells)",
                max_cells=self._max_cells,
            )

        created = _CellNode(row, col)
        if self._tail is None:
            self._head = created
        else:
            self._tail.next = created
        self._tail = created
        self._cells += 1
        return created.count

    def get(self, row: int, col: int) -> int:
        node = self._head
        while node is not None:
            if node.row == row and node.col == col:
                return node.count
            node = node.next
        return 0

    def snapshot(self) -> list[CellCount]:
        """All cells in first-insertion order."""
        result: list[CellCount] = []
        node = self._head
        while node is not None:
            result.append(CellCount(row=node.row, col=node.col, count=node.count))
            node = node.next
        return result

    def clear(self) -> None:
        self._head = None
        self._tail = None
        self._cells = 0

    def __len__(self) -> int:
        return self._cells


class CoverageCounter:
    """Thread-safe coordinate front end for :class:`SparseCounter`."""

    def __init__(self, *, cell_size: float = DEFAULT_CELL_SIZE_DEG, max_cells: int | None = None) -> None:
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self._cell_size = cell_size
        self._counter = SparseCounter(max_cells=max_cells)
        self._lock = threading.Lock()

    @property
    def cell_size(self) -> float:
        return self._cell_size

    def record(self, lat: float, lon: float) -> CellCount:
        """Count a visit at ``(lat, lon)`` and return its cell."""
        row, col = cell_for(lat, lon, self._cell_size)
        with self._lock:
            count = self._counter.record(row, col)
        _logger.debug("Coverage recorded row=%d col=%d count=%d", row, col, count)
        return CellCount(row=row, col=col, count=count)

    def snapshot(self) -> list[CellCount]:
        with self._lock:
            return self._counter.snapshot()

    def reset(self) -> None:
        """Drop every recorded cell."""
        with self._lock:
            cells = len(self._counter)
            self._counter.clear()
        _logger.info("Coverage counter reset cells=%d", cells)

    def __len__(self) -> int:
        return len(self._counter)
