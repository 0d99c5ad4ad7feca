"""
Placement grid: packs address intervals into parallel, non-overlapping tracks.

Rows follow the boundary list. Row i holds the occupancy of the address segment
[boundaries[i], boundaries[i + 1]); the last row sits at the flash size and is
always free. Columns are tracks.
"""

from __future__ import annotations

import logging
from bisect import bisect_left

from placement_errors import FreeTrackNotFound, ShapeError
from placement_types import FREE, IDENTITY, SlotState, Used, is_free, is_used

logger = logging.getLogger(__name__)

Matrix = list[list[SlotState]]


# =============================================================================
# Slot Matrix Helpers
# =============================================================================


def rotation_matrix(size: int, index: int) -> Matrix:
    """
    Build the square matrix that moves the last row of a `size`-row matrix to
    `index`, shifting the rows from `index` on down by one.

    e.g. for size = 5, index = 2:
        [[▓, ░, ░, ░, ░],
         [░, ▓, ░, ░, ░],
         [░, ░, ░, ░, ▓],
         [░, ░, ▓, ░, ░],
         [░, ░, ░, ▓, ░]]
    """
    if not 0 <= index < size:
        raise ShapeError(f"Rotation index {index} out of range for {size} rows")

    matrix: Matrix = []
    for i in range(size):
        row: list[SlotState] = [FREE] * size
        if i < index:
            source = i
        elif i == index:
            source = size - 1
        else:
            source = i - 1
        row[source] = IDENTITY
        matrix.append(row)
    return matrix


def matmul(left: Matrix, right: Matrix) -> Matrix:
    """
    Matrix product over the slot algebra.

    Free coefficients annihilate, so they are skipped.
    """
    if not left or len(left[0]) != len(right):
        raise ShapeError(
            f"Cannot multiply {len(left)}x{len(left[0]) if left else 0} "
            f"by {len(right)}x{len(right[0]) if right else 0}"
        )
    width = len(right[0])
    if any(len(row) != width for row in right):
        raise ShapeError("Right operand has ragged rows")

    product: Matrix = []
    for coeffs in left:
        acc: list[SlotState] = [FREE] * width
        for k, coeff in enumerate(coeffs):
            if is_free(coeff):
                continue
            acc = [total + coeff * slot for total, slot in zip(acc, right[k])]
        product.append(acc)
    return product


# =============================================================================
# Placement Grid
# =============================================================================


class PlacementGrid:
    """Rows of address segments by tracks of slots."""

    def __init__(self, flash_size: int) -> None:
        if flash_size <= 0:
            raise ValueError(f"Flash size must be positive, got {flash_size}")
        self.flash_size = flash_size
        self.boundaries: list[int] = [0, flash_size]
        self._cells: Matrix = [[FREE], [FREE]]
        self._check_shape()

    @property
    def rows(self) -> int:
        return len(self._cells)

    @property
    def tracks(self) -> int:
        return len(self._cells[0]) if self._cells else 0

    def cell(self, row: int, track: int) -> SlotState:
        return self._cells[row][track]

    def row(self, index: int) -> tuple[SlotState, ...]:
        return tuple(self._cells[index])

    def column(self, track: int) -> tuple[SlotState, ...]:
        return tuple(row[track] for row in self._cells)

    def columns(self) -> list[tuple[SlotState, ...]]:
        return [self.column(track) for track in range(self.tracks)]

    def row_of(self, offset: int) -> int:
        """Row index of an existing boundary."""
        index = bisect_left(self.boundaries, offset)
        if index == len(self.boundaries) or self.boundaries[index] != offset:
            raise ValueError(f"{offset:#x} is not a boundary")
        return index

    def insert(self, piece_id: int, start: int, end: int) -> int:
        """
        Place the interval [start, end) for `piece_id` and return its track.

        Boundaries for `start` and `end` are created when missing, then the
        leftmost track free over the whole row range is used, or a new track
        is appended.
        """
        if not 0 <= start < end <= self.flash_size:
            raise ValueError(
                f"Invalid range [{start:#x}, {end:#x}) for flash size {self.flash_size:#x}"
            )

        start_row = self._insert_boundary(start)
        end_row = self._insert_boundary(end)

        try:
            track = self._find_free_track(start_row, end_row)
        except FreeTrackNotFound:
            self._push_track()
            track = self.tracks - 1

        slot = Used(piece_id)
        for row in range(start_row, end_row):
            self._cells[row][track] = slot

        self._check_shape()
        logger.debug(
            "insert: piece %d [%#x, %#x) -> track %d, rows %d..%d (grid %dx%d)",
            piece_id, start, end, track, start_row, end_row, self.rows, self.tracks,
        )
        return track

    def placements(self) -> dict[int, tuple[int, int, int]]:
        """Map each piece id to (track, start offset, end offset)."""
        found: dict[int, tuple[int, int, int]] = {}
        for track in range(self.tracks):
            for row, slot in enumerate(self.column(track)):
                if not isinstance(slot, Used):
                    continue
                if slot.piece_id in found:
                    t, start, _ = found[slot.piece_id]
                    found[slot.piece_id] = (t, start, self.boundaries[row + 1])
                else:
                    found[slot.piece_id] = (track, self.boundaries[row], self.boundaries[row + 1])
        return found

    def format_cells(self) -> str:
        """Debug dump: one line per row, boundary first."""
        lines = []
        for offset, row in zip(self.boundaries, self._cells):
            lines.append(f"{offset:#010x} " + " ".join(str(slot) for slot in row))
        return "\n".join(lines)

    def _insert_boundary(self, offset: int) -> int:
        index = bisect_left(self.boundaries, offset)
        if index < len(self.boundaries) and self.boundaries[index] == offset:
            return index

        # 0 and flash_size are always boundaries, so 0 < index < rows
        self._insert_row(index, self._split_row(index))
        self.boundaries.insert(index, offset)
        return index

    def _split_row(self, index: int) -> list[SlotState]:
        # A piece keeps its slot in the new row only when it runs on both
        # sides of the new boundary, i.e. it covers the segment being split.
        return [slot if is_used(slot) else FREE for slot in self._cells[index - 1]]

    def _insert_row(self, index: int, row: list[SlotState]) -> None:
        if len(row) != self.tracks:
            raise ShapeError(f"New row has {len(row)} slots, grid has {self.tracks} tracks")
        self._cells.append(row)
        self._cells = matmul(rotation_matrix(self.rows, index), self._cells)

    def _find_free_track(self, start_row: int, end_row: int) -> int:
        for track in range(self.tracks):
            if all(is_free(self._cells[row][track]) for row in range(start_row, end_row)):
                return track
        raise FreeTrackNotFound(f"No track free over rows {start_row}..{end_row}")

    def _push_track(self) -> None:
        for row in self._cells:
            row.append(FREE)

    def _check_shape(self) -> None:
        if self.rows != len(self.boundaries):
            raise ShapeError(f"{self.rows} rows for {len(self.boundaries)} boundaries")
        width = self.tracks
        if any(len(row) != width for row in self._cells):
            raise ShapeError("Grid rows have different track counts")
