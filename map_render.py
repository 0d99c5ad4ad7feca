"""
Text rendering of the placement map.

Each track becomes a column of tokens, each pair of neighboring tracks gets an
edge column in between, and the columns are transposed into display lines.
Even lines are boundary lines (annotated with their offset), odd lines are
address segments.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Sequence

import simple_chalk as chalk  # type: ignore[import-untyped]
from rich.console import Console

from corner_rules import ClockwiseSlots, CornerRuleSet
from placement_grid import PlacementGrid
from placement_types import Piece, SlotState, Used, is_used
from row_transpose import transpose_columns

logger = logging.getLogger(__name__)

HORIZONTAL = "─"
VERTICAL = "│"
BLANK = " "

PALETTE: tuple[str, ...] = ("red", "green", "yellow", "blue", "magenta", "cyan", "white")

StyleFn = Callable[[int, str], str]
ViewportFn = Callable[[], tuple[int, int]]


def chalk_style(piece_id: int, text: str) -> str:
    """Black text on the piece's background color."""
    color = PALETTE[piece_id % len(PALETTE)]
    return getattr(chalk, "bg" + color.capitalize()).black(text)


def terminal_viewport() -> tuple[int, int]:
    """Current terminal (width, height)."""
    size = Console().size
    return size.width, size.height


def fit_scale(available: int, count: int) -> int:
    """Scale so that `count` cells and their separators fill about half of `available`."""
    if count <= 0:
        return 1
    return max(1, (available // 2 - count - 1) // count)


def _check_scale(name: str, value: int | None) -> int | None:
    if value is not None and value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value


class GridRenderer:
    """Collects located pieces and draws where they sit in the flash image."""

    def __init__(
        self,
        flash_size: int,
        vertical_scale: int | None = None,
        horizontal_scale: int | None = None,
        viewport: ViewportFn | None = None,
        style: StyleFn = chalk_style,
        corners: CornerRuleSet | None = None,
    ) -> None:
        self.grid = PlacementGrid(flash_size)
        self.pieces: list[Piece] = []
        self.vertical_scale = _check_scale("vertical_scale", vertical_scale)
        self.horizontal_scale = _check_scale("horizontal_scale", horizontal_scale)
        self.viewport = viewport if viewport is not None else terminal_viewport
        self.style = style
        self.corners = corners if corners is not None else CornerRuleSet()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.pieces)

    def __str__(self) -> str:
        return self.display()

    def is_empty(self) -> bool:
        return not self.pieces

    def add(self, piece: Piece) -> int:
        """Insert a piece into the map and return its index."""
        with self._lock:
            piece_id = len(self.pieces)
            self.grid.insert(piece_id, piece.start, piece.end)
            self.pieces.append(piece)
        return piece_id

    def scales(self) -> tuple[int, int]:
        """Return (horizontal, vertical) magnification."""
        horizontal = self.horizontal_scale
        vertical = self.vertical_scale
        if horizontal is None or vertical is None:
            width, height = self.viewport()
            if horizontal is None:
                horizontal = fit_scale(width, self.grid.tracks)
            if vertical is None:
                vertical = fit_scale(height, self.grid.rows - 1)
            logger.info(
                "scales: viewport=%dx%d, horizontal=%d, vertical=%d",
                width, height, horizontal, vertical,
            )
        return horizontal, vertical

    def display(self) -> str:
        with self._lock:
            horizontal, vertical = self.scales()
            columns = self._interleave_edges(self._track_columns())
            return self._render_lines(columns, horizontal, vertical) + self._footer()

    # -------------------------------------------------------------------------
    # Columns
    # -------------------------------------------------------------------------

    def _cell_token(self, slot: SlotState) -> str:
        if isinstance(slot, Used):
            return self.style(slot.piece_id, BLANK)
        return BLANK

    def _track_columns(self) -> list[list[str]]:
        segments = self.grid.rows - 1
        columns = []
        for column in self.grid.columns():
            tokens = [HORIZONTAL]
            for i in range(segments):
                cell = self._cell_token(column[i])
                tokens.append(cell)
                if i < segments - 1:
                    tokens.append(cell if column[i] == column[i + 1] else HORIZONTAL)
            tokens.append(HORIZONTAL)
            columns.append(tokens)
        return columns

    def _edge_column(self, left: Sequence[SlotState], right: Sequence[SlotState]) -> list[str]:
        segments = len(left) - 1

        def occupied(i: int) -> bool:
            return is_used(left[i]) or is_used(right[i])

        tokens = ["┬" if occupied(0) else HORIZONTAL]
        for i in range(segments):
            tokens.append(VERTICAL if occupied(i) else BLANK)
            if i < segments - 1:
                slots = ClockwiseSlots.from_columns(left[i:i + 2], right[i:i + 2])
                tokens.append(self.corners.char_for(slots))
        tokens.append("┴" if occupied(segments - 1) else HORIZONTAL)
        return tokens

    def _interleave_edges(self, track_columns: list[list[str]]) -> list[list[str]]:
        grid_columns = self.grid.columns()
        columns = [track_columns[0]]
        for track in range(1, len(track_columns)):
            columns.append(self._edge_column(grid_columns[track - 1], grid_columns[track]))
            columns.append(track_columns[track])
        return columns

    # -------------------------------------------------------------------------
    # Lines
    # -------------------------------------------------------------------------

    def _render_lines(self, columns: list[list[str]], horizontal: int, vertical: int) -> str:
        last = len(columns[0]) - 1
        lines: list[str] = []
        for n, row in enumerate(transpose_columns(columns)):
            if n == 0:
                left, right = "┌", "┐"
            elif n == last:
                left, right = "└", "┘"
            else:
                left = "├" if row[0] == HORIZONTAL else VERTICAL
                right = "┤" if row[-1] == HORIZONTAL else VERTICAL

            # track tokens sit at even positions, edge tokens at odd ones
            body = "".join(
                token * horizontal if k % 2 == 0 else token for k, token in enumerate(row)
            )
            line = left + body + right
            if n % 2 == 0:
                line += f" <-- {self.grid.boundaries[n // 2]:#08x}"
                lines.append(line)
            else:
                lines.extend([line] * vertical)
        return "".join(line + "\n" for line in lines)

    def _footer(self) -> str:
        return "".join(
            f"{self.style(index, str(index))}: '{piece.label}'\n"
            for index, piece in enumerate(self.pieces)
        )
