"""
Junction glyphs for the placement map.

A junction sits where four slots meet. Each of the four edges leaving the
junction (up, right, down, left) is drawn when the two slots it separates
differ. The matching box-drawing character is looked up in a fixed rule set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from placement_errors import BadWindowError
from placement_types import SlotState


@dataclass(frozen=True)
class ClockwiseSlots:
    """Four slots around a junction, read clockwise from top-left."""

    top_left: SlotState
    top_right: SlotState
    bottom_right: SlotState
    bottom_left: SlotState

    @classmethod
    def from_window(cls, window: Sequence[Sequence[SlotState]]) -> ClockwiseSlots:
        """Build from a 2x2 window given as rows."""
        if len(window) != 2 or any(len(row) != 2 for row in window):
            raise BadWindowError(f"Expected a 2x2 window, got {[len(row) for row in window]}")
        (tl, tr), (bl, br) = window
        return cls(tl, tr, br, bl)

    @classmethod
    def from_columns(
        cls, left: Sequence[SlotState], right: Sequence[SlotState]
    ) -> ClockwiseSlots:
        """Build from two vertical 1x2 windows (left track, right track)."""
        if len(left) != 2 or len(right) != 2:
            raise BadWindowError(f"Expected two 2-slot columns, got {len(left)} and {len(right)}")
        return cls(left[0], right[0], right[1], left[1])

    def signature(self) -> tuple[bool, bool, bool, bool]:
        """Which edges leave the junction: (up, right, down, left)."""
        return (
            self.top_left != self.top_right,
            self.top_right != self.bottom_right,
            self.bottom_right != self.bottom_left,
            self.bottom_left != self.top_left,
        )


@dataclass(frozen=True)
class Corner:
    """A junction character and the edges it draws."""

    char: str
    top: bool = False
    right: bool = False
    bottom: bool = False
    left: bool = False

    @property
    def split(self) -> tuple[bool, bool, bool, bool]:
        return (self.top, self.right, self.bottom, self.left)

    def is_usable_for(self, slots: ClockwiseSlots) -> bool:
        return self.split == slots.signature()


CORNERS: tuple[Corner, ...] = (
    Corner(" "),
    Corner("│", top=True, bottom=True),
    Corner("┌", right=True, bottom=True),
    Corner("┐", bottom=True, left=True),
    Corner("└", top=True, right=True),
    Corner("┘", top=True, left=True),
    Corner("├", top=True, right=True, bottom=True),
    Corner("┤", top=True, bottom=True, left=True),
    Corner("┬", right=True, bottom=True, left=True),
    Corner("┴", top=True, right=True, left=True),
    Corner("┼", top=True, right=True, bottom=True, left=True),
)


class CornerRuleSet:
    """
    The 11 junction rules.

    There is no horizontal bar rule: right and left edges without up and down
    would need one piece on both sides of a track edge, which a valid grid
    never holds. Horizontal lines come from the track transitions instead.
    """

    def __init__(self, corners: Sequence[Corner] = CORNERS) -> None:
        self.corners = tuple(corners)

    def __len__(self) -> int:
        return len(self.corners)

    def matches(self, slots: ClockwiseSlots) -> list[Corner]:
        return [corner for corner in self.corners if corner.is_usable_for(slots)]

    def match(self, slots: ClockwiseSlots) -> Corner:
        """Return the single corner usable for `slots`."""
        found = self.matches(slots)
        if len(found) != 1:
            raise BadWindowError(
                f"{len(found)} corners match signature {slots.signature()} for {slots}"
            )
        return found[0]

    def char_for(self, slots: ClockwiseSlots) -> str:
        return self.match(slots).char
