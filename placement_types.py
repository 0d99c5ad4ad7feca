"""
Shared type definitions for the placement map.
"""

from __future__ import annotations

from dataclasses import dataclass

from placement_errors import SlotCombinationError


# =============================================================================
# Slot States
# =============================================================================


@dataclass(frozen=True)
class Free:
    """An unoccupied slot. Additive zero of the slot algebra."""

    def __add__(self, other: SlotState) -> SlotState:
        return other

    def __mul__(self, other: SlotState) -> SlotState:
        return self

    def __str__(self) -> str:
        return "░"


@dataclass(frozen=True)
class Identity:
    """Multiplicative one of the slot algebra.

    Only appears as a coefficient of a rotation matrix, never in a grid cell.
    """

    def __add__(self, other: SlotState) -> SlotState:
        return other if isinstance(other, Used) else self

    def __mul__(self, other: SlotState) -> SlotState:
        return other

    def __str__(self) -> str:
        return "▓"


@dataclass(frozen=True)
class Used:
    """A slot occupied by the piece with index `piece_id`."""

    piece_id: int

    def __add__(self, other: SlotState) -> SlotState:
        if isinstance(other, Used):
            raise SlotCombinationError(f"Cannot add {self} with {other}")
        return self

    def __mul__(self, other: SlotState) -> SlotState:
        match other:
            case Free():
                return other
            case Identity():
                return self
            case _:
                raise SlotCombinationError(f"Cannot multiply {self} with {other}")

    def __str__(self) -> str:
        return str(self.piece_id)


SlotState = Free | Identity | Used

FREE = Free()
IDENTITY = Identity()


def is_free(slot: SlotState) -> bool:
    return isinstance(slot, Free)


def is_used(slot: SlotState) -> bool:
    return isinstance(slot, Used)


# =============================================================================
# Pieces
# =============================================================================


@dataclass(frozen=True)
class Piece:
    """A located occurrence of a binary inside the flash image."""

    label: str
    size: int
    offset: int

    @property
    def start(self) -> int:
        return self.offset

    @property
    def end(self) -> int:
        return self.offset + self.size
