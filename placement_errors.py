"""
Error types raised by the placement map.

Every error here signals an internal defect (bad indexing, broken shape
invariant), except FreeTrackNotFound which never leaves PlacementGrid.
"""

from __future__ import annotations


class PlacementError(Exception):
    """Base class for placement map errors."""


class ShapeError(PlacementError):
    """Grid dimensions disagree with the boundary list (or with each other)."""


class FreeTrackNotFound(PlacementError):
    """No existing track is free over the requested row range."""


class BadWindowError(PlacementError):
    """A neighborhood window did not have the expected extent."""


class SlotCombinationError(PlacementError):
    """Two Used slots were combined by a SlotState operator."""
