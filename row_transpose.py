"""
Turns column-major token lists into display rows.
"""

from __future__ import annotations

from typing import Iterable, Iterator, TypeVar

from placement_errors import ShapeError

T = TypeVar("T")


def transpose_columns(columns: Iterable[Iterable[T]]) -> Iterator[list[T]]:
    """
    Advance one iterator per column in lockstep, yielding each row.

    All columns must have the same length.
    """
    iterators = [iter(column) for column in columns]
    if not iterators:
        return

    while True:
        row: list[T] = []
        exhausted = 0
        for it in iterators:
            try:
                row.append(next(it))
            except StopIteration:
                exhausted += 1
        if exhausted == len(iterators):
            return
        if exhausted:
            raise ShapeError(
                f"{exhausted} of {len(iterators)} columns ended early"
            )
        yield row
