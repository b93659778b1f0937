"""Direction-aware comparison and stable ranking of sort keys."""

from __future__ import annotations

from functools import cmp_to_key
from typing import Sequence

from playsort.models import RankedItem, SortKey


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def compare(a: SortKey, b: SortKey, direction: str) -> int:
    """Total order over keys of one kind.

    Sentinel durations sort after every real duration in both directions;
    only real values are flipped by ``direction``.
    """
    if a.sentinel or b.sentinel:
        if a.sentinel and b.sentinel:
            return 0
        return 1 if a.sentinel else -1

    if a.kind == "duration":
        raw = _sign(int(a.seconds or 0) - int(b.seconds or 0))
    else:
        left, right = a.folded, b.folded
        raw = (left > right) - (left < right)
    return -raw if direction == "desc" else raw


def rank_items(keys: Sequence[SortKey], direction: str, start: int = 0) -> list[RankedItem]:
    """Attach the stable-sort rank to every key, in current (visual) order.

    ``keys`` may be the tail of the list beginning at row ``start``; positions
    and ranks are then offset by ``start`` so the rows above stay untouched.
    """
    order = sorted(
        range(len(keys)),
        key=cmp_to_key(lambda i, j: compare(keys[i], keys[j], direction)),
    )
    desired = [0] * len(keys)
    for rank, position in enumerate(order):
        desired[position] = start + rank
    return [
        RankedItem(key=key, current_position=start + pos, desired_position=desired[pos])
        for pos, key in enumerate(keys)
    ]


def first_misplaced(ranked: Sequence[RankedItem], start: int = 0) -> int | None:
    for item in ranked[max(0, start):]:
        if item.misplaced:
            return item.current_position
    return None


def occupant_for(ranked: Sequence[RankedItem], position: int) -> RankedItem:
    """Return the item whose desired rank is ``position``."""
    for item in ranked:
        if item.desired_position == position:
            return item
    raise ValueError(f"No item ranked at position {position}")


def count_misplaced(ranked: Sequence[RankedItem]) -> int:
    return sum(1 for item in ranked if item.misplaced)
