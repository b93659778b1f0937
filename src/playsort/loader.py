"""Scroll driver that forces the lazily rendered playlist to materialize."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from playsort.config import RetryPolicy
from playsort.constants import (
    DEFAULT_TARGET_SCROLL_ATTEMPTS,
    HUGE_LIST_WARNING,
    LARGE_LIST_WARNING,
    MAX_BOTTOM_SCROLL_ROUNDS,
)


@dataclass(frozen=True)
class ScrollResult:
    outcome: str  # settled | target_reached | exhausted
    attempts: int
    offset: float


@dataclass(frozen=True)
class LoadResult:
    outcome: str  # complete | degraded | cancelled
    item_count: int
    expected_count: int | None
    rounds: int


class ScrollDriver:
    def __init__(
        self,
        host: Any,
        *,
        scroll_delay_ms: int,
        target_attempts: int = DEFAULT_TARGET_SCROLL_ATTEMPTS,
        max_bottom_rounds: int = MAX_BOTTOM_SCROLL_ROUNDS,
    ) -> None:
        self.host = host
        self.scroll_delay_ms = int(scroll_delay_ms)
        self.target_attempts = max(1, int(target_attempts))
        self.max_bottom_rounds = max(1, int(max_bottom_rounds))

    def scroll_to_load_more(self, target_offset: float | None = None) -> ScrollResult:
        """Push the scroll offset down until it stops moving (or reaches ``target_offset``)."""
        limit = self.target_attempts if target_offset is not None else self.max_bottom_rounds
        offset = self.host.scroll_offset()
        attempts = 0
        while True:
            attempts += 1
            self.host.scroll_to(target_offset)
            self.host.wait(self.scroll_delay_ms)
            current = self.host.scroll_offset()
            if target_offset is not None and current >= target_offset:
                return ScrollResult("target_reached", attempts, current)
            if current == offset and target_offset is None:
                return ScrollResult("settled", attempts, current)
            if attempts >= limit:
                return ScrollResult("exhausted", attempts, current)
            offset = current

    def is_loading_more(self) -> bool:
        return bool(self.host.loading_sentinel_present())

    def is_fully_loaded(self, expected_count: int | None) -> bool:
        if expected_count is None:
            return not self.is_loading_more()
        rows = self.host.row_count()
        handles = self.host.handle_count()
        return rows == handles and rows >= int(expected_count)

    def load_all(
        self,
        policy: RetryPolicy,
        *,
        should_stop: Callable[[], bool] = lambda: False,
        report: Callable[[str], None] = lambda _msg: None,
    ) -> LoadResult:
        """Scroll until everything is loaded or ``policy`` runs out of stalled rounds.

        A round that materializes new rows resets the stall counter.
        """
        expected = self.host.reported_total()
        count = self.host.row_count()
        stalled = 0
        rounds = 0
        while True:
            if should_stop():
                return LoadResult("cancelled", count, expected, rounds)
            if self.is_fully_loaded(expected):
                return LoadResult("complete", count, expected, rounds)
            if policy.exhausted(stalled):
                return LoadResult("degraded", count, expected, rounds)
            report(_loading_message(count, expected))
            rounds += 1
            self.scroll_to_load_more()
            if policy.delay_ms > 0:
                self.host.wait(policy.delay_ms)
            current = self.host.row_count()
            if current > count:
                stalled = 0
            else:
                stalled += 1
            count = current


def _loading_message(count: int, expected: int | None) -> str:
    if expected is not None:
        message = f"Loading more videos - {count}/{expected} videos loaded"
    else:
        message = f"Loading more videos - {count} videos loaded"
    if count > HUGE_LIST_WARNING:
        message += "\nSorting may take an extremely long time and is likely to stall"
    elif count > LARGE_LIST_WARNING:
        message += "\nNumber of videos loaded is high, sorting may take a long time"
    return message
