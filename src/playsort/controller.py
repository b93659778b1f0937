"""Incremental sort-and-reconcile loop over the live playlist.

Every iteration re-reads the document, ranks what is visible and performs at
most one drag. Nothing from a previous snapshot is trusted after a move: the
host re-renders and re-indexes rows asynchronously, so the next iteration
derives ground truth again from scratch.

States: idle -> loading -> sorting -> converged | cancelled. Sorting goes back
to loading whenever the list reports more content.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from playsort.config import SortConfig
from playsort.constants import RESULT_CANCELLED, RESULT_CONVERGED
from playsort.gesture import simulate_move
from playsort.keys import describe_key, extract_key
from playsort.loader import ScrollDriver
from playsort.models import LoopState, RowSnapshot, SortOutcome
from playsort.ordering import first_misplaced, occupant_for, rank_items
from playsort.status import StatusSink


class SortController:
    def __init__(
        self,
        host: Any,
        config: SortConfig | None = None,
        *,
        sink: StatusSink | None = None,
    ) -> None:
        self.host = host
        self._config = config or SortConfig()
        self.sink = sink or StatusSink()
        self.state = LoopState()
        self._cancel = threading.Event()
        self._expected: int | None = None
        self._load_exhausted = False

    @property
    def config(self) -> SortConfig:
        return self._config

    def update_config(self, **changes: Any) -> SortConfig:
        if self.state.running:
            raise RuntimeError("Cannot change sort configuration while a sort is running")
        self._config = self._config.with_changes(**changes)
        return self._config

    def request_cancel(self) -> None:
        self._cancel.set()
        self.state.cancel_requested = True

    def wait_for_cancel(self, seconds: float) -> bool:
        return self._cancel.wait(timeout=max(0.0, float(seconds)))

    def run(self) -> SortOutcome:
        if self.state.running:
            raise RuntimeError("A sort is already running")
        cfg = self._config
        self._cancel.clear()
        self._expected = None
        self._load_exhausted = not cfg.auto_load
        self.state = LoopState(
            running=True,
            scroll_delay_ms=cfg.scroll_delay_ms,
            post_move_delay_ms=cfg.post_move_delay_ms,
        )
        first_message = len(self.sink.history)
        try:
            result = self._drive(cfg)
        finally:
            self.state.running = False

        state = self.state
        if result == RESULT_CANCELLED:
            self._post("Sort cancelled.", phase="cancelled")
        else:
            suffix = " (best effort, see warnings)" if state.degraded else ""
            self._post(
                f"Sort complete. Video sorted: {state.sorted_count}. Moves: {state.moves}{suffix}",
                phase="converged",
            )
        outcome = SortOutcome(
            result=result,
            moves=state.moves,
            sorted_count=state.sorted_count,
            item_count=state.item_count,
            degraded=state.degraded,
            messages=list(self.sink.history[first_message:]),
        )
        self._cancel.clear()
        self.state = LoopState(phase=state.phase)
        return outcome

    def _drive(self, cfg: SortConfig) -> str:
        driver = ScrollDriver(self.host, scroll_delay_ms=cfg.scroll_delay_ms)
        scan = _Scan(initial_load=cfg.auto_load)
        while True:
            if self._cancel.is_set():
                return RESULT_CANCELLED
            try:
                result = self._iterate(driver, cfg, scan)
            except RuntimeError as exc:
                # covers StaleReferenceError and host calls that fail mid-iteration
                scan.stale += 1
                if cfg.stale_policy.exhausted(scan.stale):
                    self.state.degraded = True
                    self._post(f"Giving up after {scan.stale} stale snapshots: {exc}")
                    return RESULT_CONVERGED
                self._post(f"Snapshot went stale ({exc}), re-reading the playlist")
                scan.backoff_ms = cfg.stale_policy.delay_or(cfg.post_move_delay_ms)
                continue
            if result is not None:
                return result

    def _iterate(self, driver: ScrollDriver, cfg: SortConfig, scan: _Scan) -> str | None:
        """One pass over a fresh snapshot; returns a terminal result or None to go again."""
        if scan.backoff_ms:
            delay, scan.backoff_ms = scan.backoff_ms, 0
            self.host.wait(delay)
        if scan.initial_load:
            if not self._load(driver, cfg):
                return RESULT_CANCELLED
            scan.initial_load = False
            return None

        self.state.phase = "sorting"
        self.state.iterations += 1
        rows = self.host.snapshot_rows()
        count = len(rows)
        if scan.last_count is not None and count != scan.last_count:
            self._post(f"Playlist changed size: {scan.last_count} -> {count} videos")
            scan.floor = 0
            scan.last_target = -1
        scan.last_count = count
        self.state.item_count = count

        if self._needs_loading(driver):
            if not self._load(driver, cfg):
                return RESULT_CANCELLED
            return None

        if not rows and not driver.is_loading_more():
            self.state.sorted_count = 0
            return RESULT_CONVERGED

        if not self._rows_ready(rows, cfg):
            scan.not_ready += 1
            if cfg.not_ready_policy.exhausted(scan.not_ready):
                self.state.degraded = True
                self._post(
                    f"Video {count} never finished rendering after {scan.not_ready} checks, "
                    "stopping with the current order"
                )
                return RESULT_CONVERGED
            delay = cfg.not_ready_policy.delay_or(cfg.post_move_delay_ms)
            self._post(f"Video {count} is not loaded yet, waiting {delay}ms")
            self.host.wait(delay)
            return None
        scan.not_ready = 0

        # rows above the floor were given up on; only the tail below them is ranked
        floor = min(scan.floor, count)
        keys = [extract_key(row, cfg.key_kind) for row in rows[floor:]]
        ranked = rank_items(keys, cfg.direction, start=floor)
        target = first_misplaced(ranked)
        if target is None:
            self.state.sorted_count = count
            return RESULT_CONVERGED
        self.state.sorted_count = target

        if target == scan.last_target:
            scan.same_target_moves += 1
        else:
            scan.last_target = target
            scan.same_target_moves = 0
        if cfg.move_policy.exhausted(scan.same_target_moves):
            self.state.degraded = True
            scan.floor = target + 1
            self._post(
                f"Position #{target} did not settle after {scan.same_target_moves} moves, skipping it"
            )
            return None

        source = occupant_for(ranked, target)
        self._post(
            f"Dragging video #{source.current_position} {describe_key(source.key)} "
            f"to position #{target}"
        )
        simulate_move(self.host, source.current_position, target)
        scan.stale = 0
        self.state.moves += 1
        self.host.wait(cfg.settle_delay_ms(count))
        return None

    def _load(self, driver: ScrollDriver, cfg: SortConfig) -> bool:
        self.state.phase = "loading"
        result = driver.load_all(
            cfg.load_policy,
            should_stop=self._cancel.is_set,
            report=self._post,
        )
        self._expected = result.expected_count
        self.state.item_count = result.item_count
        if result.outcome == "cancelled":
            return False
        if result.outcome == "degraded":
            self._load_exhausted = True
            self.state.degraded = True
            expected = f"/{result.expected_count}" if result.expected_count is not None else ""
            self._post(
                f"Loading stalled at {result.item_count}{expected} videos, "
                "sorting what is loaded"
            )
        else:
            self._post(f"{result.item_count} videos loaded.")
        return True

    def _needs_loading(self, driver: ScrollDriver) -> bool:
        if self._load_exhausted:
            return False
        return not driver.is_fully_loaded(self._expected)

    @staticmethod
    def _rows_ready(rows: list[RowSnapshot], cfg: SortConfig) -> bool:
        if not rows:
            return False
        if any(not row.has_handle for row in rows):
            return False
        if cfg.key_kind == "duration" and rows[-1].duration_text is None:
            return False
        return True

    def _post(self, message: str, *, phase: str | None = None) -> None:
        if phase:
            self.state.phase = phase
        self.sink.post(message, state=self.state.phase, moves=self.state.moves)


@dataclass
class _Scan:
    """Bookkeeping carried between iterations of one run."""

    initial_load: bool = False
    floor: int = 0
    last_target: int = -1
    same_target_moves: int = 0
    last_count: int | None = None
    not_ready: int = 0
    stale: int = 0
    backoff_ms: int = 0
