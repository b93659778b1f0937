"""Playwright-backed access to the live playlist document."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any

from playsort.constants import (
    CHANNEL_SELECTOR,
    DURATION_SELECTOR,
    HANDLE_SELECTOR,
    LOADING_SENTINEL_SELECTOR,
    PLAYLIST_URL_MARKER,
    ROW_SELECTOR,
    TOTAL_COUNT_SELECTOR,
)
from playsort.gesture import StaleReferenceError
from playsort.models import RowSnapshot

_COUNT_RE = re.compile(r"(\d[\d,.\s\u00a0\u202f]*)")


@dataclass(frozen=True)
class HostSelectors:
    rows: str = ROW_SELECTOR
    duration: str = DURATION_SELECTOR
    channel: str = CHANNEL_SELECTOR
    handle: str = HANDLE_SELECTOR
    loading_sentinel: str = LOADING_SENTINEL_SELECTOR
    total_count: str = TOTAL_COUNT_SELECTOR

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


_SNAPSHOT_JS = """
(sel) => {
  const rows = Array.from(document.querySelectorAll(sel.rows));
  return rows.map((row) => {
    const duration = row.querySelector(sel.duration);
    const channel = row.querySelector(sel.channel);
    return {
      duration: duration ? (duration.innerText || duration.textContent || '').trim() : null,
      channel: channel ? (channel.innerText || channel.textContent || '').trim() : null,
      handle: !!row.querySelector(sel.handle),
    };
  });
}
"""

_HANDLE_COUNT_JS = """
(sel) => Array.from(document.querySelectorAll(sel.rows))
  .filter((row) => !!row.querySelector(sel.handle)).length
"""

_HANDLE_BOX_JS = """
([sel, index]) => {
  const row = document.querySelectorAll(sel.rows)[index];
  const handle = row ? row.querySelector(sel.handle) : null;
  if (!handle || !handle.isConnected) return null;
  const r = handle.getBoundingClientRect();
  return {left: r.left, top: r.top, right: r.right, bottom: r.bottom};
}
"""

_DISPATCH_JS = """
([sel, dragIndex, dropIndex, plan]) => {
  const rows = document.querySelectorAll(sel.rows);
  const pick = (i) => (rows[i] ? rows[i].querySelector(sel.handle) : null);
  const targets = {drag: pick(dragIndex), drop: pick(dropIndex)};
  if (!targets.drag || !targets.drop || !targets.drag.isConnected || !targets.drop.isConnected) {
    return false;
  }
  for (const step of plan) {
    const event = new MouseEvent(step.type, {
      view: window,
      bubbles: true,
      cancelable: true,
      clientX: step.x,
      clientY: step.y,
    });
    targets[step.target].dispatchEvent(event);
  }
  return true;
}
"""

_SCROLL_INTO_VIEW_JS = """
([sel, index]) => {
  const row = document.querySelectorAll(sel.rows)[index];
  if (row) row.scrollIntoView({behavior: 'instant', block: 'end', inline: 'nearest'});
}
"""

_SCROLL_TO_JS = """
(offset) => {
  const el = document.scrollingElement || document.documentElement;
  el.scrollTop = (offset === null || offset === undefined) ? el.scrollHeight : offset;
  return el.scrollTop;
}
"""


class PlaywrightHost:
    """Document collaborator. Every call re-queries the live DOM; no handle outlives a call."""

    def __init__(self, page: Any, selectors: HostSelectors | None = None) -> None:
        self.page = page
        self.selectors = selectors or HostSelectors()

    def snapshot_rows(self) -> list[RowSnapshot]:
        payload = self._evaluate(_SNAPSHOT_JS, self.selectors.to_dict()) or []
        return [RowSnapshot.from_dict(idx, item or {}) for idx, item in enumerate(payload)]

    def row_count(self) -> int:
        return int(
            self._evaluate(
                "(sel) => document.querySelectorAll(sel).length", self.selectors.rows
            )
            or 0
        )

    def handle_count(self) -> int:
        return int(self._evaluate(_HANDLE_COUNT_JS, self.selectors.to_dict()) or 0)

    def loading_sentinel_present(self) -> bool:
        return bool(
            self._evaluate(
                "(sel) => document.querySelector(sel) !== null",
                self.selectors.loading_sentinel,
            )
        )

    def reported_total(self) -> int | None:
        try:
            texts = self.page.evaluate(
                "(sel) => Array.from(document.querySelectorAll(sel)).map((el) => el.innerText || '')",
                self.selectors.total_count,
            )
        except Exception:
            return None
        return parse_total_count(texts or [])

    def scroll_offset(self) -> float:
        value = self._evaluate(
            "() => (document.scrollingElement || document.documentElement).scrollTop"
        )
        return float(value or 0)

    def scroll_to(self, offset: float | None = None) -> None:
        self._evaluate(_SCROLL_TO_JS, offset)

    def handle_box(self, index: int) -> dict[str, float] | None:
        return self._evaluate(_HANDLE_BOX_JS, [self.selectors.to_dict(), int(index)])

    def dispatch_gesture(self, drag_index: int, drop_index: int, plan: list[dict[str, Any]]) -> bool:
        return bool(
            self._evaluate(
                _DISPATCH_JS,
                [self.selectors.to_dict(), int(drag_index), int(drop_index), plan],
            )
        )

    def scroll_into_view(self, index: int) -> None:
        self._evaluate(_SCROLL_INTO_VIEW_JS, [self.selectors.to_dict(), int(index)])

    def is_playlist_page(self) -> bool:
        return PLAYLIST_URL_MARKER in str(getattr(self.page, "url", "") or "")

    def wait(self, ms: int) -> None:
        if ms <= 0:
            return
        from playwright.sync_api import Error as PlaywrightError

        try:
            self.page.wait_for_timeout(int(ms))
        except PlaywrightError as exc:
            raise StaleReferenceError(f"page went away while waiting: {exc}") from exc

    def _evaluate(self, script: str, arg: Any = None) -> Any:
        # reloads and in-place navigation destroy the execution context
        from playwright.sync_api import Error as PlaywrightError

        try:
            return self.page.evaluate(script, arg)
        except PlaywrightError as exc:
            raise StaleReferenceError(f"page changed under the sort: {exc}") from exc


def parse_total_count(texts: list[str]) -> int | None:
    """Pick the first "<n> videos"-style count out of the playlist stats lines."""
    for text in texts:
        clean = " ".join(str(text or "").split())
        if not clean or not any(ch.isdigit() for ch in clean):
            continue
        low = clean.lower()
        if "video" not in low and not clean.replace(",", "").replace(".", "").isdigit():
            continue
        match = _COUNT_RE.search(clean)
        if not match:
            continue
        digits = re.sub(r"\D", "", match.group(1))
        if digits:
            return int(digits)
    return None
