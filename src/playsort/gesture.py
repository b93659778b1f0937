"""Synthetic drag-and-drop gesture for the host's reorder handles."""

from __future__ import annotations

import math
from typing import Any

# (target role, event type, at source or destination coordinates)
_GESTURE_SEQUENCE = (
    ("drag", "mousemove", "src"),
    ("drag", "mouseenter", "src"),
    ("drag", "mouseover", "src"),
    ("drag", "mousedown", "src"),
    ("drag", "dragstart", "src"),
    ("drag", "drag", "src"),
    ("drag", "mousemove", "src"),
    ("drag", "drag", "dst"),
    ("drop", "mousemove", "dst"),
    ("drop", "mouseenter", "dst"),
    ("drop", "dragenter", "dst"),
    ("drop", "mouseover", "dst"),
    ("drop", "dragover", "dst"),
    ("drop", "drop", "dst"),
    ("drag", "dragend", "dst"),
    ("drag", "mouseup", "dst"),
)


class StaleReferenceError(RuntimeError):
    """A row handle from the last snapshot is detached or has no geometry."""


def box_center(box: dict[str, Any] | None) -> tuple[int, int] | None:
    if not isinstance(box, dict):
        return None
    try:
        left = float(box["left"])
        right = float(box["right"])
        top = float(box["top"])
        bottom = float(box["bottom"])
    except (KeyError, TypeError, ValueError):
        return None
    if right - left <= 0 or bottom - top <= 0:
        return None
    return math.floor((left + right) / 2), math.floor((top + bottom) / 2)


def gesture_plan(src: tuple[int, int], dst: tuple[int, int]) -> list[dict[str, Any]]:
    plan: list[dict[str, Any]] = []
    for target, event_type, where in _GESTURE_SEQUENCE:
        x, y = src if where == "src" else dst
        plan.append({"target": target, "type": event_type, "x": x, "y": y})
    return plan


def simulate_move(host: Any, drag_index: int, drop_index: int, *, reveal: bool = True) -> None:
    """Drag the handle of row ``drag_index`` onto the handle of row ``drop_index``.

    Geometry is read immediately before dispatch. The result is not verified
    here; the next snapshot shows whether the host applied the move.
    """
    src = box_center(host.handle_box(drag_index))
    dst = box_center(host.handle_box(drop_index))
    if src is None or dst is None:
        missing = drag_index if src is None else drop_index
        raise StaleReferenceError(f"row {missing} handle is detached or has no geometry")
    if not host.dispatch_gesture(drag_index, drop_index, gesture_plan(src, dst)):
        raise StaleReferenceError(f"row {drag_index} or {drop_index} vanished before dispatch")
    if reveal:
        try:
            host.scroll_into_view(drop_index)
        except Exception:
            pass
