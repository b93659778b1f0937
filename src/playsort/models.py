"""Snapshot, key and loop-state models for a sort run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class RowSnapshot:
    """One rendered playlist row, valid only until the next host mutation."""

    index: int
    duration_text: str | None
    channel_text: str | None
    has_handle: bool = True

    @classmethod
    def from_dict(cls, index: int, payload: dict[str, Any]) -> "RowSnapshot":
        return cls(
            index=index,
            duration_text=_optional_str(payload.get("duration")),
            channel_text=_optional_str(payload.get("channel")),
            has_handle=bool(payload.get("handle", False)),
        )


@dataclass(frozen=True)
class SortKey:
    kind: str
    seconds: int | None = None
    label: str = ""
    sentinel: bool = False

    @property
    def folded(self) -> str:
        return self.label.casefold()


@dataclass(frozen=True)
class RankedItem:
    key: SortKey
    current_position: int
    desired_position: int

    @property
    def misplaced(self) -> bool:
        return self.current_position != self.desired_position


@dataclass
class LoopState:
    running: bool = False
    cancel_requested: bool = False
    phase: str = "idle"
    sorted_count: int = 0
    moves: int = 0
    iterations: int = 0
    item_count: int = 0
    degraded: bool = False
    scroll_delay_ms: int = 0
    post_move_delay_ms: int = 0


@dataclass(frozen=True)
class SortOutcome:
    result: str
    moves: int
    sorted_count: int
    item_count: int
    degraded: bool = False
    messages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
