"""Immutable sort configuration and bounded retry policies."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any

from playsort.constants import (
    DEFAULT_POST_MOVE_DELAY_MS,
    DEFAULT_SCROLL_DELAY_MS,
    DEFAULT_SETTLE_MS_PER_100_ITEMS,
    DIRECTIONS,
    ENV_DIRECTION,
    ENV_KEY,
    ENV_POST_MOVE_DELAY_MS,
    ENV_SCROLL_DELAY_MS,
    KEY_KINDS,
    LOAD_RETRY_ATTEMPTS,
    NOT_READY_RETRY_ATTEMPTS,
    STALE_RETRY_ATTEMPTS,
    STUCK_MOVE_ATTEMPTS,
)


@dataclass(frozen=True)
class RetryPolicy:
    """At most ``max_attempts`` tries, ``delay_ms`` apart (0 means "use the caller's delay")."""

    max_attempts: int
    delay_ms: int = 0

    def exhausted(self, attempts: int) -> bool:
        return attempts >= max(1, int(self.max_attempts))

    def delay_or(self, fallback_ms: int) -> int:
        return int(self.delay_ms) if self.delay_ms > 0 else int(fallback_ms)


@dataclass(frozen=True)
class SortConfig:
    direction: str = "asc"
    key_kind: str = "duration"
    auto_load: bool = True
    scroll_delay_ms: int = DEFAULT_SCROLL_DELAY_MS
    post_move_delay_ms: int = DEFAULT_POST_MOVE_DELAY_MS
    settle_ms_per_100_items: int = DEFAULT_SETTLE_MS_PER_100_ITEMS
    repeat_interval_s: float = 0.0
    load_policy: RetryPolicy = field(default_factory=lambda: RetryPolicy(LOAD_RETRY_ATTEMPTS))
    not_ready_policy: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(NOT_READY_RETRY_ATTEMPTS)
    )
    stale_policy: RetryPolicy = field(default_factory=lambda: RetryPolicy(STALE_RETRY_ATTEMPTS))
    move_policy: RetryPolicy = field(default_factory=lambda: RetryPolicy(STUCK_MOVE_ATTEMPTS))

    def __post_init__(self) -> None:
        if self.direction not in DIRECTIONS:
            raise ValueError(f"Invalid direction '{self.direction}'. Must be one of {list(DIRECTIONS)}")
        if self.key_kind not in KEY_KINDS:
            raise ValueError(f"Invalid sort key '{self.key_kind}'. Must be one of {list(KEY_KINDS)}")
        for name in ("scroll_delay_ms", "post_move_delay_ms", "settle_ms_per_100_items"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"'{name}' must be a non-negative integer")
        if self.repeat_interval_s < 0:
            raise ValueError("'repeat_interval_s' must be >= 0")

    def settle_delay_ms(self, item_count: int) -> int:
        extra = (max(0, int(item_count)) * self.settle_ms_per_100_items) // 100
        return self.post_move_delay_ms + extra

    def with_changes(self, **changes: Any) -> "SortConfig":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {unknown}")
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "SortConfig":
        known = {f.name for f in fields(cls)}
        extra = sorted(set(payload) - known)
        if extra:
            raise ValueError(f"Invalid keys. extra={extra}")
        values = dict(payload)
        for name in ("load_policy", "not_ready_policy", "stale_policy", "move_policy"):
            raw = values.get(name)
            if isinstance(raw, dict):
                values[name] = RetryPolicy(**raw)
        if "auto_load" in values and not isinstance(values["auto_load"], bool):
            raise ValueError("'auto_load' must be a boolean")
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def config_from_env(environ: dict[str, str] | None = None, **overrides: Any) -> SortConfig:
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    if env.get(ENV_DIRECTION):
        values["direction"] = env[ENV_DIRECTION].strip().lower()
    if env.get(ENV_KEY):
        values["key_kind"] = env[ENV_KEY].strip().lower()
    for env_name, key in (
        (ENV_SCROLL_DELAY_MS, "scroll_delay_ms"),
        (ENV_POST_MOVE_DELAY_MS, "post_move_delay_ms"),
    ):
        raw = env.get(env_name, "").strip()
        if not raw:
            continue
        try:
            values[key] = int(raw)
        except ValueError as exc:
            raise ValueError(f"{env_name} must be an integer, got '{raw}'") from exc
    values.update({k: v for k, v in overrides.items() if v is not None})
    return SortConfig.from_dict(values)
