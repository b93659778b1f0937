"""Sort key extraction from row snapshots."""

from __future__ import annotations

from playsort.constants import CHANNEL_NOT_AVAILABLE, DURATION_SEPARATOR
from playsort.models import RowSnapshot, SortKey

_FIELD_WEIGHTS = (1, 60, 3600)


def collapse_ws(value: object) -> str:
    return " ".join(str(value or "").split())


def parse_duration(text: str | None) -> int | None:
    """Return seconds for "SS", "MM:SS" or "H:MM:SS" style text, else None.

    Fields are read right to left, so "12:34" is 754 and "1:02:03" is 3723.
    Text without a separator ("Upcoming", "LIVE") is not a timestamp.
    """
    clean = collapse_ws(text).replace(" ", "")
    parts = clean.split(DURATION_SEPARATOR)
    if len(parts) < 2 or len(parts) > len(_FIELD_WEIGHTS):
        return None
    total = 0
    for weight, part in zip(_FIELD_WEIGHTS, reversed(parts)):
        if not (part.isascii() and part.isdigit()):
            return None
        total += int(part) * weight
    return total


def format_duration(seconds: int) -> str:
    hours, rest = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def duration_key(text: str | None) -> SortKey:
    seconds = parse_duration(text)
    if seconds is None:
        return SortKey(kind="duration", label=collapse_ws(text), sentinel=True)
    return SortKey(kind="duration", seconds=seconds, label=collapse_ws(text))


def channel_key(text: str | None) -> SortKey:
    label = collapse_ws(text)
    if not label:
        return SortKey(kind="channel", label=CHANNEL_NOT_AVAILABLE)
    return SortKey(kind="channel", label=label)


def extract_key(row: RowSnapshot, key_kind: str) -> SortKey:
    # Sentinel placement is direction-aware and decided by the comparator.
    if key_kind == "channel":
        return channel_key(row.channel_text)
    return duration_key(row.duration_text)


def describe_key(key: SortKey) -> str:
    if key.kind == "duration" and not key.sentinel and key.seconds is not None:
        return format_duration(key.seconds)
    return key.label or "?"
