"""Reorder lazily loaded playlist pages by replaying their own drag gesture."""

__version__ = "0.3.0"
