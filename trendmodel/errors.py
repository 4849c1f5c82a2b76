"""Exceptions raised by the trend model and its orchestration layer."""

from __future__ import annotations


class TrendModelError(Exception):
    """Base class for all trend model errors."""


class ItemNotFoundError(TrendModelError, LookupError):
    """No item payload was supplied and the cache has no entry for the id."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(
            f"Item {item_id!r} not found. Please search for the item again."
        )


class ParameterBoundsError(TrendModelError, AssertionError):
    """A derived rate fell outside its clamp bounds (a deriver defect)."""


class EmptySeriesError(TrendModelError, ValueError):
    """An operation needed at least one data point and got none."""
