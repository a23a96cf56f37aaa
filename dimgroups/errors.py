"""Exceptions raised while grouping labeled arrays."""

from __future__ import annotations

from collections.abc import Hashable, Iterable


class GroupByError(Exception):
    """Base class for all dimgroups errors."""


class UnknownDimensionError(GroupByError, ValueError):
    """Grouping was requested along dimensions the object does not have."""

    def __init__(self, dims: Iterable[Hashable], available: Iterable[Hashable] = ()):
        self.dims = tuple(dims)
        self.available = tuple(available)
        super().__init__(
            f"Cannot group by dimension(s) {list(self.dims)!r}: "
            f"object only has dimensions {list(self.available)!r}."
        )


class EmptyDimensionError(GroupByError, ValueError):
    pass


class UnorderableKeysError(GroupByError, TypeError):
    pass


class InvalidBinCountError(GroupByError, ValueError):
    pass


class LabelLengthError(GroupByError, ValueError):
    pass


class DimensionMismatchError(GroupByError, ValueError):
    pass


__all__ = [
    "DimensionMismatchError",
    "EmptyDimensionError",
    "GroupByError",
    "InvalidBinCountError",
    "LabelLengthError",
    "UnknownDimensionError",
    "UnorderableKeysError",
]
