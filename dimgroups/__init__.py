#!/usr/bin/env python
# flake8: noqa
"""Top-level module for dimgroups."""

from . import bins, factorize
from .array import GroupByArray
from .bins import Bins, CyclicBins, hours, monthdays, months, season, yeardays, yearhours
from .core import groupby
from .errors import (
    DimensionMismatchError,
    EmptyDimensionError,
    GroupByError,
    InvalidBinCountError,
    LabelLengthError,
    UnknownDimensionError,
    UnorderableKeysError,
)
from .factorize import resolve
from .options import set_options


def _get_version():
    __version__ = "999"
    try:
        from ._version import __version__
    except ImportError:
        pass
    return __version__


__version__ = _get_version()

__all__ = [
    "Bins",
    "CyclicBins",
    "DimensionMismatchError",
    "EmptyDimensionError",
    "GroupByArray",
    "GroupByError",
    "InvalidBinCountError",
    "LabelLengthError",
    "UnknownDimensionError",
    "UnorderableKeysError",
    "groupby",
    "hours",
    "monthdays",
    "months",
    "resolve",
    "season",
    "set_options",
    "yeardays",
    "yearhours",
]
