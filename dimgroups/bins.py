"""Bin specifications for grouping, and calendar presets built on them."""

from __future__ import annotations

import calendar
import math
import numbers
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pandas as pd

from .errors import EmptyDimensionError, InvalidBinCountError
from .lib import identity
from .options import OPTIONS

if TYPE_CHECKING:
    from .types import T_Labels


MONTH_ABBR: dict[int, str] = dict(zip(range(1, 13), calendar.month_abbr[1:]))


class AbstractBins:
    """Shared behaviour of ``Bins`` and ``CyclicBins``: calling applies ``f``."""

    f: Callable
    labels: T_Labels

    def __call__(self, x):
        return self.f(x)


def _validate_bin_count(bins) -> None:
    if isinstance(bins, numbers.Integral) and not isinstance(bins, bool) and bins <= 0:
        raise InvalidBinCountError(f"Number of bins must be a positive integer. Received {bins!r}.")


@dataclass(init=False, eq=False)
class Bins(AbstractBins):
    """
    Bins to reduce groups into after applying ``f``.

    ``Bins(bins)`` and ``Bins(f, bins)`` are both accepted.

    Parameters
    ----------
    f : callable, optional
        Grouping function of the lookup values, ``identity`` by default.
    bins : int or sequence
        * an ``int`` divides the transformed values into that many equally
          spaced half-open intervals spanning their extrema.
        * a sequence of values is treated as exact matches for the return
          value of ``f``: ``[1, 2, 3]`` makes the three bins 1, 2 and 3.
        * a sequence of ``pandas.Interval`` (or a ``pandas.IntervalIndex``)
          defines the intervals explicitly. When intervals overlap, a value
          goes to the first interval that contains it.
    labels : callable, mapping or sequence, optional
        Relabel the resulting groups.
    pad : float, optional
        Fraction of the value range added to the upper edge when ``bins`` is an
        ``int``, so the top half-open interval still includes the maximum.
        Defaults to ``OPTIONS["bins_pad"]``.

    Notes
    -----
    When ``f`` returns a tuple, binning applies to the *last* value of the tuple.
    """

    f: Callable
    bins: int | Sequence | pd.Index
    labels: Any
    pad: float

    def __init__(self, *args, labels: T_Labels = None, pad: float | None = None):
        if len(args) == 1:
            (bins,) = args
            f = identity
        elif len(args) == 2:
            f, bins = args
        else:
            raise TypeError(f"Bins takes bins or (f, bins) as positional arguments, received {len(args)}.")
        if not callable(f):
            raise TypeError(f"Bins function must be callable. Received {f!r}.")
        _validate_bin_count(bins)
        if pad is None:
            pad = OPTIONS["bins_pad"]
        if pad < 0:
            raise ValueError(f"pad must be non-negative. Received {pad!r}.")
        self.f = f
        self.bins = bins
        self.labels = labels
        self.pad = pad

    def __repr__(self) -> str:
        return f"{type(self).__name__}({getattr(self.f, '__name__', self.f)}, {self.bins!r})"


@dataclass(eq=False)
class CyclicBins(AbstractBins):
    """
    Bins that wrap around a period, such as months of the year or hours of the day.

    Each bin holds ``step`` consecutive values modulo ``cycle``; the first bin
    starts at ``start``. ``CyclicBins(month, cycle=12, step=3, start=12)`` makes
    the meteorological seasons ``(12, 1, 2)``, ``(3, 4, 5)``, ...

    Values run from ``base`` to ``base + cycle - 1``: ``1`` for calendar months
    and days, ``0`` for hours, so ``hours(6, start=3)`` wraps ``23`` to ``0``.
    """

    f: Callable
    cycle: int = field(kw_only=True)
    step: int = field(kw_only=True)
    start: int = field(default=1, kw_only=True)
    labels: Any = field(default=None, kw_only=True)
    base: int = field(default=1, kw_only=True)

    def __post_init__(self):
        if self.cycle <= 0 or self.step <= 0:
            raise ValueError(f"cycle and step must be positive. Received cycle={self.cycle}, step={self.step}.")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({getattr(self.f, '__name__', self.f)}; "
            f"cycle={self.cycle}, step={self.step}, start={self.start})"
        )


def _last(value):
    return value[-1] if isinstance(value, tuple) else value


def _rem(x: int, y: int) -> int:
    # remainder with the sign of the dividend
    return int(math.fmod(x, y))


def _padded_upper(a, b, pad):
    span = b - a
    if span:
        return b + span * pad
    if isinstance(b, numbers.Number):
        # same widening as pandas.cut for a constant input
        return b + (0.001 * abs(b) if b != 0 else 0.001)
    raise ValueError(f"Cannot build bins of non-zero width from the single value {b!r}.")


def _bins_from_count(transformed: Sequence, nbins: int, pad: float) -> list[pd.Interval]:
    _validate_bin_count(nbins)
    if len(transformed) == 0:
        raise EmptyDimensionError("Cannot compute bin edges from an empty dimension.")
    values = [_last(t) for t in transformed]
    a, b = min(values), max(values)
    upper = _padded_upper(a, b, pad)
    return list(pd.interval_range(start=a, end=upper, periods=nbins, closed="left"))


def _cyclic_bins(bins: CyclicBins) -> list[tuple[int, ...]]:
    return [
        tuple(_rem(n + g - bins.base, bins.cycle) + bins.base for n in range(bins.step))
        for g in range(bins.start, bins.start + bins.cycle, bins.step)
    ]


def groups_from(transformed: Sequence, bins: Bins | CyclicBins) -> list:
    """The list of buckets that ``transformed`` values are sorted into."""
    if isinstance(bins, CyclicBins):
        return _cyclic_bins(bins)
    if isinstance(bins.bins, numbers.Integral):
        return _bins_from_count(transformed, bins.bins, bins.pad)
    return list(bins.bins)


def intervals(values: Sequence, *, upper=None, closed: str = "left") -> pd.IntervalIndex:
    """
    Intervals between consecutive ``values``.

    A ``range`` extends its last interval by its step. Any other sequence needs
    ``upper`` for the right edge of the last interval; without it every value
    becomes a single-point, closed interval ``[v, v]``.
    """
    if isinstance(values, range):
        breaks = [*values, values[-1] + values.step]
    elif upper is None:
        return pd.IntervalIndex.from_arrays(values, values, closed="both")
    else:
        breaks = [*values, upper]
    return pd.IntervalIndex.from_breaks(breaks, closed=closed)


def ranges(rng: range) -> list[range]:
    """Split ``rng`` into consecutive ranges one step long, usable as ``Bins``."""
    return [range(x, x + rng.step) for x in rng]


def month(x) -> int:
    return x.month


def hour(x) -> int:
    return x.hour


def yearhour(x) -> tuple[int, int]:
    return x.year, x.hour


def dayofyear(x) -> int:
    return x.timetuple().tm_yday


def dayofmonth(x) -> int:
    return x.day


def months(step: int, *, start: int = 1, labels: T_Labels = MONTH_ABBR) -> CyclicBins:
    return CyclicBins(month, cycle=12, step=step, start=start, labels=labels)


def season(*, start: int = 1, **kwargs) -> CyclicBins:
    """Three-month bins. ``start=12`` gives DJF, MAM, JJA, SON."""
    return months(3, start=start, **kwargs)


def hours(step: int, *, start: int = 0, labels: T_Labels = None) -> CyclicBins:
    return CyclicBins(hour, cycle=24, step=step, start=start, labels=labels, base=0)


def yearhours(step: int, *, start: int = 0, labels: T_Labels = None) -> CyclicBins:
    """Hour-of-day bins kept separate for every year."""
    return CyclicBins(yearhour, cycle=24, step=step, start=start, labels=labels, base=0)


def yeardays(step: int, *, start: int = 1, labels: T_Labels = None) -> CyclicBins:
    return CyclicBins(dayofyear, cycle=366, step=step, start=start, labels=labels)


def monthdays(step: int, *, start: int = 1, labels: T_Labels = None) -> CyclicBins:
    return CyclicBins(dayofmonth, cycle=31, step=step, start=start, labels=labels)


__all__ = [
    "AbstractBins",
    "Bins",
    "CyclicBins",
    "MONTH_ABBR",
    "dayofmonth",
    "dayofyear",
    "groups_from",
    "hour",
    "hours",
    "intervals",
    "month",
    "monthdays",
    "months",
    "ranges",
    "season",
    "yeardays",
    "yearhour",
    "yearhours",
]
