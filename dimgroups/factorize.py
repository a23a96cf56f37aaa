"""Factorization of dimension lookups into groups.

For one dimension and one grouping criterion, this module finds the group
keys and the positions along the dimension that belong to each of them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Sequence
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from .bins import AbstractBins, groups_from
from .errors import EmptyDimensionError, LabelLengthError, UnorderableKeysError
from .lib import identity, to_object_array
from .types import Resolved
from .xrutils import is_dict_like

if TYPE_CHECKING:
    from .types import T_Criterion, T_Labels, T_Partition

logger = logging.getLogger("dimgroups")

_SEQUENCE_BUCKETS = (tuple, list, range, set, frozenset)
_EXPLICIT_LOOKUPS = (pd.Index, np.ndarray, list, tuple, range)
_NULL = object()


def _isnull(key) -> bool:
    if isinstance(key, _SEQUENCE_BUCKETS + (str, bytes, np.ndarray)):
        return False
    return pd.api.types.is_scalar(key) and bool(pd.isna(key))


def _contains(bucket, value) -> bool:
    """Whether ``value`` falls in ``bucket``: an interval, a collection, or a single point."""
    if isinstance(bucket, pd.Interval):
        try:
            return value in bucket
        except TypeError:
            # incomparable types are simply not contained
            return False
    if isinstance(bucket, _SEQUENCE_BUCKETS):
        return value in bucket
    return bool(bucket == value)


def _contains_compound(key: tuple, value: tuple) -> bool:
    return key[:-1] == value[:-1] and _contains(key[-1], value[-1])


def _as_index(values: Sequence) -> pd.Index:
    if any(isinstance(v, tuple) for v in values):
        return pd.Index(to_object_array(values), dtype=object)
    return pd.Index(list(values))


def _fast_indexer(group_keys: Sequence, values: Sequence) -> np.ndarray | None:
    """Vectorized bucket codes, or None when the buckets need the first-match scan."""
    if len(group_keys) == 0:
        return np.full(len(values), -1, dtype=np.intp)
    if all(isinstance(k, pd.Interval) for k in group_keys):
        if len({k.closed for k in group_keys}) > 1:
            return None
        index = pd.IntervalIndex(group_keys)
        if not index.is_non_overlapping_monotonic:
            return None
        return index.get_indexer(_as_index(values))
    if any(isinstance(k, (pd.Interval,) + _SEQUENCE_BUCKETS) for k in group_keys):
        return None
    index = _as_index(group_keys)
    target = _as_index(values)
    if not index.is_unique or not _comparable_kinds(index.dtype, target.dtype):
        return None
    return index.get_indexer(target)


def _comparable_kinds(a: np.dtype, b: np.dtype) -> bool:
    # get_indexer is dtype-strict, e.g. True never matches 1
    if a.kind in "iuf" and b.kind in "iuf":
        return True
    return a.kind == b.kind


def select_positions(group_keys: Sequence, values: Sequence, *, compound: bool = False) -> np.ndarray:
    """
    For every value, the position of the first bucket in ``group_keys`` containing it.

    Buckets are intervals (membership), tuples/ranges of residues (membership)
    or plain values (equality). Values that fall in no bucket are coded -1.
    With ``compound=True`` keys and values are tuples whose leading components
    must be equal and whose last component is tested for containment.
    """
    codes = None if compound else _fast_indexer(group_keys, values)
    if codes is not None:
        return codes.astype(np.intp, copy=False)

    match = _contains_compound if compound else _contains
    codes = np.full(len(values), -1, dtype=np.intp)
    for i, value in enumerate(values):
        for n, key in enumerate(group_keys):
            if match(key, value):
                codes[i] = n
                break
    return codes


def _partition_codes(codes: np.ndarray, ngroups: int) -> T_Partition:
    """Split positions 0..len(codes)-1 by their code, keeping the original order in each group."""
    if ngroups == 0:
        return []
    sorter = np.argsort(codes, kind="stable")
    nmissing = int((codes < 0).sum())
    counts = np.bincount(codes[codes >= 0], minlength=ngroups)
    return np.split(sorter[nmissing:].astype(np.intp), np.cumsum(counts)[:-1])


def _factorize_function(lookup: pd.Index, f: Callable) -> tuple[list, T_Partition]:
    if len(lookup) == 0:
        raise EmptyDimensionError(
            f"Cannot group empty dimension {lookup.name!r} by a function: there are no values to apply it to."
        )
    positions: dict[Hashable, list[int]] = {}
    null_key = None
    for i, x in enumerate(lookup):
        key = f(x)
        if _isnull(key):
            # every NaN is its own object, collapse them into one group
            if null_key is None:
                null_key = key
            key = _NULL
        positions.setdefault(key, []).append(i)
    nulls = positions.pop(_NULL, None)
    try:
        keys = sorted(positions)
    except TypeError as e:
        raise UnorderableKeysError(
            f"Group keys for dimension {lookup.name!r} cannot be sorted: {list(positions)[:5]!r}..."
        ) from e
    partition = [np.asarray(positions[k], dtype=np.intp) for k in keys]
    if nulls is not None:
        # missing keys sort last
        keys.append(null_key)
        partition.append(np.asarray(nulls, dtype=np.intp))
    return keys, partition


def _factorize_lookup(values: Sequence, group_keys: Sequence, *, compound: bool = False) -> T_Partition:
    codes = select_positions(group_keys, values, compound=compound)
    nmissing = int((codes < 0).sum())
    if nmissing:
        logger.debug("%d of %d values fall outside every group and are left out", nmissing, len(codes))
    return _partition_codes(codes, len(group_keys))


def _factorize_bins(lookup: pd.Index, bins: AbstractBins) -> tuple[list, T_Partition]:
    # Apply the function first unless it is `identity`
    transformed = list(lookup) if bins.f is identity else [bins.f(x) for x in lookup]
    compound = len(transformed) > 0 and isinstance(transformed[0], tuple)
    inner = groups_from(transformed, bins)
    if compound:
        # leading tuple components are grouped by equality, in order of appearance
        outer = list(dict.fromkeys(t[:-1] for t in transformed))
        keys = [(*og, ig) for og in outer for ig in inner]
    else:
        keys = inner
    return keys, _factorize_lookup(transformed, keys, compound=compound)


def _join_label(labels, key) -> str:
    if not isinstance(key, _SEQUENCE_BUCKETS):
        raise KeyError(key)
    return "_".join(str(labels[k]) for k in key)


def maybe_label(labels: T_Labels, keys: Sequence) -> Sequence:
    """Relabel sorted group ``keys`` with a function, a mapping or a same-length sequence."""
    if labels is None:
        return keys
    if is_dict_like(labels):
        return [labels[k] if k in labels else _join_label(labels, k) for k in keys]
    if callable(labels):
        return [labels(k) for k in keys]
    labels = list(labels)
    if len(labels) != len(keys):
        raise LabelLengthError(f"Received {len(labels)} labels for {len(keys)} groups.")
    return labels


def _make_group_index(keys: Sequence, name: Hashable) -> pd.Index:
    if isinstance(keys, pd.Index):
        return keys.rename(name)
    if any(isinstance(k, _SEQUENCE_BUCKETS) for k in keys):
        # keep tuples as scalars rather than building a MultiIndex
        return pd.Index(to_object_array(keys), dtype=object, name=name)
    return pd.Index(list(keys), name=name)


def resolve(lookup: pd.Index, criterion: T_Criterion, labels: T_Labels = None) -> Resolved:
    """
    Group the positions of ``lookup`` according to ``criterion``.

    Parameters
    ----------
    lookup : pandas.Index
        Coordinate values along one dimension. Its name becomes the name of
        the returned group index.
    criterion : callable, Bins, CyclicBins or sequence
        * a function of each coordinate value. Positions are grouped by its
          return value and the groups are sorted.
        * ``Bins`` or ``CyclicBins``: the coordinate values are transformed with
          the bins' function and then sorted into the bins.
        * a ``pandas.Index`` or sequence of values or intervals. Each coordinate
          goes to the first entry that contains it; the given order is kept.
    labels : callable, mapping or sequence, optional
        Relabel the groups. For bins, defaults to the bins' own ``labels``.

    Returns
    -------
    Resolved
        ``group_index``, the new lookup for the dimension, and ``partition``,
        an integer array of positions for each entry of ``group_index``.

    Raises
    ------
    EmptyDimensionError
    UnorderableKeysError
    InvalidBinCountError
    LabelLengthError
    """
    if isinstance(criterion, AbstractBins):
        keys, partition = _factorize_bins(lookup, criterion)
        if labels is None:
            labels = criterion.labels
    elif isinstance(criterion, _EXPLICIT_LOOKUPS):
        keys = criterion if isinstance(criterion, pd.Index) else list(criterion)
        partition = _factorize_lookup(list(lookup), list(keys))
    elif callable(criterion):
        keys, partition = _factorize_function(lookup, criterion)
    else:
        raise TypeError(f"Cannot group dimension {lookup.name!r} by {criterion!r} of type {type(criterion)}.")

    group_index = _make_group_index(maybe_label(labels, keys), lookup.name)
    logger.debug("Resolved %d groups along %r", len(group_index), lookup.name)
    return Resolved(group_index, partition)


__all__ = [
    "maybe_label",
    "resolve",
    "select_positions",
]
