from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import numpy as np
import xarray as xr

from .array import GroupByArray
from .errors import UnknownDimensionError
from .factorize import resolve
from .lib import _maybe_slice
from .options import OPTIONS
from .types import Resolved
from .xrutils import either_dict_or_kwargs, get_lookup

if TYPE_CHECKING:
    import pandas as pd

    from .types import T_Criterion, T_Groupers, T_Indexer, T_Obj

logger = logging.getLogger("dimgroups")


def _normalize_groupers(groupers, groupers_kwargs) -> tuple[tuple[Hashable, T_Criterion], ...]:
    if isinstance(groupers, Sequence) and not isinstance(groupers, str):
        if groupers_kwargs:
            raise ValueError("cannot specify both (dim, criterion) pairs and keyword arguments to .groupby")
        pairs = tuple(tuple(pair) for pair in groupers)
        if any(len(pair) != 2 for pair in pairs):
            raise ValueError("groupers must be (dimension, criterion) pairs.")
    else:
        pairs = tuple(either_dict_or_kwargs(groupers, groupers_kwargs, "groupby").items())
    if not pairs:
        raise ValueError("Please provide at least one dimension to group by.")
    names = [dim for dim, _ in pairs]
    if len(set(names)) != len(names):
        raise ValueError(f"Cannot group by the same dimension more than once: {names!r}")
    return pairs


def _assert_dims_exist(obj: T_Obj, dims: Sequence[Hashable]) -> None:
    missing = [d for d in dims if d not in obj.sizes]
    if missing:
        raise UnknownDimensionError(missing, available=tuple(obj.sizes))


def resolve_all(obj: T_Obj, pairs: Sequence[tuple[Hashable, T_Criterion]]) -> dict[Hashable, Resolved]:
    """Resolve group keys and partitions for each (dimension, criterion) pair."""
    lookups = [get_lookup(obj, dim) for dim, _ in pairs]
    criteria = [criterion for _, criterion in pairs]
    if len(pairs) > OPTIONS["parallel_resolve_threshold"]:
        with ThreadPoolExecutor() as executor:
            futures = [executor.submit(resolve, lookup, criterion) for lookup, criterion in zip(lookups, criteria)]
            results = tuple(f.result() for f in futures)
    else:
        results = tuple(resolve(lookup, criterion) for lookup, criterion in zip(lookups, criteria))
    return {dim: result for (dim, _), result in zip(pairs, results)}


def combine(
    obj: T_Obj, resolved: Mapping[Hashable, Resolved]
) -> tuple[tuple[pd.Index, ...], dict[Hashable, tuple[T_Indexer, ...]]]:
    """
    Attach each dimension's partition to its own axis.

    Returns the group dimensions and, per grouped dimension, one indexer per
    group: a slice when the group's positions are contiguous, else an integer
    array. Dimensions that are not grouped are left out and stay full-span in
    every view.
    """
    _assert_dims_exist(obj, list(resolved))
    use_slices = OPTIONS["use_slices"]
    group_dims = tuple(r.group_index for r in resolved.values())
    indexers = {
        dim: tuple(_maybe_slice(p) if use_slices else p for p in r.partition) for dim, r in resolved.items()
    }
    return group_dims, indexers


def materialize_views(obj: T_Obj, indexers: Mapping[Hashable, Sequence[T_Indexer]]) -> np.ndarray:
    """An object array with one ``obj.isel`` view for every combination of groups."""
    dims = tuple(indexers)
    shape = tuple(len(indexers[d]) for d in dims)
    views = np.empty(shape, dtype=object)
    for loc in np.ndindex(*shape):
        views[loc] = obj.isel({d: indexers[d][i] for d, i in zip(dims, loc)})
    return views


def groupby(
    obj: T_Obj,
    groupers: T_Groupers | Sequence[tuple[Hashable, T_Criterion]] | None = None,
    /,
    **groupers_kwargs: T_Criterion,
) -> GroupByArray:
    """
    Group ``obj`` by functions or bins of its dimension coordinates.

    Parameters
    ----------
    obj : DataArray or Dataset
        Object to group.
    groupers : mapping or sequence of pairs, optional
        Map from dimension name to grouping criterion. Either this or
        ``**groupers_kwargs`` must be provided. A criterion is one of

        * a function applied to every coordinate value, e.g. ``month``;
        * a ``Bins`` or ``CyclicBins`` instance;
        * a ``pandas.Index`` or sequence of values or intervals to sort
          the coordinate values into.
    **groupers_kwargs
        The keyword arguments form of ``groupers``.

    Returns
    -------
    GroupByArray
        Array of views into ``obj``, one per group. Its dimensions hold the
        sorted group keys and its metadata records the grouping criteria
        under ``"groupby"``.

    Raises
    ------
    UnknownDimensionError
        If a grouped dimension is not a dimension of ``obj``.

    Examples
    --------
    >>> import numpy as np
    >>> import pandas as pd
    >>> import xarray as xr
    >>> from dimgroups import groupby
    >>> from dimgroups.bins import month
    >>> da = xr.DataArray(
    ...     np.arange(24.0),
    ...     dims="time",
    ...     coords={"time": pd.date_range("2000-01-01", periods=24, freq="MS")},
    ... )
    >>> groups = groupby(da, time=month)
    >>> groups.shape
    (12,)
    >>> groups.mean().values
    array([ 6.,  7.,  8.,  9., 10., 11., 12., 13., 14., 15., 16., 17.])
    """
    if not isinstance(obj, xr.DataArray | xr.Dataset):
        raise TypeError(f"Can only group DataArray or Dataset objects. Received {type(obj)}.")

    pairs = _normalize_groupers(groupers, groupers_kwargs)
    _assert_dims_exist(obj, [dim for dim, _ in pairs])

    resolved = resolve_all(obj, pairs)
    group_dims, indexers = combine(obj, resolved)
    views = materialize_views(obj, indexers)
    logger.debug("Grouped %s into %s groups", dict(obj.sizes), views.shape)

    # Put the groupby query in metadata
    metadata = {"groupby": pairs[0] if len(pairs) == 1 else pairs}
    return GroupByArray(views, group_dims, refdims=(), name="groupby", metadata=metadata)


__all__ = [
    "combine",
    "groupby",
    "materialize_views",
    "resolve_all",
]
