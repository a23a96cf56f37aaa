"""The container returned by ``groupby``: an array of labeled sub-arrays."""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd
import xarray as xr

from .errors import DimensionMismatchError, UnknownDimensionError
from .lib import to_object_array
from .options import OPTIONS
from .xrutils import either_dict_or_kwargs, is_labeled_array_or_stack

if TYPE_CHECKING:
    from .types import GroupByMetadata

logger = logging.getLogger("dimgroups")

_default = object()


def _to_index(dim: Any, name: Hashable | None = None) -> pd.Index:
    if isinstance(dim, tuple) and len(dim) == 2 and not isinstance(dim[1], str | bytes):
        name, dim = dim
    index = dim.to_index() if isinstance(dim, xr.DataArray) else pd.Index(dim)
    if name is not None:
        index = index.rename(name)
    if index.name is None:
        raise DimensionMismatchError("Every group dimension needs a name.")
    return index


def format_dims(dims: Iterable | Mapping, data: np.ndarray) -> tuple[pd.Index, ...]:
    """
    Check ``dims`` against ``data`` and return them as a tuple of named indexes.

    ``dims`` may be a mapping of name to values, or an iterable of named
    ``pandas.Index`` or ``(name, values)`` pairs.
    """
    if isinstance(dims, Mapping):
        indexes = tuple(_to_index(values, name) for name, values in dims.items())
    else:
        indexes = tuple(_to_index(dim) for dim in dims)
    if len(indexes) != data.ndim:
        raise DimensionMismatchError(
            f"Number of dimensions {len(indexes)} does not match the number of axes {data.ndim} of the data."
        )
    names = [index.name for index in indexes]
    if len(set(names)) != len(names):
        raise DimensionMismatchError(f"Dimension names must be unique. Received {names!r}.")
    for axis, index in enumerate(indexes):
        if len(index) != data.shape[axis]:
            raise DimensionMismatchError(
                f"Dimension {index.name!r} has length {len(index)} but the data has size "
                f"{data.shape[axis]} along axis {axis}."
            )
    return indexes


def _as_coordinate(index: pd.Index):
    # xarray does not handle IntervalIndex well as a coordinate
    if isinstance(index, pd.IntervalIndex) or index.dtype == object:
        return to_object_array(index)
    return index


def result_type(data: np.ndarray) -> type:
    """
    The type to wrap ``data`` in: ``GroupByArray`` when every element is a
    labeled array or stack with dimensions, else ``xarray.DataArray``.
    """
    if data.size and all(is_labeled_array_or_stack(x) for x in data.flat):
        return GroupByArray
    return xr.DataArray


def _unwrap_scalar(x):
    if isinstance(x, xr.DataArray) and x.ndim == 0:
        return x.values[()]
    return x


def _demote(data, dims, refdims, name, metadata) -> xr.DataArray | xr.Dataset:
    """Turn an array of plain values into a DataArray, or a Dataset for dimensionless stacks."""
    coords: dict[Hashable, Any] = {dim.name: _as_coordinate(dim) for dim in dims}
    for refdim in refdims:
        if refdim.name not in coords and len(refdim) == 1:
            coords[refdim.name] = refdim[0]
    attrs = dict(metadata or {})
    dim_names = [dim.name for dim in dims]

    flat = [_unwrap_scalar(x) for x in data.flat]
    if flat and all(isinstance(x, xr.Dataset) for x in flat):
        names = list(flat[0].data_vars)
        variables = {
            var: (dim_names, np.asarray([ds[var].values[()] for ds in flat]).reshape(data.shape)) for var in names
        }
        return xr.Dataset(variables, coords=coords, attrs=attrs)

    if flat and all(np.ndim(x) == 0 for x in flat):
        values = np.asarray(flat).reshape(data.shape)
    else:
        values = to_object_array(flat, shape=data.shape)
    return xr.DataArray(values, dims=dim_names, coords=coords, name=name, attrs=attrs)


def _reduce_method(name: str) -> Callable:
    def method(self, dim=None, **kwargs):
        return self.reduce(name, dim=dim, **kwargs)

    method.__name__ = name
    method.__doc__ = f"""Apply ``{name}`` to every group.

    Without ``dim`` each group reduces to a scalar and a DataArray is returned.
    With ``dim`` each group keeps its remaining dimensions and a GroupByArray
    is returned.
    """
    return method


class GroupByArray:
    """
    An array of labeled arrays, holding the results of ``groupby``.

    Its dimensions are the sorted results of the grouping criteria and each
    element is a view into the grouped object. Element-wise operations with
    ``map`` (or the reductions) return a ``GroupByArray`` again when they
    produce labeled arrays, and an ``xarray.DataArray`` when they produce
    plain values.

    Parameters
    ----------
    data : numpy.ndarray of object
        The grouped DataArrays or Datasets.
    dims : iterable or mapping
        One named ``pandas.Index`` per axis of ``data``.
    refdims : tuple of pandas.Index, optional
        Dimensions that were indexed away, kept for context.
    name : hashable, optional
    metadata : dict, optional
    """

    __slots__ = ("_data", "_dims", "_refdims", "_name", "_metadata")

    def __init__(
        self,
        data: np.ndarray | Iterable,
        dims: Iterable | Mapping,
        refdims: tuple[pd.Index, ...] = (),
        name: Hashable | None = None,
        metadata: GroupByMetadata | None = None,
    ):
        if not isinstance(data, np.ndarray):
            data = to_object_array(data)
        self._data = data
        self._dims = format_dims(dims, data)
        self._refdims = tuple(refdims)
        self._name = name
        self._metadata = {} if metadata is None else metadata

    @property
    def data(self) -> np.ndarray:
        return self._data

    values = data

    @property
    def dims(self) -> tuple[pd.Index, ...]:
        return self._dims

    @property
    def dim_names(self) -> tuple[Hashable, ...]:
        return tuple(dim.name for dim in self._dims)

    @property
    def refdims(self) -> tuple[pd.Index, ...]:
        return self._refdims

    @property
    def name(self) -> Hashable | None:
        return self._name

    @property
    def metadata(self) -> GroupByMetadata:
        return self._metadata

    @property
    def shape(self) -> tuple[int, ...]:
        return self._data.shape

    @property
    def ndim(self) -> int:
        return self._data.ndim

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def sizes(self) -> dict[Hashable, int]:
        return {dim.name: len(dim) for dim in self._dims}

    @property
    def coords(self) -> dict[Hashable, pd.Index]:
        return {dim.name: dim for dim in self._dims}

    @property
    def group_dims(self) -> tuple[Hashable, ...]:
        """Dimensions of the grouped elements."""
        if self.size == 0:
            return ()
        return tuple(next(iter(self._data.flat)).sizes)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator:
        return iter(self._data.flat)

    def items(self) -> Iterator[tuple[Any, Any]]:
        """Iterate over ``(group key, element)`` pairs. Keys are tuples for more than one dimension."""
        for loc in np.ndindex(*self.shape):
            key = tuple(dim[i] for dim, i in zip(self._dims, loc))
            yield (key[0] if len(key) == 1 else key), self._data[loc]

    def rebuild(
        self,
        data: np.ndarray | None = None,
        dims: Iterable | None = None,
        refdims: tuple[pd.Index, ...] | None = None,
        name: Any = _default,
        metadata: GroupByMetadata | None = None,
    ) -> GroupByArray | xr.DataArray | xr.Dataset:
        """
        Rebuild with new fields.

        If the elements of ``data`` are DataArrays or Datasets the result is a
        ``GroupByArray``, otherwise a regular ``xarray.DataArray``.
        """
        data = self._data if data is None else data
        dims = self._dims if dims is None else dims
        refdims = self._refdims if refdims is None else refdims
        name = self._name if name is _default else name
        metadata = self._metadata if metadata is None else metadata

        if result_type(data) is GroupByArray:
            return GroupByArray(data, dims, refdims=refdims, name=name, metadata=metadata)
        logger.debug("Elements are not labeled arrays, rebuilding as a DataArray")
        return _demote(data, format_dims(dims, data), refdims, name, metadata)

    def to_dataarray(self) -> xr.DataArray | xr.Dataset:
        """Convert to a regular DataArray of the (scalar) elements."""
        return _demote(self._data, self._dims, self._refdims, self._name, self._metadata)

    def isel(self, indexers: Mapping[Hashable, Any] | None = None, **indexers_kwargs):
        """
        Index by position along the group dimensions.

        Integers drop the dimension (it is kept in ``refdims``); slices and
        integer arrays select orthogonally. Indexing every dimension with an
        integer returns the element itself.
        """
        indexers = either_dict_or_kwargs(indexers, indexers_kwargs, "isel")
        unknown = [k for k in indexers if k not in self.dim_names]
        if unknown:
            raise UnknownDimensionError(unknown, available=self.dim_names)

        key = tuple(indexers.get(name, slice(None)) for name in self.dim_names)
        if all(isinstance(k, int | np.integer) for k in key):
            return self._data[key]

        data = self._data
        # index the last axes first so dropped axes do not shift the others
        for axis in reversed(range(self.ndim)):
            data = data[(slice(None),) * axis + (np.asarray(key[axis]) if isinstance(key[axis], list) else key[axis],)]

        dims = []
        refdims = list(self._refdims)
        for dim, k in zip(self._dims, key):
            if isinstance(k, int | np.integer):
                refdims.append(dim[[k]])
            else:
                dims.append(dim[k])
        return self.rebuild(data=data, dims=tuple(dims), refdims=tuple(refdims))

    def sel(self, indexers: Mapping[Hashable, Any] | None = None, **indexers_kwargs):
        """
        Index by group key. For interval groups a value selects the interval
        containing it.
        """
        indexers = either_dict_or_kwargs(indexers, indexers_kwargs, "sel")
        unknown = [k for k in indexers if k not in self.dim_names]
        if unknown:
            raise UnknownDimensionError(unknown, available=self.dim_names)

        positional = {}
        for name, label in indexers.items():
            index = self.coords[name]
            if isinstance(label, slice):
                positional[name] = index.slice_indexer(label.start, label.stop, label.step)
            elif isinstance(label, list | np.ndarray | pd.Index):
                locs = index.get_indexer(label)
                if (locs == -1).any():
                    raise KeyError(f"Not all values found in dimension {name!r}: {label!r}")
                positional[name] = locs
            else:
                positional[name] = index.get_loc(label)
        return self.isel(positional)

    def __getitem__(self, key):
        if isinstance(key, Mapping):
            return self.isel(key)
        if not isinstance(key, tuple):
            key = (key,)
        if len(key) > self.ndim:
            raise IndexError(f"too many indices: array is {self.ndim}-dimensional, but {len(key)} were indexed")
        return self.isel(dict(zip(self.dim_names, key)))

    def _align(self, other: xr.DataArray) -> xr.DataArray:
        """Reorder ``other`` so its group coordinates match ours, key by key."""
        for dim in self._dims:
            if dim.name not in other.coords:
                # no keys to check, pair by position
                continue
            ours = pd.Index(to_object_array(dim), dtype=object)
            theirs = pd.Index(to_object_array(other.get_index(dim.name)), dtype=object)
            if theirs.equals(ours):
                continue
            indexer = theirs.get_indexer(ours) if theirs.is_unique else None
            if indexer is None or len(theirs) != len(ours) or (indexer == -1).any():
                raise DimensionMismatchError(
                    f"Group keys along {dim.name!r} differ: {list(theirs)!r} and {list(ours)!r}."
                )
            other = other.isel({dim.name: indexer})
        return other

    def _broadcast_operand(self, other) -> np.ndarray:
        if isinstance(other, GroupByArray):
            if other.dim_names != self.dim_names or other.shape != self.shape:
                raise DimensionMismatchError(
                    f"Cannot map over GroupByArrays with dimensions {other.sizes} and {self.sizes}."
                )
            return other.data
        if isinstance(other, xr.DataArray):
            if set(other.dims) != set(self.dim_names):
                raise DimensionMismatchError(
                    f"Cannot map over a DataArray with dimensions {other.dims} and a GroupByArray with {self.dim_names}."
                )
            return np.asarray(self._align(other).transpose(*self.dim_names).values)
        if isinstance(other, np.ndarray):
            if other.shape != self.shape:
                raise DimensionMismatchError(f"Cannot map over arrays of shape {other.shape} and {self.shape}.")
            return other
        scalar = np.empty((), dtype=object)
        scalar[()] = other
        return np.broadcast_to(scalar, self.shape)

    def map(self, func: Callable, *others, **kwargs):
        """
        Apply ``func`` to every element, zipped with the elements of ``others``.

        ``others`` may be GroupByArrays or DataArrays with the same group
        dimensions, arrays of the same shape, or scalars. The result type
        follows the values ``func`` returns; see ``rebuild``.
        """
        operands = [self._data] + [self._broadcast_operand(other) for other in others]
        out = np.empty(self.shape, dtype=object)
        for loc in np.ndindex(*self.shape):
            out[loc] = func(*(operand[loc] for operand in operands), **kwargs)
        return self.rebuild(data=out)

    def reduce(self, func: str | Callable, dim=None, **kwargs):
        """
        Reduce every group with ``func``.

        ``func`` is the name of a DataArray/Dataset method such as ``"mean"``,
        or a function accepted by ``DataArray.reduce``.
        """
        if isinstance(func, str):
            return self.map(lambda x: getattr(x, func)(dim=dim, **kwargs))
        return self.map(lambda x: x.reduce(func, dim=dim, **kwargs))

    count = _reduce_method("count")
    max = _reduce_method("max")
    mean = _reduce_method("mean")
    median = _reduce_method("median")
    min = _reduce_method("min")
    prod = _reduce_method("prod")
    std = _reduce_method("std")
    sum = _reduce_method("sum")
    var = _reduce_method("var")

    def __repr__(self) -> str:
        sizes = ", ".join(f"{name}: {size}" for name, size in self.sizes.items())
        lines = [f"<dimgroups.{type(self).__name__} {self._name!r} ({sizes})>"]
        for dim in self._dims:
            lines.append(f"  * {dim.name!s:<8} {list(dim[:5])!r}{' ...' if len(dim) > 5 else ''}")
        if self.size:
            lines.append(f"group dims: {', '.join(map(str, self.group_dims))}")
        if self._metadata:
            lines.append(f"metadata: {self._metadata!r}")

        maxrows = OPTIONS["display_max_rows"]
        for n, (key, element) in enumerate(self.items()):
            if n == maxrows:
                lines.append(f"  ... {self.size - maxrows} more")
                break
            element_sizes = " x ".join(str(s) for s in element.sizes.values())
            lines.append(f"  {key!s}  {element_sizes} {type(element).__name__}")
        return "\n".join(lines)


__all__ = ["GroupByArray", "format_dims", "result_type"]
