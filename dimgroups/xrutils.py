# The functions defined here were copied based on the source code
# defined in xarray

from collections.abc import Hashable, Mapping
from typing import Any, TypeVar

import pandas as pd
import xarray as xr

T = TypeVar("T")


def is_dict_like(value: Any) -> bool:
    return hasattr(value, "keys") and hasattr(value, "__getitem__")


def either_dict_or_kwargs(
    pos_kwargs: Mapping[Any, T] | None,
    kw_kwargs: Mapping[str, T],
    func_name: str,
) -> Mapping[Hashable, T]:
    if pos_kwargs is None or pos_kwargs == {}:
        # Need an explicit cast to appease mypy due to invariance; see
        # https://github.com/python/mypy/issues/6228
        return dict(kw_kwargs)

    if not is_dict_like(pos_kwargs):
        raise ValueError(f"the first argument to .{func_name} must be a dictionary")
    if kw_kwargs:
        raise ValueError(f"cannot specify both keyword and positional arguments to .{func_name}")
    return pos_kwargs


def is_labeled_array_or_stack(value: Any) -> bool:
    """True for DataArrays or Datasets with at least one dimension."""
    return isinstance(value, xr.DataArray | xr.Dataset) and len(value.sizes) > 0


def get_lookup(obj: xr.DataArray | xr.Dataset, dim: Hashable) -> pd.Index:
    """The coordinate index along ``dim``; a RangeIndex if ``dim`` has no coordinate."""
    index = obj.get_index(dim)
    if index.name is None:
        index = index.rename(dim)
    return index
