from collections import namedtuple
from collections.abc import Callable, Hashable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeAlias

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    import xarray as xr

    from .bins import Bins, CyclicBins

    T_Obj: TypeAlias = xr.DataArray | xr.Dataset
    T_Criterion: TypeAlias = Callable | Bins | CyclicBins | pd.Index | np.ndarray | Sequence
    T_Groupers: TypeAlias = Mapping[Hashable, T_Criterion]
    T_Labels: TypeAlias = Callable | Mapping | Sequence | np.ndarray | None


T_Partition = list[np.ndarray]
T_Indexer = np.ndarray | slice

# ``group_index`` is the new lookup for the grouped dimension,
# ``partition`` holds the original positions for each of its entries.
Resolved = namedtuple("Resolved", "group_index partition")

GroupByMetadata = dict[str, Any]
