import importlib
from contextlib import nullcontext

import numpy as np
import packaging.version
import pandas as pd
import pytest
import xarray as xr

try:
    import dask
    import dask.array as da

    dask_array_type = da.Array
except ImportError:
    dask_array_type = ()  # type: ignore[assignment, misc]


def _importorskip(modname, minversion=None):
    try:
        mod = importlib.import_module(modname)
        has = True
        if minversion is not None:
            if LooseVersion(mod.__version__) < LooseVersion(minversion):
                raise ImportError("Minimum version not satisfied")
    except ImportError:
        has = False
    func = pytest.mark.skipif(not has, reason=f"requires {modname}")
    return has, func


def LooseVersion(vstring):
    # Our development version is something like '0.10.9+aac7bfc'
    # This function just ignored the git commit id.
    vstring = vstring.split("+")[0]
    return packaging.version.Version(vstring)


has_cftime, requires_cftime = _importorskip("cftime")
has_dask, requires_dask = _importorskip("dask")


class CountingScheduler:
    """Simple dask scheduler counting the number of computes.

    Reference: https://stackoverflow.com/questions/53289286/"""

    def __init__(self, max_computes=0):
        self.total_computes = 0
        self.max_computes = max_computes

    def __call__(self, dsk, keys, **kwargs):
        self.total_computes += 1
        if self.total_computes > self.max_computes:
            raise RuntimeError(f"Too many computes. Total: {self.total_computes} > max: {self.max_computes}.")
        return dask.get(dsk, keys, **kwargs)


def raise_if_dask_computes(max_computes=0):
    # return a dummy context manager so that this can be used for non-dask objects
    if not has_dask:
        return nullcontext()
    scheduler = CountingScheduler(max_computes)
    return dask.config.set(scheduler=scheduler)


def assert_equal(a, b):
    __tracebackhide__ = True

    if isinstance(a, list):
        a = np.array(a)
    if isinstance(b, list):
        b = np.array(b)

    if isinstance(a, pd.Index) or isinstance(b, pd.Index):
        pd.testing.assert_index_equal(a, b)
        return
    if isinstance(a, xr.DataArray | xr.Dataset) or isinstance(b, xr.DataArray | xr.Dataset):
        xr.testing.assert_identical(a, b)
        return

    if a.dtype.kind in "SUMmO":
        np.testing.assert_equal(a, b)
    else:
        np.testing.assert_allclose(a, b, equal_nan=True)


def assert_partition(partition, expected):
    """Compare a list of position arrays with a list of position lists."""
    __tracebackhide__ = True

    assert len(partition) == len(expected), f"{len(partition)} groups, expected {len(expected)}"
    for actual, expect in zip(partition, expected):
        np.testing.assert_array_equal(actual, np.asarray(expect, dtype=np.intp))
