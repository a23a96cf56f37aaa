import numpy as np
import pandas as pd
import pytest
import xarray as xr

import dimgroups
from dimgroups import Bins, GroupByArray, groupby, hours, season
from dimgroups.bins import month
from dimgroups.core import combine, materialize_views, resolve_all
from dimgroups.errors import UnknownDimensionError

from . import (
    assert_equal,
    dask_array_type,
    raise_if_dask_computes,
    requires_cftime,
    requires_dask,
)

DAYS_PER_MONTH_2000_2001 = [62, 57, 62, 60, 62, 60, 62, 62, 60, 62, 60, 62]


def isodd(x):
    return x % 2 == 1


def test_groupby_identity_months(monthly):
    groups = groupby(monthly, month=lambda x: x)
    assert isinstance(groups, GroupByArray)
    assert groups.shape == (12,)
    assert list(groups.dims[0]) == list(range(1, 13))
    for i, cell in enumerate(groups):
        assert cell.sizes == {"month": 1}
        assert cell.item() == monthly[i].item()


def test_groupby_by_month(daily):
    groups = groupby(daily, time=month)
    assert groups.shape == (12,)
    assert groups.dim_names == ("time",)
    assert list(groups.dims[0]) == list(range(1, 13))
    assert groups.name == "groupby"
    assert groups.refdims == ()
    assert groups.metadata == {"groupby": ("time", month)}
    assert groups.group_dims == ("x", "y", "time")
    assert [cell.sizes["time"] for cell in groups] == DAYS_PER_MONTH_2000_2001
    assert all(cell.sizes["x"] == 3 and cell.sizes["y"] == 4 for cell in groups)

    january = np.flatnonzero(daily.time.dt.month.values == 1)
    assert_equal(groups[0], daily.isel(time=january))


def test_groupby_multiple_dimensions(daily):
    groups = groupby(daily, time=month, y=isodd)
    assert groups.shape == (12, 2)
    assert groups.dim_names == ("time", "y")
    assert list(groups.dims[1]) == [False, True]
    assert groups.metadata == {"groupby": (("time", month), ("y", isodd))}

    for (t, odd), cell in groups.items():
        assert cell.sizes["time"] == DAYS_PER_MONTH_2000_2001[t - 1]
        assert cell.sizes["y"] == 2
        assert cell.sizes["x"] == 3
        assert all(isodd(v) == odd for v in cell.y.values)


def test_groupby_pairs_keep_order(daily):
    groups = groupby(daily, [("x", lambda x: x > 15), ("time", month)])
    assert groups.dim_names == ("x", "time")
    assert groups.shape == (2, 12)
    assert groups[0, 0].sizes["x"] == 1
    assert groups[1, 0].sizes["x"] == 2


def test_groupby_mapping(daily):
    expected = groupby(daily, time=month)
    actual = groupby(daily, {"time": month})
    assert actual.shape == expected.shape
    for a, e in zip(actual, expected):
        assert_equal(a, e)


@pytest.mark.parametrize("dims", [["z"], ["z", "w"]])
def test_groupby_unknown_dimension(daily, dims):
    with pytest.raises(UnknownDimensionError) as excinfo:
        groupby(daily, {d: month for d in dims})
    assert excinfo.value.dims == tuple(dims)
    assert excinfo.value.available == ("x", "y", "time")


def test_groupby_unknown_dimension_with_valid_ones(daily):
    with pytest.raises(UnknownDimensionError) as excinfo:
        groupby(daily, time=month, z=month)
    assert excinfo.value.dims == ("z",)


def test_groupby_bad_arguments(daily):
    with pytest.raises(ValueError):
        groupby(daily)
    with pytest.raises(ValueError):
        groupby(daily, [("time", month)], x=isodd)
    with pytest.raises(ValueError):
        groupby(daily, [("time", month), ("time", month)])
    with pytest.raises(ValueError):
        groupby(daily, [("time", month, 1)])
    with pytest.raises(TypeError):
        groupby(daily.values, time=month)


def test_groupby_dimension_without_coordinate():
    da = xr.DataArray(np.arange(6), dims="x")
    groups = groupby(da, x=lambda i: i // 2)
    assert list(groups.dims[0]) == [0, 1, 2]
    assert [cell.values.tolist() for cell in groups] == [[0, 1], [2, 3], [4, 5]]


def test_groupby_bins(daily):
    groups = groupby(daily, x=Bins(2))
    assert groups.shape == (2,)
    assert isinstance(groups.dims[0], pd.IntervalIndex)
    assert [cell.sizes["x"] for cell in groups] == [2, 1]


def test_groupby_explicit_lookup_with_empty_group(daily):
    groups = groupby(daily, x=[10, 99])
    assert list(groups.dims[0]) == [10, 99]
    assert groups[0].sizes["x"] == 1
    assert groups[1].sizes["x"] == 0
    assert groups[1].sizes["time"] == daily.sizes["time"]


def test_groupby_season(daily):
    groups = groupby(daily, time=season(start=12))
    assert list(groups.dims[0]) == ["Dec_Jan_Feb", "Mar_Apr_May", "Jun_Jul_Aug", "Sep_Oct_Nov"]
    djf = groups.sel(time="Dec_Jan_Feb")
    assert set(djf.time.dt.month.values.tolist()) == {12, 1, 2}
    assert djf.sizes["time"] == 62 + 57 + 62


def test_groupby_dataset(daily):
    ds = daily.to_dataset()
    ds["double"] = daily * 2
    groups = groupby(ds, time=month)
    assert all(isinstance(cell, xr.Dataset) for cell in groups)
    assert set(groups[0].data_vars) == {"temperature", "double"}


def test_contiguous_groups_are_views(daily):
    groups = groupby(daily, time=lambda t: t.year)
    assert groups.shape == (2,)
    assert np.shares_memory(groups[0].values, daily.values)

    with dimgroups.set_options(use_slices=False):
        groups = groupby(daily, time=lambda t: t.year)
    assert not np.shares_memory(groups[0].values, daily.values)


def test_parallel_resolution_matches_serial(daily):
    serial = groupby(daily, time=month, y=isodd, x=lambda x: x // 20)
    with dimgroups.set_options(parallel_resolve_threshold=0):
        parallel = groupby(daily, time=month, y=isodd, x=lambda x: x // 20)
    assert parallel.shape == serial.shape
    for a, b in zip(parallel.dims, serial.dims):
        assert_equal(a, b)
    for a, b in zip(parallel, serial):
        assert_equal(a, b)


def test_combine(daily):
    resolved = resolve_all(daily, [("time", lambda t: t.year), ("y", isodd)])
    group_dims, indexers = combine(daily, resolved)
    assert [d.name for d in group_dims] == ["time", "y"]
    assert indexers["time"] == (slice(0, 366), slice(366, 731))
    np.testing.assert_array_equal(indexers["y"][0], [1, 3])
    np.testing.assert_array_equal(indexers["y"][1], [0, 2])

    views = materialize_views(daily, indexers)
    assert views.shape == (2, 2)
    assert views[1, 0].sizes == {"x": 3, "y": 2, "time": 365}


def test_combine_unknown_dimension(daily, monthly):
    resolved = resolve_all(monthly, [("month", lambda m: m)])
    with pytest.raises(UnknownDimensionError):
        combine(daily, resolved)


@requires_dask
def test_groupby_dask_is_lazy(daily):
    chunked = daily.chunk({"time": 100})
    with raise_if_dask_computes():
        groups = groupby(chunked, time=month)
        means = groups.mean(dim="time")
    assert all(isinstance(cell.data, dask_array_type) for cell in groups)
    assert isinstance(means, GroupByArray)
    expected = groupby(daily, time=month).mean(dim="time")
    xr.testing.assert_allclose(means[0].compute(), expected[0])


@requires_cftime
def test_groupby_cftime():
    import cftime

    times = [cftime.DatetimeNoLeap(2001, m, 15) for m in range(1, 13)]
    da = xr.DataArray(np.arange(12.0), dims="time", coords={"time": times})
    groups = groupby(da, time=season(start=12))
    assert [cell.sizes["time"] for cell in groups] == [3, 3, 3, 3]
    assert groups.mean().values.tolist() == [(11 + 0 + 1) / 3, 3.0, 6.0, 9.0]


def test_groupby_hours_keeps_midnight():
    time = pd.date_range("2000-01-01", periods=48, freq="h")
    da = xr.DataArray(np.arange(48.0), dims="time", coords={"time": time})
    groups = groupby(da, time=hours(6, start=3))
    assert groups.shape == (4,)
    assert sum(cell.sizes["time"] for cell in groups) == 48
    assert set(groups[3].time.dt.hour.values.tolist()) == {21, 22, 23, 0, 1, 2}


def test_version():
    assert dimgroups.__version__ == "0.1.0"
