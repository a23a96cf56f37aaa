import numpy as np
import pandas as pd
import xarray as xr
from asv_runner.benchmarks.mark import parameterize

import dimgroups
from dimgroups.bins import month, season

N = 2000
criteria = {
    "month": month,
    "season": season(start=12),
    "bins": dimgroups.Bins(month, pd.IntervalIndex.from_breaks([1, 4, 7, 10, 13], closed="left")),
    "points": dimgroups.Bins(month, [1, 3, 5, 7]),
}
criteria_names = tuple(criteria)


class GroupBy:
    """Time grouping and reducing a DataArray."""

    min_run_count = 5
    warmup_time = 0.5

    def setup(self, *args, **kwargs):
        raise NotImplementedError

    @parameterize({"criterion": criteria_names, "use_slices": [True, False]})
    def time_groupby(self, criterion, use_slices):
        with dimgroups.set_options(use_slices=use_slices):
            dimgroups.groupby(self.array, time=criteria[criterion])

    @parameterize({"func": ["mean", "sum", "max"]})
    def time_reduce(self, func):
        getattr(self.groups, func)()

    def time_anomalies(self):
        self.groups.map(lambda g, m: g - m, self.groups.mean(dim="time"))


class GroupBy1D(GroupBy):
    def setup(self, *args, **kwargs):
        time = pd.date_range("2000-01-01", periods=N, freq="D")
        self.array = xr.DataArray(np.random.randn(N), dims="time", coords={"time": time})
        self.groups = dimgroups.groupby(self.array, time=month)


class GroupBy3D(GroupBy):
    def setup(self, *args, **kwargs):
        time = pd.date_range("2000-01-01", periods=N, freq="D")
        self.array = xr.DataArray(
            np.random.randn(10, 20, N),
            dims=("x", "y", "time"),
            coords={"x": np.arange(10), "y": np.arange(20), "time": time},
        )
        self.groups = dimgroups.groupby(self.array, time=month)


class GroupByMany:
    """Time grouping along several dimensions, serially and in a thread pool."""

    def setup(self, *args, **kwargs):
        time = pd.date_range("2000-01-01", periods=N // 4, freq="D")
        self.array = xr.DataArray(
            np.random.randn(40, 30, N // 4),
            dims=("x", "y", "time"),
            coords={"x": np.arange(40), "y": np.arange(30), "time": time},
        )

    @parameterize({"threshold": [0, 3]})
    def time_groupby(self, threshold):
        with dimgroups.set_options(parallel_resolve_threshold=threshold):
            dimgroups.groupby(
                self.array,
                time=month,
                x=lambda x: x % 4,
                y=dimgroups.Bins(5),
            )
