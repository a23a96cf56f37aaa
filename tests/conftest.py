import numpy as np
import pandas as pd
import pytest
import xarray as xr
from hypothesis import HealthCheck, Verbosity, settings

settings.register_profile(
    "ci",
    max_examples=1000,
    deadline=None,
    suppress_health_check=[HealthCheck.filter_too_much, HealthCheck.too_slow],
)
settings.register_profile(
    "default",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.filter_too_much, HealthCheck.too_slow],
    verbosity=Verbosity.normal,
)
settings.load_profile("default")


@pytest.fixture
def daily():
    """Two years of daily data on a small (x, y) grid."""
    time = pd.date_range("2000-01-01", "2001-12-31", freq="D")
    data = np.arange(3 * 4 * time.size, dtype=float).reshape(3, 4, time.size)
    return xr.DataArray(
        data,
        dims=("x", "y", "time"),
        coords={"x": [10, 20, 30], "y": [1, 2, 3, 4], "time": time},
        name="temperature",
        attrs={"units": "K"},
    )


@pytest.fixture
def monthly():
    return xr.DataArray(
        np.arange(12.0),
        dims="month",
        coords={"month": np.arange(1, 13)},
        name="value",
    )
