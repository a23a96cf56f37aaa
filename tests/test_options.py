import pytest

import dimgroups
from dimgroups.options import OPTIONS


def test_set_options_context():
    with dimgroups.set_options(display_max_rows=3, use_slices=False):
        assert OPTIONS["display_max_rows"] == 3
        assert OPTIONS["use_slices"] is False
    assert OPTIONS["display_max_rows"] == 8
    assert OPTIONS["use_slices"] is True


@pytest.mark.parametrize(
    "kwargs",
    [
        {"not_an_option": 1},
        {"bins_pad": -0.1},
        {"parallel_resolve_threshold": -1},
        {"use_slices": "yes"},
        {"display_max_rows": 0},
    ],
)
def test_set_options_invalid(kwargs):
    with pytest.raises(ValueError):
        dimgroups.set_options(**kwargs)
