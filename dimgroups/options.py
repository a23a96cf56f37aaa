"""
Started from flox's options.py, itself from xarray and cf-xarray.
"""

import copy
from collections.abc import MutableMapping
from typing import Any

OPTIONS: MutableMapping[str, Any] = {
    # Fraction of the value range added to the top edge when ``Bins`` holds an integer
    "bins_pad": 0.001,
    # Resolve group keys for more than this many dimensions in a thread pool
    "parallel_resolve_threshold": 2,
    # Index contiguous groups with slices so cells are views, not copies
    "use_slices": True,
    # Number of cells shown by GroupByArray.__repr__
    "display_max_rows": 8,
}


def _positive_integer(value):
    return isinstance(value, int) and value > 0


_VALIDATORS = {
    "bins_pad": lambda value: isinstance(value, int | float) and value >= 0,
    "parallel_resolve_threshold": lambda value: isinstance(value, int) and value >= 0,
    "use_slices": lambda value: isinstance(value, bool),
    "display_max_rows": _positive_integer,
}


class set_options:  # numpydoc ignore=PR01,PR02
    """
    Set options for dimgroups in a controlled context.

    Parameters
    ----------
    bins_pad : float
        Default ``pad`` for ``Bins`` created with an integer number of bins.
    parallel_resolve_threshold : int
        Group keys are computed in a thread pool when more than this many
        dimensions are grouped at once.
    use_slices : bool
        Index groups whose members are contiguous with slices.
    display_max_rows : int
        Maximum number of cells printed by ``GroupByArray.__repr__``.

    Examples
    --------

    You can use ``set_options`` either as a context manager:

    >>> import dimgroups
    >>> with dimgroups.set_options(bins_pad=0.01):
    ...     pass

    Or to set global options:

    >>> dimgroups.set_options(use_slices=False)  # doctest: +SKIP
    """

    def __init__(self, **kwargs):
        self.old = {}
        for k, v in kwargs.items():
            if k not in OPTIONS:
                raise ValueError(f"argument name {k!r} is not in the set of valid options {set(OPTIONS)!r}")
            if not _VALIDATORS[k](v):
                raise ValueError(f"option {k!r} given an invalid value: {v!r}")
            self.old[k] = OPTIONS[k]
        self._apply_update(kwargs)

    def _apply_update(self, options_dict):
        options_dict = copy.deepcopy(options_dict)
        OPTIONS.update(options_dict)

    def __enter__(self):
        return

    def __exit__(self, type, value, traceback):
        self._apply_update(self.old)
