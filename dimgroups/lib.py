from __future__ import annotations

from collections.abc import Iterable
from typing import TypeVar

import numpy as np

T = TypeVar("T")


def identity(x: T) -> T:
    return x


def _issorted(arr, ascending=True) -> bool:
    if ascending:
        return bool((arr[:-1] <= arr[1:]).all())
    else:
        return bool((arr[:-1] >= arr[1:]).all())


def _maybe_slice(positions: np.ndarray) -> np.ndarray | slice:
    """Return an equivalent slice if ``positions`` is a contiguous ascending run."""
    if positions.size == 0:
        return positions
    start = int(positions[0])
    stop = int(positions[-1]) + 1
    if stop - start == positions.size and _issorted(positions):
        return slice(start, stop)
    return positions


def to_object_array(values: Iterable, shape: tuple[int, ...] | None = None) -> np.ndarray:
    """Pack ``values`` into an object array without numpy unpacking nested sequences."""
    values = list(values)
    out = np.empty(len(values), dtype=object)
    for i, v in enumerate(values):
        out[i] = v
    if shape is not None:
        out = out.reshape(shape)
    return out
