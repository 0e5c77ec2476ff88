from __future__ import annotations

import numpy as np

from .array import NDArray

_PREFIX = "ndarray("


def format_values(array: NDArray) -> str:
    values = array.to_numpy()
    if array.rank == 0:
        return repr(values.item())
    return np.array2string(values, separator=", ")


def format_array(array: NDArray) -> str:
    """``ndarray([[1., 2.], [3., 4.]], dtype='d')``"""
    values = array.to_numpy()
    if array.rank == 0:
        body = repr(values.item())
    else:
        body = np.array2string(values, separator=", ", prefix=_PREFIX)
    return f"{_PREFIX}{body}, dtype='{array.dtype.tag}')"
