"""Float functions applied element by element.

Each function takes ``x`` plus keyword-only ``out`` or ``dtype``. With
``out`` the input may be broadcast up to the destination shape, never the
other way round.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import numpy as np

from .array import NDArray, allocate, array
from .broadcast import broadcast
from .dtypes import resolve_dtype
from .exceptions import BroadcastError, OperationError
from .ufunc import apply_unary, find_float_func_spec

FLOAT_FUNCTIONS: Dict[str, Callable[[Any], Any]] = {
    "sin": np.sin,
    "cos": np.cos,
    "tan": np.tan,
    "asin": np.arcsin,
    "acos": np.arccos,
    "atan": np.arctan,
    "sinh": np.sinh,
    "cosh": np.cosh,
    "tanh": np.tanh,
    "asinh": np.arcsinh,
    "acosh": np.arccosh,
    "atanh": np.arctanh,
    "exp": np.exp,
    "log": np.log,
}


def apply_float_function(name: str, x: Any, out: Optional[NDArray] = None, dtype: Any = None):
    func = FLOAT_FUNCTIONS[name]
    if out is not None and dtype is not None:
        raise ValueError("dtype and out arguments are mutually exclusive")
    src = x if isinstance(x, NDArray) else array(x)

    if out is None:
        result = resolve_dtype(dtype) if dtype is not None else None
        spec, result = find_float_func_spec(src, func, result)
        dest = allocate(result, src.shape)
    else:
        if not isinstance(out, NDArray):
            raise TypeError("out must be an ndarray")
        dest = out
        if src.shape != dest.shape:
            shapes = (out.shape, src.shape)
            dest, src, grew = broadcast(dest, src)
            if grew:
                raise BroadcastError("non-broadcastable output operand", shapes=shapes)
        spec, _ = find_float_func_spec(src, func, out.dtype)

    if not apply_unary(dest, src, spec):
        raise OperationError(f"{name} failed for dtype '{src.dtype.tag}'")
    if out is not None:
        return out
    if dest.rank == 0:
        return dest.dtype.load(dest.buffer.data, 0)
    return dest


def _make(name: str):
    def func(x, *, out=None, dtype=None):
        return apply_float_function(name, x, out=out, dtype=dtype)

    func.__name__ = name
    func.__qualname__ = name
    func.__doc__ = f"Element-wise {name} of ``x``."
    return func


sin = _make("sin")
cos = _make("cos")
tan = _make("tan")
asin = _make("asin")
acos = _make("acos")
atan = _make("atan")
sinh = _make("sinh")
cosh = _make("cosh")
tanh = _make("tanh")
asinh = _make("asinh")
acosh = _make("acosh")
atanh = _make("atanh")
exp = _make("exp")
log = _make("log")
