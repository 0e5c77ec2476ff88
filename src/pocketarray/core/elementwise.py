"""Element-wise operator dispatch.

Binary operators coerce the right operand, broadcast the pair, choose a
kernel once with :func:`find_binary_op_spec` and run it over every element.
In-place forms write through the left operand's own view and keep its dtype.
"""

from __future__ import annotations

import logging
from typing import Any, NamedTuple, Optional, Union

import numpy as np

from .array import NDArray, allocate, array, from_ndarray, scalar
from .broadcast import broadcast
from .config import get_config
from .dtypes import DTYPES, DType, default_float, dtype_for_scalar, scalar_kind
from .exceptions import BroadcastError, OperationError
from .ufunc import OpSpec, apply_binary, apply_unary, find_binary_op_spec, find_unary_op_spec, line_indices

log = logging.getLogger(__name__)


_KIND_TAGS = {"b": "?", "i": "l", "u": "l"}


def _sequence_dtype(value: Any) -> Optional[DType]:
    """Dtype of a list or ndarray operand taken from its own values.

    ``None`` means the default float. Python scalar weak typing does not
    apply here; the result goes through normal promotion.
    """
    if isinstance(value, np.ndarray):
        for dt in DTYPES.values():
            if dt.np_dtype == value.dtype:
                return dt
        kind = value.dtype.kind
    else:
        try:
            kind = np.asarray(value).dtype.kind
        except (TypeError, ValueError):
            return None
    tag = _KIND_TAGS.get(kind)
    return DTYPES[tag] if tag is not None else None


def _coerce_operand(value: Any, like: DType) -> Union[NDArray, Any]:
    if isinstance(value, NDArray):
        return value
    if scalar_kind(value) is not None:
        return scalar(value, dtype_for_scalar(value, like))
    if isinstance(value, (list, tuple, np.ndarray)):
        return array(value, _sequence_dtype(value))
    return NotImplemented


def _aliases(a: NDArray, b: NDArray) -> bool:
    return a.buffer is b.buffer and (a.dims != b.dims or a.base_offset != b.base_offset)


def binary_op(op: str, lhs: NDArray, rhs: Any, in_place: bool = False, reflected: bool = False):
    other = _coerce_operand(rhs, lhs.dtype)
    if other is NotImplemented:
        return NotImplemented
    left, right = (other, lhs) if reflected else (lhs, other)

    if left.shape != right.shape:
        left_view, right_view, left_expanded = broadcast(left, right)
        if in_place and left_expanded:
            raise BroadcastError("non-broadcastable output operand", shapes=(left.shape, right.shape))
    else:
        left_view, right_view = left, right

    if in_place:
        if _aliases(left_view, right_view):
            right_view = from_ndarray(right_view)
        spec, _ = find_binary_op_spec(left_view, right_view, op, result=lhs.dtype)
        dest = left_view
    else:
        spec, result = find_binary_op_spec(left_view, right_view, op)
        dest = allocate(result, left_view.shape)

    if not apply_binary(dest, left_view, right_view, spec):
        raise OperationError(
            f"unsupported operand dtypes for {op}: '{left_view.dtype.tag}' and '{right_view.dtype.tag}'"
        )
    return lhs if in_place else dest


def unary_op(op: str, src: NDArray) -> NDArray:
    spec, result = find_unary_op_spec(src, op)
    dest = allocate(result, src.shape)
    if not apply_unary(dest, src, spec):
        raise OperationError(f"bad operand dtype for unary {op}: '{src.dtype.tag}'")
    return dest


# Closeness -------------------------------------------------------------------


class Tolerance(NamedTuple):
    rtol: float
    atol: float
    equal_nan: bool


def _close(a, b, tol: Tolerance):
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    a_nan = np.isnan(a)
    b_nan = np.isnan(b)
    finite = np.isfinite(a) & np.isfinite(b)
    with np.errstate(invalid="ignore", over="ignore"):
        close = (a == b) | (finite & (np.abs(a - b) <= tol.atol + tol.rtol * np.abs(b)))
    close &= ~(a_nan | b_nan)
    if tol.equal_nan:
        close |= a_nan & b_nan
    return close


def _isclose_line(depth, dest, dest_offset, src1, src1_offset, src2, src2_offset, spec) -> bool:
    length = dest.dims[depth].length
    x = src1.buffer.data[line_indices(src1_offset, length, src1.dims[depth].stride)]
    y = src2.buffer.data[line_indices(src2_offset, length, src2.dims[depth].stride)]
    dest.buffer.data[line_indices(dest_offset, length, dest.dims[depth].stride)] = _close(x, y, spec.context)
    return True


def _isclose_element(depth, dest, dest_offset, src1, src1_offset, src2, src2_offset, spec) -> bool:
    a = src1.dtype.load(src1.buffer.data, src1_offset)
    b = src2.dtype.load(src2.buffer.data, src2_offset)
    dest.buffer.data[dest_offset] = bool(_close(a, b, spec.context))
    return True


def isclose(
    a: Any,
    b: Any,
    rtol: Optional[float] = None,
    atol: Optional[float] = None,
    equal_nan: bool = False,
):
    """Element-wise ``|a - b| <= atol + rtol * |b|``.

    NaN compares close only to NaN, and only when ``equal_nan`` is set.
    Tolerances default to the active configuration's ``rtol``/``atol``.
    """
    cfg = get_config()
    tol = Tolerance(
        rtol=cfg.rtol if rtol is None else float(rtol),
        atol=cfg.atol if atol is None else float(atol),
        equal_nan=bool(equal_nan),
    )
    left = a if isinstance(a, NDArray) else array(a)
    right = b if isinstance(b, NDArray) else array(b)
    if left.shape != right.shape:
        left, right, _ = broadcast(left, right)

    result = allocate("?", left.shape)
    fast = cfg.float_fast_path and left.rank > 0 and left.dtype is default_float() and right.dtype is default_float()
    spec = OpSpec(
        kernel=_isclose_line if fast else _isclose_element,
        layers=1 if fast else 0,
        value_size=1,
        context=tol,
        name="isclose",
    )
    apply_binary(result, left, right, spec)
    if result.rank == 0:
        return result.dtype.load(result.buffer.data, 0)
    return result


def allclose(
    a: Any,
    b: Any,
    rtol: Optional[float] = None,
    atol: Optional[float] = None,
    equal_nan: bool = False,
) -> bool:
    from .reductions import all as all_of

    close = isclose(a, b, rtol=rtol, atol=atol, equal_nan=equal_nan)
    if isinstance(close, NDArray):
        return bool(all_of(close))
    return bool(close)
