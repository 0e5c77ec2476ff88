"""Universal traversal engine.

An operation is described by an :class:`OpSpec`: a kernel callable plus the
number of trailing axes (``layers``) the kernel walks itself. The apply
functions iterate every remaining outer position of the destination with an
odometer and hand the kernel one offset per view. Kernels return ``True`` on
success; the first ``False`` stops the traversal and is reported to the
caller, which decides what to raise.

Kernel selection happens once per call in the ``find_*_spec`` helpers, so
the loops never branch on dtype.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .config import get_config
from .dtypes import DTYPES, DType, default_float, promote
from .exceptions import DomainError

if TYPE_CHECKING:  # pragma: no cover
    from .array import NDArray

log = logging.getLogger(__name__)


@dataclass
class OpSpec:
    kernel: Callable[..., bool]
    layers: int = 0
    value_size: int = 0
    extra: Any = None
    context: Any = None
    name: str = ""


@dataclass(frozen=True)
class FloatOp:
    func: Callable[..., Any]
    checks_zero_divisor: bool = False


# Operator registries ---------------------------------------------------------

BINARY_OPS: Dict[str, Callable[[Any, Any], Any]] = {
    "add": operator.add,
    "subtract": operator.sub,
    "multiply": operator.mul,
    "true_divide": operator.truediv,
    "floor_divide": operator.floordiv,
    "modulo": operator.mod,
    "power": operator.pow,
    "and": operator.and_,
    "or": operator.or_,
    "xor": operator.xor,
    "lshift": operator.lshift,
    "rshift": operator.rshift,
    "less": operator.lt,
    "less_equal": operator.le,
    "equal": operator.eq,
    "not_equal": operator.ne,
    "greater": operator.gt,
    "greater_equal": operator.ge,
}

COMPARISON_OPS = frozenset(
    {"less", "less_equal", "equal", "not_equal", "greater", "greater_equal"}
)

FLOAT_BINARY_OPS: Dict[str, FloatOp] = {
    "add": FloatOp(np.add),
    "subtract": FloatOp(np.subtract),
    "multiply": FloatOp(np.multiply),
    "true_divide": FloatOp(np.true_divide, checks_zero_divisor=True),
    "floor_divide": FloatOp(np.floor_divide, checks_zero_divisor=True),
    "modulo": FloatOp(np.remainder, checks_zero_divisor=True),
    "less": FloatOp(np.less),
    "less_equal": FloatOp(np.less_equal),
    "equal": FloatOp(np.equal),
    "not_equal": FloatOp(np.not_equal),
    "greater": FloatOp(np.greater),
    "greater_equal": FloatOp(np.greater_equal),
}

UNARY_OPS: Dict[str, Callable[[Any], Any]] = {
    "positive": operator.pos,
    "negative": operator.neg,
    "absolute": abs,
}

FLOAT_UNARY_OPS: Dict[str, Callable[[Any], Any]] = {
    "positive": np.positive,
    "negative": np.negative,
    "absolute": np.absolute,
}


# Odometer --------------------------------------------------------------------


def iter_offsets(
    lengths: Sequence[int],
    bases: Sequence[int],
    strides: Sequence[Sequence[int]],
) -> Iterator[Tuple[int, ...]]:
    """Yield one offset per operand for every position of ``lengths``, row-major.

    ``strides[k]`` holds operand ``k``'s stride for each axis. The innermost
    axis advances first; an exhausted axis is rewound and carries into the
    next outer one. A zero length anywhere yields nothing; no axes yields the
    bases once.
    """
    count = len(lengths)
    if any(length == 0 for length in lengths):
        return
    offsets = list(bases)
    operands = range(len(offsets))
    remaining = list(lengths)
    while True:
        yield tuple(offsets)
        axis = count - 1
        while axis >= 0:
            for k in operands:
                offsets[k] += strides[k][axis]
            remaining[axis] -= 1
            if remaining[axis] > 0:
                break
            length = lengths[axis]
            remaining[axis] = length
            for k in operands:
                offsets[k] -= length * strides[k][axis]
            axis -= 1
        if axis < 0:
            return


def _outer(view: "NDArray", outer: int) -> List[int]:
    return [dim.stride for dim in view.dims[:outer]]


def apply_unary(dest: "NDArray", src: "NDArray", spec: OpSpec) -> bool:
    outer = dest.rank - spec.layers
    lengths = [dim.length for dim in dest.dims[:outer]]
    kernel = spec.kernel
    for dest_offset, src_offset in iter_offsets(
        lengths,
        (dest.base_offset, src.base_offset),
        (_outer(dest, outer), _outer(src, outer)),
    ):
        if not kernel(outer, dest, dest_offset, src, src_offset, spec):
            return False
    return True


def apply_binary(dest: "NDArray", src1: "NDArray", src2: "NDArray", spec: OpSpec) -> bool:
    outer = dest.rank - spec.layers
    lengths = [dim.length for dim in dest.dims[:outer]]
    kernel = spec.kernel
    for dest_offset, src1_offset, src2_offset in iter_offsets(
        lengths,
        (dest.base_offset, src1.base_offset, src2.base_offset),
        (_outer(dest, outer), _outer(src1, outer), _outer(src2, outer)),
    ):
        if not kernel(outer, dest, dest_offset, src1, src1_offset, src2, src2_offset, spec):
            return False
    return True


def line_indices(offset: int, length: int, stride: int) -> np.ndarray:
    return offset + stride * np.arange(length, dtype=np.intp)


def _float_domain_violations(x: np.ndarray, ans: np.ndarray) -> bool:
    return bool(np.any((np.isnan(ans) & ~np.isnan(x)) | (np.isinf(ans) & ~np.isinf(x))))


# Copy kernels ----------------------------------------------------------------


def _copy_same_type(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    count = spec.extra
    dest.buffer.data[dest_offset : dest_offset + count] = src.buffer.data[
        src_offset : src_offset + count
    ]
    return True


def _copy_convert(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    value = src.dtype.load(src.buffer.data, src_offset)
    dest.dtype.store(dest.buffer.data, dest_offset, value)
    return True


def find_copy_spec(
    src: "NDArray",
    dest: Optional["NDArray"] = None,
) -> OpSpec:
    """Pick the copy strategy from ``src`` into ``dest`` (or a fresh array shaped like ``src``)."""
    dest_dtype = dest.dtype if dest is not None else src.dtype
    if dest_dtype is not src.dtype:
        return OpSpec(kernel=_copy_convert, name="copy_convert")

    chunk = 1
    axis = src.rank - 1
    if get_config().bulk_copy:
        while (
            axis >= 0
            and src.dims[axis].stride == chunk
            and (dest is None or dest.dims[axis].stride == chunk)
        ):
            chunk *= src.dims[axis].length
            axis -= 1
    layers = (src.rank - 1) - axis
    log.debug("copy spec: same type %s, %d collapsed axes, chunk %d", src.dtype.tag, layers, chunk)
    return OpSpec(
        kernel=_copy_same_type,
        layers=layers,
        value_size=src.dtype.itemsize,
        extra=chunk,
        name="copy_same_type",
    )


# Element-wise operator kernels -----------------------------------------------


def _binary_op_generic(depth, dest, dest_offset, src1, src1_offset, src2, src2_offset, spec) -> bool:
    a = src1.dtype.load(src1.buffer.data, src1_offset)
    b = src2.dtype.load(src2.buffer.data, src2_offset)
    try:
        result = spec.extra(a, b)
    except TypeError:
        return False
    if result is NotImplemented:
        return False
    if isinstance(result, complex):
        raise DomainError("math domain error")
    dest.dtype.store(dest.buffer.data, dest_offset, result)
    return True


def _binary_op_float_line(depth, dest, dest_offset, src1, src1_offset, src2, src2_offset, spec) -> bool:
    length = dest.dims[depth].length
    x = src1.buffer.data[line_indices(src1_offset, length, src1.dims[depth].stride)]
    y = src2.buffer.data[line_indices(src2_offset, length, src2.dims[depth].stride)]
    float_op: FloatOp = spec.extra
    if float_op.checks_zero_divisor and np.any(y == 0):
        raise ZeroDivisionError("float division by zero")
    with np.errstate(all="ignore"):
        out = float_op.func(x, y)
    dest.buffer.data[line_indices(dest_offset, length, dest.dims[depth].stride)] = out
    return True


def _unary_op_generic(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    value = src.dtype.load(src.buffer.data, src_offset)
    try:
        result = spec.extra(value)
    except TypeError:
        return False
    dest.dtype.store(dest.buffer.data, dest_offset, result)
    return True


def _unary_op_float_line(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    length = dest.dims[depth].length
    x = src.buffer.data[line_indices(src_offset, length, src.dims[depth].stride)]
    dest.buffer.data[line_indices(dest_offset, length, dest.dims[depth].stride)] = spec.extra(x)
    return True


def binary_result_dtype(op: str, left: DType, right: DType) -> DType:
    if op in COMPARISON_OPS:
        return DTYPES["?"]
    result = promote(left, right)
    if op == "true_divide" and not result.is_float:
        return default_float()
    return result


def _float_path_ok(*dtypes: DType) -> bool:
    return get_config().float_fast_path and all(dt.is_default_float for dt in dtypes)


def find_binary_op_spec(
    src1: "NDArray",
    src2: "NDArray",
    op: str,
    result: Optional[DType] = None,
) -> Tuple[OpSpec, DType]:
    """Return the kernel spec for ``op`` and the dtype the destination should have."""
    if op not in BINARY_OPS:
        raise ValueError(f"Unsupported universal operator: {op}")
    if result is None:
        result = binary_result_dtype(op, src1.dtype, src2.dtype)
    result_ok = result.is_default_float or (op in COMPARISON_OPS and result.is_bool)
    if (
        src1.rank > 0
        and op in FLOAT_BINARY_OPS
        and result_ok
        and _float_path_ok(src1.dtype, src2.dtype)
    ):
        log.debug("binary %s: float line kernel", op)
        spec = OpSpec(
            kernel=_binary_op_float_line,
            layers=1,
            value_size=result.itemsize,
            extra=FLOAT_BINARY_OPS[op],
            name=op,
        )
    else:
        log.debug("binary %s: generic kernel %s,%s -> %s", op, src1.dtype.tag, src2.dtype.tag, result.tag)
        spec = OpSpec(
            kernel=_binary_op_generic,
            value_size=result.itemsize,
            extra=BINARY_OPS[op],
            name=op,
        )
    return spec, result


def find_unary_op_spec(
    src: "NDArray",
    op: str,
    result: Optional[DType] = None,
) -> Tuple[OpSpec, DType]:
    if op not in UNARY_OPS:
        raise ValueError(f"Unsupported universal operator: {op}")
    if result is None:
        result = src.dtype
    if src.rank > 0 and _float_path_ok(src.dtype, result):
        spec = OpSpec(
            kernel=_unary_op_float_line,
            layers=1,
            value_size=result.itemsize,
            extra=FLOAT_UNARY_OPS[op],
            name=op,
        )
    else:
        spec = OpSpec(kernel=_unary_op_generic, value_size=result.itemsize, extra=UNARY_OPS[op], name=op)
    return spec, result


# Float function kernels ------------------------------------------------------


def _float_func_fallback(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    x = np.float64(src.dtype.load(src.buffer.data, src_offset))
    with np.errstate(all="ignore"):
        ans = spec.extra(x)
    if _float_domain_violations(np.asarray(x), np.asarray(ans)):
        raise DomainError("math domain error")
    dest.dtype.store(dest.buffer.data, dest_offset, float(ans))
    return True


def _float_func_floats_1d(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    length = dest.dims[depth].length
    x = src.buffer.data[line_indices(src_offset, length, src.dims[depth].stride)]
    with np.errstate(all="ignore"):
        ans = spec.extra(x)
    if _float_domain_violations(x, ans):
        raise DomainError("math domain error")
    dest.buffer.data[line_indices(dest_offset, length, dest.dims[depth].stride)] = ans
    return True


def find_float_func_spec(
    src: "NDArray",
    func: Callable[[Any], Any],
    result: Optional[DType] = None,
) -> Tuple[OpSpec, DType]:
    if result is None:
        result = default_float()
    if src.rank > 0 and _float_path_ok(src.dtype, result):
        spec = OpSpec(kernel=_float_func_floats_1d, layers=1, value_size=result.itemsize, extra=func)
    else:
        spec = OpSpec(kernel=_float_func_fallback, value_size=result.itemsize, extra=func)
    return spec, result


# Multiply-accumulate ---------------------------------------------------------


@dataclass(frozen=True)
class Contraction:
    """Length and per-operand strides of the axis a multiply-accumulate walks."""

    length: int
    lhs_stride: int
    rhs_stride: int


def _mac_float(depth, dest, dest_offset, lhs, lhs_offset, rhs, rhs_offset, spec) -> bool:
    axis: Contraction = spec.context
    x = lhs.buffer.data[line_indices(lhs_offset, axis.length, axis.lhs_stride)]
    y = rhs.buffer.data[line_indices(rhs_offset, axis.length, axis.rhs_stride)]
    dest.buffer.data[dest_offset] = float(np.dot(x, y))
    return True


def _mac_generic(depth, dest, dest_offset, lhs, lhs_offset, rhs, rhs_offset, spec) -> bool:
    axis: Contraction = spec.context
    acc: Any = 0.0 if dest.dtype.is_float else 0
    lhs_data = lhs.buffer.data
    rhs_data = rhs.buffer.data
    for _ in range(axis.length):
        a = lhs.dtype.load(lhs_data, lhs_offset)
        b = rhs.dtype.load(rhs_data, rhs_offset)
        try:
            acc = acc + a * b
        except TypeError:
            return False
        lhs_offset += axis.lhs_stride
        rhs_offset += axis.rhs_stride
    dest.dtype.store(dest.buffer.data, dest_offset, acc)
    return True


def find_mac_spec(lhs: "NDArray", rhs: "NDArray", result: DType, axis: Contraction) -> OpSpec:
    if _float_path_ok(lhs.dtype, rhs.dtype, result):
        kernel = _mac_float
    else:
        kernel = _mac_generic
    log.debug("mac spec: %s over length %d", kernel.__name__, axis.length)
    return OpSpec(kernel=kernel, value_size=result.itemsize, context=axis, name="mac")
