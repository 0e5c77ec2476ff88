"""Axis reductions.

The reduced axes are moved to the end of a view of the source, a destination
shaped like the kept axes is prepared, and the traversal engine visits every
kept position once. At each position a :class:`ReductionOp` walks the
trailing sub-region in row-major order with ``init``/``accumulate``/``finish``
over a single :class:`ReductionState` reused for the whole call.

Sources in the default float type take a fast path that gathers each
sub-region with NumPy and reduces it in one call.

This module shadows ``max``, ``min``, ``sum``, ``any`` and
``all``; the builtins are not used here.
"""

from __future__ import annotations

import logging
import math
import operator
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

import numpy as np

from .array import NDArray, allocate, array, view
from .config import get_config
from .dtypes import DTYPES, DType, default_float
from .exceptions import DimensionError
from .ufunc import OpSpec, apply_unary, iter_offsets

log = logging.getLogger(__name__)


class ReductionState:
    __slots__ = ("value", "index", "position")

    def __init__(self) -> None:
        self.value: Any = None
        self.index = 0
        self.position = 0


@dataclass(frozen=True)
class ReductionOp:
    name: str
    init: Callable[[ReductionState], None]
    accumulate: Callable[[ReductionState, Any, bool], None]
    finish: Callable[[ReductionState, int], Any]
    fast: Callable[[np.ndarray], Any]
    result_dtype: Callable[[DType], DType]
    single_axis: bool = False


def _reset(identity: Any) -> Callable[[ReductionState], None]:
    def init(state: ReductionState) -> None:
        state.value = identity
        state.index = 0
        state.position = 0

    return init


def _fold(func: Callable[[Any, Any], Any]) -> Callable[[ReductionState, Any, bool], None]:
    def accumulate(state: ReductionState, value: Any, is_first: bool) -> None:
        state.value = func(state.value, value)

    return accumulate


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _keep_if(better: Callable[[Any, Any], bool]) -> Callable[[ReductionState, Any, bool], None]:
    # The first NaN wins and is never replaced, as in np.max and np.argmax.
    def accumulate(state: ReductionState, value: Any, is_first: bool) -> None:
        if _is_nan(state.value) and not is_first:
            state.position += 1
            return
        if is_first or _is_nan(value) or better(value, state.value):
            state.value = value
            state.index = state.position
        state.position += 1

    return accumulate


def _value(state: ReductionState, count: int) -> Any:
    return state.value


def _requires_items(name: str, result: Callable[[ReductionState], Any]) -> Callable[[ReductionState, int], Any]:
    def finish(state: ReductionState, count: int) -> Any:
        if count == 0:
            raise ValueError(f"zero-size array to reduction operation {name} which has no identity")
        return result(state)

    return finish


def _mean(state: ReductionState, count: int) -> float:
    if count == 0:
        return math.nan
    return state.value / count


def _same(dtype: DType) -> DType:
    return dtype


def _sum_dtype(dtype: DType) -> DType:
    return DTYPES["l"] if dtype.is_bool else dtype


def _fixed(tag: str) -> Callable[[DType], DType]:
    return lambda dtype: DTYPES[tag]


def _float_result(dtype: DType) -> DType:
    return default_float()


REDUCTIONS = {
    op.name: op
    for op in (
        ReductionOp(
            "max", _reset(None), _keep_if(operator.gt),
            _requires_items("max", lambda s: s.value), np.max, _same,
        ),
        ReductionOp(
            "min", _reset(None), _keep_if(operator.lt),
            _requires_items("min", lambda s: s.value), np.min, _same,
        ),
        ReductionOp("sum", _reset(0), _fold(operator.add), _value, np.sum, _sum_dtype),
        ReductionOp("prod", _reset(1), _fold(operator.mul), _value, np.prod, _sum_dtype),
        ReductionOp("average", _reset(0.0), _fold(operator.add), _mean, np.mean, _float_result),
        ReductionOp(
            "any", _reset(False), _fold(lambda acc, v: acc or bool(v)), _value, np.any, _fixed("?"),
        ),
        ReductionOp(
            "all", _reset(True), _fold(lambda acc, v: acc and bool(v)), _value, np.all, _fixed("?"),
        ),
        ReductionOp(
            "argmax", _reset(None), _keep_if(operator.gt),
            _requires_items("argmax", lambda s: s.index), np.argmax, _fixed("l"), single_axis=True,
        ),
        ReductionOp(
            "argmin", _reset(None), _keep_if(operator.lt),
            _requires_items("argmin", lambda s: s.index), np.argmin, _fixed("l"), single_axis=True,
        ),
    )
}


@dataclass
class _Plan:
    op: ReductionOp
    state: ReductionState


def _reduce_region_generic(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    plan: _Plan = spec.context
    op, state = plan.op, plan.state
    dims = src.dims[depth:]
    load = src.dtype.load
    data = src.buffer.data
    op.init(state)
    count = 0
    for (offset,) in iter_offsets([d.length for d in dims], (src_offset,), ([d.stride for d in dims],)):
        op.accumulate(state, load(data, offset), count == 0)
        count += 1
    dest.dtype.store(dest.buffer.data, dest_offset, op.finish(state, count))
    return True


def _reduce_region_float(depth, dest, dest_offset, src, src_offset, spec) -> bool:
    plan: _Plan = spec.context
    grid = np.asarray(src_offset, dtype=np.intp)
    for dim in src.dims[depth:]:
        grid = grid[..., None] + dim.stride * np.arange(dim.length, dtype=np.intp)
    values = src.buffer.data[grid.reshape(-1)]
    if values.size == 0:
        plan.op.init(plan.state)
        result = plan.op.finish(plan.state, 0)
    else:
        result = plan.op.fast(values).item()
    dest.dtype.store(dest.buffer.data, dest_offset, result)
    return True


def normalize_axes(axis: Any, rank: int, single_axis: bool = False) -> Tuple[int, ...]:
    if axis is None:
        return tuple(range(rank))
    if isinstance(axis, tuple):
        if single_axis:
            raise ValueError("axis must be a single integer for this reduction")
        items = axis
    elif isinstance(axis, (int, np.integer)) and not isinstance(axis, bool):
        items = (axis,)
    else:
        raise TypeError("axis must be an int or tuple of ints")
    if not items:
        raise ValueError("axis tuple is empty")

    axes: List[int] = []
    for item in items:
        if isinstance(item, bool) or not isinstance(item, (int, np.integer)):
            raise TypeError("axis must be an int or tuple of ints")
        index = int(item) + rank if item < 0 else int(item)
        if index < 0 or index >= rank:
            raise DimensionError(f"axis {int(item)} is out of bounds for array of dimension {rank}")
        if index in axes:
            raise ValueError("axis can only occur once")
        axes.append(index)
    return tuple(axes)


def reduce(
    source: Any,
    op: str,
    axis: Any = None,
    out: Optional[NDArray] = None,
    keepdims: bool = False,
):
    """Reduce ``source`` over ``axis`` with the named operation.

    Returns ``out`` when given, a Python scalar when every axis is reduced
    without ``keepdims``, and a fresh array otherwise.
    """
    reduction = REDUCTIONS[op]
    src = source if isinstance(source, NDArray) else array(source)
    rank = src.rank
    axes = normalize_axes(axis, rank, reduction.single_axis)
    count = len(axes)

    source_shape = src.shape
    kept = [i for i in range(rank) if i not in axes]
    if tuple(axes) != tuple(range(rank - count, rank)):
        order = kept + list(axes)
        src = view(src, src.base_offset, [src.dims[i] for i in order])
    kept_shape = tuple(src.dims[i].length for i in range(rank - count))
    full_shape = tuple(1 if i in axes else source_shape[i] for i in range(rank)) if keepdims else kept_shape

    result_dtype = reduction.result_dtype(src.dtype)
    if out is not None:
        if not isinstance(out, NDArray):
            raise TypeError("out must be an ndarray")
        if out.shape != full_shape:
            raise DimensionError(
                "destination dimensions incompatible with result", shapes=(out.shape, full_shape)
            )
        target = out
    else:
        target = allocate(result_dtype, full_shape)
    dest = target
    if keepdims:
        dest = view(target, target.base_offset, [target.dims[i] for i in kept])

    fast = get_config().float_fast_path and src.dtype is default_float()
    plan = _Plan(op=reduction, state=ReductionState())
    spec = OpSpec(
        kernel=_reduce_region_float if fast else _reduce_region_generic,
        layers=0,
        value_size=target.dtype.itemsize,
        context=plan,
        name=op,
    )
    log.debug("reduce %s over axes %s of %s (fast=%s)", op, axes, source_shape, fast)
    apply_unary(dest, src, spec)

    if out is not None:
        return out
    if target.rank == 0:
        return target.dtype.load(target.buffer.data, target.base_offset)
    return target


def max(a, axis=None, out=None, keepdims=False):
    return reduce(a, "max", axis=axis, out=out, keepdims=keepdims)


def min(a, axis=None, out=None, keepdims=False):
    return reduce(a, "min", axis=axis, out=out, keepdims=keepdims)


def sum(a, axis=None, out=None, keepdims=False):
    return reduce(a, "sum", axis=axis, out=out, keepdims=keepdims)


def prod(a, axis=None, out=None, keepdims=False):
    return reduce(a, "prod", axis=axis, out=out, keepdims=keepdims)


def average(a, axis=None, out=None, keepdims=False):
    return reduce(a, "average", axis=axis, out=out, keepdims=keepdims)


def any(a, axis=None, out=None, keepdims=False):
    return reduce(a, "any", axis=axis, out=out, keepdims=keepdims)


def all(a, axis=None, out=None, keepdims=False):
    return reduce(a, "all", axis=axis, out=out, keepdims=keepdims)


def argmax(a, axis=None, out=None, keepdims=False):
    """Index of the largest element; with ``axis=None`` the index is into the flattened array."""
    return reduce(a, "argmax", axis=axis, out=out, keepdims=keepdims)


def argmin(a, axis=None, out=None, keepdims=False):
    return reduce(a, "argmin", axis=axis, out=out, keepdims=keepdims)
