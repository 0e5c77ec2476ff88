from __future__ import annotations

import logging
from typing import Any

from .array import Dim, NDArray, allocate, array, view
from .config import MAX_DIMS
from .dtypes import DTYPES, promote
from .exceptions import DimensionError, OperationError
from .ufunc import Contraction, apply_binary, find_mac_spec

log = logging.getLogger(__name__)


def dot(lhs: Any, rhs: Any):
    """Generalised dot product.

    A rank-0 operand multiplies element-wise. Otherwise the last axis of
    ``lhs`` is contracted with the last axis of a vector ``rhs`` or the
    second-to-last axis of a higher-rank ``rhs``; the result has the shape
    ``lhs.shape[:-1] + rhs.shape[:-2] + rhs.shape[-1:]``. A rank-0 result
    comes back as a Python scalar.
    """
    a = lhs if isinstance(lhs, NDArray) else array(lhs)
    b = rhs if isinstance(rhs, NDArray) else array(rhs)

    if a.rank == 0 or b.rank == 0:
        from .elementwise import binary_op

        product = binary_op("multiply", a, b)
        if product.rank == 0:
            return product.dtype.load(product.buffer.data, product.base_offset)
        return product

    contracted_axis = b.rank - 1 if b.rank == 1 else b.rank - 2
    inner = a.dims[-1]
    other = b.dims[contracted_axis]
    if inner.length != other.length:
        raise DimensionError("shapes not aligned for dot", shapes=(a.shape, b.shape))

    lhs_outer = a.dims[:-1]
    rhs_outer = tuple(dim for i, dim in enumerate(b.dims) if i != contracted_axis)
    if len(lhs_outer) + len(rhs_outer) > MAX_DIMS:
        raise DimensionError("too many dimensions in dot result", shapes=(a.shape, b.shape))

    # Each operand sees the other's outer axes with stride 0.
    lhs_view = view(a, a.base_offset, list(lhs_outer) + [Dim(d.length, 0) for d in rhs_outer])
    rhs_view = view(b, b.base_offset, [Dim(d.length, 0) for d in lhs_outer] + list(rhs_outer))

    result = promote(a.dtype, b.dtype)
    if result.is_bool:
        result = DTYPES["l"]
    dest = allocate(result, tuple(d.length for d in lhs_outer + rhs_outer))
    axis = Contraction(length=inner.length, lhs_stride=inner.stride, rhs_stride=other.stride)
    spec = find_mac_spec(lhs_view, rhs_view, result, axis)
    log.debug("dot %s with %s -> %s", a.shape, b.shape, dest.shape)
    if not apply_binary(dest, lhs_view, rhs_view, spec):
        raise OperationError(f"unsupported operand dtypes for dot: '{a.dtype.tag}' and '{b.dtype.tag}'")

    if dest.rank == 0:
        return dest.dtype.load(dest.buffer.data, 0)
    return dest
