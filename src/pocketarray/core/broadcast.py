from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .array import Dim, NDArray, view
from .exceptions import BroadcastError

log = logging.getLogger(__name__)

_BROADCAST_MESSAGE = "operands could not be broadcast together"


def broadcast_shapes(left: Sequence[int], right: Sequence[int]) -> Tuple[int, ...]:
    rank = max(len(left), len(right))
    padded_left = (1,) * (rank - len(left)) + tuple(left)
    padded_right = (1,) * (rank - len(right)) + tuple(right)
    shape: List[int] = []
    for a, b in zip(padded_left, padded_right):
        if a == b or b == 1:
            shape.append(a)
        elif a == 1:
            shape.append(b)
        else:
            raise BroadcastError(_BROADCAST_MESSAGE, shapes=(left, right))
    return tuple(shape)


def broadcast(left: NDArray, right: NDArray) -> Tuple[NDArray, NDArray, bool]:
    """Return views of ``left`` and ``right`` with a common shape.

    Axes are aligned from the right. A side that is missing an axis, or has
    length 1 where the other does not, is expanded with stride 0. The third
    item reports whether the left shape had to grow, which in-place callers
    treat as an error.
    """
    rank = max(left.rank, right.rank)
    left_dims: List[Dim] = []
    right_dims: List[Dim] = []
    left_expanded = left.rank < rank
    for axis in range(rank):
        li = axis - (rank - left.rank)
        ri = axis - (rank - right.rank)
        ldim = left.dims[li] if li >= 0 else None
        rdim = right.dims[ri] if ri >= 0 else None
        if ldim is not None and rdim is not None and ldim.length == rdim.length:
            left_dims.append(ldim)
            right_dims.append(rdim)
        elif ldim is not None and (rdim is None or rdim.length == 1):
            left_dims.append(ldim)
            right_dims.append(Dim(ldim.length, 0))
        elif ldim is None or ldim.length == 1:
            left_dims.append(Dim(rdim.length, 0))
            right_dims.append(rdim)
            left_expanded = True
        else:
            raise BroadcastError(_BROADCAST_MESSAGE, shapes=(left.shape, right.shape))
    log.debug("broadcast %s with %s (left expanded: %s)", left.shape, right.shape, left_expanded)
    return (
        view(left, left.base_offset, left_dims),
        view(right, right.base_offset, right_dims),
        left_expanded,
    )
