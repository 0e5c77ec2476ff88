"""Dense linear algebra built on pivoted row reduction.

Every routine copies its inputs into a fresh default-float scratch matrix and
reduces that in place, so callers' arrays are never modified.
"""

from __future__ import annotations

import logging
import math
from typing import Any, NamedTuple, Optional

import numpy as np

from .array import Dim, NDArray, allocate, array, from_ndarray, view
from .config import get_config
from .dtypes import default_float
from .exceptions import LinAlgError
from .ufunc import apply_unary, find_copy_spec

log = logging.getLogger(__name__)


class RowReduction(NamedTuple):
    pivot_count: int
    det_scale: float


def _rows(matrix: NDArray) -> np.ndarray:
    height, width = matrix.shape
    if matrix.strides != (width, 1) and height * width:
        raise LinAlgError("row reduction needs a contiguous 2-D matrix")
    start = matrix.base_offset
    return matrix.buffer.data[start : start + height * width].reshape(height, width)


def _choose_pivot(column: np.ndarray, start: int, epsilon: float) -> Optional[int]:
    """Prefer an exact 1, then the entry whose binary exponent is closest to zero."""
    best: Optional[int] = None
    best_exponent = 0
    for j in range(start, column.shape[0]):
        value = float(column[j])
        if value == 0.0 or abs(value) < epsilon:
            continue
        if value == 1.0:
            return j
        exponent = abs(math.frexp(value)[1])
        if best is None or exponent < best_exponent:
            best = j
            best_exponent = exponent
    return best


def reduce_rows(
    matrix: NDArray,
    full_diagonalize: bool,
    normalize: bool,
    pivot_columns: Optional[int] = None,
) -> RowReduction:
    """Gaussian elimination in place on a contiguous 2-D default-float matrix.

    Row swaps negate the row moved down so the determinant is unchanged.
    ``det_scale`` is the product of ``1 / pivot`` over every normalised
    pivot. Only the first ``pivot_columns`` columns are searched for pivots;
    a ``pivot_count`` below the matrix order means it is singular.
    """
    rows = _rows(matrix)
    height, width = rows.shape
    limit = width if pivot_columns is None else min(width, pivot_columns)
    epsilon = get_config().pivot_epsilon
    det_scale = 1.0
    x = y = 0
    while y < height and x < limit:
        pivot = _choose_pivot(rows[:, x], y, epsilon)
        if pivot is not None:
            if pivot != y:
                log.debug("pivot: swapping rows %d and %d at column %d", y, pivot, x)
                moved = rows[y, x:].copy()
                rows[y, x:] = rows[pivot, x:]
                rows[pivot, x:] = -moved
            targets = range(height) if full_diagonalize else range(y + 1, height)
            for j in targets:
                if j == y:
                    continue
                multiple = rows[j, x] / rows[y, x]
                if multiple != 0:
                    rows[j, x] = 0.0
                    rows[j, x + 1 :] -= rows[y, x + 1 :] * multiple
            if normalize:
                divisor = float(rows[y, x])
                rows[y, x:] /= divisor
                det_scale /= divisor
            y += 1
        else:
            log.debug("pivot: no usable pivot in column %d", x)
        x += 1
    return RowReduction(pivot_count=y, det_scale=det_scale)


def _as_array(value: Any) -> NDArray:
    return value if isinstance(value, NDArray) else array(value)


def _square(value: Any, name: str) -> NDArray:
    matrix = _as_array(value)
    if matrix.rank != 2:
        raise LinAlgError(f"{name} needs a 2-D matrix, got {matrix.rank}-D")
    if matrix.shape[0] != matrix.shape[1]:
        raise LinAlgError(f"{name} can only be applied to square matrices")
    return matrix


def _copy_into(dest: NDArray, src: NDArray) -> None:
    apply_unary(dest, src, find_copy_spec(src, dest))


def row_echelon(a: Any) -> NDArray:
    matrix = _as_array(a)
    if matrix.rank != 2:
        raise LinAlgError("can only apply row echelon form to 2-D matrices")
    result = from_ndarray(matrix, default_float())
    reduce_rows(result, full_diagonalize=False, normalize=True)
    return result


def determinant(a: Any) -> float:
    matrix = _square(a, "det")
    n = matrix.shape[0]
    scratch = from_ndarray(matrix, default_float())
    reduction = reduce_rows(scratch, full_diagonalize=False, normalize=True)
    if reduction.pivot_count < n:
        return 0.0
    return 1.0 / reduction.det_scale


def inverse(a: Any) -> NDArray:
    matrix = _square(a, "inv")
    n = matrix.shape[0]
    scratch = allocate(default_float(), (n, 2 * n))
    _copy_into(view(scratch, 0, [Dim(n, 2 * n), Dim(n, 1)]), matrix)
    _rows(scratch)[:, n:] = np.eye(n)

    reduction = reduce_rows(scratch, full_diagonalize=True, normalize=True, pivot_columns=n)
    if reduction.pivot_count < n:
        raise LinAlgError("singular matrix")
    return from_ndarray(view(scratch, n, [Dim(n, 2 * n), Dim(n, 1)]))


def solve(a: Any, b: Any) -> NDArray:
    """Solve ``a @ x == b`` for a square ``a`` and a vector ``b``."""
    matrix = _as_array(a)
    rhs = _as_array(b)
    if matrix.rank != 2 or rhs.rank != 1:
        raise LinAlgError("can only solve a single set of equations")
    n = matrix.shape[0]
    if matrix.shape[1] != n:
        raise LinAlgError("equation matrix must be square")
    if rhs.shape[0] != n:
        raise LinAlgError(f"dimensions don't match: {matrix.shape} and {rhs.shape}")

    scratch = allocate(default_float(), (n, n + 1))
    _copy_into(view(scratch, 0, [Dim(n, n + 1), Dim(n, 1)]), matrix)
    column = view(scratch, n, [Dim(n, n + 1)])
    _copy_into(column, rhs)

    reduction = reduce_rows(scratch, full_diagonalize=True, normalize=True, pivot_columns=n)
    if reduction.pivot_count < n:
        raise LinAlgError("singular matrix")
    return from_ndarray(column)
