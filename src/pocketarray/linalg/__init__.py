"""Dense linear algebra: row echelon form, determinant, inverse and solve."""

from ..core.exceptions import LinAlgError
from ..core.linalg import RowReduction, determinant, inverse, reduce_rows, row_echelon, solve

re = row_echelon
det = determinant
inv = inverse

__all__ = [
    "re",
    "det",
    "inv",
    "solve",
    "row_echelon",
    "determinant",
    "inverse",
    "reduce_rows",
    "RowReduction",
    "LinAlgError",
]
