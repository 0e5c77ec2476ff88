"""Core engine modules for pocketarray."""

__all__ = [
    "array",
    "broadcast",
    "config",
    "contraction",
    "dtypes",
    "elementwise",
    "exceptions",
    "formatting",
    "linalg",
    "reductions",
    "ufunc",
    "umath",
]
