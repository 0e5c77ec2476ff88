from __future__ import annotations

from typing import Optional, Sequence


class PocketArrayError(Exception):
    """Base class for pocketarray-specific exceptions."""


class DimensionError(PocketArrayError, ValueError):
    def __init__(
        self,
        message: str,
        *,
        shapes: Optional[Sequence[Sequence[int]]] = None,
    ):
        detail = _format_shapes(shapes)
        super().__init__(f"{message}{detail}")
        self.shapes = tuple(tuple(s) for s in shapes) if shapes is not None else None


class BroadcastError(DimensionError):
    pass


class DTypeError(PocketArrayError, TypeError):
    pass


class LinAlgError(PocketArrayError, ValueError):
    pass


class DomainError(PocketArrayError, ValueError):
    pass


class OperationError(PocketArrayError, TypeError):
    pass


def _format_shapes(shapes: Optional[Sequence[Sequence[int]]]) -> str:
    if not shapes:
        return ""
    rendered = " ".join(_format_shape(shape) for shape in shapes)
    return f" with shapes {rendered}"


def _format_shape(shape: Sequence[int]) -> str:
    if len(shape) == 1:
        return f"({shape[0]},)"
    return "(" + ",".join(str(int(length)) for length in shape) + ")"
