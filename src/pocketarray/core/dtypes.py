"""Element types and the scalar value model.

Every array carries a :class:`DType` identified by a one character tag. The
value model is small: a dtype can ``load`` a Python scalar from a
flat buffer, ``cast`` a Python scalar into its own domain and ``store`` it
back. Integer casts wrap modulo ``2**bits`` the way fixed-width machine
integers do, so arithmetic done on Python integers lands in range.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from .config import get_config
from .exceptions import DTypeError

# Kinds, ordered for scalar promotion
KIND_BOOL = "b"
KIND_SIGNED = "i"
KIND_UNSIGNED = "u"
KIND_FLOAT = "f"

_KIND_RANK = {KIND_BOOL: 0, KIND_UNSIGNED: 1, KIND_SIGNED: 1, KIND_FLOAT: 2}


@dataclass(frozen=True, eq=False)
class DType:
    tag: str
    name: str
    itemsize: int
    kind: str
    np_dtype: np.dtype

    @property
    def bits(self) -> int:
        return self.itemsize * 8

    @property
    def is_bool(self) -> bool:
        return self.kind == KIND_BOOL

    @property
    def is_integer(self) -> bool:
        return self.kind in (KIND_SIGNED, KIND_UNSIGNED)

    @property
    def is_float(self) -> bool:
        return self.kind == KIND_FLOAT

    @property
    def is_default_float(self) -> bool:
        return self.tag == get_config().default_float

    def cast(self, value: Any) -> Union[bool, int, float]:
        if self.kind == KIND_BOOL:
            return bool(value)
        if self.kind == KIND_FLOAT:
            return float(value)
        if isinstance(value, (float, np.floating)):
            if not math.isfinite(value):
                raise ValueError(f"cannot convert float {value} to integer")
        value = int(value)
        mask = (1 << self.bits) - 1
        value &= mask
        if self.kind == KIND_SIGNED and value >= 1 << (self.bits - 1):
            value -= 1 << self.bits
        return value

    def load(self, data: np.ndarray, offset: int) -> Union[bool, int, float]:
        return data[offset].item()

    def store(self, data: np.ndarray, offset: int, value: Any) -> None:
        data[offset] = self.cast(value)

    def __repr__(self) -> str:
        return f"dtype('{self.tag}')"


def _make(tag: str, name: str, np_type: Any) -> DType:
    np_dtype = np.dtype(np_type)
    kind = {"b": KIND_BOOL, "i": KIND_SIGNED, "u": KIND_UNSIGNED, "f": KIND_FLOAT}[np_dtype.kind]
    return DType(tag=tag, name=name, itemsize=np_dtype.itemsize, kind=kind, np_dtype=np_dtype)


DTYPES: Dict[str, DType] = {
    dt.tag: dt
    for dt in (
        _make("?", "bool", np.bool_),
        _make("b", "byte", np.int8),
        _make("B", "ubyte", np.uint8),
        _make("i", "int", np.int32),
        _make("I", "uint", np.uint32),
        _make("l", "long", np.int64),
        _make("L", "ulong", np.uint64),
        _make("f", "float", np.float32),
        _make("d", "double", np.float64),
    )
}

_BY_NAME: Dict[str, DType] = {dt.name: dt for dt in DTYPES.values()}


def dtype_from_tag(tag: str) -> DType:
    try:
        return DTYPES[tag]
    except (KeyError, TypeError):
        raise DTypeError(f"unknown dtype tag: {tag!r}") from None


def default_float() -> DType:
    return DTYPES[get_config().default_float]


def resolve_dtype(spec: Any = None) -> DType:
    """Accept a :class:`DType`, a tag, a dtype name or a NumPy dtype; ``None`` is the default float."""
    if spec is None:
        return default_float()
    if isinstance(spec, DType):
        return spec
    if isinstance(spec, str):
        if len(spec) == 1:
            return dtype_from_tag(spec)
        found = _BY_NAME.get(spec)
        if found is not None:
            return found
    try:
        np_dtype = np.dtype(spec)
    except TypeError:
        raise DTypeError(f"unknown dtype: {spec!r}") from None
    for dt in DTYPES.values():
        if dt.np_dtype == np_dtype:
            return dt
    raise DTypeError(f"unsupported dtype: {np_dtype}")


def _promote_pair(a: DType, b: DType) -> DType:
    if a is b:
        return a
    if a.is_bool:
        return b
    if b.is_bool:
        return a
    if a.is_float and b.is_float:
        return a if a.itemsize >= b.itemsize else b
    if a.is_float or b.is_float:
        flt, other = (a, b) if a.is_float else (b, a)
        if flt.tag == "f" and other.itemsize <= 1:
            return flt
        return DTYPES["d"]
    if a.kind == b.kind:
        return a if a.itemsize >= b.itemsize else b
    unsigned, signed = (a, b) if a.kind == KIND_UNSIGNED else (b, a)
    for candidate in ("b", "i", "l"):
        dt = DTYPES[candidate]
        if dt.itemsize > unsigned.itemsize:
            return dt if dt.itemsize >= signed.itemsize else signed
    return DTYPES["d"]


_PROMOTION: Dict[Tuple[str, str], DType] = {
    (a.tag, b.tag): _promote_pair(a, b) for a in DTYPES.values() for b in DTYPES.values()
}


def promote(a: DType, b: DType) -> DType:
    return _PROMOTION[(a.tag, b.tag)]


def scalar_kind(value: Any) -> Optional[str]:
    if isinstance(value, (bool, np.bool_)):
        return KIND_BOOL
    if isinstance(value, numbers.Integral):
        return KIND_SIGNED
    if isinstance(value, numbers.Real):
        return KIND_FLOAT
    return None


def dtype_for_scalar(value: Any, like: Optional[DType] = None) -> DType:
    """Pick a dtype for a Python scalar, deferring to ``like`` when it can hold the value's kind."""
    kind = scalar_kind(value)
    if kind is None:
        raise DTypeError(f"unsupported scalar type: {type(value).__name__}")
    if like is not None and _KIND_RANK[kind] <= _KIND_RANK[like.kind]:
        return like
    if kind == KIND_BOOL:
        return DTYPES["?"]
    if kind == KIND_SIGNED:
        return DTYPES["l"]
    return default_float()
