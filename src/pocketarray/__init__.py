import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _load_version

from . import linalg
from .core.array import (
    Buffer,
    Dim,
    NDArray,
    allocate,
    array,
    asarray,
    eye,
    from_flat_iterable,
    from_nested_sequence,
    get_item,
    newaxis,
    ones,
    reshape,
    scalar,
    set_item,
    shape,
    shaped_like,
    transpose,
    view,
    zeros,
)
from .core.broadcast import broadcast, broadcast_shapes
from .core.config import EngineConfig, config_context, get_config, set_config
from .core.contraction import dot
from .core.dtypes import DTYPES, DType, promote, resolve_dtype
from .core.elementwise import allclose, isclose
from .core.exceptions import (
    BroadcastError,
    DimensionError,
    DomainError,
    DTypeError,
    LinAlgError,
    OperationError,
    PocketArrayError,
)
from .core.reductions import all, any, argmax, argmin, average, max, min, prod, sum
from .core.umath import acos, acosh, asin, asinh, atan, atanh, cos, cosh, exp, log, sin, sinh, tan, tanh

logging.getLogger(__name__).addHandler(logging.NullHandler())

try:
    __version__ = _load_version("pocketarray")
except PackageNotFoundError:
    __version__ = "0.0.0"


def ndarray(shape, dtype=None) -> NDArray:
    """Zero-filled array of ``shape``; the positional form of :func:`allocate`."""
    return allocate(dtype, shape)


__all__ = [
    "NDArray",
    "Dim",
    "Buffer",
    "DType",
    "DTYPES",
    "ndarray",
    "array",
    "asarray",
    "allocate",
    "view",
    "shaped_like",
    "scalar",
    "zeros",
    "ones",
    "eye",
    "from_nested_sequence",
    "from_flat_iterable",
    "newaxis",
    "get_item",
    "set_item",
    "shape",
    "reshape",
    "transpose",
    "broadcast",
    "broadcast_shapes",
    "promote",
    "resolve_dtype",
    "dot",
    "isclose",
    "allclose",
    "sin",
    "cos",
    "tan",
    "asin",
    "acos",
    "atan",
    "sinh",
    "cosh",
    "tanh",
    "asinh",
    "acosh",
    "atanh",
    "exp",
    "log",
    "max",
    "min",
    "sum",
    "prod",
    "average",
    "any",
    "all",
    "argmax",
    "argmin",
    "linalg",
    "EngineConfig",
    "get_config",
    "set_config",
    "config_context",
    "PocketArrayError",
    "DimensionError",
    "BroadcastError",
    "DTypeError",
    "LinAlgError",
    "DomainError",
    "OperationError",
    "__version__",
]
