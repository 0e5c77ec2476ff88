"""Array/view model.

An :class:`NDArray` is a view: a dtype, a tuple of ``Dim(length, stride)``
pairs, a base offset and a shared :class:`Buffer`. Slicing, transposing,
reshaping a simple array and broadcasting all create new views over the same
buffer, so writes through one view are visible through every other view of
that buffer. Only :func:`allocate` (and helpers built on it) creates storage.
"""

from __future__ import annotations

import logging
import operator
from typing import Any, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from .config import MAX_DIMS
from .dtypes import DType, resolve_dtype
from .exceptions import BroadcastError, DimensionError
from .ufunc import apply_unary, find_copy_spec

log = logging.getLogger(__name__)

newaxis = None

ShapeLike = Union[int, Sequence[int]]


class Dim(NamedTuple):
    length: int
    stride: int


class Buffer:
    """Flat element storage shared by every view created from one allocation."""

    __slots__ = ("data",)

    def __init__(self, data: np.ndarray):
        self.data = data

    @classmethod
    def zeros(cls, dtype: DType, count: int) -> "Buffer":
        return cls(np.zeros(count, dtype=dtype.np_dtype))

    def __len__(self) -> int:
        return int(self.data.shape[0])


def _binary_method(op: str, reflected: bool = False, in_place: bool = False):
    def method(self, other):
        from .elementwise import binary_op

        return binary_op(op, self, other, in_place=in_place, reflected=reflected)

    method.__name__ = f"__{'i' if in_place else 'r' if reflected else ''}{op}__"
    return method


def _unary_method(op: str):
    def method(self):
        from .elementwise import unary_op

        return unary_op(op, self)

    return method


def _reduction_method(name: str):
    def method(self, axis=None, out=None, keepdims=False):
        from . import reductions

        return getattr(reductions, name)(self, axis=axis, out=out, keepdims=keepdims)

    method.__name__ = name
    return method


class NDArray:
    __slots__ = ("dtype", "dims", "base_offset", "buffer", "is_simple")

    def __init__(
        self,
        dtype: DType,
        dims: Tuple[Dim, ...],
        base_offset: int,
        buffer: Buffer,
        is_simple: bool = False,
    ):
        self.dtype = dtype
        self.dims = dims
        self.base_offset = base_offset
        self.buffer = buffer
        self.is_simple = is_simple

    # Metadata -------------------------------------------------------------

    @property
    def rank(self) -> int:
        return len(self.dims)

    ndim = rank

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(dim.length for dim in self.dims)

    @property
    def strides(self) -> Tuple[int, ...]:
        return tuple(dim.stride for dim in self.dims)

    @property
    def size(self) -> int:
        return _count(self.shape)

    @property
    def T(self) -> "NDArray":
        return transpose(self)

    # Element access ---------------------------------------------------------

    def __getitem__(self, index):
        return get_item(self, index)

    def __setitem__(self, index, value) -> None:
        set_item(self, index, value)

    def __len__(self) -> int:
        if not self.dims:
            raise TypeError("len() of unsized object")
        return self.dims[0].length

    def __iter__(self) -> Iterator[Any]:
        if not self.dims:
            raise TypeError("iteration over a 0-d array")
        for i in range(self.dims[0].length):
            yield get_item(self, i)

    def __bool__(self) -> bool:
        raise ValueError("ambiguous; use any() or all()")

    __hash__ = None  # type: ignore[assignment]

    def offsets(self) -> np.ndarray:
        """Buffer offsets of every element, shaped like the view."""
        grid = np.asarray(self.base_offset, dtype=np.intp)
        for dim in self.dims:
            grid = grid[..., None] + dim.stride * np.arange(dim.length, dtype=np.intp)
        return grid

    def to_numpy(self) -> np.ndarray:
        return np.asarray(self.buffer.data[self.offsets()])

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        out = self.to_numpy()
        return out if dtype is None else out.astype(dtype)

    def tolist(self) -> Any:
        return self.to_numpy().tolist()

    # Shape and copies -------------------------------------------------------

    def reshape(self, *shape) -> "NDArray":
        if len(shape) == 1 and not isinstance(shape[0], int):
            shape = shape[0]
        return reshape(self, shape)

    def transpose(self, *axes) -> "NDArray":
        if len(axes) == 1 and not isinstance(axes[0], int):
            axes = axes[0]
        return transpose(self, axes if axes else None)

    def copy(self) -> "NDArray":
        return from_ndarray(self, self.dtype)

    def astype(self, dtype: Any) -> "NDArray":
        return from_ndarray(self, resolve_dtype(dtype))

    def dot(self, other) -> Any:
        from .contraction import dot

        return dot(self, other)

    def __matmul__(self, other):
        from .contraction import dot

        return dot(self, other)

    def __rmatmul__(self, other):
        from .contraction import dot

        return dot(other, self)

    def __repr__(self) -> str:
        from .formatting import format_array

        return format_array(self)

    def __str__(self) -> str:
        from .formatting import format_values

        return format_values(self)

    # Operators --------------------------------------------------------------

    __add__ = _binary_method("add")
    __sub__ = _binary_method("subtract")
    __mul__ = _binary_method("multiply")
    __truediv__ = _binary_method("true_divide")
    __floordiv__ = _binary_method("floor_divide")
    __mod__ = _binary_method("modulo")
    __pow__ = _binary_method("power")
    __and__ = _binary_method("and")
    __or__ = _binary_method("or")
    __xor__ = _binary_method("xor")
    __lshift__ = _binary_method("lshift")
    __rshift__ = _binary_method("rshift")

    __radd__ = _binary_method("add", reflected=True)
    __rsub__ = _binary_method("subtract", reflected=True)
    __rmul__ = _binary_method("multiply", reflected=True)
    __rtruediv__ = _binary_method("true_divide", reflected=True)
    __rfloordiv__ = _binary_method("floor_divide", reflected=True)
    __rmod__ = _binary_method("modulo", reflected=True)
    __rpow__ = _binary_method("power", reflected=True)
    __rand__ = _binary_method("and", reflected=True)
    __ror__ = _binary_method("or", reflected=True)
    __rxor__ = _binary_method("xor", reflected=True)
    __rlshift__ = _binary_method("lshift", reflected=True)
    __rrshift__ = _binary_method("rshift", reflected=True)

    __iadd__ = _binary_method("add", in_place=True)
    __isub__ = _binary_method("subtract", in_place=True)
    __imul__ = _binary_method("multiply", in_place=True)
    __itruediv__ = _binary_method("true_divide", in_place=True)
    __ifloordiv__ = _binary_method("floor_divide", in_place=True)
    __imod__ = _binary_method("modulo", in_place=True)
    __ipow__ = _binary_method("power", in_place=True)
    __iand__ = _binary_method("and", in_place=True)
    __ior__ = _binary_method("or", in_place=True)
    __ixor__ = _binary_method("xor", in_place=True)
    __ilshift__ = _binary_method("lshift", in_place=True)
    __irshift__ = _binary_method("rshift", in_place=True)

    __lt__ = _binary_method("less")
    __le__ = _binary_method("less_equal")
    __eq__ = _binary_method("equal")  # type: ignore[assignment]
    __ne__ = _binary_method("not_equal")  # type: ignore[assignment]
    __gt__ = _binary_method("greater")
    __ge__ = _binary_method("greater_equal")

    __pos__ = _unary_method("positive")
    __neg__ = _unary_method("negative")
    __abs__ = _unary_method("absolute")

    # Reductions -------------------------------------------------------------

    max = _reduction_method("max")
    min = _reduction_method("min")
    sum = _reduction_method("sum")
    prod = _reduction_method("prod")
    mean = _reduction_method("average")
    any = _reduction_method("any")
    all = _reduction_method("all")

    def argmax(self, axis=None, out=None):
        from .reductions import argmax

        return argmax(self, axis=axis, out=out)

    def argmin(self, axis=None, out=None):
        from .reductions import argmin

        return argmin(self, axis=axis, out=out)


# Construction ---------------------------------------------------------------


def _count(shape: Iterable[int]) -> int:
    total = 1
    for length in shape:
        total *= length
    return total


def _check_shape(shape: ShapeLike) -> Tuple[int, ...]:
    if isinstance(shape, (int, np.integer)) and not isinstance(shape, bool):
        shape = (shape,)
    if not isinstance(shape, (list, tuple)):
        raise TypeError("shape must be a list or tuple of integers")
    if len(shape) > MAX_DIMS:
        raise DimensionError(f"too many dimensions: {len(shape)} > {MAX_DIMS}")
    lengths: List[int] = []
    for length in shape:
        if isinstance(length, bool) or not isinstance(length, (int, np.integer)):
            raise TypeError("Dimension sizes must be integers")
        if length < 0:
            raise ValueError("negative dimensions are not allowed")
        lengths.append(int(length))
    return tuple(lengths)


def row_major_dims(shape: Sequence[int]) -> Tuple[Dim, ...]:
    dims: List[Dim] = []
    stride = 1
    for length in reversed(shape):
        dims.append(Dim(length, stride))
        stride *= length
    return tuple(reversed(dims))


def allocate(dtype: Any, shape: ShapeLike) -> NDArray:
    """Fresh zero-filled, row-major, simple array."""
    dt = resolve_dtype(dtype)
    lengths = _check_shape(shape)
    return NDArray(dt, row_major_dims(lengths), 0, Buffer.zeros(dt, _count(lengths)), is_simple=True)


def view(source: NDArray, base_offset: int, dims: Sequence[Dim]) -> NDArray:
    if len(dims) > MAX_DIMS:
        raise DimensionError(f"too many dimensions: {len(dims)} > {MAX_DIMS}")
    return NDArray(source.dtype, tuple(Dim(*dim) for dim in dims), base_offset, source.buffer)


def shaped_like(dtype: Any, other: NDArray, trim: int = 0) -> NDArray:
    return allocate(dtype, other.shape[: other.rank - trim])


def scalar(value: Any, dtype: Any = None) -> NDArray:
    dt = resolve_dtype(dtype)
    buffer = Buffer.zeros(dt, 1)
    dt.store(buffer.data, 0, value)
    return NDArray(dt, (), 0, buffer)


def zeros(shape: ShapeLike, dtype: Any = None) -> NDArray:
    return allocate(dtype, shape)


def ones(shape: ShapeLike, dtype: Any = None) -> NDArray:
    result = allocate(dtype, shape)
    result.buffer.data[:] = result.dtype.cast(1)
    return result


def eye(n: int, dtype: Any = None) -> NDArray:
    result = allocate(dtype, (n, n))
    one = result.dtype.cast(1)
    for i in range(n):
        result.buffer.data[i * (n + 1)] = one
    return result


def _is_nested(value: Any) -> bool:
    return isinstance(value, (list, tuple, NDArray, np.ndarray))


def _as_items(value: Any) -> Optional[Sequence[Any]]:
    if isinstance(value, (list, tuple)):
        return value
    if isinstance(value, (NDArray, np.ndarray)) and np.ndim(value) > 0:
        return value.tolist()
    return None


def _copy_nested(value: Any, target: NDArray, depth: int, offset: int) -> None:
    if value is None:
        raise ValueError("can't assign None to array")
    items = _as_items(value)
    last = depth == target.rank
    if items is not None:
        if last or len(items) != target.dims[depth].length:
            raise ValueError("incompatible shape")
        stride = target.dims[depth].stride
        for item in items:
            _copy_nested(item, target, depth + 1, offset)
            offset += stride
    else:
        if not last:
            raise ValueError("incompatible shape")
        if isinstance(value, (NDArray, np.ndarray)):
            value = value.tolist() if isinstance(value, np.ndarray) else value.to_numpy().item()
        target.dtype.store(target.buffer.data, offset, value)


def from_nested_sequence(value: Any, dtype: Any = None) -> NDArray:
    """Infer a shape by descending into the first element of nested lists/tuples.

    Arrays carry their own shape, which also covers empty leading axes.
    """
    lengths: List[int] = []
    node = value
    if isinstance(value, (NDArray, np.ndarray)) and np.ndim(value) > 0:
        lengths = [int(length) for length in np.shape(value)]
        if len(lengths) > MAX_DIMS:
            raise DimensionError("too many dimensions")
        node = None
    while node is not None:
        items = _as_items(node)
        if items is None:
            break
        if len(lengths) >= MAX_DIMS:
            raise DimensionError("too many dimensions")
        if not items:
            lengths.append(0)
            break
        lengths.append(len(items))
        node = items[0]
    result = allocate(dtype, tuple(lengths))
    if result.size:
        _copy_nested(value, result, 0, 0)
    return result


def from_flat_iterable(value: Iterable[Any], length: int, dtype: Any = None) -> NDArray:
    result = allocate(dtype, (length,))
    store = result.dtype.store
    data = result.buffer.data
    i = 0
    for item in value:
        if i >= length:
            raise ValueError("Too many items from iterable")
        store(data, i, item)
        i += 1
    if i != length:
        raise ValueError(f"iterable produced {i} items, expected {length}")
    return result


def from_ndarray(value: NDArray, dtype: Optional[DType] = None) -> NDArray:
    """Contiguous copy of ``value``, converting to ``dtype`` when given."""
    result = shaped_like(dtype if dtype is not None else value.dtype, value)
    spec = find_copy_spec(value, result)
    apply_unary(result, value, spec)
    return result


def array(value: Any, dtype: Any = None) -> NDArray:
    """Build a new array from an array, a nested sequence, a sized iterable or a scalar."""
    if isinstance(value, NDArray):
        return from_ndarray(value, resolve_dtype(dtype) if dtype is not None else value.dtype)
    dt = resolve_dtype(dtype)
    if _is_nested(value):
        if isinstance(value, np.ndarray) and value.ndim == 0:
            return scalar(value.item(), dt)
        return from_nested_sequence(value, dt)
    if hasattr(value, "__len__") and not isinstance(value, (str, bytes)):
        return from_flat_iterable(value, len(value), dt)
    return scalar(value, dt)


def asarray(value: Any, dtype: Any = None) -> NDArray:
    """Like :func:`array` but returns ``value`` itself when it already matches."""
    if isinstance(value, NDArray) and (dtype is None or resolve_dtype(dtype) is value.dtype):
        return value
    return array(value, dtype)


# Indexing -------------------------------------------------------------------


def _resolve_index(source: NDArray, index: Any) -> Tuple[int, Tuple[Dim, ...]]:
    subscripts = index if isinstance(index, tuple) else (index,)
    if sum(1 for item in subscripts if item is Ellipsis) > 1:
        raise IndexError("an index can only have a single ellipsis ('...')")
    consumed = sum(1 for item in subscripts if item is not None and item is not Ellipsis)
    if consumed > source.rank:
        raise IndexError(
            f"too many indices for array: array is {source.rank}-dimensional, "
            f"but {consumed} were indexed"
        )

    axis = 0
    base = source.base_offset
    dims: List[Dim] = []
    for item in subscripts:
        if item is None:
            dims.append(Dim(1, 0))
        elif item is Ellipsis:
            fill = source.rank - consumed
            dims.extend(source.dims[axis : axis + fill])
            axis += fill
        elif isinstance(item, slice):
            length, stride = source.dims[axis]
            start, stop, step = item.indices(length)
            count = len(range(start, stop, step))
            if count:
                base += stride * start
            dims.append(Dim(count, stride * step))
            axis += 1
        else:
            if isinstance(item, (bool, np.bool_)):
                raise TypeError("boolean indices are not supported")
            try:
                position = operator.index(item)
            except TypeError:
                raise TypeError(f"unsupported index type: {type(item).__name__}") from None
            length, stride = source.dims[axis]
            if position < 0:
                position += length
            if position < 0 or position >= length:
                raise IndexError(
                    f"index {operator.index(item)} is out of bounds for axis {axis} with size {length}"
                )
            base += stride * position
            axis += 1
    dims.extend(source.dims[axis:])
    if len(dims) > MAX_DIMS:
        raise DimensionError(f"too many output dimensions: {len(dims)} > {MAX_DIMS}")
    return base, tuple(dims)


def get_item(source: NDArray, index: Any) -> Any:
    base, dims = _resolve_index(source, index)
    if not dims:
        return source.dtype.load(source.buffer.data, base)
    return view(source, base, dims)


def set_item(source: NDArray, index: Any, value: Any) -> None:
    from .broadcast import broadcast

    base, dims = _resolve_index(source, index)
    if not dims:
        if isinstance(value, NDArray):
            if value.rank != 0:
                raise ValueError("setting an array element with a sequence")
            value = value.dtype.load(value.buffer.data, value.base_offset)
        elif isinstance(value, np.ndarray):
            if value.ndim != 0:
                raise ValueError("setting an array element with a sequence")
            value = value.item()
        source.dtype.store(source.buffer.data, base, value)
        return

    dest = view(source, base, dims)
    src = value if isinstance(value, NDArray) else array(value, source.dtype)
    if src.buffer is dest.buffer:
        src = from_ndarray(src)
    if src.shape != dest.shape:
        shapes = (src.shape, dest.shape)
        dest, src, expanded = broadcast(dest, src)
        if expanded:
            raise BroadcastError("value can not be broadcast into slice", shapes=shapes)
    apply_unary(dest, src, find_copy_spec(src, dest))


# Shape operations -----------------------------------------------------------


def shape(source: NDArray) -> Tuple[int, ...]:
    return source.shape


def reshape(source: NDArray, new_shape: ShapeLike) -> NDArray:
    lengths = _check_shape(new_shape)
    if _count(lengths) != source.size:
        raise DimensionError(f"cannot reshape array of size {source.size} into shape {lengths}")
    if not source.is_simple:
        log.debug("reshape: copying non-simple view of shape %s", source.shape)
        source = from_ndarray(source)
    return view(source, source.base_offset, row_major_dims(lengths))


def transpose(source: NDArray, axes: Optional[Sequence[int]] = None) -> NDArray:
    rank = source.rank
    if axes is None:
        order = list(range(rank - 1, -1, -1))
    else:
        if not isinstance(axes, (list, tuple)):
            raise ValueError("transpose order must be a list or tuple")
        if len(axes) != rank:
            raise ValueError("axes don't match array")
        order = []
        unused = set(range(rank))
        for axis in axes:
            axis = operator.index(axis)
            if axis not in unused:
                raise ValueError("invalid transpose dimension")
            unused.discard(axis)
            order.append(axis)
    return view(source, source.base_offset, [source.dims[axis] for axis in order])
