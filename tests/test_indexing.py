import numpy as np
import pytest

import pocketarray as pa
from pocketarray import BroadcastError


@pytest.fixture
def vector():
    return pa.array(range(10), "l")


@pytest.mark.parametrize(
    "index",
    [
        slice(None),
        slice(2, 8),
        slice(2, 8, 3),
        slice(None, None, -1),
        slice(8, 2, -2),
        slice(-3, None),
        slice(5, 2),
        slice(-100, 100),
    ],
)
def test_slices_match_numpy(vector, index):
    reference = np.arange(10)[index]
    view = vector[index]
    assert view.shape == reference.shape
    assert view.tolist() == reference.tolist()


def test_integer_indices_wrap_and_check_bounds(vector):
    assert vector[-1] == 9
    assert vector[np.int64(3)] == 3
    with pytest.raises(IndexError, match="out of bounds"):
        vector[10]
    with pytest.raises(IndexError, match="out of bounds"):
        vector[-11]


def test_too_many_indices(vector):
    with pytest.raises(IndexError, match="too many indices"):
        vector[1, 2]


def test_unsupported_index_types(vector):
    with pytest.raises(TypeError):
        vector[1.5]
    with pytest.raises(TypeError):
        vector[True]
    with pytest.raises(TypeError):
        vector["a"]


def test_full_read_returns_python_scalar():
    a = pa.array([[1.5, 2.5]])
    value = a[0, 1]
    assert type(value) is float
    assert value == 2.5
    assert type(pa.array([1], "l")[0]) is int
    assert type(pa.array([True], "?")[0]) is bool


def test_newaxis_inserts_length_one_axis(vector):
    assert vector[pa.newaxis].shape == (1, 10)
    column = vector[:, None]
    assert column.shape == (10, 1)
    assert column.strides == (1, 0)
    assert column.tolist() == np.arange(10)[:, None].tolist()


def test_ellipsis_fills_remaining_axes():
    cube = pa.array(np.arange(24).reshape(2, 3, 4))
    reference = np.arange(24).reshape(2, 3, 4)
    assert cube[..., 1].tolist() == reference[..., 1].tolist()
    assert cube[0, ...].tolist() == reference[0, ...].tolist()
    assert cube[..., None].shape == (2, 3, 4, 1)
    assert cube[None, ..., 0].shape == (1, 2, 3)
    assert cube[1, ..., 2].tolist() == reference[1, ..., 2].tolist()
    assert cube[...].shape == (2, 3, 4)


def test_only_one_ellipsis():
    cube = pa.zeros((2, 3, 4))
    with pytest.raises(IndexError, match="single ellipsis"):
        cube[..., 0, ...]


def test_get_item_and_set_item_functions():
    a = pa.zeros((2, 2))
    pa.set_item(a, (1, 0), 7)
    assert pa.get_item(a, (1, 0)) == 7.0
    assert pa.get_item(a, 1).tolist() == [7.0, 0.0]


def test_element_assignment_accepts_rank0_arrays():
    a = pa.zeros((3,))
    a[0] = pa.scalar(5.0)
    a[1] = np.float64(2.5)
    a[2] = np.array(-1.0)
    assert a.tolist() == [5.0, 2.5, -1.0]

    ints = pa.zeros((2, 2), "l")
    ints[1, 1] = pa.scalar(9, "b")
    assert ints.tolist() == [[0, 0], [0, 9]]

    with pytest.raises(ValueError, match="sequence"):
        a[0] = pa.array([1.0, 2.0])


def test_slice_assignment_broadcasts_value():
    m = pa.zeros((2, 3), "l")
    m[:, :] = [1, 2, 3]
    assert m.tolist() == [[1, 2, 3], [1, 2, 3]]
    m[0] = 5
    assert m.tolist() == [[5, 5, 5], [1, 2, 3]]
    m[:, 1] = pa.array([7, 8], "l")
    assert m.tolist() == [[5, 7, 5], [1, 8, 3]]
    m[1, ::2] = 0
    assert m.tolist() == [[5, 7, 5], [0, 8, 0]]


def test_slice_assignment_converts_dtype():
    m = pa.zeros((3,), "i")
    m[:] = pa.array([1.9, -2.9, 3.0])
    assert m.tolist() == [1, -2, 3]


def test_slice_assignment_rejects_growth():
    m = pa.zeros((3,))
    with pytest.raises(BroadcastError, match="can not be broadcast into slice"):
        m[:] = pa.zeros((2, 3))
    with pytest.raises(BroadcastError):
        m[:] = [1.0, 2.0]


def test_overlapping_slice_assignment_reads_source_first():
    a = pa.array([1, 2, 3, 4], "l")
    a[1:] = a[:-1]
    assert a.tolist() == [1, 1, 2, 3]
    b = pa.array([1, 2, 3, 4], "l")
    b[::-1] = b
    assert b.tolist() == [4, 3, 2, 1]
