import math
import operator

import numpy as np
import pytest

import pocketarray as pa
from pocketarray import DomainError, OperationError

X = [[1.5, -2.0, 3.25], [0.5, 4.0, -1.0]]
Y = [[2.0, 0.5, -1.5], [3.0, -2.0, 8.0]]


@pytest.mark.parametrize(
    "op",
    [operator.add, operator.sub, operator.mul, operator.truediv, operator.floordiv, operator.mod],
)
def test_float_arithmetic_matches_numpy(op):
    result = op(pa.array(X), pa.array(Y))
    expected = op(np.array(X), np.array(Y))
    assert result.dtype.tag == "d"
    assert np.allclose(np.asarray(result), expected)


@pytest.mark.parametrize(
    "op",
    [operator.lt, operator.le, operator.eq, operator.ne, operator.gt, operator.ge],
)
def test_comparisons_produce_bool(op):
    result = op(pa.array(X), pa.array(Y))
    assert result.dtype.tag == "?"
    assert result.tolist() == op(np.array(X), np.array(Y)).tolist()


@pytest.mark.parametrize(
    "op",
    [operator.and_, operator.or_, operator.xor, operator.lshift, operator.rshift],
)
def test_integer_bitwise_ops(op):
    a = [1, 6, 12]
    b = [3, 2, 1]
    result = op(pa.array(a, "l"), pa.array(b, "l"))
    assert result.dtype.tag == "l"
    assert result.tolist() == op(np.array(a), np.array(b)).tolist()


def test_generic_path_matches_fast_path():
    fast = pa.array(X) * pa.array(Y) - pa.array(Y)
    with pa.config_context(float_fast_path=False):
        generic = pa.array(X) * pa.array(Y) - pa.array(Y)
    assert generic.tolist() == fast.tolist()


def test_python_scalars_keep_array_dtype():
    small = pa.array([1, 2], "b")
    assert (small + 1).dtype.tag == "b"
    assert (small + 1.5).dtype.tag == "d"
    assert (pa.array([True, False], "?") + 1).dtype.tag == "l"
    assert (pa.array([1.0], "f") * 2.0).dtype.tag == "f"


def test_true_division_of_integers_gives_float():
    result = pa.array([1, 2], "l") / 4
    assert result.dtype.tag == "d"
    assert result.tolist() == [0.25, 0.5]


def test_mixed_dtypes_promote():
    result = pa.array([1, 2], "b") + pa.array([100, 200], "B")
    assert result.dtype.tag == "i"
    assert result.tolist() == [101, 202]


def test_integer_arithmetic_wraps():
    assert (pa.array([127], "b") + 1).tolist() == [-128]
    assert (pa.array([0], "B") - 1).tolist() == [255]


def test_reflected_operators():
    a = pa.array([1.0, 2.0])
    assert (10 - a).tolist() == [9.0, 8.0]
    assert (1 / a).tolist() == [1.0, 0.5]
    assert (2 ** a).tolist() == [2.0, 4.0]
    assert ([3.0, 4.0] * a).tolist() == [3.0, 8.0]


def test_sequence_operands_keep_their_own_dtype():
    ints = pa.array([1, 2], "l")
    result = ints + [0.5, 0.5]
    assert result.dtype.tag == "d"
    assert result.tolist() == [1.5, 2.5]

    result = [0.5, 0.5] * pa.array([2, 4], "l")
    assert result.dtype.tag == "d"
    assert result.tolist() == [1.0, 2.0]

    result = ints + np.array([0.25, 0.75])
    assert result.dtype.tag == "d"
    assert result.tolist() == [1.25, 2.75]

    result = ints + [10, 20]
    assert result.dtype.tag == "l"
    assert result.tolist() == [11, 22]

    result = pa.array([1, 2], "b") + np.array([300, 400], dtype=np.int32)
    assert result.dtype.tag == "i"
    assert result.tolist() == [301, 402]


def test_in_place_keeps_left_dtype_and_identity():
    a = pa.array([1, 2, 3], "l")
    before = a
    a += 1.5
    assert a is before
    assert a.dtype.tag == "l"
    assert a.tolist() == [2, 3, 4]
    a *= pa.array([2, 2, 2], "l")
    assert a.tolist() == [4, 6, 8]


def test_in_place_through_a_view_updates_base():
    m = pa.zeros((2, 2))
    row = m[1]
    row += 3.0
    assert m.tolist() == [[0.0, 0.0], [3.0, 3.0]]


def test_in_place_with_overlapping_operand():
    a = pa.array([1.0, 2.0, 3.0])
    a[1:] += a[:-1]
    assert a.tolist() == [1.0, 3.0, 5.0]


def test_division_by_zero_raises():
    with pytest.raises(ZeroDivisionError):
        pa.array([1.0, 2.0]) / pa.array([1.0, 0.0])
    with pytest.raises(ZeroDivisionError):
        pa.array([1, 2], "l") // 0


def test_undefined_operator_raises_operation_error():
    with pytest.raises(OperationError):
        pa.array([1.0]) & pa.array([2.0])
    with pytest.raises(TypeError):
        pa.array([1.0]) << 1


def test_unsupported_operand_type():
    with pytest.raises(TypeError):
        pa.array([1.0]) + "x"
    assert (pa.array([1.0]) == "x") is False


def test_unary_operators():
    a = pa.array([1, -2], "l")
    assert (-a).tolist() == [-1, 2]
    assert (+a).tolist() == [1, -2]
    assert abs(a).tolist() == [1, 2]
    assert abs(pa.array([-1.5, 2.0])).tolist() == [1.5, 2.0]


def test_rank_zero_operands():
    s = pa.scalar(2.0)
    assert (s + 1).shape == ()
    assert (s * pa.array([1.0, 2.0])).tolist() == [2.0, 4.0]


def test_isclose_defaults_and_nan_handling():
    nan = math.nan
    result = pa.isclose([1.0, nan, nan, 1.0], [1.0 + 1e-9, nan, 1.0, 1.1])
    assert result.dtype.tag == "?"
    assert result.tolist() == [True, False, False, False]
    result = pa.isclose([1.0, nan, nan], [1.0, nan, 1.0], equal_nan=True)
    assert result.tolist() == [True, True, False]
    assert pa.isclose(nan, 1.0, equal_nan=True) is False


def test_isclose_infinities_and_scalars():
    assert pa.isclose(math.inf, math.inf) is True
    assert pa.isclose(math.inf, -math.inf) is False
    assert pa.isclose(math.inf, 1.0) is False
    assert pa.isclose(1.0, 1.05, rtol=0.1) is True
    assert pa.isclose(0.0, 1e-9) is True


def test_isclose_broadcasts_and_handles_integers():
    assert pa.isclose([[1.0, 2.0], [3.0, 4.0]], [1.0, 2.0]).shape == (2, 2)
    result = pa.isclose(pa.array([1, 2], "l"), pa.array([1, 3], "l"))
    assert result.tolist() == [True, False]


def test_allclose():
    assert pa.allclose([1.0, 2.0], [1.0, 2.0 + 1e-10])
    assert not pa.allclose([1.0, 2.0], [1.0, 2.1])
    assert pa.allclose(1.0, 1.0)
    with pa.config_context(atol=0.5):
        assert pa.allclose([1.0], [1.4])


def test_fractional_power_of_negative_is_a_domain_error():
    with pytest.raises(DomainError, match="math domain error"):
        pa.array([-8.0, 8.0]) ** (1 / 3)
    assert (pa.array([4.0, 9.0]) ** 0.5).tolist() == [2.0, 3.0]
