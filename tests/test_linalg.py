import numpy as np
import pytest

import pocketarray as pa
from pocketarray import linalg
from pocketarray.linalg import LinAlgError


def test_determinant_scenario():
    assert linalg.det([[1, 2], [3, 4]]) == pytest.approx(-2.0)


def test_determinant_of_singular_matrix_is_zero():
    assert linalg.det([[1, 2], [2, 4]]) == 0.0
    assert linalg.det(pa.zeros((3, 3))) == 0.0


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_determinant_matches_numpy(seed):
    values = np.random.default_rng(seed).normal(size=(4, 4))
    assert linalg.det(pa.array(values)) == pytest.approx(np.linalg.det(values), rel=1e-9)


def test_determinant_with_row_swaps_keeps_sign():
    values = [[0.0, 2.0, 1.0], [3.0, 0.0, 1.0], [1.0, 1.0, 0.0]]
    assert linalg.det(values) == pytest.approx(np.linalg.det(np.array(values)))


def test_row_echelon_scenario():
    result = linalg.re([[2, 4], [1, 3]])
    assert result.tolist() == [[1.0, 3.0], [0.0, 1.0]]
    assert result.dtype.tag == "d"


def test_row_echelon_of_wide_and_rank_deficient_matrices():
    result = linalg.row_echelon([[1, 2, 3], [2, 4, 6]])
    assert result.tolist() == [[1.0, 2.0, 3.0], [0.0, 0.0, 0.0]]
    with pytest.raises(LinAlgError, match="2-D"):
        linalg.re([1, 2, 3])


def test_inverse_matches_numpy():
    values = np.array([[4.0, 7.0, 1.0], [2.0, 6.0, 0.5], [1.0, -1.0, 3.0]])
    result = linalg.inv(pa.array(values))
    assert result.shape == (3, 3)
    assert np.allclose(np.asarray(result), np.linalg.inv(values))
    assert np.allclose(np.asarray(pa.dot(result, values)), np.eye(3))


def test_inverse_of_transposed_view():
    a = pa.array([[4.0, 7.0], [2.0, 6.0]])
    assert np.allclose(np.asarray(linalg.inv(a.T)), np.linalg.inv(np.array([[4.0, 2.0], [7.0, 6.0]])))


def test_inverse_rejects_singular_and_non_square():
    with pytest.raises(LinAlgError, match="singular matrix"):
        linalg.inv([[1, 2], [2, 4]])
    with pytest.raises(LinAlgError, match="square"):
        linalg.inv(pa.zeros((2, 3)))
    with pytest.raises(LinAlgError, match="2-D"):
        linalg.det(pa.zeros((2, 2, 2)))


def test_solve_scenario():
    assert linalg.solve([[2, 0], [0, 2]], [4, 6]).tolist() == [2.0, 3.0]


def test_solve_matches_numpy():
    a = np.array([[3.0, 2.0, -1.0], [2.0, -2.0, 4.0], [-1.0, 0.5, -1.0]])
    b = np.array([1.0, -2.0, 0.0])
    assert np.allclose(np.asarray(linalg.solve(pa.array(a), pa.array(b))), np.linalg.solve(a, b))


def test_solve_errors():
    with pytest.raises(LinAlgError, match="single set of equations"):
        linalg.solve([[1, 0], [0, 1]], [[1], [2]])
    with pytest.raises(LinAlgError, match="must be square"):
        linalg.solve(pa.zeros((2, 3)), [1, 2])
    with pytest.raises(LinAlgError, match="dimensions don't match"):
        linalg.solve([[1, 0], [0, 1]], [1, 2, 3])
    with pytest.raises(LinAlgError, match="singular matrix"):
        linalg.solve([[1, 2], [2, 4]], [1, 2])


def test_inputs_are_not_modified():
    a = pa.array([[2.0, 1.0], [1.0, 3.0]])
    b = pa.array([1.0, 2.0])
    linalg.det(a)
    linalg.inv(a)
    linalg.re(a)
    linalg.solve(a, b)
    assert a.tolist() == [[2.0, 1.0], [1.0, 3.0]]
    assert b.tolist() == [1.0, 2.0]


def test_integer_inputs_give_float_results():
    a = pa.array([[2, 1], [1, 1]], "l")
    result = linalg.inv(a)
    assert result.dtype.tag == "d"
    assert result.tolist() == [[1.0, -1.0], [-1.0, 2.0]]


def test_pivot_epsilon_treats_tiny_entries_as_zero():
    tiny = [[1e-4, 0.0], [0.0, 1.0]]
    assert linalg.det(tiny) == pytest.approx(1e-4)
    with pa.config_context(pivot_epsilon=1e-3):
        assert linalg.det(tiny) == 0.0
        with pytest.raises(LinAlgError, match="singular"):
            linalg.inv(tiny)


def test_reduce_rows_reports_pivot_count():
    matrix = pa.array([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0]])
    reduction = linalg.reduce_rows(matrix, full_diagonalize=False, normalize=True)
    assert reduction.pivot_count == 1
    assert reduction.det_scale == 1.0
    assert matrix.tolist() == [[1.0, 2.0, 3.0], [0.0, 0.0, 0.0]]


def test_reduce_rows_full_diagonalize():
    matrix = pa.array([[2.0, 4.0], [1.0, 3.0]])
    reduction = linalg.reduce_rows(matrix, full_diagonalize=True, normalize=True)
    assert reduction.pivot_count == 2
    assert matrix.tolist() == [[1.0, 0.0], [0.0, 1.0]]


def test_reduce_rows_needs_contiguous_matrix():
    matrix = pa.array([[2.0, 4.0], [1.0, 3.0]])
    with pytest.raises(LinAlgError, match="contiguous"):
        linalg.reduce_rows(matrix.T, full_diagonalize=False, normalize=True)


def test_single_precision_default_float():
    with pa.config_context(default_float="f"):
        result = linalg.re([[2, 4], [1, 3]])
        assert result.dtype.tag == "f"
        assert result.tolist() == [[1.0, 3.0], [0.0, 1.0]]
        assert linalg.det([[1, 2], [3, 4]]) == pytest.approx(-2.0, rel=1e-6)


def test_inverse_and_solve_identities():
    values = np.array([[2.0, -1.0, 0.5], [1.0, 3.0, -2.0], [0.0, 4.0, 1.0]])
    a = pa.array(values)
    b = pa.array([1.0, -1.0, 2.0])
    inverse = linalg.inv(a)
    assert linalg.det(inverse) == pytest.approx(1.0 / linalg.det(a))
    assert pa.allclose(pa.dot(a, inverse), pa.eye(3), atol=1e-12)
    assert pa.allclose(pa.dot(a, linalg.solve(a, b)), b)
