import pocketarray as pa
from pocketarray import linalg

M = pa.array([[4.0, 7.0, 2.0], [3.0, 6.0, 1.0], [2.0, 5.0, 3.0]])
b = pa.array([1.0, 2.0, 3.0])

print("det(M) =", linalg.det(M))
M_inv = linalg.inv(M)
print("inv(M) =", M_inv)
print("M @ inv(M) close to I:", pa.allclose(M @ M_inv, pa.eye(3), atol=1e-9))

x = linalg.solve(M, b)
print("x =", x.tolist())
print("M @ x =", pa.dot(M, x).tolist())

print("row echelon form:", linalg.re([[2, 4], [1, 3]]).tolist())

try:
    linalg.inv([[1.0, 2.0], [2.0, 4.0]])
except linalg.LinAlgError as exc:
    print("singular:", exc)
