import pocketarray as pa

# A 2x3 single-precision matrix filled with 0..5
A = pa.allocate("f", [2, 3])
for i in range(2):
    for j in range(3):
        A[i, j] = i * 3 + j
print("A =", A)
print("A[1, 2] =", A[1, 2])

# Slices are views: writing through the column changes A
column = A[:, 1]
column[0] = 42
print("after writing through A[:, 1]:", A.tolist())

# Broadcasting a row vector against a column vector
row = pa.array([1, 2, 3])
col = pa.array([[10], [20]])
print("row + col =", (row + col).tolist())

# newaxis and Ellipsis
cube = pa.zeros((2, 3, 4))
print("cube[..., 0].shape =", cube[..., 0].shape)
print("row[:, pa.newaxis].shape =", row[:, pa.newaxis].shape)

print(repr(pa.transpose(A)))
