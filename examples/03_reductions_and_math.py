import math

import pocketarray as pa

data = pa.array([[1, 2], [3, 4]])
print("sum(axis=0) =", pa.sum(data, axis=0).tolist())
print("sum(axis=1) =", pa.sum(data, axis=1).tolist())
print("average =", pa.average(data))
print("argmax =", pa.argmax(data))
print("max(keepdims) =", pa.max(data, axis=1, keepdims=True).tolist())

angles = pa.array([0.0, math.pi / 6, math.pi / 2])
print("sin =", pa.sin(angles).tolist())

counts = pa.array([3, 250, 7], dtype="B")
print("uint8 wraps:", (counts + 10).tolist())
print("true division of ints:", (pa.array([1, 2], dtype="l") / 4).tolist())
