import os
import sys

import pytest


def pytest_sessionstart(session):  # noqa: D401 - test harness helper
    """Ensure the current Python's bin directory is on PATH for subprocesses.

    The CLI smoke test launches ``python -m pocketarray``; prepending the
    directory of the running interpreter makes that launcher discoverable
    in environments without a global ``python`` shim.
    """

    bin_dir = os.path.dirname(sys.executable)
    path = os.environ.get("PATH", "")
    if bin_dir and bin_dir not in path.split(os.pathsep):
        os.environ["PATH"] = os.pathsep.join([bin_dir, path]) if path else bin_dir


@pytest.fixture
def grid():
    """2x3 single-precision array holding 0..5 in row-major order."""
    import pocketarray as pa

    a = pa.allocate("f", [2, 3])
    for i in range(2):
        for j in range(3):
            a[i, j] = i * 3 + j
    return a
