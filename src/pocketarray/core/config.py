from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator, Optional

MAX_DIMS = 8

_FLOAT_ALIASES = {
    "f": "f",
    "float": "f",
    "float32": "f",
    "single": "f",
    "fp32": "f",
    "d": "d",
    "double": "d",
    "float64": "d",
    "fp64": "d",
}

_DEFAULT_EPSILON = {"f": 1e-6, "d": 1e-12}


def _normalize_float_spec(spec: str) -> str:
    lowered = (spec or "").strip()
    if lowered not in {"f", "d"}:
        lowered = lowered.lower()
    tag = _FLOAT_ALIASES.get(lowered)
    if tag is None:
        raise ValueError(f"Unsupported default float type: {spec!r}")
    return tag


@dataclass(frozen=True)
class EngineConfig:
    """
    Engine-wide switches shared by the traversal, reduction and linear-algebra code.

    Key behaviors:
    * ``default_float`` is the tag of the floating type used for float results,
      ``"d"`` (double) unless configured as ``"f"``.
    * ``pivot_epsilon`` bounds the magnitude below which a candidate pivot is treated
      as zero; ``None`` picks a value suited to ``default_float``.
    * ``float_fast_path`` and ``bulk_copy`` toggle the NumPy line kernels and the
      contiguous-run copy collapsing in the traversal engine.
    """

    default_float: str = "d"
    pivot_epsilon: Optional[float] = None
    float_fast_path: bool = True
    bulk_copy: bool = True
    rtol: float = 1e-05
    atol: float = 1e-08
    max_dims: int = MAX_DIMS

    def normalized(self) -> "EngineConfig":
        default_float = _normalize_float_spec(self.default_float)
        epsilon = self.pivot_epsilon
        if epsilon is None:
            epsilon = _DEFAULT_EPSILON[default_float]
        epsilon = float(epsilon)
        if epsilon < 0:
            raise ValueError("pivot_epsilon must be non-negative")
        rtol = float(self.rtol)
        atol = float(self.atol)
        if rtol < 0 or atol < 0:
            raise ValueError("rtol and atol must be non-negative")
        max_dims = int(self.max_dims)
        if max_dims != MAX_DIMS:
            raise ValueError(f"max_dims is fixed at {MAX_DIMS}; received {self.max_dims}")
        return replace(
            self,
            default_float=default_float,
            pivot_epsilon=epsilon,
            float_fast_path=bool(self.float_fast_path),
            bulk_copy=bool(self.bulk_copy),
            rtol=rtol,
            atol=atol,
            max_dims=max_dims,
        )


def _config_from_environment() -> EngineConfig:
    default_float = os.environ.get("POCKETARRAY_DEFAULT_FLOAT", "d")
    return EngineConfig(default_float=default_float).normalized()


_active_config: EngineConfig = _config_from_environment()


def get_config() -> EngineConfig:
    return _active_config


def set_config(config: EngineConfig) -> EngineConfig:
    """Install ``config`` as the active configuration and return the previous one."""
    global _active_config
    previous = _active_config
    _active_config = config.normalized()
    return previous


@contextmanager
def config_context(**overrides) -> Iterator[EngineConfig]:
    if "default_float" in overrides and "pivot_epsilon" not in overrides:
        overrides["pivot_epsilon"] = None
    previous = set_config(replace(_active_config, **overrides))
    try:
        yield _active_config
    finally:
        set_config(previous)
