import pytest

import pocketarray as pa
from pocketarray import EngineConfig
from pocketarray.core import config as config_module


def test_engine_config_normalization():
    cfg = EngineConfig(default_float=" Float32 ", float_fast_path=0).normalized()
    assert cfg.default_float == "f"
    assert cfg.pivot_epsilon == pytest.approx(1e-6)
    assert cfg.float_fast_path is False

    cfg = EngineConfig(default_float="double", pivot_epsilon=0).normalized()
    assert cfg.default_float == "d"
    assert cfg.pivot_epsilon == 0.0


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"default_float": "half"}, "Unsupported default float type"),
        ({"pivot_epsilon": -1.0}, "pivot_epsilon must be non-negative"),
        ({"rtol": -0.1}, "rtol and atol must be non-negative"),
        ({"max_dims": 16}, "max_dims is fixed at 8"),
    ],
)
def test_engine_config_rejects_bad_values(overrides, message):
    with pytest.raises(ValueError, match=message):
        EngineConfig(**overrides).normalized()


def test_set_config_returns_previous():
    before = pa.get_config()
    previous = pa.set_config(EngineConfig(default_float="f"))
    try:
        assert previous is before
        assert pa.get_config().default_float == "f"
        assert pa.zeros((2,)).dtype.tag == "f"
    finally:
        pa.set_config(previous)
    assert pa.get_config() == before


def test_config_context_restores_on_error():
    before = pa.get_config()
    with pytest.raises(RuntimeError):
        with pa.config_context(float_fast_path=False) as cfg:
            assert cfg.float_fast_path is False
            assert pa.get_config() is cfg
            raise RuntimeError("boom")
    assert pa.get_config() == before


def test_default_float_switch_rederives_epsilon():
    with pa.config_context(default_float="f") as cfg:
        assert cfg.pivot_epsilon == pytest.approx(1e-6)
        assert pa.array([1, 2]).dtype.tag == "f"
        assert (pa.array([1, 2], "l") / 2).dtype.tag == "f"
        assert pa.sin(pa.array([0.0])).dtype.tag == "f"
        with pa.config_context(default_float="d") as inner:
            assert inner.pivot_epsilon == pytest.approx(1e-12)
    assert pa.array([1, 2]).dtype.tag == "d"


def test_environment_sets_default_float(monkeypatch):
    monkeypatch.setenv("POCKETARRAY_DEFAULT_FLOAT", "float32")
    assert config_module._config_from_environment().default_float == "f"
    monkeypatch.setenv("POCKETARRAY_DEFAULT_FLOAT", "quad")
    with pytest.raises(ValueError, match="Unsupported default float type"):
        config_module._config_from_environment()


def test_tolerances_come_from_config():
    assert pa.isclose(1.0, 1.001) is False
    with pa.config_context(rtol=1e-2):
        assert pa.isclose(1.0, 1.001) is True
