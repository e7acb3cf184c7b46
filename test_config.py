import importlib

from packet_sim import config


def test_defaults():
    assert isinstance(config.DEFAULT_BUFFER_SIZE, int)
    assert isinstance(config.DEFAULT_PAYLOAD_SIZE, int)
    assert config.LOG_LEVEL == config.LOG_LEVEL.upper()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PACKET_SIM_BUFFER_SIZE", "4096")
    monkeypatch.setenv("PACKET_SIM_LOG_LEVEL", "debug")
    try:
        importlib.reload(config)
        assert config.DEFAULT_BUFFER_SIZE == 4096
        assert config.LOG_LEVEL == "DEBUG"
    finally:
        monkeypatch.delenv("PACKET_SIM_BUFFER_SIZE")
        monkeypatch.delenv("PACKET_SIM_LOG_LEVEL")
        importlib.reload(config)
