"""Tests for the environment config layer."""

from fideo.app_config import AppEnvironConfig, _split_origins
from fideo.shared.config import EnvironConfig, config


def test_environ_config_is_singleton():
    assert EnvironConfig() is config


def test_env_example_defaults_loaded():
    assert config.get("RECORDING_FORMAT") == "ts"
    assert config.get("MISSING_KEY", "fallback") == "fallback"


def test_get_bool(monkeypatch):
    monkeypatch.setitem(config._config, "SOME_FLAG", "Yes")
    assert config.get_bool("SOME_FLAG") is True

    monkeypatch.setitem(config._config, "SOME_FLAG", "0")
    assert config.get_bool("SOME_FLAG") is False

    monkeypatch.setitem(config._config, "SOME_FLAG", " ")
    assert config.get_bool("SOME_FLAG", default=True) is True


def test_split_origins():
    assert _split_origins(" http://a , ,http://b ") == ["http://a", "http://b"]
    assert _split_origins(None) == []


def test_app_config_types():
    settings = AppEnvironConfig()
    assert isinstance(settings.API_PORT, int)
    assert settings.PROGRESS_INTERVAL_SECONDS > 0
    assert settings.RESOLVER_TIMEOUT_SECONDS > 0
    assert settings.FFMPEG_PATH
