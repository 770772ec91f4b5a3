"""Tests for configuration helpers."""

from __future__ import annotations

import pytest

from f007th_push import config as config_module
from f007th_push.config import PushConfig
from f007th_push.errors import ConfigurationError
from f007th_push.sinks import SinkKind


def test_save_and_load_roundtrip(tmp_path) -> None:
    cfg = PushConfig(
        url="http://influx.local:8086/write?db=sensors",
        server_type=SinkKind.INFLUX,
        changes_only=False,
        payload_buffer_size=2048,
        response_buffer_size=256,
        connect_timeout=3.0,
        read_timeout=7.5,
        log_file=str(tmp_path / "push.log"),
        log_level="debug",
    )

    path = tmp_path / "config.toml"
    config_module.save_config(cfg, path=path)

    loaded = config_module.load_config(path)

    assert loaded == cfg


def test_disabled_timeouts_roundtrip(tmp_path) -> None:
    cfg = PushConfig(url="https://example.com/api", connect_timeout=None, read_timeout=None)
    path = config_module.save_config(cfg, path=tmp_path / "config.toml")

    loaded = config_module.load_config(path)

    assert loaded.connect_timeout is None
    assert loaded.read_timeout is None


def test_resolve_config_path_env_override(monkeypatch, tmp_path) -> None:
    path = tmp_path / "custom.toml"
    monkeypatch.setenv(config_module.CONFIG_ENV_VAR, str(path))

    assert config_module.resolve_config_path() == path


def test_get_config_dir_uses_xdg(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.delenv(config_module.CONFIG_ENV_VAR, raising=False)

    assert config_module.resolve_config_path() == tmp_path / "f007th-push" / "config.toml"


@pytest.mark.parametrize(
    "url",
    [
        "ftp://example.com/",
        "example.com/api",
        "file:///tmp/x",
        "http://",
        "http://[::1/write",
        "http://host:port/",
        None,
        "",
    ],
)
def test_validate_rejects_bad_urls(url) -> None:
    with pytest.raises(ConfigurationError):
        PushConfig(url=url).validate()


@pytest.mark.parametrize(
    "overrides",
    [
        {"payload_buffer_size": 0},
        {"response_buffer_size": -1},
        {"connect_timeout": -1.0},
    ],
)
def test_validate_rejects_bad_numbers(overrides) -> None:
    cfg = PushConfig(url="http://localhost/", **overrides)
    with pytest.raises(ConfigurationError):
        cfg.validate()


def test_from_dict_rejects_unknown_server_type() -> None:
    with pytest.raises(ConfigurationError):
        PushConfig.from_dict({"server": {"url": "http://localhost/", "type": "graphite"}})


def test_from_dict_rejects_non_numeric_buffer() -> None:
    with pytest.raises(ConfigurationError):
        PushConfig.from_dict({"publish": {"payload_buffer_size": "big"}})


def test_from_dict_rejects_other_versions() -> None:
    with pytest.raises(ConfigurationError):
        PushConfig.from_dict({"version": 99})


def test_load_config_malformed_toml(tmp_path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[server\nurl = ", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        config_module.load_config(path)


def test_config_summary_mentions_server() -> None:
    summary = config_module.config_summary(PushConfig(url="http://localhost/api", server_type=SinkKind.INFLUX))

    assert "http://localhost/api (InfluxDB)" in summary
    assert "changed and valid data only" in summary


@pytest.mark.parametrize(
    ("token", "expected"),
    [("REST", SinkKind.REST), ("rest", SinkKind.REST), ("InfluxDB", SinkKind.INFLUX), ("INFLUXDB", SinkKind.INFLUX)],
)
def test_sink_kind_tokens_are_case_insensitive(token, expected) -> None:
    assert SinkKind.parse(token) is expected
