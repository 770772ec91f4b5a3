"""Tests for the setup command."""

from __future__ import annotations

from f007th_push import cli
from f007th_push import config as config_module
from f007th_push.sinks import SinkKind


def test_setup_writes_config(tmp_path, capsys) -> None:
    path = tmp_path / "config.toml"

    code = cli.main(
        [
            "setup",
            "--config",
            str(path),
            "-s",
            "http://influx.local:8086/write?db=sensors",
            "-t",
            "influxdb",
            "--read-timeout",
            "0",
        ]
    )

    assert code == 0
    assert f"Configuration written to {path}" in capsys.readouterr().out
    saved = config_module.load_config(path)
    assert saved.url == "http://influx.local:8086/write?db=sensors"
    assert saved.server_type is SinkKind.INFLUX
    assert saved.read_timeout is None
    assert saved.connect_timeout == 5.0


def test_setup_uses_default_location(capsys) -> None:
    assert cli.main(["setup", "-s", "https://example.com/api/sensors"]) == 0

    path = config_module.resolve_config_path()
    assert path.exists()
    assert config_module.load_config(path).url == "https://example.com/api/sensors"


def test_setup_edits_existing_file(tmp_path) -> None:
    path = tmp_path / "config.toml"
    config_module.save_config(config_module.PushConfig(url="http://old/", log_level="debug"), path)

    assert cli.main(["setup", "--config", str(path), "-A"]) == 0

    saved = config_module.load_config(path)
    assert saved.url == "http://old/"
    assert saved.log_level == "debug"
    assert saved.changes_only is False


def test_setup_dry_run_does_not_write(tmp_path, capsys) -> None:
    path = tmp_path / "config.toml"

    assert cli.main(["setup", "--config", str(path), "-s", "http://host/", "--dry-run"]) == 0

    assert not path.exists()
    assert "Dry run" in capsys.readouterr().out


def test_setup_reset_discards_previous_values(tmp_path) -> None:
    path = tmp_path / "config.toml"
    config_module.save_config(config_module.PushConfig(url="http://old/", changes_only=False), path)

    assert cli.main(["setup", "--config", str(path), "--reset", "-s", "http://new/"]) == 0

    saved = config_module.load_config(path)
    assert saved.url == "http://new/"
    assert saved.changes_only is True


def test_setup_rejects_invalid_settings(tmp_path, capsys) -> None:
    path = tmp_path / "config.toml"

    assert cli.main(["setup", "--config", str(path), "-s", "gopher://host/"]) == 2

    assert not path.exists()
    assert capsys.readouterr().err.startswith("ERROR: ")
