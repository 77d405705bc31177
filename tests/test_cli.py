"""Tests for the click command line."""

import json

import pytest
from click.testing import CliRunner

from matrix_rss_bridge import __version__
from matrix_rss_bridge.cli import cli


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("HOMESERVER_URL", "BOT_USERNAME", "BOT_PASSWORD", "BIND_ADDRESS"):
        monkeypatch.delenv(key, raising=False)


def test_version():
    result = CliRunner().invoke(cli, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_config_shows_masked_password(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({
        "homeserver_url": "https://matrix.org",
        "bot_username": "rssbot",
        "bot_password": "hunter2",
    }), encoding="utf-8")

    result = CliRunner().invoke(cli, ["config", "--config-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert "https://matrix.org" in result.output
    assert "hunter2" not in result.output


def test_run_without_config_exits(tmp_path):
    result = CliRunner().invoke(cli, ["run", "--config-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "HOMESERVER_URL" in result.output


def test_run_with_invalid_bind_address_exits(tmp_path, monkeypatch):
    monkeypatch.setenv("HOMESERVER_URL", "https://matrix.org")
    monkeypatch.setenv("BOT_USERNAME", "rssbot")
    monkeypatch.setenv("BOT_PASSWORD", "pw")

    result = CliRunner().invoke(cli, ["run", "not-an-address", "--config-dir", str(tmp_path)])

    assert result.exit_code == 1


def test_init_writes_config(tmp_path):
    result = CliRunner().invoke(
        cli,
        ["init", "--config-dir", str(tmp_path)],
        input="https://matrix.org\nrssbot\nsecret\n0.0.0.0:3006\n",
    )

    assert result.exit_code == 0
    saved = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
    assert saved["bot_username"] == "rssbot"
    assert saved["bind_address"] == "0.0.0.0:3006"
