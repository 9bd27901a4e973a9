"""Tests for configuration loading and credential storage"""

import datetime
import os
import stat
import sys

import pytest

import settings
from config import ConfigLoader, find_env_file, get_credentials, save_env
from utils.dates import add_years, date_params, format_date


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("SPOTIFY_SP_DC", "SPOTIFY_SP_KEY", "SPOTIFY_CLIENT_ID", "TEST_INT", "TEST_FLAG"):
        monkeypatch.delenv(name, raising=False)
    yield
    for name in ("SPOTIFY_SP_DC", "SPOTIFY_SP_KEY", "SPOTIFY_CLIENT_ID"):
        os.environ.pop(name, None)


def test_typed_values(monkeypatch, clean_env):
    monkeypatch.setenv("TEST_INT", "7")
    monkeypatch.setenv("TEST_FLAG", "yes")
    loader = ConfigLoader(env_path="/nonexistent/.env")

    assert loader.get("TEST_INT", 1) == 7
    assert loader.get("TEST_FLAG", False) is True
    assert loader.get("TEST_MISSING", 2.5) == 2.5


def test_invalid_int_falls_back(monkeypatch, clean_env):
    monkeypatch.setenv("TEST_INT", "many")
    assert ConfigLoader(env_path="/nonexistent/.env").get("TEST_INT", 3) == 3


def test_find_env_file_with_custom_path(tmp_path):
    env = tmp_path / "custom.env"
    assert find_env_file(str(env)) is None
    env.write_text("")
    assert find_env_file(str(env)) == env


def test_save_and_load_credentials(tmp_path, clean_env):
    path = save_env({"sp_dc": "dc", "sp_key": "key", "client_id": "cid"}, str(tmp_path / ".env"))

    assert path.read_text().splitlines() == [
        "SPOTIFY_SP_DC=dc",
        "SPOTIFY_SP_KEY=key",
        "SPOTIFY_CLIENT_ID=cid",
    ]
    if sys.platform != "win32":
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    ConfigLoader(env_path=str(path))
    assert get_credentials() == {"sp_dc": "dc", "sp_key": "key", "client_id": "cid"}


def test_environment_wins_over_file(tmp_path, monkeypatch, clean_env):
    path = save_env({"sp_dc": "from-file", "sp_key": "key"}, str(tmp_path / ".env"))
    monkeypatch.setenv("SPOTIFY_SP_DC", "from-env")

    ConfigLoader(env_path=str(path))

    assert get_credentials()["sp_dc"] == "from-env"


def test_missing_cookie_means_no_credentials(monkeypatch, clean_env):
    monkeypatch.setenv("SPOTIFY_SP_DC", "dc")
    assert get_credentials() is None


def test_date_helpers():
    assert format_date(datetime.datetime(2024, 5, 6, 23, 59)) == "2024-05-06"
    assert date_params(datetime.date(2024, 1, 1), datetime.date(2024, 1, 2)) == {
        "start": "2024-01-01",
        "end": "2024-01-02",
    }
    assert add_years(datetime.date(2024, 2, 29), 1) == datetime.date(2025, 2, 28)
    assert add_years(datetime.date(2024, 3, 1), -10) == datetime.date(2014, 3, 1)


def test_env_file_replaces_default_file(env_workdir):
    (env_workdir / ".env").write_text(
        "SPOTIFY_SP_DC=from-default\nSPOTIFY_SP_KEY=default-key\nSPOTIFY_CLIENT_ID=default-client\n"
    )
    custom = env_workdir / "custom.env"
    custom.write_text("SPOTIFY_SP_DC=from-custom\nSPOTIFY_SP_KEY=custom-key\nLOG_LEVEL=error\n")

    settings.load_settings()
    assert get_credentials()["sp_dc"] == "from-default"
    assert settings.CLIENT_ID == "default-client"

    settings.load_settings(str(custom))

    assert get_credentials() == {"sp_dc": "from-custom", "sp_key": "custom-key"}
    assert settings.LOG_LEVEL == "error"
    assert settings.CLIENT_ID == settings.DEFAULT_CLIENT_ID


def test_env_file_keeps_real_environment(env_workdir, monkeypatch):
    monkeypatch.setenv("SPOTIFY_SP_DC", "from-env")
    (env_workdir / ".env").write_text("SPOTIFY_SP_KEY=default-key\n")
    custom = env_workdir / "custom.env"
    custom.write_text("SPOTIFY_SP_DC=from-custom\nSPOTIFY_SP_KEY=custom-key\n")

    settings.load_settings()
    settings.load_settings(str(custom))

    assert get_credentials() == {"sp_dc": "from-env", "sp_key": "custom-key"}
