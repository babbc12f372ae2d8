from pathlib import Path

import pytest

from clubroster.config_loader import Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "CLUBROSTER_DB_PATH",
        "CLUBROSTER_DEFAULT_FORMATION",
        "CLUBROSTER_UPLOAD_ENDPOINT",
        "CLUBROSTER_UPLOAD_TIMEOUT",
        "CLUBROSTER_LOG_LEVEL",
        "CLUBROSTER_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.db_path is None
    assert settings.default_formation == "442"
    assert settings.upload_endpoint is None
    assert settings.port == 8000


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CLUBROSTER_DB_PATH", "/data/club.sqlite")
    monkeypatch.setenv("CLUBROSTER_DEFAULT_FORMATION", "4-3-3")
    monkeypatch.setenv("CLUBROSTER_UPLOAD_TIMEOUT", "0.2")
    monkeypatch.setenv("CLUBROSTER_LOG_LEVEL", "debug")
    monkeypatch.setenv("CLUBROSTER_PORT", "9000")

    settings = Settings.from_env()

    assert settings.db_path == "/data/club.sqlite"
    assert settings.default_formation == "433"
    assert settings.upload_timeout == 1.0
    assert settings.log_level == "DEBUG"
    assert settings.port == 9000


def test_invalid_numbers_fall_back_with_warning(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture):
    monkeypatch.setenv("CLUBROSTER_UPLOAD_TIMEOUT", "soon")
    monkeypatch.setenv("CLUBROSTER_PORT", "eighty")

    with caplog.at_level("WARNING"):
        settings = Settings.from_env()

    assert settings.upload_timeout == 30.0
    assert settings.port == 8000
    assert "CLUBROSTER_PORT" in caplog.text


def test_unknown_default_formation_falls_back():
    assert Settings(default_formation="1-1-8").default_formation == "442"


def test_default_formation_accepts_display_name():
    assert Settings(default_formation="3-5-2").default_formation == "352"
    assert Settings(default_formation="4231").default_formation == "4231"


def test_save_and_load_round_trip(tmp_path: Path):
    path = tmp_path / "settings.json"
    Settings(db_path="club.sqlite", default_formation="352", upload_preset="club").save(path)

    loaded = Settings.load(path)

    assert loaded.db_path == "club.sqlite"
    assert loaded.default_formation == "352"
    assert loaded.upload_preset == "club"


def test_load_ignores_unknown_keys(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text('{"log_level": "warning", "theme": "dark"}', encoding="utf-8")
    assert Settings.load(path).log_level == "WARNING"
