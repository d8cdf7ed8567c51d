"""Tests for settings and logging setup."""

import logging

import pytest

from mnemo.engine.db import SETTINGS_KEY, Database
from mnemo.utils.config import DEFAULT_TEXT_MODEL, ConfigManager, data_dir
from mnemo.utils.logging_config import setup_logging


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "mnemo.sqlite"))
    yield database
    database.close()


def test_defaults_without_stored_settings():
    config = ConfigManager()
    assert config.text_model == DEFAULT_TEXT_MODEL
    assert config.notifications_enabled is True
    assert config.selected_voice == ""


def test_stored_settings_override_defaults():
    config = ConfigManager(stored={"text_model": "gemini-2.5-flash", "selected_voice": "ar-EG-SalmaNeural"})
    assert config.text_model == "gemini-2.5-flash"
    assert config.selected_voice == "ar-EG-SalmaNeural"


def test_set_persists_under_settings_key(db):
    config = ConfigManager(db)
    config.set("notifications_enabled", False)
    assert db.get(SETTINGS_KEY)["notifications_enabled"] is False
    assert ConfigManager(db, db.get(SETTINGS_KEY)).notifications_enabled is False


def test_api_key_falls_back_to_environment(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    config = ConfigManager()
    assert config.get_api_key() == "from-env"
    config.set_api_key("stored")
    assert config.get_api_key() == "stored"


def test_data_dir_override(monkeypatch, tmp_path):
    monkeypatch.setenv("MNEMO_HOME", str(tmp_path / "home"))
    assert data_dir() == tmp_path / "home"
    assert (tmp_path / "home").is_dir()


def test_setup_logging_writes_file(tmp_path):
    logger = setup_logging("debug", log_dir=tmp_path)
    try:
        assert logger.level == logging.DEBUG
        logging.getLogger("mnemo.engine.store").info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in (tmp_path / "mnemo.log").read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
