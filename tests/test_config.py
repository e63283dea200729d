"""Tests for Config loading and accessors."""

import os

import pytest

from chatrelay.config import Config
from chatrelay.exceptions import ConfigurationError


def _write_settings(tmp_path, text):
    (tmp_path / "settings.yaml").write_text(text)
    return Config(config_dir=tmp_path)


def test_defaults_without_files(tmp_path, monkeypatch):
    monkeypatch.delenv("CHATRELAY_NOTIFICATION_ADDRESS", raising=False)
    config = Config(config_dir=tmp_path)
    assert config.notification_address is None
    assert config.locale == "en"
    assert config.strings_file is None
    assert config.disabled_commands == []
    assert config.logging_level == "INFO"
    assert config.logging_backup_count == 5
    assert config.logging_format == "console"


def test_settings_values(tmp_path, monkeypatch):
    monkeypatch.delenv("CHATRELAY_NOTIFICATION_ADDRESS", raising=False)
    config = _write_settings(
        tmp_path,
        "notification_address: owner@example.com\n"
        "locale: de\n"
        "strings_file: strings.yaml\n"
        "disabled_commands: [geo, copy]\n"
        "logging:\n"
        "  level: DEBUG\n"
        "  subsystem_levels:\n"
        "    dispatch: WARNING\n"
        "  format: JSON\n",
    )
    assert config.notification_address == "owner@example.com"
    assert config.locale == "de"
    assert config.strings_file == tmp_path / "strings.yaml"
    assert config.disabled_commands == ["geo", "copy"]
    assert config.logging_level == "DEBUG"
    assert config.logging_subsystem_levels == {"dispatch": "WARNING"}
    assert config.logging_format == "json"


def test_env_overrides_notification_address(tmp_path, monkeypatch):
    monkeypatch.setenv("CHATRELAY_NOTIFICATION_ADDRESS", "env@example.com")
    config = _write_settings(tmp_path, "notification_address: owner@example.com\n")
    assert config.notification_address == "env@example.com"


def test_dotenv_file_loaded(tmp_path, monkeypatch):
    monkeypatch.delenv("CHATRELAY_NOTIFICATION_ADDRESS", raising=False)
    (tmp_path / ".env").write_text("CHATRELAY_NOTIFICATION_ADDRESS=dotenv@example.com\n")
    config = Config(config_dir=tmp_path)
    try:
        assert config.notification_address == "dotenv@example.com"
    finally:
        os.environ.pop("CHATRELAY_NOTIFICATION_ADDRESS", None)


def test_invalid_disabled_commands_ignored(tmp_path):
    config = _write_settings(tmp_path, "disabled_commands: geo\n")
    assert config.disabled_commands == []
    config.validate()


def test_require_missing_setting_raises(tmp_path):
    config = Config(config_dir=tmp_path)
    with pytest.raises(ConfigurationError) as exc_info:
        config.require("notification_address")
    assert exc_info.value.setting_name == "notification_address"


def test_non_mapping_yaml_rejected(tmp_path):
    (tmp_path / "settings.yaml").write_text("- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        Config(config_dir=tmp_path)
