"""Unit tests — Settings defaults, YAML loading and environment overrides."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from excel_bridge.config import Settings, get_settings, override_settings


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in ("EXCEL_BRIDGE_CACHE__ENABLED", "EXCEL_BRIDGE_LOGGING__LEVEL"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.mark.unit
class TestDefaults:
    def test_server_block(self) -> None:
        s = Settings()
        assert s.server.name == "excel-mcp-server"
        assert s.server.protocol_version == "2024-11-05"
        assert s.server.description == "Excel MCP Server for Python"

    def test_other_blocks(self) -> None:
        s = Settings()
        assert s.cache.enabled is True
        assert s.cache.max_entries == 32
        assert s.workbook.default_sheet_name == "Sheet1"
        assert s.workbook.image_max_width is None
        assert s.logging.level == "info"
        assert s.logging.format == "console"


@pytest.mark.unit
class TestLoad:
    def test_yaml_file(self, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text(
            "cache:\n  enabled: false\n  max_entries: 5\nworkbook:\n  comment_author: QA\n"
        )
        s = Settings.load(config_file=config)
        assert s.cache.enabled is False
        assert s.cache.max_entries == 5
        assert s.workbook.comment_author == "QA"

    def test_user_config_in_home(self, isolated_home: Path) -> None:
        (isolated_home / ".excel-bridge").mkdir()
        (isolated_home / ".excel-bridge" / "config.yaml").write_text("logging:\n  level: debug\n")
        assert Settings.load().logging.level == "debug"

    def test_missing_file_is_ignored(self, tmp_path: Path) -> None:
        assert Settings.load(config_file=tmp_path / "nope.yaml").cache.enabled is True

    def test_empty_file(self, tmp_path: Path) -> None:
        config = tmp_path / "empty.yaml"
        config.write_text("")
        assert Settings.load(config_file=config).server.name == "excel-mcp-server"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXCEL_BRIDGE_CACHE__ENABLED", "false")
        monkeypatch.setenv("EXCEL_BRIDGE_LOGGING__LEVEL", "warning")
        s = Settings()
        assert s.cache.enabled is False
        assert s.logging.level == "warning"

    def test_invalid_value_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(cache={"max_entries": 0})


@pytest.mark.unit
def test_override_settings_replaces_singleton() -> None:
    custom = Settings(workbook={"default_sheet_name": "Main"})
    override_settings(custom)
    assert get_settings() is custom


@pytest.mark.unit
class TestPrecedence:
    def test_env_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("logging:\n  level: debug\n")
        monkeypatch.setenv("EXCEL_BRIDGE_LOGGING__LEVEL", "error")
        assert Settings.load(config_file=config).logging.level == "error"

    def test_explicit_file_extends_user_config(self, tmp_path: Path, isolated_home: Path) -> None:
        (isolated_home / ".excel-bridge").mkdir()
        (isolated_home / ".excel-bridge" / "config.yaml").write_text("cache:\n  max_entries: 4\n")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("cache:\n  ttl_seconds: 5\n")
        s = Settings.load(config_file=explicit)
        assert s.cache.max_entries == 4
        assert s.cache.ttl_seconds == 5

    def test_non_mapping_file_rejected(self, tmp_path: Path) -> None:
        config = tmp_path / "list.yaml"
        config.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            Settings.load(config_file=config)
