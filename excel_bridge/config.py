"""Excel Bridge — Server configuration.

Configuration is loaded from (in order of increasing priority):
    1. Built-in defaults (this file)
    2. User config:     ~/.excel-bridge/config.yaml
    3. Explicit config: ``--config PATH`` on the command line
    4. Environment variables prefixed with EXCEL_BRIDGE_

Nested blocks are addressed with a double underscore, e.g.
``EXCEL_BRIDGE_CACHE__ENABLED=false``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from excel_bridge import __protocol_version__, __version__

# Expanded on each load so a changed HOME is honoured.
USER_CONFIG = Path("~") / ".excel-bridge" / "config.yaml"


# ---------------------------------------------------------------------------
# Sub-configuration blocks
# ---------------------------------------------------------------------------


class ServerConfig(BaseModel):
    name: str = "excel-mcp-server"
    version: str = __version__
    protocol_version: str = Field(
        default=__protocol_version__,
        description="Protocol version advertised in the initialize response.",
    )
    description: str = "Excel MCP Server for Python"


class CacheConfig(BaseModel):
    enabled: bool = Field(
        default=True,
        description="Keep recently opened workbooks in memory between calls.",
    )
    max_entries: Annotated[int, Field(ge=1, le=1024)] = 32
    ttl_seconds: Annotated[float, Field(ge=0)] = Field(
        default=600.0,
        description="Seconds before a cached workbook is reloaded from disk (0 = no TTL).",
    )


class WorkbookConfig(BaseModel):
    default_sheet_name: str = "Sheet1"
    comment_author: str = "Excel Bridge"
    chart_width: Annotated[float, Field(gt=0)] = Field(default=15.0, description="Chart width in cm.")
    chart_height: Annotated[float, Field(gt=0)] = Field(default=7.5, description="Chart height in cm.")
    image_max_width: int | None = Field(
        default=None,
        description="Scale inserted images down to this width in pixels. None = original size.",
    )


class LoggingConfig(BaseModel):
    level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    format: Literal["json", "console"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursive dict merge.  Blocks from later files extend earlier ones."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return loaded


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="EXCEL_BRIDGE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    workbook: WorkbookConfig = Field(default_factory=WorkbookConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment variables beat values read from YAML files.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Settings":
        """Defaults, then ~/.excel-bridge/config.yaml, then *config_file*, then env."""
        data: dict[str, Any] = {}
        for path in (USER_CONFIG, config_file):
            if path is not None and path.expanduser().is_file():
                data = _merge(data, _read_yaml(path.expanduser()))
        return cls(**data)


# Module-level singleton, replaced by ``Settings.load()`` at server startup.
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the module-level singleton. Used in tests."""
    global _settings
    _settings = settings
