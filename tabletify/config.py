"""Configuration system for tabletify using pydantic-settings.

Supports layered configuration:
1. Built-in defaults (lowest priority)
2. pyproject.toml [tool.tabletify] section (project-level)
3. ./tabletify.toml (project-level, explicit)
4. ~/.config/tabletify/config.toml (user-level, overrides project)
5. Environment variables (highest priority)

Environment variables use TABLETIFY_ prefix with nested delimiter __.
Example: TABLETIFY_PAGINATION__ITEMS_PER_PAGE, TABLETIFY_LOG__LEVEL
"""

from __future__ import annotations

import os
import sys
import tomllib

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


InvalidationTrigger = Literal["column_order", "page", "data"]

#: Every change that may clear a cell range.
ALL_INVALIDATION_TRIGGERS: frozenset[str] = frozenset({"column_order", "page", "data"})


def _find_config_files() -> list[Path]:
    """Find all configuration files in order of precedence (lowest first)."""
    files = []

    # Project-level pyproject.toml [tool.tabletify] (lowest file priority)
    pyproject = Path("pyproject.toml")
    if pyproject.exists():
        files.append(pyproject)

    # Explicit tabletify.toml (project-level)
    tabletify_toml = Path("tabletify.toml")
    if tabletify_toml.exists():
        files.append(tabletify_toml)

    # User-level config (overrides project configs)
    if sys.platform == "win32":
        user_config = Path(os.environ.get("APPDATA", "~")) / "tabletify" / "config.toml"
    else:
        user_config = Path("~/.config/tabletify/config.toml")
    user_config = user_config.expanduser()
    if user_config.exists():
        files.append(user_config)

    # Environment variable override for config file (highest file priority)
    env_config = os.environ.get("TABLETIFY_CONFIG_FILE")
    if env_config:
        env_path = Path(env_config)
        if env_path.exists():
            files.append(env_path)

    return files


def _load_toml_config() -> dict[str, Any]:
    """Load and merge all TOML configuration files."""
    merged: dict[str, Any] = {}

    for config_file in _find_config_files():
        try:
            data = tomllib.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            continue  # Unreadable config files are ignored

        # Handle pyproject.toml [tool.tabletify] section
        if config_file.name == "pyproject.toml":
            data = data.get("tool", {}).get("tabletify", {})

        merged = _deep_merge(merged, data)

    return merged


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class SelectionSettings(BaseSettings):
    """Row selection settings.

    Environment prefix: TABLETIFY_SELECTION__
    Example: TABLETIFY_SELECTION__MODE=single
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY_SELECTION__",
        extra="ignore",
    )

    mode: Literal["none", "single", "multiple"] = "none"
    # "filtered" keeps selection stable across page navigation; "page" limits
    # select-all to the rows currently on screen.
    select_all_scope: Literal["filtered", "page"] = "filtered"


class PaginationSettings(BaseSettings):
    """Pagination settings.

    Environment prefix: TABLETIFY_PAGINATION__
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY_PAGINATION__",
        extra="ignore",
    )

    items_per_page: int = Field(default=10, ge=1)


class ColumnSettings(BaseSettings):
    """Column layout settings.

    Environment prefix: TABLETIFY_COLUMNS__
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY_COLUMNS__",
        extra="ignore",
    )

    default_width: float = Field(default=100.0, gt=0)
    min_width: float = Field(default=50.0, ge=0)
    max_width: float | None = Field(default=None, gt=0)
    enable_visibility: bool = True
    enable_reorder: bool = True
    enable_resize: bool = True
    # Width reserved ahead of left-pinned columns (selection checkbox column)
    selection_column_width: float = Field(default=48.0, ge=0)


class CellSelectionSettings(BaseSettings):
    """Rectangular cell-range selection settings.

    Environment prefix: TABLETIFY_CELL_SELECTION__
    Example: TABLETIFY_CELL_SELECTION__INVALIDATE_ON="column_order,page"
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY_CELL_SELECTION__",
        extra="ignore",
    )

    enabled: bool = False
    invalidate_on: Annotated[list[InvalidationTrigger], NoDecode] = Field(
        default_factory=lambda: ["column_order", "page", "data"],
        description=(
            "Changes that clear an in-progress or frozen cell range. "
            "Any of 'column_order', 'page', 'data' (comma-separated in env vars)."
        ),
    )

    @field_validator("invalidate_on", mode="before")
    @classmethod
    def _parse_invalidate_on(cls, v: Any) -> list[str]:
        """Accept a comma-separated string (from env var) or a list."""
        if isinstance(v, str):
            v = [p.strip() for p in v.split(",") if p.strip()]
        if not isinstance(v, (list, tuple, set, frozenset)):
            msg = f"invalidate_on must be a list or comma-separated string, got {type(v).__name__}"
            raise TypeError(msg)
        unknown = set(v) - ALL_INVALIDATION_TRIGGERS
        if unknown:
            msg = (
                f"Unknown invalidation trigger(s): {', '.join(sorted(unknown))}. "
                f"Available: {', '.join(sorted(ALL_INVALIDATION_TRIGGERS))}"
            )
            raise ValueError(msg)
        return list(v)


class RowReorderSettings(BaseSettings):
    """Row drag-to-reorder settings.

    Environment prefix: TABLETIFY_ROW_REORDER__
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY_ROW_REORDER__",
        extra="ignore",
    )

    enabled: bool = False


class NavigationSettings(BaseSettings):
    """Keyboard navigation settings.

    Environment prefix: TABLETIFY_NAVIGATION__
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY_NAVIGATION__",
        extra="ignore",
    )

    enabled: bool = True
    page_step: int = Field(default=10, ge=1)


class CalloutSettings(BaseSettings):
    """Column header callout settings.

    Environment prefix: TABLETIFY_CALLOUT__
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY_CALLOUT__",
        extra="ignore",
    )

    open_delay_ms: int = Field(default=150, ge=0)
    dismiss_delay_ms: int = Field(default=200, ge=0)


class EditSettings(BaseSettings):
    """Inline cell editing settings.

    Environment prefix: TABLETIFY_EDIT__
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY_EDIT__",
        extra="ignore",
    )

    save_failed_message: str = "Save failed"
    type_check: bool = True


class LogSettings(BaseSettings):
    """Logging settings.

    Environment prefix: TABLETIFY_LOG__
    Example: TABLETIFY_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(name)s - %(levelname)s - %(message)s"


class TabletifySettings(BaseSettings):
    """Main settings aggregating all configuration sections.

    Environment prefix: TABLETIFY__

    Configuration sources (in order of precedence):
    1. Built-in defaults
    2. pyproject.toml [tool.tabletify] section
    3. ./tabletify.toml (project-level)
    4. ~/.config/tabletify/config.toml (user-level, overrides project)
    5. Environment variables (highest priority)
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLETIFY__",
        env_nested_delimiter="__",
        extra="ignore",
    )

    selection: SelectionSettings = Field(default_factory=SelectionSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    columns: ColumnSettings = Field(default_factory=ColumnSettings)
    cell_selection: CellSelectionSettings = Field(default_factory=CellSelectionSettings)
    row_reorder: RowReorderSettings = Field(default_factory=RowReorderSettings)
    navigation: NavigationSettings = Field(default_factory=NavigationSettings)
    callout: CalloutSettings = Field(default_factory=CalloutSettings)
    edit: EditSettings = Field(default_factory=EditSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    def __init__(self, **data: Any) -> None:
        # Explicit keyword arguments take precedence over TOML files
        merged = _deep_merge(_load_toml_config(), data)
        super().__init__(**merged)


@lru_cache(maxsize=1)
def get_settings() -> TabletifySettings:
    """Get the global settings instance (cached).

    Call clear_settings() to reload configuration.
    """
    return TabletifySettings()


def clear_settings() -> None:
    """Clear the cached settings to force reload."""
    get_settings.cache_clear()


def reload_settings() -> TabletifySettings:
    """Reload settings from all sources."""
    clear_settings()
    return get_settings()
