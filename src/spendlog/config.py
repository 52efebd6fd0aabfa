# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for Spendlog.

This module is responsible for:
- loading the application configuration from a TOML file,
- applying defaults when the default configuration file is absent,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .db import DatabaseConfig

DEFAULT_CONFIG_FILE = "spendlog_config.toml"
DEFAULT_DB_PATH = "data/db/spendlog.sqlite"

DISPLAY_MODES = ("table", "csv", "both")
COLOR_MODES = ("auto", "always", "never")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DisplayConfig:
    """Display options for reports."""

    mode: str = "table"
    color: str = "auto"
    recent_limit: int = 10


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for Spendlog.

    This aggregates:
    - the database configuration (where ledgers and postings are stored),
    - display options (table/CSV output, colour, recent list length),
    - the logging level.
    """

    database: DatabaseConfig
    display: DisplayConfig
    log_level: str


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a top-level table, or an empty mapping when missing or malformed."""
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _parse_display(display_section: Mapping[str, Any]) -> DisplayConfig:
    mode = str(display_section.get("mode", "table")).lower()
    if mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid display.mode {mode!r}. Expected one of: {', '.join(DISPLAY_MODES)}."
        )

    color = str(display_section.get("color", "auto")).lower()
    if color not in COLOR_MODES:
        raise ValueError(
            f"Invalid display.color {color!r}. Expected one of: {', '.join(COLOR_MODES)}."
        )

    try:
        recent_limit = int(display_section.get("recent_limit", 10))
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'display.recent_limit'. Expected an integer."
        ) from exc
    if recent_limit <= 0:
        raise ValueError("'display.recent_limit' must be a positive integer.")

    return DisplayConfig(mode=mode, color=color, recent_limit=recent_limit)


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the Spendlog application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [database]
        Database engine ("sqlite") and the SQLite file path.

    [display]
        Output mode ("table", "csv", "both"), colour ("auto", "always",
        "never") and the number of rows in the recent transactions list.

    [logging]
        Logging level name (e.g. "WARNING", "DEBUG").

    Notes
    -----
    - When ``config_path`` is None, ``spendlog_config.toml`` in the current
      directory is used if it exists; otherwise all defaults apply.
    - An explicit ``config_path`` must point to an existing file.
    - File paths in the TOML are resolved relative to the directory of the
      TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
        raw = _load_toml(config_file) if config_file.is_file() else {}
    else:
        config_file = Path(config_path).resolve()
        raw = _load_toml(config_file)

    base_dir = config_file.parent

    # 1) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or DEFAULT_DB_PATH
    db_path = (base_dir / str(db_path_raw)).resolve()

    database_config = DatabaseConfig(engine=db_engine, path=db_path)

    # 2) Display options
    display_config = _parse_display(_section(raw, "display"))

    # 3) Logging
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid logging.level {log_level!r}. Expected one of: {', '.join(LOG_LEVELS)}."
        )

    return AppConfig(
        database=database_config,
        display=display_config,
        log_level=log_level,
    )
