"""
Core configuration utilities for pasteVector.

- Resolves the per-user configuration and log directories (platformdirs).
- Loads config.toml and coerces it into typed dataclasses.
- Configures logging.

Design:
- User config is optional and lives in a platform-standard location:
  - Linux: ${XDG_CONFIG_HOME:-~/.config}/pastevector/config.toml
  - macOS: ~/Library/Application Support/pastevector/config.toml
  - Windows: %LOCALAPPDATA%/pastevector/config.toml

- Parsed with stdlib `tomllib`. A missing or broken file means built-in defaults.
- Logs go to stderr (stdout carries the markdown snippet) and, optionally,
  to app.log in the user log directory.

This module aims to remain small and import-safe.
"""

from __future__ import annotations

import logging
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import platformdirs

from pastevector.core import BACKEND_PREFERENCES

APP_NAME: Final[str] = "pastevector"

USER_CONFIG_DIR: Final[Path] = Path(platformdirs.user_config_dir(APP_NAME))
USER_CONFIG_FILE: Final[Path] = USER_CONFIG_DIR / "config.toml"
LOGS_DIR: Final[Path] = Path(platformdirs.user_log_dir(APP_NAME))

DEFAULT_TEMPLATE: Final[str] = "image.${fileExtName}"
LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")


def _get_log_level(level: str) -> int:
    """
    Convert a string log level to logging module constant, defaulting to INFO.
    """
    try:
        return getattr(logging, level.upper())
    except AttributeError:
        return logging.INFO


def setup_logging(log_level: str = "INFO", show_log: bool = False, keep_log_files: bool = False) -> None:
    """
    Configure the root logger.

    - Stream handler on stderr: `log_level` when `show_log`, WARNING otherwise.
    - File handler (LOGS_DIR/app.log) at `log_level` when `keep_log_files`.

    Resets existing handlers so repeated calls do not duplicate output.
    """
    level = _get_log_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    while root_logger.handlers:
        root_logger.handlers.pop()

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level if show_log else max(level, logging.WARNING))
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if keep_log_files:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOGS_DIR / "app.log", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def _read_toml(path: Path) -> dict[str, Any]:
    """
    Read a TOML file and return its contents as a dict using stdlib tomllib.
    If reading/parsing fails, return an empty dict.
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        logging.debug("Could not read %s: %s", path, e)
        return {}


def load_user_config(path: Path | None = None) -> dict[str, Any]:
    """
    Load the user's configuration (USER_CONFIG_FILE unless `path` is given).

    If the file does not exist or cannot be parsed, returns an empty dict.

    Expected layout (example):

    [defaults]
    destination_template = "img/${documentBaseName}-${unixTime}.${fileExtName}"
    prefer_backend = "auto"
    alt_text = ""
    copy_markdown_to_clipboard = false
    show_log = false
    keep_log_files = false
    log_level = "INFO"
    """
    path = path or USER_CONFIG_FILE
    if not path.exists():
        return {}
    return _read_toml(path)


def init_user_config(force: bool = False) -> Path:
    """
    Write an example config.toml if missing (or when `force` is set).
    """
    USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    example_toml = (
        "# pasteVector - User configuration\n"
        "#\n"
        "# Values below override the built-in defaults of `pastevector paste`.\n"
        "# --backend, --alt and --log-level override them for a single run.\n"
        "\n"
        "[defaults]\n"
        "# Output file, relative to the markdown document's directory.\n"
        "# Placeholders: ${documentBaseName}, ${unixTime}, ${fileExtName}\n"
        f'destination_template = "{DEFAULT_TEMPLATE}"\n\n'
        '# Native clipboard backend tried first: "auto" | "wayland" | "x11"\n'
        'prefer_backend = "auto"\n\n'
        "# Alt text of the inserted image reference (empty by default)\n"
        'alt_text = ""\n\n'
        "# Also put the markdown snippet on the clipboard (skipped under WSL)\n"
        "copy_markdown_to_clipboard = false\n\n"
        "# Print log lines on stderr (warnings are always shown)\n"
        "show_log = false\n\n"
        "# Append log lines to app.log in the user log directory\n"
        "keep_log_files = false\n\n"
        '# Log level: "DEBUG" | "INFO" | "WARNING" | "ERROR"\n'
        'log_level = "INFO"\n'
    )

    if not USER_CONFIG_FILE.exists() or force:
        USER_CONFIG_FILE.write_text(example_toml, encoding="utf-8")
    return USER_CONFIG_FILE


@dataclass
class DefaultsConfig:
    destination_template: str = DEFAULT_TEMPLATE
    prefer_backend: str = "auto"
    alt_text: str = ""
    copy_markdown_to_clipboard: bool = False
    show_log: bool = False
    keep_log_files: bool = False
    log_level: str = "INFO"


@dataclass
class Config:
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    user_config_file: Path = USER_CONFIG_FILE
    logs_dir: Path = LOGS_DIR

    @classmethod
    def load(cls, log_level: str | None = None, path: Path | None = None) -> Config:
        """
        Read the user config, validate it, and configure logging.

        Args:
            log_level: Overrides the configured level when given (CLI flag).
            path: Alternative config file (defaults to USER_CONFIG_FILE).

        Raises:
            ValueError: On an unknown prefer_backend or log_level.
        """
        user_config = load_user_config(path)
        raw = user_config.get("defaults", {})
        if not isinstance(raw, dict):
            raw = {}

        defaults = DefaultsConfig(
            destination_template=str(raw.get("destination_template", DEFAULT_TEMPLATE)),
            prefer_backend=str(raw.get("prefer_backend", "auto")).strip().lower(),
            alt_text=str(raw.get("alt_text", "")),
            copy_markdown_to_clipboard=bool(raw.get("copy_markdown_to_clipboard", False)),
            show_log=bool(raw.get("show_log", False)),
            keep_log_files=bool(raw.get("keep_log_files", False)),
            log_level=str(log_level or raw.get("log_level", "INFO")).upper(),
        )
        if defaults.prefer_backend not in BACKEND_PREFERENCES:
            raise ValueError(f"prefer_backend must be one of {'|'.join(BACKEND_PREFERENCES)}")
        if defaults.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {'|'.join(LOG_LEVELS)}")
        if not defaults.destination_template.strip():
            raise ValueError("destination_template must not be empty")

        setup_logging(defaults.log_level, defaults.show_log, defaults.keep_log_files)
        return cls(defaults=defaults, user_config_file=path or USER_CONFIG_FILE, logs_dir=LOGS_DIR)


__all__ = [
    "APP_NAME",
    "USER_CONFIG_DIR",
    "USER_CONFIG_FILE",
    "LOGS_DIR",
    "DEFAULT_TEMPLATE",
    "setup_logging",
    "load_user_config",
    "init_user_config",
    "Config",
    "DefaultsConfig",
]
