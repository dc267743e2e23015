"""Configuration persistence: load and save the user config."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from highlight_review.models import (
    CONFIG_APP_NAME,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SNOOZE_WEEKS,
    MAX_PAGE_SIZE,
    MAX_SNOOZE_WEEKS,
    UserConfig,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() returns a usable config for any input.
#
#   Field                  Rule                    Handler
#   ─────────────────────  ──────────────────────  ──────────────────
#   snooze_duration_weeks  1 ≤ x ≤ 52              _coerce_bounded_int
#   page_size              1 ≤ x ≤ 200             _coerce_bounded_int
#   *_key                  non-blank string        _parse_key
#   scalar fields          type-checked            _safe_get
#
CONFIG_FILENAME = "config.json"
DB_FILENAME = "highlights.db"
TOKEN_ENV_VAR = "READWISE_TOKEN"


def get_config_dir() -> Path:
    """Return the per-user config directory.

    - Linux: ~/.config/highlight-review/
    - macOS: ~/Library/Application Support/highlight-review/
    - Windows: %APPDATA%/highlight-review/
    """
    return Path(user_config_dir(CONFIG_APP_NAME))


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILENAME


def get_db_path() -> Path:
    """Path of the lifecycle store, kept beside the config file."""
    return get_config_dir() / DB_FILENAME


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "readwise_token": config.readwise_token,
        "search_url": config.search_url,
        "snooze_duration_weeks": _coerce_bounded_int(
            config.snooze_duration_weeks, DEFAULT_SNOOZE_WEEKS, MAX_SNOOZE_WEEKS
        ),
        "page_size": _coerce_bounded_int(config.page_size, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE),
        "snooze_key": config.snooze_key,
        "archive_key": config.archive_key,
        "open_url_key": config.open_url_key,
        "last_fetch": config.last_fetch,
        "ascii_icons": config.ascii_icons,
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    return value


def _coerce_bounded_int(value: Any, default: int, upper: int) -> int:
    """Clamp an integer setting to ``1..upper``; non-integers give ``default``."""
    if not isinstance(value, int) or isinstance(value, bool):
        return default
    return max(1, min(value, upper))


def _parse_key(data: dict[str, Any], key: str, default: str) -> str:
    """Parse a key-binding name; blank values fall back to the default."""
    value = _safe_get(data, key, default, str).strip()
    return value or default


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    defaults = UserConfig()
    return UserConfig(
        readwise_token=_safe_get(data, "readwise_token", "", str),
        search_url=_safe_get(data, "search_url", "", str).strip(),
        snooze_duration_weeks=_coerce_bounded_int(
            data.get("snooze_duration_weeks"), DEFAULT_SNOOZE_WEEKS, MAX_SNOOZE_WEEKS
        ),
        page_size=_coerce_bounded_int(data.get("page_size"), DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE),
        snooze_key=_parse_key(data, "snooze_key", defaults.snooze_key),
        archive_key=_parse_key(data, "archive_key", defaults.archive_key),
        open_url_key=_parse_key(data, "open_url_key", defaults.open_url_key),
        last_fetch=_safe_get(data, "last_fetch", "", str),
        ascii_icons=_safe_get(data, "ascii_icons", False, bool),
        version=_safe_get(data, "version", 1, int),
    )


def load_config() -> UserConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return UserConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            logger.warning("Config file is not a JSON object, using defaults")
            return UserConfig()
        return _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return UserConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return UserConfig()


def save_config(config: UserConfig) -> bool:
    """Save configuration to disk atomically.

    Writes to a temp file in the config directory and swaps it in with
    ``os.replace``. Returns True on success, False on failure.
    """
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        json_str = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=config_path.parent, suffix=".tmp", prefix=".config-")
        closed = False
        try:
            os.write(fd, json_str.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, config_path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


def resolve_readwise_token(config: UserConfig, environ: Mapping[str, str] | None = None) -> str:
    """Return the configured token, falling back to ``READWISE_TOKEN``."""
    if config.readwise_token.strip():
        return config.readwise_token.strip()
    env = os.environ if environ is None else environ
    return env.get(TOKEN_ENV_VAR, "").strip()


__all__ = [
    "CONFIG_FILENAME",
    "DB_FILENAME",
    "TOKEN_ENV_VAR",
    "get_config_dir",
    "get_config_path",
    "get_db_path",
    "load_config",
    "resolve_readwise_token",
    "save_config",
]
