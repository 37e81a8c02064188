"""Persistent JSON settings helpers.

Stores the color slots and the help-bar key separator. All access is
defensive: a missing or malformed file, or a bad value, falls back to the
defaults key by key instead of failing startup.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "atui"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

logger = logging.getLogger(__name__)

# JSON key -> dataclass field, in the order they are written to disk.
_COLOR_KEYS: dict[str, str] = {
    "title": "title",
    "item": "item",
    "selectedItem": "selected_item",
    "status": "status",
    "error": "error",
    "policyInfo": "policy_info",
    "helpInfo": "help_info",
    "policyNameFg": "policy_name_fg",
    "policyNameBg": "policy_name_bg",
    "policyMetadata": "policy_metadata",
    "jsonKey": "json_key",
    "jsonServiceName": "json_service_name",
    "debug": "debug",
}


@dataclass(frozen=True)
class ThemeColors:
    """Raw color settings as written by the user (not yet ANSI sequences)."""

    title: str = "bold"
    item: str = ""
    selected_item: str = "170"
    status: str = "#04B575"
    error: str = "#FF0000"
    policy_info: str = "#AAAAAA"
    help_info: str = "241"
    policy_name_fg: str = "39"
    policy_name_bg: str = "236"
    policy_metadata: str = "220"
    json_key: str = "32"
    json_service_name: str = "35"
    debug: str = "#FF00FF"


@dataclass(frozen=True)
class Settings:
    colors: ThemeColors = field(default_factory=ThemeColors)
    keybinding_separator: str = " "


DEFAULT_SETTINGS = Settings()


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = CONFIG_PATH if path is None else path
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except Exception as exc:
        logger.warning("ignoring unreadable config %s: %s", config_path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object], path: Path | None = None) -> None:
    """Persist config data as pretty-printed JSON.

    Any filesystem/serialization error is ignored to keep runtime behavior
    non-fatal when config cannot be written.
    """
    config_path = CONFIG_PATH if path is None else path
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception as exc:
        logger.debug("could not write config %s: %s", config_path, exc)


def settings_to_dict(settings: Settings) -> dict[str, object]:
    """Serialize settings using the on-disk camelCase key names."""
    raw_colors = asdict(settings.colors)
    return {
        "colors": {json_key: raw_colors[attr] for json_key, attr in _COLOR_KEYS.items()},
        "keybindingSeparator": settings.keybinding_separator,
    }


def parse_settings(data: dict[str, object]) -> Settings:
    """Build ``Settings`` from a decoded config object.

    Only string values are accepted; anything else keeps the default for that
    slot.
    """
    defaults = DEFAULT_SETTINGS
    overrides: dict[str, str] = {}
    raw_colors = data.get("colors")
    if isinstance(raw_colors, dict):
        for json_key, attr in _COLOR_KEYS.items():
            value = raw_colors.get(json_key)
            if isinstance(value, str):
                overrides[attr] = value.strip()

    separator = data.get("keybindingSeparator")
    if not isinstance(separator, str) or not separator:
        separator = defaults.keybinding_separator

    known = {f.name for f in fields(ThemeColors)}
    colors = ThemeColors(**{k: v for k, v in overrides.items() if k in known})
    return Settings(colors=colors, keybinding_separator=separator)


def load_settings(path: Path | None = None) -> Settings:
    """Load settings, writing a default file first when none exists yet."""
    config_path = CONFIG_PATH if path is None else path
    if not config_path.exists():
        save_config(settings_to_dict(DEFAULT_SETTINGS), config_path)
        return DEFAULT_SETTINGS
    return parse_settings(load_config(config_path))


__all__ = [
    "CONFIG_PATH",
    "DEFAULT_SETTINGS",
    "Settings",
    "ThemeColors",
    "load_config",
    "load_settings",
    "parse_settings",
    "save_config",
    "settings_to_dict",
]
