"""Resolved color palette threaded into the renderer and the document colorizer.

The palette is built once at startup from ``Settings`` and passed down
explicitly; nothing reads colors from module globals.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .config import DEFAULT_SETTINGS, ThemeColors

DEFAULT_KEY_COLOR = "32"
DEFAULT_SERVICE_NAME_COLOR = "35"

_HEX_COLOR_RE = re.compile(r"^#([0-9a-fA-F]{6})$")
_SGR_WRAPPER_RE = re.compile(r"^\x1b\[([0-9;]*)m$")


@dataclass(frozen=True)
class Palette:
    """Semantic ANSI palette used by the renderer and colorizer.

    ``json_key`` and ``json_service_name`` are bare SGR parameter strings
    (``"32"``); every other slot is a complete escape prefix or ``""``.
    """

    name: str
    reset: str
    title: str
    app_title: str
    item: str
    selected_item: str
    item_description: str
    status: str
    error: str
    policy_info: str
    help: str
    policy_name: str
    policy_metadata: str
    profile_badge: str
    identity_badge: str
    search_prompt: str
    search_match: str
    search_current: str
    spinner: str
    debug: str
    json_key: str
    json_service_name: str


def normalize_sgr_code(value: str | None, default: str) -> str:
    """Return the bare SGR parameters for a configured JSON color.

    Accepts ``"32"`` or an already wrapped ``"\\x1b[32m"``; empty or invalid
    values give ``default``.
    """
    if not value:
        return default
    candidate = value.strip()
    wrapped = _SGR_WRAPPER_RE.match(candidate)
    if wrapped:
        candidate = wrapped.group(1)
    elif candidate.startswith("\x1b["):
        candidate = candidate[2:].rstrip("m")
    if not candidate or not all(part.isdigit() for part in candidate.split(";")):
        return default
    return candidate


def _color_params(value: str, layer: int) -> str:
    """Translate a UI color value into SGR params for fg (38) or bg (48)."""
    value = value.strip()
    if not value:
        return ""
    hex_match = _HEX_COLOR_RE.match(value)
    if hex_match:
        raw = hex_match.group(1)
        r, g, b = int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16)
        return f"{layer};2;{r};{g};{b}"
    if value.isdigit() and 0 <= int(value) <= 255:
        return f"{layer};5;{int(value)}"
    return ""


def foreground(value: str, *, bold: bool = False) -> str:
    """Return an escape prefix for a foreground color setting."""
    if value.strip().lower() == "bold":
        return "\033[1m"
    params = [p for p in ("1" if bold else "", _color_params(value, 38)) if p]
    return f"\033[{';'.join(params)}m" if params else ""


def styled(fg: str = "", bg: str = "", *, bold: bool = False) -> str:
    """Return an escape prefix combining optional fg/bg color and bold."""
    params = [p for p in ("1" if bold else "", _color_params(fg, 38), _color_params(bg, 48)) if p]
    return f"\033[{';'.join(params)}m" if params else ""


def resolve_palette(colors: ThemeColors | None = None, *, no_color: bool = False) -> Palette:
    """Return the concrete palette for configured colors and color mode."""
    if no_color:
        return PLAIN_PALETTE
    colors = DEFAULT_SETTINGS.colors if colors is None else colors
    return Palette(
        name="configured",
        reset="\033[0m",
        title=styled("15", "99", bold=True),
        app_title=styled("99", bold=True),
        item=foreground(colors.item),
        selected_item=foreground(colors.selected_item, bold=True),
        item_description=styled("240"),
        status=foreground(colors.status),
        error=foreground(colors.error),
        policy_info=foreground(colors.policy_info),
        help=foreground(colors.help_info),
        policy_name=styled(colors.policy_name_fg, colors.policy_name_bg, bold=True),
        policy_metadata=foreground(colors.policy_metadata),
        profile_badge=styled("0", "220", bold=True),
        identity_badge=styled("0", "42"),
        search_prompt=styled("220", bold=True),
        search_match=styled("0", "11", bold=True),
        search_current=styled("15", "201", bold=True),
        spinner=styled("205"),
        debug=foreground(colors.debug),
        json_key=normalize_sgr_code(colors.json_key, DEFAULT_KEY_COLOR),
        json_service_name=normalize_sgr_code(colors.json_service_name, DEFAULT_SERVICE_NAME_COLOR),
    )


PLAIN_PALETTE = Palette(
    name="plain",
    reset="",
    title="",
    app_title="",
    item="",
    selected_item="",
    item_description="",
    status="",
    error="",
    policy_info="",
    help="",
    policy_name="",
    policy_metadata="",
    profile_badge="",
    identity_badge="",
    search_prompt="",
    search_match="",
    search_current="",
    spinner="",
    debug="",
    json_key="",
    json_service_name="",
)

DEFAULT_PALETTE = resolve_palette()


def paint(text: str, style: str, palette: Palette) -> str:
    """Wrap ``text`` in ``style`` and the palette reset, or return it bare."""
    if not style:
        return text
    return f"{style}{text}{palette.reset}"


__all__ = [
    "DEFAULT_KEY_COLOR",
    "DEFAULT_PALETTE",
    "DEFAULT_SERVICE_NAME_COLOR",
    "PLAIN_PALETTE",
    "Palette",
    "foreground",
    "normalize_sgr_code",
    "paint",
    "resolve_palette",
    "styled",
]
