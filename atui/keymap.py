"""Key tokens, key-combo registry, and the help text shown for each screen."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

R = TypeVar("R")

QUIT_KEYS = ("q",)
FORCE_QUIT_KEYS = ("CTRL_C",)
UP_KEYS = ("UP", "k")
DOWN_KEYS = ("DOWN", "j")
SELECT_KEYS = ("ENTER",)
BACK_KEYS = ("ESC",)
SWITCH_PROFILE_KEYS = ("p",)
SEARCH_KEYS = ("/",)
NEXT_MATCH_KEYS = ("n",)
PREV_MATCH_KEYS = ("N",)
PAGE_UP_KEYS = ("PAGE_UP",)
PAGE_DOWN_KEYS = ("PAGE_DOWN",)
HALF_PAGE_UP_KEYS = ("CTRL_U",)
HALF_PAGE_DOWN_KEYS = ("CTRL_D",)
TOP_KEYS = ("HOME",)
BOTTOM_KEYS = ("END",)
EDIT_KEYS = ("e",)


def is_printable_key(key: str) -> bool:
    """Return whether ``key`` is one typed character suitable for a prompt."""
    return len(key) == 1 and key >= " " and key != "\x7f"


@dataclass(frozen=True)
class KeyComboBinding(Generic[R]):
    """Mapping from one or more key tokens to a single action callback."""

    combos: tuple[str, ...]
    handler: Callable[..., R]


class KeyComboRegistry(Generic[R]):
    """Small key-dispatch table; handlers receive the dispatch arguments."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[..., R]] = {}

    def register_binding(self, binding: KeyComboBinding[R]) -> KeyComboRegistry[R]:
        """Register one binding, overwriting existing handlers for same combos."""
        for combo in binding.combos:
            self._handlers[combo] = binding.handler
        return self

    def register_bindings(self, *bindings: KeyComboBinding[R]) -> KeyComboRegistry[R]:
        """Register multiple bindings and return ``self`` for fluent usage."""
        for binding in bindings:
            self.register_binding(binding)
        return self

    def handles(self, key: str) -> bool:
        return key in self._handlers

    def dispatch(self, key: str, *args: object) -> R | None:
        """Invoke the handler bound to ``key``; ``None`` when unbound."""
        handler = self._handlers.get(key)
        if handler is None:
            return None
        return handler(*args)


@dataclass(frozen=True)
class HelpEntry:
    keys: str
    description: str


ROLE_LIST_HELP: tuple[HelpEntry, ...] = (
    HelpEntry("↑/k", "up"),
    HelpEntry("↓/j", "down"),
    HelpEntry("enter", "select role"),
    HelpEntry("/", "filter items"),
    HelpEntry("p", "switch profiles"),
    HelpEntry("esc", "go back"),
    HelpEntry("q", "quit"),
)

POLICY_LIST_HELP: tuple[HelpEntry, ...] = (
    HelpEntry("↑/k", "up"),
    HelpEntry("↓/j", "down"),
    HelpEntry("enter", "view policy details"),
    HelpEntry("/", "filter items"),
    HelpEntry("p", "switch profiles"),
    HelpEntry("esc", "go back"),
    HelpEntry("q", "quit"),
)

PROFILE_LIST_HELP: tuple[HelpEntry, ...] = (
    HelpEntry("↑/k", "up"),
    HelpEntry("↓/j", "down"),
    HelpEntry("enter", "switch profile"),
    HelpEntry("/", "filter items"),
    HelpEntry("esc", "go back"),
    HelpEntry("q", "quit"),
)

VIEWPORT_HELP: tuple[HelpEntry, ...] = (
    HelpEntry("↑/k", "up"),
    HelpEntry("↓/j", "down"),
    HelpEntry("pgup", "scroll up"),
    HelpEntry("pgdn", "scroll down"),
    HelpEntry("/", "search"),
    HelpEntry("n", "next match"),
    HelpEntry("N", "previous match"),
    HelpEntry("e", "open in $EDITOR"),
    HelpEntry("esc", "go back"),
    HelpEntry("q", "quit"),
)

SEARCH_HELP: tuple[HelpEntry, ...] = (
    HelpEntry("enter", "confirm search"),
    HelpEntry("esc", "exit search"),
    HelpEntry("backspace", "delete char"),
    HelpEntry("type", "to search"),
    HelpEntry("n", "next match"),
    HelpEntry("N", "previous match"),
)

FILTER_HELP: tuple[HelpEntry, ...] = (
    HelpEntry("enter", "apply filter"),
    HelpEntry("esc", "clear filter"),
    HelpEntry("backspace", "delete char"),
)


def format_help(entries: tuple[HelpEntry, ...], separator: str = " ") -> str:
    return " • ".join(f"{entry.keys}{separator}{entry.description}" for entry in entries)


__all__ = [
    "FILTER_HELP",
    "HelpEntry",
    "KeyComboBinding",
    "KeyComboRegistry",
    "POLICY_LIST_HELP",
    "PROFILE_LIST_HELP",
    "ROLE_LIST_HELP",
    "SEARCH_HELP",
    "VIEWPORT_HELP",
    "format_help",
    "is_printable_key",
]
