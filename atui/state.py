"""Mutable application state owned by the reducer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import FetchError
from .events import FetchCommand
from .models import (
    ListItem,
    Policy,
    PolicyItem,
    ProfileItem,
    ProfileSet,
    Role,
    RoleItem,
    item_filter_value,
)
from .search import SearchState

HEADER_HEIGHT = 6
FOOTER_HEIGHT = 3
DEFAULT_STATUS = "Select a role to view its policies"
DEFAULT_PROFILE_NAME = "default"
LIST_ITEM_HEIGHT = 3


class Screen(Enum):
    ROLES = "roles"
    POLICIES = "policies"
    POLICY_DOCUMENT = "policy_document"
    PROFILES = "profiles"


LIST_SCREENS = (Screen.ROLES, Screen.POLICIES, Screen.PROFILES)


@dataclass
class ListFilter:
    query: str = ""
    editing: bool = False

    def clear(self) -> None:
        self.query = ""
        self.editing = False


@dataclass
class AppState:
    screen: Screen = Screen.ROLES
    roles: dict[str, Role] = field(default_factory=dict)
    policies: dict[str, Policy] = field(default_factory=dict)
    selected_role: str | None = None
    selected_policy: str | None = None
    cursors: dict[Screen, int] = field(default_factory=lambda: {s: 0 for s in LIST_SCREENS})
    filters: dict[Screen, ListFilter] = field(default_factory=lambda: {s: ListFilter() for s in LIST_SCREENS})
    status_message: str = DEFAULT_STATUS
    error: FetchError | None = None
    loading: bool = False
    pending_request: FetchCommand | None = None
    profiles: ProfileSet = field(default_factory=ProfileSet)
    identity_arn: str = ""
    document_text: str = ""
    view_offset: int = 0
    search: SearchState = field(default_factory=SearchState)
    width: int = 80
    height: int = 24
    list_height: int = 24 - HEADER_HEIGHT - FOOTER_HEIGHT
    view_width: int = 80
    view_height: int = 24 - HEADER_HEIGHT - FOOTER_HEIGHT

    @property
    def current_profile(self) -> str:
        return self.profiles.current

    @property
    def display_profile(self) -> str:
        return self.profiles.current or DEFAULT_PROFILE_NAME

    def role(self) -> Role | None:
        if self.selected_role is None:
            return None
        return self.roles.get(self.selected_role)

    def policy(self) -> Policy | None:
        if self.selected_policy is None:
            return None
        return self.policies.get(self.selected_policy)

    def all_items(self, screen: Screen) -> list[ListItem]:
        """Return every item of a list screen, before filtering."""
        if screen is Screen.ROLES:
            return [RoleItem(role) for role in self.roles.values()]
        if screen is Screen.POLICIES:
            role = self.role()
            if role is None:
                return []
            return [PolicyItem(self.policies[key]) for key in role.policy_keys if key in self.policies]
        if screen is Screen.PROFILES:
            current = self.display_profile
            return [ProfileItem(name, current=name == current) for name in self.profiles.names]
        return []

    def visible_items(self, screen: Screen | None = None) -> list[ListItem]:
        """Return the items of a list screen that pass its filter query."""
        screen = self.screen if screen is None else screen
        items = self.all_items(screen)
        query = self.filters[screen].query.lower() if screen in self.filters else ""
        if not query:
            return items
        return [item for item in items if query in item_filter_value(item).lower()]

    def cursor(self, screen: Screen | None = None) -> int:
        """Return the cursor of a list screen clamped to its visible items."""
        screen = self.screen if screen is None else screen
        count = len(self.visible_items(screen))
        if count == 0:
            return 0
        return max(0, min(self.cursors.get(screen, 0), count - 1))

    def selected_item(self, screen: Screen | None = None) -> ListItem | None:
        screen = self.screen if screen is None else screen
        items = self.visible_items(screen)
        if not items:
            return None
        return items[self.cursor(screen)]

    def document_line_count(self) -> int:
        return len(self.document_text.split("\n")) if self.document_text else 0

    def max_view_offset(self) -> int:
        return max(0, self.document_line_count() - self.view_height)

    def items_per_page(self) -> int:
        return max(1, self.list_height // LIST_ITEM_HEIGHT)


__all__ = [
    "AppState",
    "DEFAULT_PROFILE_NAME",
    "DEFAULT_STATUS",
    "FOOTER_HEIGHT",
    "HEADER_HEIGHT",
    "LIST_ITEM_HEIGHT",
    "LIST_SCREENS",
    "ListFilter",
    "Screen",
]
