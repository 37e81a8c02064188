"""Reducer for screen navigation, prompts, and load completions.

``Navigator.update`` is the single place that mutates ``AppState``. It turns
each event into state changes plus a list of commands (fetches, editor
launches, quit) that the runtime executes afterwards.
"""

from __future__ import annotations

import logging

from .ansi import strip_ansi
from .events import (
    Command,
    EditorClosed,
    Event,
    FetchDocument,
    FetchIdentity,
    FetchPolicies,
    FetchProfiles,
    FetchRoles,
    KeyPressed,
    OpenEditor,
    Quit,
    Resized,
)
from .keymap import (
    BACK_KEYS,
    BOTTOM_KEYS,
    DOWN_KEYS,
    EDIT_KEYS,
    FORCE_QUIT_KEYS,
    HALF_PAGE_DOWN_KEYS,
    HALF_PAGE_UP_KEYS,
    NEXT_MATCH_KEYS,
    PAGE_DOWN_KEYS,
    PAGE_UP_KEYS,
    PREV_MATCH_KEYS,
    QUIT_KEYS,
    SEARCH_KEYS,
    SELECT_KEYS,
    SWITCH_PROFILE_KEYS,
    TOP_KEYS,
    UP_KEYS,
    KeyComboBinding,
    KeyComboRegistry,
    is_printable_key,
)
from .loads import apply_load_event, begin_fetch
from .models import Policy, PolicyItem, ProfileItem, ProfileSet, Role, RoleItem
from .palette import DEFAULT_PALETTE, Palette
from .state import (
    DEFAULT_STATUS,
    FOOTER_HEIGHT,
    HEADER_HEIGHT,
    LIST_SCREENS,
    AppState,
    Screen,
)

logger = logging.getLogger(__name__)

Commands = list[Command]


def initial_state(profile: str = "") -> AppState:
    """Return a fresh state on the roles screen for ``profile``."""
    return AppState(profiles=ProfileSet(current=profile))


class Navigator:
    """Pure state-transition function over ``AppState``; performs no I/O."""

    def __init__(self, palette: Palette = DEFAULT_PALETTE) -> None:
        self.palette = palette
        self._list_keys: KeyComboRegistry[Commands] = KeyComboRegistry[Commands]().register_bindings(
            KeyComboBinding(UP_KEYS, lambda state: self._move_cursor(state, -1)),
            KeyComboBinding(DOWN_KEYS, lambda state: self._move_cursor(state, 1)),
            KeyComboBinding(PAGE_UP_KEYS, lambda state: self._move_cursor(state, -state.items_per_page())),
            KeyComboBinding(PAGE_DOWN_KEYS, lambda state: self._move_cursor(state, state.items_per_page())),
            KeyComboBinding(TOP_KEYS, lambda state: self._jump_cursor(state, top=True)),
            KeyComboBinding(BOTTOM_KEYS, lambda state: self._jump_cursor(state, top=False)),
            KeyComboBinding(SELECT_KEYS, self._select),
            KeyComboBinding(SEARCH_KEYS, self._open_filter),
            KeyComboBinding(BACK_KEYS, self._list_back),
            KeyComboBinding(SWITCH_PROFILE_KEYS, self._switch_profile),
        )
        self._document_keys: KeyComboRegistry[Commands] = KeyComboRegistry[Commands]().register_bindings(
            KeyComboBinding(UP_KEYS, lambda state: self._scroll(state, -1)),
            KeyComboBinding(DOWN_KEYS, lambda state: self._scroll(state, 1)),
            KeyComboBinding(PAGE_UP_KEYS, lambda state: self._scroll(state, -state.view_height)),
            KeyComboBinding(PAGE_DOWN_KEYS, lambda state: self._scroll(state, state.view_height)),
            KeyComboBinding(HALF_PAGE_UP_KEYS, lambda state: self._scroll(state, -max(1, state.view_height // 2))),
            KeyComboBinding(HALF_PAGE_DOWN_KEYS, lambda state: self._scroll(state, max(1, state.view_height // 2))),
            KeyComboBinding(TOP_KEYS, lambda state: self._scroll_to(state, 0)),
            KeyComboBinding(BOTTOM_KEYS, lambda state: self._scroll_to(state, state.max_view_offset())),
            KeyComboBinding(SEARCH_KEYS, self._open_search),
            KeyComboBinding(NEXT_MATCH_KEYS, lambda state: self._jump_to_match(state, forward=True)),
            KeyComboBinding(PREV_MATCH_KEYS, lambda state: self._jump_to_match(state, forward=False)),
            KeyComboBinding(EDIT_KEYS, self._open_editor),
            KeyComboBinding(BACK_KEYS, self._back),
            KeyComboBinding(SWITCH_PROFILE_KEYS, self._switch_profile),
        )

    def start(self, state: AppState) -> Commands:
        """Kick off the initial role and identity lookups for ``state``."""
        state.status_message = DEFAULT_STATUS
        profile = state.current_profile
        return [begin_fetch(state, FetchRoles(profile)), begin_fetch(state, FetchIdentity(profile))]

    def update(self, state: AppState, event: Event) -> tuple[AppState, Commands]:
        if isinstance(event, KeyPressed):
            return state, self._handle_key(state, event.key)
        if isinstance(event, Resized):
            self._resize(state, event.width, event.height)
            return state, []
        if isinstance(event, EditorClosed):
            state.status_message = event.error or ""
            return state, []
        if not apply_load_event(state, event, self.palette):
            logger.debug("ignoring unknown event %r", event)
        return state, []

    # Keys

    def _handle_key(self, state: AppState, key: str) -> Commands:
        if key in FORCE_QUIT_KEYS:
            return [Quit()]
        if state.error is not None:
            return self._handle_error_key(state, key)
        if state.screen is Screen.POLICY_DOCUMENT and state.search.active:
            return self._handle_search_key(state, key)
        if state.screen in LIST_SCREENS and state.filters[state.screen].editing:
            return self._handle_filter_key(state, key)
        if key in QUIT_KEYS:
            return [Quit()]
        registry = self._document_keys if state.screen is Screen.POLICY_DOCUMENT else self._list_keys
        return registry.dispatch(key, state) or []

    def _handle_error_key(self, state: AppState, key: str) -> Commands:
        if key in QUIT_KEYS:
            return [Quit()]
        if key in BACK_KEYS:
            state.error = None
            return self._back(state)
        if key in SWITCH_PROFILE_KEYS:
            state.error = None
            return self._switch_profile(state)
        return []

    def _handle_search_key(self, state: AppState, key: str) -> Commands:
        search = state.search
        if key == "ENTER":
            search.active = False
            search.run(state.document_text)
            line = search.current_line()
            if line is not None:
                state.view_offset = line
            return []
        if key == "ESC":
            search.reset()
        elif key == "BACKSPACE":
            search.backspace()
        elif is_printable_key(key):
            search.type_char(key)
        return []

    def _handle_filter_key(self, state: AppState, key: str) -> Commands:
        list_filter = state.filters[state.screen]
        if key == "ENTER":
            list_filter.editing = False
        elif key == "ESC":
            list_filter.clear()
        elif key == "BACKSPACE":
            list_filter.query = list_filter.query[:-1]
        elif is_printable_key(key):
            list_filter.query += key
        else:
            return []
        state.cursors[state.screen] = 0
        return []

    # Lists

    def _move_cursor(self, state: AppState, delta: int) -> Commands:
        count = len(state.visible_items())
        if count:
            state.cursors[state.screen] = max(0, min(state.cursor() + delta, count - 1))
        return []

    def _jump_cursor(self, state: AppState, *, top: bool) -> Commands:
        count = len(state.visible_items())
        state.cursors[state.screen] = 0 if top or count == 0 else count - 1
        return []

    def _open_filter(self, state: AppState) -> Commands:
        state.filters[state.screen].editing = True
        return []

    def _list_back(self, state: AppState) -> Commands:
        list_filter = state.filters[state.screen]
        if list_filter.query:
            list_filter.clear()
            state.cursors[state.screen] = 0
            return []
        return self._back(state)

    def _select(self, state: AppState) -> Commands:
        if state.loading:
            return []
        item = state.selected_item()
        if isinstance(item, RoleItem):
            return self._open_role(state, item.role)
        if isinstance(item, PolicyItem):
            return self._open_policy(state, item.policy)
        if isinstance(item, ProfileItem):
            return self._select_profile(state, item.name)
        return []

    def _open_role(self, state: AppState, role: Role) -> Commands:
        state.selected_role = role.name
        state.selected_policy = None
        state.screen = Screen.POLICIES
        state.filters[Screen.POLICIES].clear()
        state.cursors[Screen.POLICIES] = 0
        if role.policies_loaded:
            state.status_message = ""
            return []
        state.status_message = f"Loading policies for {role.name}..."
        return [begin_fetch(state, FetchPolicies(state.current_profile, role.name))]

    def _open_policy(self, state: AppState, policy: Policy) -> Commands:
        state.selected_policy = policy.key
        state.screen = Screen.POLICY_DOCUMENT
        state.search.reset()
        state.view_offset = 0
        if policy.document_loaded:
            state.document_text = policy.document or ""
            state.status_message = ""
            return []
        state.document_text = ""
        state.status_message = f"Loading policy document for {policy.name}..."
        return [
            begin_fetch(
                state,
                FetchDocument(
                    profile=state.current_profile,
                    policy_key=policy.key,
                    policy_arn=policy.arn,
                    policy_type=policy.policy_type,
                    policy_name=policy.name,
                    role_name=policy.role_name,
                ),
            )
        ]

    def _select_profile(self, state: AppState, name: str) -> Commands:
        logger.info("switching to profile %r", name)
        state.profiles = ProfileSet(names=state.profiles.names, current=name)
        state.screen = Screen.ROLES
        state.status_message = f"Switched to profile: {name}"
        state.roles = {}
        state.policies = {}
        state.selected_role = None
        state.selected_policy = None
        state.identity_arn = ""
        state.document_text = ""
        state.view_offset = 0
        state.search.reset()
        for screen in LIST_SCREENS:
            state.cursors[screen] = 0
            state.filters[screen].clear()
        return [begin_fetch(state, FetchRoles(name)), begin_fetch(state, FetchIdentity(name))]

    def _switch_profile(self, state: AppState) -> Commands:
        if state.loading or state.screen is Screen.PROFILES:
            return []
        state.screen = Screen.PROFILES
        state.filters[Screen.PROFILES].clear()
        return [begin_fetch(state, FetchProfiles())]

    def _back(self, state: AppState) -> Commands:
        if state.screen is Screen.POLICIES:
            state.screen = Screen.ROLES
            state.selected_policy = None
        elif state.screen is Screen.POLICY_DOCUMENT:
            state.screen = Screen.POLICIES
            state.search.reset()
        elif state.screen is Screen.PROFILES:
            state.screen = Screen.ROLES
        else:
            return []
        state.status_message = ""
        return []

    # Document viewport

    def _scroll_to(self, state: AppState, offset: int) -> Commands:
        state.view_offset = max(0, min(offset, state.max_view_offset()))
        return []

    def _scroll(self, state: AppState, delta: int) -> Commands:
        return self._scroll_to(state, state.view_offset + delta)

    def _open_search(self, state: AppState) -> Commands:
        state.search.open_prompt()
        return []

    def _jump_to_match(self, state: AppState, *, forward: bool) -> Commands:
        line = state.search.next_match() if forward else state.search.previous_match()
        if line is not None:
            state.view_offset = line
        return []

    def _open_editor(self, state: AppState) -> Commands:
        if not state.document_text:
            return []
        return [OpenEditor(strip_ansi(state.document_text))]

    # Geometry

    def _resize(self, state: AppState, width: int, height: int) -> None:
        state.width = width
        state.height = height
        body = max(1, height - HEADER_HEIGHT - FOOTER_HEIGHT)
        state.list_height = body
        state.view_height = body
        state.view_width = width


__all__ = ["Navigator", "initial_state"]
