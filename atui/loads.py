"""Completion handling for background fetches.

Every fetch the reducer emits comes back as one event. These helpers apply
that event to ``AppState``: they clear the loading gate, store data or the
error, and drop responses that no longer match the current selection.
"""

from __future__ import annotations

import logging

from .document import render_policy_document
from .errors import DecodeError
from .events import (
    GATING_FETCHES,
    DocumentLoaded,
    Event,
    Failed,
    FetchCommand,
    FetchDocument,
    FetchIdentity,
    FetchPolicies,
    FetchProfiles,
    FetchRoles,
    IdentityLoaded,
    PoliciesLoaded,
    ProfilesLoaded,
    RolesLoaded,
)
from .models import ProfileSet
from .palette import DEFAULT_PALETTE, Palette
from .state import DEFAULT_PROFILE_NAME, AppState, Screen

logger = logging.getLogger(__name__)

_LOAD_EVENTS = (RolesLoaded, IdentityLoaded, PoliciesLoaded, DocumentLoaded, ProfilesLoaded, Failed)


def begin_fetch(state: AppState, command: FetchCommand) -> FetchCommand:
    """Record that ``command`` is about to be issued and return it."""
    if isinstance(command, GATING_FETCHES):
        state.loading = True
        state.pending_request = command
    logger.debug("issuing %s", command)
    return command


def is_stale(state: AppState, request: FetchCommand) -> bool:
    """Return whether a response to ``request`` no longer fits the state."""
    if isinstance(request, (FetchRoles, FetchIdentity)):
        return request.profile != state.current_profile
    if isinstance(request, FetchPolicies):
        return request.profile != state.current_profile or request.role_name != state.selected_role
    if isinstance(request, FetchDocument):
        return request.profile != state.current_profile or request.policy_key != state.selected_policy
    return False


def _answers_pending(state: AppState, event: Event) -> bool:
    pending = state.pending_request
    if pending is None:
        return False
    if isinstance(event, Failed):
        return event.request == pending
    if isinstance(event, RolesLoaded):
        return isinstance(pending, FetchRoles) and pending.profile == event.profile
    if isinstance(event, PoliciesLoaded):
        return isinstance(pending, FetchPolicies) and pending.role_name == event.role_name
    if isinstance(event, DocumentLoaded):
        return isinstance(pending, FetchDocument) and pending.policy_key == event.policy_key
    if isinstance(event, ProfilesLoaded):
        return isinstance(pending, FetchProfiles)
    return False


def _settle(state: AppState, event: Event) -> None:
    """Lift the loading gate when ``event`` answers the in-flight request."""
    if _answers_pending(state, event):
        state.loading = False
        state.pending_request = None


def apply_roles_loaded(state: AppState, event: RolesLoaded) -> None:
    if event.profile != state.current_profile:
        logger.info("dropping roles for inactive profile %r", event.profile)
        return
    state.roles = {role.name: role for role in event.roles}
    state.cursors[Screen.ROLES] = 0
    logger.debug("loaded %d roles for profile %r", len(event.roles), event.profile)


def apply_identity_loaded(state: AppState, event: IdentityLoaded) -> None:
    if event.profile != state.current_profile:
        logger.info("dropping identity for inactive profile %r", event.profile)
        return
    state.identity_arn = event.identity.arn


def apply_policies_loaded(state: AppState, event: PoliciesLoaded) -> None:
    role = state.role()
    if role is None or role.name != event.role_name:
        logger.info("dropping stale policies for role %r", event.role_name)
        return

    keys: list[str] = []
    for policy in event.policies:
        # Keep the cached entry so an already rendered document survives.
        state.policies.setdefault(policy.key, policy)
        keys.append(policy.key)
    role.policy_keys = keys
    role.policies_loaded = True
    state.cursors[Screen.POLICIES] = 0
    state.status_message = ""


def apply_document_loaded(state: AppState, event: DocumentLoaded, palette: Palette) -> None:
    policy = state.policy()
    if policy is None or event.policy_key != state.selected_policy:
        logger.info("dropping stale document for %r", event.policy_key)
        return

    try:
        rendered = render_policy_document(event.raw_document, palette)
    except DecodeError as exc:
        logger.warning("could not decode document for %s: %s", event.policy_key, exc)
        state.error = DecodeError(f"error decoding policy document: {exc}")
        return

    policy.document = rendered
    policy.document_loaded = True
    state.status_message = ""
    if state.screen is Screen.POLICY_DOCUMENT:
        state.document_text = rendered
        state.view_offset = 0


def apply_profiles_loaded(state: AppState, event: ProfilesLoaded) -> None:
    # The active profile only changes when the user picks one.
    state.profiles = ProfileSet(names=tuple(event.names), current=state.current_profile)
    target = state.current_profile or event.current or DEFAULT_PROFILE_NAME
    state.cursors[Screen.PROFILES] = event.names.index(target) if target in event.names else 0


def apply_failed(state: AppState, event: Failed) -> None:
    if is_stale(state, event.request):
        logger.info("dropping failure of stale request %s: %s", event.request, event.error)
        return
    logger.warning("request %s failed: %s", event.request, event.error)
    state.error = event.error


def apply_load_event(state: AppState, event: Event, palette: Palette = DEFAULT_PALETTE) -> bool:
    """Apply one completion event; return ``False`` for non-load events."""
    if not isinstance(event, _LOAD_EVENTS):
        return False
    _settle(state, event)
    if isinstance(event, RolesLoaded):
        apply_roles_loaded(state, event)
    elif isinstance(event, IdentityLoaded):
        apply_identity_loaded(state, event)
    elif isinstance(event, PoliciesLoaded):
        apply_policies_loaded(state, event)
    elif isinstance(event, DocumentLoaded):
        apply_document_loaded(state, event, palette)
    elif isinstance(event, ProfilesLoaded):
        apply_profiles_loaded(state, event)
    else:
        apply_failed(state, event)
    return True


__all__ = [
    "apply_document_loaded",
    "apply_failed",
    "apply_identity_loaded",
    "apply_load_event",
    "apply_policies_loaded",
    "apply_profiles_loaded",
    "apply_roles_loaded",
    "begin_fetch",
    "is_stale",
]
