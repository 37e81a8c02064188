"""Events consumed by the reducer and commands it emits.

Both are plain frozen values. Commands describe a fetch or side effect for
the runtime to carry out; every fetch comes back as exactly one event, either
its ``*Loaded`` event or ``Failed``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import FetchError
from .models import Identity, Policy, PolicyType, Role

# Commands


@dataclass(frozen=True)
class FetchRoles:
    profile: str


@dataclass(frozen=True)
class FetchIdentity:
    profile: str


@dataclass(frozen=True)
class FetchPolicies:
    profile: str
    role_name: str


@dataclass(frozen=True)
class FetchDocument:
    profile: str
    policy_key: str
    policy_arn: str
    policy_type: PolicyType
    policy_name: str
    role_name: str | None = None


@dataclass(frozen=True)
class FetchProfiles:
    pass


@dataclass(frozen=True)
class OpenEditor:
    text: str


@dataclass(frozen=True)
class Quit:
    pass


FetchCommand = FetchRoles | FetchIdentity | FetchPolicies | FetchDocument | FetchProfiles
Command = FetchCommand | OpenEditor | Quit

# Events


@dataclass(frozen=True)
class KeyPressed:
    key: str


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class RolesLoaded:
    profile: str
    roles: tuple[Role, ...]


@dataclass(frozen=True)
class IdentityLoaded:
    profile: str
    identity: Identity


@dataclass(frozen=True)
class PoliciesLoaded:
    role_name: str
    policies: tuple[Policy, ...]


@dataclass(frozen=True)
class DocumentLoaded:
    policy_key: str
    raw_document: str


@dataclass(frozen=True)
class ProfilesLoaded:
    names: tuple[str, ...]
    current: str


@dataclass(frozen=True)
class Failed:
    request: FetchCommand
    error: FetchError


@dataclass(frozen=True)
class EditorClosed:
    error: str | None = None


Event = (
    KeyPressed
    | Resized
    | RolesLoaded
    | IdentityLoaded
    | PoliciesLoaded
    | DocumentLoaded
    | ProfilesLoaded
    | Failed
    | EditorClosed
)

# Fetches that gate input while in flight; the identity lookup runs in the
# background without blocking navigation.
GATING_FETCHES = (FetchRoles, FetchPolicies, FetchDocument, FetchProfiles)


__all__ = [
    "Command",
    "DocumentLoaded",
    "EditorClosed",
    "Event",
    "Failed",
    "FetchCommand",
    "FetchDocument",
    "FetchIdentity",
    "FetchPolicies",
    "FetchProfiles",
    "FetchRoles",
    "GATING_FETCHES",
    "IdentityLoaded",
    "KeyPressed",
    "OpenEditor",
    "PoliciesLoaded",
    "ProfilesLoaded",
    "Quit",
    "Resized",
    "RolesLoaded",
]
