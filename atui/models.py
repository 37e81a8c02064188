"""Data model for roles, policies, profiles, and the list items shown for them.

Roles and policies live in keyed collections owned by ``AppState``; roles
refer to their policies by key so a cached document has exactly one home no
matter how many roles attach the same managed policy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

AWS_MANAGED_ARN_MARKER = "arn:aws:iam::aws:"
INLINE_KEY_PREFIX = "inline:"
POLICY_TITLE_MARKER = "\N{PAGE FACING UP} "


class PolicyType(Enum):
    AWS_MANAGED = "AWS"
    CUSTOMER_MANAGED = "Customer"
    INLINE = "Inline"

    @property
    def label(self) -> str:
        return _POLICY_TYPE_LABELS[self]


_POLICY_TYPE_LABELS = {
    PolicyType.AWS_MANAGED: "AWS Managed",
    PolicyType.CUSTOMER_MANAGED: "Customer Managed",
    PolicyType.INLINE: "Inline",
}


def managed_policy_type(policy_arn: str) -> PolicyType:
    """Classify an attached managed policy by its ARN."""
    if AWS_MANAGED_ARN_MARKER in policy_arn:
        return PolicyType.AWS_MANAGED
    return PolicyType.CUSTOMER_MANAGED


def inline_policy_key(role_name: str, policy_name: str) -> str:
    """Stable cache key for an inline policy, which has no ARN of its own."""
    return f"{INLINE_KEY_PREFIX}{role_name}/{policy_name}"


@dataclass
class Policy:
    """Policy summary plus its lazily loaded, rendered document."""

    name: str
    arn: str
    policy_type: PolicyType
    role_name: str | None = None
    document: str | None = None
    document_loaded: bool = False

    @property
    def key(self) -> str:
        if self.policy_type is PolicyType.INLINE:
            return inline_policy_key(self.role_name or "", self.name)
        return self.arn


@dataclass
class Role:
    """IAM role and the keys of its attached policies (empty until loaded)."""

    name: str
    arn: str
    description: str = ""
    policy_keys: list[str] = field(default_factory=list)
    policies_loaded: bool = False


@dataclass(frozen=True)
class Identity:
    """Result of ``sts:GetCallerIdentity`` for the active profile."""

    arn: str
    account: str = ""
    user_id: str = ""


@dataclass(frozen=True)
class ProfileSet:
    """Credential profiles available locally and the one in use."""

    names: tuple[str, ...] = ()
    current: str = ""


# List items: one variant per list screen, each deriving its own display text.


@dataclass(frozen=True)
class RoleItem:
    role: Role


@dataclass(frozen=True)
class PolicyItem:
    policy: Policy


@dataclass(frozen=True)
class ProfileItem:
    name: str
    current: bool = False


ListItem = RoleItem | PolicyItem | ProfileItem


def item_title(item: ListItem) -> str:
    if isinstance(item, RoleItem):
        return item.role.name
    if isinstance(item, PolicyItem):
        return POLICY_TITLE_MARKER + item.policy.name
    return f"{item.name} (current)" if item.current else item.name


def item_description(item: ListItem) -> str:
    if isinstance(item, RoleItem):
        role = item.role
        if role.policies_loaded:
            return f"{role.description} | {len(role.policy_keys)} policies attached"
        return role.description
    if isinstance(item, PolicyItem):
        return f"[{item.policy.policy_type.label}] {item.policy.name}"
    return ""


def item_filter_value(item: ListItem) -> str:
    if isinstance(item, RoleItem):
        return item.role.name
    if isinstance(item, PolicyItem):
        return item.policy.name
    return item.name


__all__ = [
    "Identity",
    "ListItem",
    "Policy",
    "PolicyItem",
    "PolicyType",
    "ProfileItem",
    "ProfileSet",
    "Role",
    "RoleItem",
    "inline_policy_key",
    "item_description",
    "item_filter_value",
    "item_title",
    "managed_policy_type",
]
