"""boto3-backed access to IAM and STS.

``IamClient`` wraps the handful of read-only calls the browser needs and
converts every botocore failure into ``FetchError`` so callers deal with one
error type. Policy documents are returned percent-encoded, the form IAM uses
on the wire, regardless of whether botocore already decoded them.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from urllib.parse import quote

import boto3
import botocore.exceptions

from .errors import FetchError
from .models import Identity, Policy, PolicyType, Role, managed_policy_type

logger = logging.getLogger(__name__)

ASSUMED_ROLE_MARKER = ":assumed-role/"
ASSUMED_ROLE_DESCRIPTION = "Current assumed role"
_ACCESS_DENIED_CODES = {"AccessDenied", "AccessDeniedException", "UnauthorizedOperation"}

SessionFactory = Callable[..., boto3.Session]


def _error_code(exc: Exception) -> str | None:
    if isinstance(exc, botocore.exceptions.ClientError):
        return exc.response.get("Error", {}).get("Code")
    if isinstance(exc, botocore.exceptions.BotoCoreError):
        return type(exc).__name__
    return None


def _wrap(exc: Exception, context: str) -> FetchError:
    return FetchError(f"{context}: {exc}", code=_error_code(exc))


def encode_document(document: object) -> str:
    """Return ``document`` as percent-encoded JSON text."""
    if isinstance(document, str):
        # Already a string: IAM sends it percent-encoded, pass it through.
        return document
    return quote(json.dumps(document), safe="")


def assumed_role_from_identity(identity: Identity) -> Role | None:
    """Return the role behind an ``assumed-role`` caller ARN, if any."""
    if ASSUMED_ROLE_MARKER not in identity.arn:
        return None
    parts = identity.arn.split("/")
    if len(parts) < 2:
        return None
    role_name = parts[1]
    return Role(
        name=role_name,
        arn=f"arn:aws:iam::{identity.account}:role/{role_name}",
        description=ASSUMED_ROLE_DESCRIPTION,
    )


class IamClient:
    """Read-only IAM/STS access for one credential profile.

    An empty ``profile`` uses the default credential chain.
    """

    def __init__(
        self,
        profile: str = "",
        region: str | None = None,
        session_factory: SessionFactory = boto3.Session,
    ) -> None:
        self.profile = profile
        self.region = region
        self._session_factory = session_factory
        self._session: boto3.Session | None = None
        self._clients: dict[str, object] = {}
        # boto3 sessions are not thread-safe; clients are.
        self._lock = threading.Lock()

    def _client(self, service: str):
        with self._lock:
            client = self._clients.get(service)
            if client is not None:
                return client
            try:
                if self._session is None:
                    self._session = self._session_factory(profile_name=self.profile or None, region_name=self.region)
                client = self._session.client(service)
            except botocore.exceptions.BotoCoreError as exc:
                raise FetchError(f"error loading AWS configuration: {exc}", code=_error_code(exc)) from exc
            self._clients[service] = client
            return client

    def get_caller_identity(self) -> Identity:
        try:
            resp = self._client("sts").get_caller_identity()
        except (botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError) as exc:
            raise _wrap(exc, "error getting caller identity") from exc
        return Identity(
            arn=resp.get("Arn", ""),
            account=resp.get("Account", ""),
            user_id=resp.get("UserId", ""),
        )

    def list_roles(self) -> list[Role]:
        """Return every visible role, the caller's assumed role first.

        A permission failure while listing is tolerated when the assumed role
        is already known; the caller still gets that one entry.
        """
        roles: list[Role] = []
        assumed = assumed_role_from_identity(self.get_caller_identity())
        if assumed is not None:
            roles.append(assumed)
        seen = {role.name for role in roles}

        try:
            paginator = self._client("iam").get_paginator("list_roles")
            for page in paginator.paginate():
                for item in page.get("Roles", []):
                    name = item["RoleName"]
                    if name in seen:
                        continue
                    seen.add(name)
                    roles.append(
                        Role(
                            name=name,
                            arn=item["Arn"],
                            description=item.get("Description") or f"ARN: {item['Arn']}",
                        )
                    )
        except (botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError) as exc:
            if assumed is not None:
                logger.info("listing roles failed, keeping assumed role only: %s", exc)
                return roles
            code = _error_code(exc)
            if code in _ACCESS_DENIED_CODES:
                raise FetchError("insufficient permissions to list IAM roles.", code=code) from exc
            raise _wrap(exc, "error listing IAM roles") from exc

        logger.debug("listed %d roles for profile %r", len(roles), self.profile)
        return roles

    def list_role_policies(self, role_name: str) -> list[Policy]:
        """Return the managed policies attached to ``role_name`` and its inline ones."""
        iam = self._client("iam")
        policies: list[Policy] = []
        try:
            paginator = iam.get_paginator("list_attached_role_policies")
            for page in paginator.paginate(RoleName=role_name):
                for item in page.get("AttachedPolicies", []):
                    arn = item["PolicyArn"]
                    policies.append(
                        Policy(
                            name=item["PolicyName"],
                            arn=arn,
                            policy_type=managed_policy_type(arn),
                            role_name=role_name,
                        )
                    )
            paginator = iam.get_paginator("list_role_policies")
            for page in paginator.paginate(RoleName=role_name):
                for name in page.get("PolicyNames", []):
                    policies.append(Policy(name=name, arn="", policy_type=PolicyType.INLINE, role_name=role_name))
        except (botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError) as exc:
            raise _wrap(exc, f"error listing policies for role {role_name}") from exc

        logger.debug("role %s has %d policies", role_name, len(policies))
        return policies

    def get_policy_document(
        self,
        policy_arn: str,
        policy_type: PolicyType = PolicyType.CUSTOMER_MANAGED,
        *,
        policy_name: str = "",
        role_name: str | None = None,
    ) -> str:
        """Return the percent-encoded document of a managed or inline policy."""
        iam = self._client("iam")
        if policy_type is PolicyType.INLINE:
            try:
                resp = iam.get_role_policy(RoleName=role_name or "", PolicyName=policy_name)
            except (botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError) as exc:
                raise _wrap(exc, f"error getting inline policy {policy_name}") from exc
            return encode_document(resp["PolicyDocument"])

        try:
            policy = iam.get_policy(PolicyArn=policy_arn)["Policy"]
        except (botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError) as exc:
            raise _wrap(exc, f"error getting policy {policy_arn}") from exc
        try:
            version = iam.get_policy_version(PolicyArn=policy_arn, VersionId=policy["DefaultVersionId"])
        except (botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError) as exc:
            raise _wrap(exc, "error getting policy version") from exc
        return encode_document(version["PolicyVersion"]["Document"])


__all__ = [
    "ASSUMED_ROLE_DESCRIPTION",
    "IamClient",
    "assumed_role_from_identity",
    "encode_document",
]
