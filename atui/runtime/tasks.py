"""Background execution of fetch commands.

Each fetch runs on its own short-lived daemon thread and posts exactly one
event to a single-consumer queue. The runtime loop drains that queue between
key reads, so the reducer only ever runs on the loop thread.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from queue import Empty, Queue

from ..aws import IamClient
from ..errors import FetchError
from ..events import (
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
from ..profiles import discover_profiles

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], IamClient]
ProfileDiscovery = Callable[[], tuple[tuple[str, ...], str]]


def run_fetch(
    command: FetchCommand,
    client_factory: ClientFactory,
    discover: ProfileDiscovery = discover_profiles,
) -> Event:
    """Carry out ``command`` synchronously and return its completion event.

    Never raises: any failure, expected or not, becomes ``Failed``.
    """
    try:
        if isinstance(command, FetchRoles):
            roles = client_factory(command.profile).list_roles()
            return RolesLoaded(command.profile, tuple(roles))
        if isinstance(command, FetchIdentity):
            identity = client_factory(command.profile).get_caller_identity()
            return IdentityLoaded(command.profile, identity)
        if isinstance(command, FetchPolicies):
            policies = client_factory(command.profile).list_role_policies(command.role_name)
            return PoliciesLoaded(command.role_name, tuple(policies))
        if isinstance(command, FetchDocument):
            raw = client_factory(command.profile).get_policy_document(
                command.policy_arn,
                command.policy_type,
                policy_name=command.policy_name,
                role_name=command.role_name,
            )
            return DocumentLoaded(command.policy_key, raw)
        if isinstance(command, FetchProfiles):
            names, current = discover()
            return ProfilesLoaded(names, current)
    except FetchError as exc:
        return Failed(command, exc)
    except Exception as exc:
        logger.exception("unexpected failure running %s", command)
        return Failed(command, FetchError(str(exc) or exc.__class__.__name__))
    return Failed(command, FetchError(f"unsupported request: {command!r}"))


class BackgroundTaskRunner:
    """Runs fetch commands on daemon threads and collects their events."""

    def __init__(
        self,
        client_factory: ClientFactory,
        discover: ProfileDiscovery = discover_profiles,
    ) -> None:
        self._client_factory = client_factory
        self._discover = discover
        self._events: Queue[Event] = Queue()
        self._lock = threading.Lock()
        self._in_flight = 0

    def _worker(self, command: FetchCommand) -> None:
        event = run_fetch(command, self._client_factory, self._discover)
        logger.debug("finished %s with %s", command, type(event).__name__)
        self._events.put(event)
        with self._lock:
            self._in_flight -= 1

    def submit(self, command: FetchCommand) -> None:
        """Start ``command`` in the background."""
        with self._lock:
            self._in_flight += 1
        worker = threading.Thread(
            target=self._worker,
            args=(command,),
            name=f"atui-{type(command).__name__}",
            daemon=True,
        )
        worker.start()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def drain_events(self) -> list[Event]:
        """Drain all completed events in arrival order."""
        out: list[Event] = []
        while True:
            try:
                out.append(self._events.get_nowait())
            except Empty:
                break
        return out

    def wait_event(self, timeout: float | None = None) -> Event | None:
        """Block until one event arrives; ``None`` on timeout."""
        try:
            return self._events.get(timeout=timeout)
        except Empty:
            return None


class ClientCache:
    """Per-profile ``IamClient`` factory that reuses one client per profile."""

    def __init__(self, region: str | None = None) -> None:
        self.region = region
        self._clients: dict[str, IamClient] = {}
        self._lock = threading.Lock()

    def __call__(self, profile: str) -> IamClient:
        with self._lock:
            client = self._clients.get(profile)
            if client is None:
                client = IamClient(profile, self.region)
                self._clients[profile] = client
            return client


__all__ = ["BackgroundTaskRunner", "ClientCache", "run_fetch"]
