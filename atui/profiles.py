"""Discovery of locally configured AWS credential profiles."""

from __future__ import annotations

import logging
import os

import botocore.exceptions
import botocore.session

from .errors import FetchError
from .state import DEFAULT_PROFILE_NAME

logger = logging.getLogger(__name__)


def current_profile_name() -> str:
    """Return the profile named by ``$AWS_PROFILE``, else ``default``."""
    return os.environ.get("AWS_PROFILE", "").strip() or DEFAULT_PROFILE_NAME


def discover_profiles() -> tuple[tuple[str, ...], str]:
    """Return the sorted profile names from the shared config/credentials files.

    The files are located the way botocore locates them, so
    ``AWS_CONFIG_FILE`` and ``AWS_SHARED_CREDENTIALS_FILE`` are honoured.
    """
    try:
        names = botocore.session.Session().available_profiles
    except botocore.exceptions.BotoCoreError as exc:
        raise FetchError(f"error reading AWS profiles: {exc}") from exc
    profiles = tuple(sorted(set(names)))
    logger.debug("found %d profiles", len(profiles))
    return profiles, current_profile_name()


__all__ = ["current_profile_name", "discover_profiles"]
