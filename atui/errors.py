"""Error taxonomy shared by the client, the document pipeline, and the reducer."""

from __future__ import annotations


class AtuiError(Exception):
    """Base class for every error atui raises on purpose."""


class FetchError(AtuiError):
    """A collaborator call (IAM, STS, profile discovery) failed.

    ``code`` carries the provider error code when there is one, e.g.
    ``AccessDenied`` or ``NoSuchEntity``.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return self.message


class DecodeError(FetchError):
    """A policy document carried malformed percent-encoding."""


class ParseError(AtuiError, ValueError):
    """A decoded policy document is not valid JSON."""


__all__ = ["AtuiError", "DecodeError", "FetchError", "ParseError"]
