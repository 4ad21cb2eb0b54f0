"""
Error taxonomy for the Triage Assist core.

Validation and not-found conditions are raised by low-level helpers and
converted to plain results (bool / None / TransitionResult) at the public
command boundary. Collaborator errors are surfaced to the invoking wizard
as retryable conditions. Decode errors are absorbed at load time.
"""

from typing import Optional


class TriageError(Exception):
    """Base class for all Triage Assist errors."""


class ValidationError(TriageError):
    """A transition or mutation was blocked by a validation rule."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(TriageError):
    """An operation referenced an unknown id."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class DecodeError(TriageError):
    """A persisted blob could not be decoded or validated."""


class StorageError(TriageError):
    """A persisted collection could not be written."""


class CollaboratorError(TriageError):
    """An external collaborator call failed. Always retryable by the user."""

    retryable = True

    def __init__(self, message: str, collaborator: str = ""):
        super().__init__(message)
        self.collaborator = collaborator

    @property
    def user_message(self) -> str:
        return "The assessment service could not be reached. Please try again."


class RateLimitedError(CollaboratorError):
    """The collaborator rejected the request because of rate limiting."""

    @property
    def user_message(self) -> str:
        return "Too many requests. Please wait a moment and try again."


class UnavailableError(CollaboratorError):
    """The collaborator could not be reached or returned a server error."""


class MalformedResponseError(CollaboratorError):
    """The collaborator answered but the response could not be parsed."""

    @property
    def user_message(self) -> str:
        return "The assessment service returned an unreadable answer. Please try again."
