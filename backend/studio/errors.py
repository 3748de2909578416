"""Typed error variants shared by storage, repository and generation layers.

Every error carries a human-readable message. HTTP adapters map the
classes to status codes; nothing upstream pattern-matches on message text
except the read-retry eligibility check, which also accepts raw backend
errors whose text looks transient.
"""

import re


class StudioError(Exception):
    """Base class for all domain errors."""

    pass


class NotFoundError(StudioError):
    """Document or session does not exist."""

    pass


class ConflictError(StudioError):
    """Write rejected because it collides with existing data (duplicate title)."""

    pass


class InvalidOperationError(StudioError):
    """Request is well-formed but not allowed in the current state."""

    pass


class BackendUnavailableError(StudioError):
    """Storage backend could not serve the request."""

    pass


class ProviderFailureError(StudioError):
    """Language model call failed."""

    pass


class ContextLengthExceededError(ProviderFailureError):
    """Provider rejected the request because the prompt is too large."""

    pass


class ProviderRefusedError(StudioError):
    """Provider explicitly declined to answer."""

    pass


class TruncatedResponseError(StudioError):
    """Continuation rounds exhausted while the provider still reported truncation."""

    def __init__(self, message: str, partial_text: str) -> None:
        super().__init__(message)
        self.partial_text = partial_text


_TRANSIENT_READ_PATTERN = re.compile(
    r"not found|nosuchkey|fetch failed|failed to fetch|econnreset|network",
    re.IGNORECASE,
)


def is_transient_read_error(exc: BaseException) -> bool:
    """Decide whether a failed read is worth retrying.

    NotFoundError is always eligible (a just-written object may not be
    visible yet). Other exceptions qualify only when their text matches
    a known transient pattern.
    """
    if isinstance(exc, NotFoundError):
        return True
    return bool(_TRANSIENT_READ_PATTERN.search(str(exc)))
