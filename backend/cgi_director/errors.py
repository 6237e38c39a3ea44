"""Exception types raised by the wizard and the scripting gateway."""

from __future__ import annotations


class DirectorError(RuntimeError):
    """Base class for every error the wizard surfaces to a user."""


class ValidationError(DirectorError):
    """Raised when user input is missing or unusable (empty context, bad image)."""


class StateError(DirectorError):
    """Raised when an action does not fit the wizard's current step.

    Covers stale UI callbacks firing after a transition, labels that are not in
    the active option set, and actions arriving while a request is in flight.
    """


class GenerationError(DirectorError):
    """Raised when the generative model cannot produce a usable result.

    ``detail`` carries the technical reason (transport error text, schema
    violation) for logs; the message itself stays user-presentable.
    """

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.detail = detail or message


class EmptyResultError(GenerationError):
    """The response parsed cleanly but contained no items."""


_FALLBACK_MESSAGES = (
    (StateError, "That choice is no longer available. Please pick again."),
    (ValidationError, "Please describe a product or upload a reference image."),
    (GenerationError, "The server is not responding right now. Please try again."),
)


def user_message(exc: BaseException) -> str:
    """Return the message shown in the UI for ``exc``."""
    if isinstance(exc, DirectorError) and not isinstance(exc, StateError) and str(exc):
        return str(exc)
    for exc_type, message in _FALLBACK_MESSAGES:
        if isinstance(exc, exc_type):
            return message
    return "Something went wrong. Please try again."
