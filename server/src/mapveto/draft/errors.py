"""Errors raised by draft operations.

All of them are caught at the action-handling boundary and reported to the
caller only. An operation that raises has not changed any lobby state.
"""


class DraftError(Exception):
    """Base class for draft errors.

    Attributes:
        code: Stable machine-readable error code sent to clients
        message: Human-readable description
    """

    code = "draft_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(DraftError):
    """Malformed or out-of-turn action."""

    code = "invalid_action"


class NotFoundError(DraftError):
    """Unknown lobby id."""

    code = "not_found"


class ConfigurationError(DraftError):
    """Invalid format/option combination at creation time."""

    code = "invalid_configuration"
