"""Error types raised by the service layer and rendered at the HTTP boundary."""


class HubError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HubError):
    """Raised when required input is missing or malformed."""

    status_code = 400


class ConflictError(HubError):
    """Raised when a unique email or normalized name is already taken."""

    status_code = 400


class NotFoundError(HubError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class InvalidCredentialsError(HubError):
    """Raised when a login identifier matches but the password does not."""

    status_code = 400


class UpstreamError(HubError):
    """Raised when the record store or the asset host fails."""

    status_code = 500


__all__ = [
    "HubError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "InvalidCredentialsError",
    "UpstreamError",
]
