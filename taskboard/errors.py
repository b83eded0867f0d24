"""
Error taxonomy shared by the stores, workflows and HTTP layer.
Every error carries the HTTP status the API renders it with.
"""


class TaskboardError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(TaskboardError):
    """No valid session."""
    status_code = 401


class AuthorizationError(TaskboardError):
    """Valid session, insufficient role or ownership."""
    status_code = 403


class ValidationError(TaskboardError):
    """Missing or malformed input."""
    status_code = 400


class NotFoundError(TaskboardError):
    """Entity id does not resolve."""
    status_code = 404


class AlreadyAcceptedError(TaskboardError):
    """Invitation for this email was already accepted."""
    status_code = 409


class IntegrationError(TaskboardError):
    """Email provider unreachable or rejected the request."""
    status_code = 502


class UnexpectedError(TaskboardError):
    """Backend or storage failure not otherwise classified."""
    status_code = 500
