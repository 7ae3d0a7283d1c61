# Overview: Domain error hierarchy shared by services and routes.

"""
Service-layer errors.

Every business rule failure raises one of these. Each class carries the HTTP
status it maps to; the app factory turns them into JSON error responses so
routes never translate them by hand.
"""


class ServiceError(Exception):
    """Base class for expected, request-terminating failures."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError):
    """Malformed input (shape, types, missing required fields)."""
    status_code = 400


class InvalidStateError(ServiceError):
    """Order or product is not in the state the action requires."""
    status_code = 400


class InvalidTransitionError(ServiceError):
    """Requested order status change is not in the transition table."""
    status_code = 400


class AuthenticationError(ServiceError):
    """Missing or invalid credential, or deactivated account."""
    status_code = 401


class ForbiddenError(ServiceError):
    """Actor lacks the role or ownership for the action."""
    status_code = 403


class NotFoundError(ServiceError):
    """Referenced entity does not exist."""
    status_code = 404


class ConflictError(ServiceError):
    """Unique constraint or referential rule conflict (e.g., duplicate email)."""
    status_code = 409
