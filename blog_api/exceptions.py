"""
Error taxonomy shared by the service layer and the HTTP error responder.

Services raise these; ``blog_api.main`` registers a single handler that turns
any ``ApiError`` into a ``{"message": ..., "data": ...}`` JSON body with the
error's status code.
"""
from typing import Any


class ApiError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error."

    def __init__(
        self,
        message: str | None = None,
        data: Any = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.data = data
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ApiError):
    """Input rejected; ``data`` holds ``{location, field, msg}`` entries."""

    status_code = 422
    default_message = "Validation failed."


class AuthError(ApiError):
    status_code = 401
    default_message = "Not authenticated."


class Forbidden(ApiError):
    """
    Authorization failure.

    Admin-only feed operations report 401, ownership checks report 403;
    callers pass the status explicitly.
    """

    status_code = 403
    default_message = "Not authorized."


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found."


class InternalError(ApiError):
    status_code = 500


def field_error(field: str, msg: str, location: str = "body") -> dict:
    return {"location": location, "field": field, "msg": msg}
