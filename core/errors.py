"""
Service-layer error taxonomy
Raised by utils/* business logic and mapped to HTTP responses in main.py
"""
from typing import Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class BadRequestError(AppError):
    status_code = 400
    default_message = "Bad request"

    def __init__(self, message: Optional[str] = None, fields: Optional[dict] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.fields:
            payload["fields"] = self.fields
        return payload


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "You do not have access to this resource"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict"


class TooManyRequestsError(AppError):
    status_code = 429
    default_message = "Too many requests. Please try again later."
