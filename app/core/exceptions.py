# ============================================================================
# FILE: app/core/exceptions.py
# Error taxonomy; every error is an HTTPException so FastAPI and the
# envelope handlers in app/main.py treat them uniformly
# ============================================================================
from fastapi import HTTPException, status
from typing import List, Optional


class ApiError(HTTPException):
    """Base class for deliberate API errors"""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[str]] = None,
        headers: Optional[dict] = None,
    ):
        super().__init__(
            status_code=self.status_code_default,
            detail=message or self.message_default,
            headers=headers,
        )
        self.errors = errors or []

    @property
    def message(self) -> str:
        return self.detail


class BadRequestError(ApiError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Bad request"


class UnauthorizedError(ApiError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "Unauthorized access."


class ForbiddenError(ApiError):
    status_code_default = status.HTTP_403_FORBIDDEN
    message_default = "You are not authorized to access this resource."


class NotFoundError(ApiError):
    status_code_default = status.HTTP_404_NOT_FOUND
    message_default = "Resource not found."


class ConflictError(ApiError):
    status_code_default = status.HTTP_409_CONFLICT
    message_default = "Resource already exists."


class InternalServerError(ApiError):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default = "Internal Server Error"


def validation_messages(errors) -> List[str]:
    """Flatten pydantic error dicts into "<loc>: <msg>" strings"""
    messages = []
    for error in errors:
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        msg = error.get("msg", "Invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return messages
