"""
Error taxonomy shared by routes and services.

Every error is an ``HTTPException`` with a fixed status code, so it can be
raised from anywhere below a route and FastAPI renders it as
``{"detail": ...}``.
"""
from typing import Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
        )


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Insufficient role"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Locked(AppError):
    status_code = status.HTTP_423_LOCKED
    default_detail = "Too many failed attempts. Try again later."


class ProviderUnavailable(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "External search provider unavailable"


class ServerError(AppError):
    pass
