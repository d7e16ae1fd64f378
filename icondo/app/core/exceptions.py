"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict

logger = logging.getLogger("icondo.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidRequestError(AppException):
    """Raised when a request is well-formed but semantically invalid."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class ResidentNotFoundError(AppException):
    """Raised when a resident reference (id or room number) resolves to nobody."""

    def __init__(self, resident_id: int = None, room_number: str = None):
        if room_number is not None:
            message = f"No resident occupies room {room_number}"
        else:
            message = f"Resident with ID {resident_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_002",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resident_id": resident_id, "room_number": room_number}
        )


class ConflictError(AppException):
    """Base class for state and uniqueness conflicts."""

    def __init__(self, message: str, error_code: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class DuplicateUsernameError(ConflictError):
    def __init__(self, username: str):
        super().__init__(
            message=f"Username '{username}' is already registered",
            error_code="ERR_CONFLICT_001",
            details={"username": username}
        )


class RoomOccupiedError(ConflictError):
    def __init__(self, room_number: str):
        super().__init__(
            message=f"Room {room_number} already has a registered resident",
            error_code="ERR_CONFLICT_002",
            details={"room_number": room_number}
        )


class DuplicateTrackingNumberError(ConflictError):
    def __init__(self, tracking_number: str):
        super().__init__(
            message=f"Parcel with tracking number '{tracking_number}' already exists",
            error_code="ERR_CONFLICT_003",
            details={"tracking_number": tracking_number}
        )


class ParcelNotPendingError(ConflictError):
    """
    Raised when a parcel is missing or has already been collected.

    The two cases are reported identically on purpose.
    """

    def __init__(self, parcel_id: int):
        super().__init__(
            message="Parcel not found or already collected",
            error_code="ERR_CONFLICT_004",
            details={"parcel_id": parcel_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class InvalidTokenError(AppException):
    """Raised when a bearer token fails verification."""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_002",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class InvalidCredentialsError(AppException):
    """Raised when username, password or role do not match."""

    def __init__(self):
        super().__init__(
            message="Invalid credentials",
            error_code="ERR_AUTH_003",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class PickupCodeError(AppException):
    """Raised when a scanned pickup code cannot be parsed."""

    def __init__(self, reason: str):
        super().__init__(
            message="Invalid pickup code",
            error_code="ERR_PICKUP_CODE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"reason": reason}
        )


class StorageFailureError(AppException):
    """Raised when persistence or blob storage fails."""

    def __init__(self, message: str = "Storage operation failed", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_STORAGE_001",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        },
        headers=headers
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for HTTPException (including unmatched routes) with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        413: "ERR_PAYLOAD_TOO_LARGE",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                # ctx may carry exception objects that are not JSON serializable
                "errors": [
                    {key: value for key, value in error.items() if key != "ctx"}
                    for error in exc.errors()
                ]
            }
        }
    )


async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handler for database errors that escaped the service layer."""
    logger.error("Database failure on %s %s: %s", request.method, request.url.path, exc)

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error_code": "ERR_STORAGE_001",
            "message": "Storage operation failed",
            "details": {}
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
