"""
Centralized error handling and domain exceptions for the application.

Every expected failure of a blueprint or contract operation is an AppException
subclass; handlers below turn them into the standard failure envelope.
"""
import logging
from typing import Optional, Dict, Any, Iterable

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from contractflow.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base exception class for application-specific errors."""

    def __init__(
        self,
        error_code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Raised when input validation fails."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            error_code="VALIDATION_ERROR",
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class NotFoundError(AppException):
    """Raised when resource is not found."""
    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message += f": {identifier}"
        super().__init__(
            error_code="NOT_FOUND",
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "identifier": identifier}
        )


class SchemaLockedError(AppException):
    """Raised when a blueprint's field list is changed after contracts exist."""
    def __init__(self, blueprint_id: str, contract_count: int):
        super().__init__(
            error_code="SCHEMA_LOCKED",
            message="Cannot modify fields of a blueprint with existing contracts",
            status_code=status.HTTP_409_CONFLICT,
            details={"blueprint_id": blueprint_id, "contract_count": contract_count}
        )


class HasDependentsError(AppException):
    """Raised when deleting a blueprint that contracts still reference."""
    def __init__(self, blueprint_id: str, contract_count: int):
        super().__init__(
            error_code="HAS_DEPENDENTS",
            message="Cannot delete blueprint with existing contracts",
            status_code=status.HTTP_409_CONFLICT,
            details={"blueprint_id": blueprint_id, "contract_count": contract_count}
        )


class NotEditableError(AppException):
    """Raised when field values are edited outside the editable status."""
    def __init__(self, contract_id: str, current_status: str):
        super().__init__(
            error_code="NOT_EDITABLE",
            message=f"Contract is not editable in status '{current_status}'",
            status_code=status.HTTP_409_CONFLICT,
            details={"contract_id": contract_id, "current_status": current_status}
        )


class InvalidTransitionError(AppException):
    """Raised when a status change is not an edge of the lifecycle graph."""
    def __init__(self, current_status: str, target_status: str, allowed: Iterable[str]):
        allowed = list(allowed)
        self.current_status = current_status
        self.target_status = target_status
        self.allowed_transitions = allowed
        super().__init__(
            error_code="INVALID_TRANSITION",
            message=(
                f"Invalid transition from '{current_status}' to '{target_status}'. "
                f"Allowed transitions: {', '.join(allowed) if allowed else 'none (terminal state)'}"
            ),
            status_code=status.HTTP_409_CONFLICT,
            details={
                "current_status": current_status,
                "target_status": target_status,
                "allowed_transitions": allowed,
            }
        )


class ConcurrentModificationError(AppException):
    """Raised when a write lost a race against another write on the same row."""
    def __init__(self, resource: str, identifier: Optional[str] = None):
        super().__init__(
            error_code="CONCURRENT_MODIFICATION",
            message=f"{resource} was modified by another request; reload and retry",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource": resource, "identifier": identifier}
        )


def _failure(status_code: int, error_code: str, message: str, details: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({
            "success": False,
            "error_code": error_code,
            "message": message,
            "details": details,
        }),
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application-specific exceptions."""
    logger.warning(
        f"AppException: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "request_id": get_request_id(request),
            "path": request.url.path,
            "method": request.method,
        }
    )
    return _failure(exc.status_code, exc.error_code, exc.message, exc.details)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies (unknown field type/status, wrong types) as VALIDATION_ERROR."""
    errors = exc.errors()
    logger.warning(
        f"Request validation failed: {len(errors)} error(s)",
        extra={
            "error_code": "VALIDATION_ERROR",
            "request_id": get_request_id(request),
            "path": request.url.path,
            "method": request.method,
        }
    )
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return _failure(
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        message,
        {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        f"Unexpected error: {str(exc)}",
        exc_info=True,
        extra={
            "request_id": get_request_id(request),
            "path": request.url.path,
            "method": request.method
        }
    )
    return _failure(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        {},
    )
