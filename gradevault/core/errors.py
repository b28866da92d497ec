"""Domain errors for GradeVault and their translation into JSON responses.

Services raise the exceptions defined here; the handlers installed by
:func:`register_exception_handlers` turn them into the
``{"error": ..., "detail": ..., "errors": [...]}`` envelope at the request
boundary.
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from gradevault.core.logging import get_logger

logger = get_logger("errors")

INTERNAL_ERROR_MESSAGE = "An error occurred while processing your request."


class GradeVaultError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "error"
    default_detail = "Request failed"

    def __init__(self, detail: Optional[str] = None, *, errors: Optional[list[str]] = None):
        self.detail = detail or self.default_detail
        self.errors = list(errors or [])
        super().__init__(self.detail)


class ValidationError(GradeVaultError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_detail = "Invalid input"


class Unauthenticated(GradeVaultError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_detail = "Not authenticated"


class Forbidden(GradeVaultError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "You do not have permission to access this resource"


class NotFound(GradeVaultError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class ProfileNotFound(NotFound):
    code = "profile_not_found"
    default_detail = "No profile found for this user."


class NotFoundOrForbidden(NotFound):
    code = "not_found_or_forbidden"
    default_detail = "Resource not found or you don't have permission to access it."


class NotEnrolled(NotFound):
    code = "not_enrolled"
    default_detail = "Student is not enrolled in this class."


class Conflict(GradeVaultError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "conflict"
    default_detail = "Conflicting request"


class AlreadyEnrolled(Conflict):
    code = "already_enrolled"
    default_detail = "Student is already enrolled in this class."


class EmailAlreadyRegistered(Conflict):
    code = "email_taken"
    default_detail = "Email already registered"


class StudentNotEnrolled(ValidationError):
    code = "student_not_enrolled"
    default_detail = "Student is not enrolled in this class."


class InvalidGradeValue(ValidationError):
    code = "invalid_grade_value"
    default_detail = "Grade value must be between 1 and 10."


class EmptyPayload(ValidationError):
    code = "empty_payload"
    default_detail = "The uploaded file contains no grade rows."


class UnknownStudent(ValidationError):
    code = "unknown_student"
    default_detail = "Student not found."


class BulkImportRejected(ValidationError):
    code = "bulk_import_rejected"
    default_detail = "Bulk upload rejected; no grades were imported."


class InvalidCredentials(Unauthenticated):
    code = "invalid_credentials"
    default_detail = "Invalid login attempt."


class AccountLocked(GradeVaultError):
    status_code = status.HTTP_423_LOCKED
    code = "account_locked"
    default_detail = "Account is locked. Please try again later."


class InvalidResetToken(ValidationError):
    code = "invalid_reset_token"
    default_detail = "Invalid or expired password reset token."


class DependencyFailure(GradeVaultError):
    code = "dependency_failure"
    default_detail = "A required external service is unavailable."


def error_body(code: str, detail: str, errors: Optional[list[str]] = None) -> dict:
    return {"error": code, "detail": detail, "errors": errors or []}


async def _handle_domain_error(request: Request, exc: GradeVaultError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.detail, exc.errors))


async def _handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    code = {
        status.HTTP_401_UNAUTHORIZED: "unauthenticated",
        status.HTTP_403_FORBIDDEN: "forbidden",
        status.HTTP_404_NOT_FOUND: "not_found",
    }.get(exc.status_code, "http_error")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(ValidationError.code, "Invalid input", messages),
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    # Full detail stays in the server log only
    logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal_error", INTERNAL_ERROR_MESSAGE),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GradeVaultError, _handle_domain_error)
    app.add_exception_handler(HTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(Exception, _handle_unexpected)
