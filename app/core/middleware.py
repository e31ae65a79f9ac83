from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
import logging
from typing import Sequence, Any

from app.schemas.result import Error, Result, ErrorCategory
from app.core.exception import CustomException

logger = logging.getLogger(__name__)

STATUS_CATEGORIES = {
    401: ErrorCategory.AUTHENTICATION,
    403: ErrorCategory.AUTHORIZATION,
    404: ErrorCategory.NOT_FOUND,
    409: ErrorCategory.RESOURCE_CONFLICT,
    422: ErrorCategory.VALIDATION,
}


class ExceptionHandlingMiddleware(BaseHTTPMiddleware):
    """
    Turns every exception escaping a route into a Result failure body.

    Handlers are tried in registration order, so subclasses must come before
    their bases (CustomException before HTTPException).
    """

    def __init__(self, app, log_internal_errors: bool = True):
        super().__init__(app)
        self.log_internal_errors = log_internal_errors
        self.handlers = [
            (CustomException, self._handle_custom_exception),
            (RequestValidationError, self._handle_validation_error),
            (ResponseValidationError, self._handle_validation_error),
            (ValidationError, self._handle_validation_error),
            (IntegrityError, self._handle_integrity_error),
            (HTTPException, self._handle_http_exception),
        ]

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as ex:
            return await self.handle(ex, request)

    async def handle(self, ex: Exception, request: Request) -> JSONResponse:
        for exc_type, handler in self.handlers:
            if isinstance(ex, exc_type):
                return handler(ex, request)
        return self._handle_unhandled_exception(ex, request)

    def _handle_custom_exception(self, ex: CustomException, request: Request) -> JSONResponse:
        if ex.status_code >= 500:
            logger.error(f"{ex.category.value} on {request.method} {request.url.path}: {ex.detail}")
        return self._error_response(
            Error(
                message=ex.detail,
                status_code=ex.status_code,
                category=ex.category,
                field=getattr(ex, "field", None),
            ),
            headers=ex.headers,
        )

    def _handle_validation_error(self, ex, request: Request) -> JSONResponse:
        """Request bodies and query strings that failed pydantic validation"""
        return self._error_response(
            Error(
                message=self._format_validation_error(ex.errors()),
                status_code=422,
                category=ErrorCategory.VALIDATION,
            )
        )

    def _handle_integrity_error(self, ex: IntegrityError, request: Request) -> JSONResponse:
        # Services translate the constraints they expect; anything left is a conflict
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {ex.orig}")
        return self._error_response(
            Error(
                message="The request conflicts with existing data.",
                status_code=409,
                category=ErrorCategory.RESOURCE_CONFLICT,
            )
        )

    def _handle_http_exception(self, ex: HTTPException, request: Request) -> JSONResponse:
        return self._error_response(
            Error(
                message=ex.detail if isinstance(ex.detail, str) else str(ex.detail),
                status_code=ex.status_code,
                category=self._infer_category_from_status(ex.status_code),
            ),
            headers=ex.headers,
        )

    def _handle_unhandled_exception(self, ex: Exception, request: Request) -> JSONResponse:
        if self.log_internal_errors:
            logger.error(
                f"Unhandled exception on {request.method} {request.url.path}",
                exc_info=ex,
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "client": request.client.host if request.client else None,
                },
            )

        # Internal details stay in the log
        return self._error_response(
            Error(
                message="An unexpected error occurred. Please try again later.",
                status_code=500,
                category=ErrorCategory.INTERNAL,
            )
        )

    def _error_response(self, error: Error, headers: dict = None) -> JSONResponse:
        return JSONResponse(
            status_code=error.status_code,
            content=Result.failure(error).model_dump(),
            headers=headers,
        )

    def _format_validation_error(self, errors: Sequence[Any]) -> str:
        messages = []
        for error in errors:
            loc = " -> ".join(str(loc) for loc in error.get("loc", []))
            msg = error.get("msg", "Unknown error")
            messages.append(f"{loc}: {msg}" if loc else msg)

        return "; ".join(messages) if messages else "Validation failed"

    def _infer_category_from_status(self, status_code: int) -> ErrorCategory:
        if status_code in STATUS_CATEGORIES:
            return STATUS_CATEGORIES[status_code]
        if 400 <= status_code < 500:
            return ErrorCategory.BAD_REQUEST
        if status_code >= 500:
            return ErrorCategory.INTERNAL
        return ErrorCategory.CUSTOM


def install_exception_handlers(app: FastAPI, log_internal_errors: bool = True) -> None:
    """
    Route HTTP and request validation errors through the same Result envelope.

    FastAPI's own exception handlers answer these before any middleware sees
    them, so they are overridden with the middleware's handlers.
    """
    handling = ExceptionHandlingMiddleware(app, log_internal_errors=log_internal_errors)

    async def handle(request: Request, ex: Exception) -> JSONResponse:
        return await handling.handle(ex, request)

    app.add_exception_handler(HTTPException, handle)
    app.add_exception_handler(RequestValidationError, handle)
