"""Domain exceptions and the global exception handlers for the FastAPI application."""

import traceback
from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..messages import MessageCode, get_default_message
from src.utils.logger import get_logger

logger = get_logger(__name__)


class ErrorKind(str, Enum):
    """Closed set of failure kinds a caller can distinguish."""

    DOCUMENT_NOT_FOUND = "DocumentNotFound"
    FORBIDDEN = "Forbidden"
    ACTION_NOT_ALLOWED = "ActionNotAllowed"
    UNABLE_TO_CREATE = "UnableToCreate"
    UNABLE_TO_UPDATE = "UnableToUpdate"
    UNAUTHENTICATED = "Unauthenticated"
    INTERNAL = "Internal"


class OrgKeeperException(Exception):
    """Base exception for the OrgKeeper API with unified message codes."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message_code: MessageCode,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict | None = None,
        headers: dict | None = None,
    ):
        self.message_code = message_code
        self.status_code = status_code
        self.message: str = get_default_message(message_code)
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)

    def to_response_dict(self) -> dict:
        """Convert exception to API response format."""
        return {
            "message_code": self.message_code,
            "message": self.message,
            "details": {"kind": self.kind.value, **self.details},
        }


class _KindException(OrgKeeperException):
    default_code: MessageCode = MessageCode.INTERNAL_ERROR
    default_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message_code: MessageCode | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            message_code or self.default_code,
            self.default_status,
            details,
        )


class DocumentNotFoundError(_KindException):
    """A referenced id does not resolve in the store."""

    kind = ErrorKind.DOCUMENT_NOT_FOUND
    default_code = MessageCode.DOCUMENT_NOT_FOUND
    default_status = status.HTTP_404_NOT_FOUND


class ForbiddenError(_KindException):
    """The caller lacks the role required for the action."""

    kind = ErrorKind.FORBIDDEN
    default_code = MessageCode.INSUFFICIENT_PERMISSIONS
    default_status = status.HTTP_403_FORBIDDEN


class ActionNotAllowedError(_KindException):
    """A business rule rejected the action."""

    kind = ErrorKind.ACTION_NOT_ALLOWED
    default_code = MessageCode.ACTION_NOT_ALLOWED
    default_status = status.HTTP_409_CONFLICT


class UnableToCreateError(_KindException):
    kind = ErrorKind.UNABLE_TO_CREATE
    default_code = MessageCode.UNABLE_TO_CREATE
    default_status = status.HTTP_400_BAD_REQUEST


class UnableToUpdateError(_KindException):
    kind = ErrorKind.UNABLE_TO_UPDATE
    default_code = MessageCode.UNABLE_TO_UPDATE
    default_status = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(_KindException):
    kind = ErrorKind.UNAUTHENTICATED
    default_code = MessageCode.AUTH_REQUIRED
    default_status = status.HTTP_401_UNAUTHORIZED


def _serializable_errors(exc: RequestValidationError) -> list[dict]:
    serializable_errors = []
    for error in exc.errors():
        error_dict = dict(error)
        # ctx may hold the raw exception instance, which is not JSON serializable
        error_dict.pop("ctx", None)
        if "input" in error_dict and hasattr(error_dict["input"], "isoformat"):
            error_dict["input"] = error_dict["input"].isoformat()
        serializable_errors.append(error_dict)
    return serializable_errors


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""

    @app.exception_handler(OrgKeeperException)
    async def orgkeeper_exception_handler(
        request: Request, exc: OrgKeeperException
    ) -> JSONResponse:
        """Handle domain exceptions."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "Request failed",
            path=request.url.path,
            method=request.method,
            kind=exc.kind.value,
            message_code=exc.message_code.value,
            details=exc.details,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle FastAPI and Starlette HTTP exceptions."""
        logger.warning(
            f"HTTP exception {exc.status_code}: {exc.detail}",
            path=request.url.path,
            method=request.method,
        )

        message_code = (
            MessageCode.NOT_FOUND
            if exc.status_code == status.HTTP_404_NOT_FOUND
            else MessageCode.BAD_REQUEST
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "message_code": message_code,
                "message": str(exc.detail),
                "details": {"description": "HTTP exception occurred"},
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request validation errors."""
        logger.warning(
            "Validation error occurred",
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "message_code": MessageCode.INVALID_INPUT,
                "message": get_default_message(MessageCode.INVALID_INPUT),
                "details": {
                    "description": "Request validation failed",
                    "validation_errors": _serializable_errors(exc),
                },
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        """Handle database errors that escaped the store."""
        logger.error(
            f"Database error: {str(exc)}",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "message_code": MessageCode.INTERNAL_ERROR,
                "message": "Database error occurred",
                "details": {"database_error": "Internal database error"},
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle all other unhandled exceptions."""
        logger.error(
            f"Unhandled exception: {str(exc)}",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
            traceback=traceback.format_exc(),
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "message_code": MessageCode.INTERNAL_ERROR,
                "message": "Internal server error",
                "details": {"error_type": type(exc).__name__},
            },
        )
