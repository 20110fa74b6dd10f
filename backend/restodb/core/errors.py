"""Error handling and structured error responses."""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from restodb.core.config import settings
from restodb.core.metrics import metrics

logger = logging.getLogger(__name__)


class ErrorCode:
    """Stable error codes for API responses."""

    # Request validation
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Lookups
    CONNECTION_NOT_FOUND = "CONNECTION_NOT_FOUND"
    QUERY_NOT_FOUND = "QUERY_NOT_FOUND"
    RESULT_UNAVAILABLE = "RESULT_UNAVAILABLE"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"

    # Connection/Database
    DB_CONNECT_FAILED = "DB_CONNECT_FAILED"

    # Query Execution
    QUERY_EXECUTION_ERROR = "QUERY_EXECUTION_ERROR"

    # System
    HTTP_ERROR = "HTTP_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorCategory:
    """Error categories for classification."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"
    UPSTREAM = "upstream"


class DriverErrorKind(str, Enum):
    """Coarse classification of database driver failures, used for UI hints."""

    CONNECTION = "connection"
    SYNTAX = "syntax"
    PERMISSION = "permission"
    UNKNOWN = "unknown"


class APIError(BaseModel):
    """Structured error response model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    error: Optional[str] = None
    code: str
    category: str
    kind: Optional[DriverErrorKind] = None
    details: Optional[Dict[str, Any]] = None
    request_id: str
    timestamp: str
    retryable: bool = False


class APIException(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        code: str,
        message: str,
        category: str = ErrorCategory.INTERNAL,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
        error: Optional[str] = None,
        kind: Optional[DriverErrorKind] = None,
    ):
        self.code = code
        self.message = message
        self.category = category
        self.status_code = status_code
        self.details = details or {}
        self.retryable = retryable
        self.error = error
        self.kind = kind
        super().__init__(message)


class ValidationFailed(APIException):
    """Raised when a request is malformed or misses required fields."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            category=ErrorCategory.VALIDATION,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class NotFound(APIException):
    """Raised when an identifier does not resolve to a stored record."""

    def __init__(self, message: str, code: str = ErrorCode.CONNECTION_NOT_FOUND):
        super().__init__(
            code=code,
            message=message,
            category=ErrorCategory.NOT_FOUND,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class NoResultAvailable(APIException):
    """Raised when a history record carries no tabular result to page or export."""

    def __init__(self, query_id: int):
        super().__init__(
            code=ErrorCode.RESULT_UNAVAILABLE,
            message=f"Query {query_id} has no result to display",
            category=ErrorCategory.CONFLICT,
            status_code=status.HTTP_409_CONFLICT,
        )


class QueryExecutionFailed(APIException):
    """Raised when the database rejects or fails to run a submitted query."""

    def __init__(
        self,
        error_message: str,
        kind: DriverErrorKind = DriverErrorKind.UNKNOWN,
        query_id: Optional[int] = None,
    ):
        super().__init__(
            code=ErrorCode.QUERY_EXECUTION_ERROR,
            message="Query execution failed",
            category=ErrorCategory.UPSTREAM,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"queryId": query_id} if query_id is not None else None,
            error=error_message,
            kind=kind,
        )


class DatabaseUnavailable(APIException):
    """Raised when a database session cannot be opened for a profile."""

    def __init__(
        self,
        error_message: str,
        kind: DriverErrorKind = DriverErrorKind.CONNECTION,
        status_code: int = status.HTTP_502_BAD_GATEWAY,
    ):
        super().__init__(
            code=ErrorCode.DB_CONNECT_FAILED,
            message="Connection failed",
            category=ErrorCategory.UPSTREAM,
            status_code=status_code,
            retryable=True,
            error=error_message,
            kind=kind,
        )


class DriverError(Exception):
    """Base class for failures reported by a database driver."""

    def __init__(self, message: str, sqlstate: Optional[str] = None):
        self.message = message
        self.sqlstate = sqlstate
        super().__init__(message)


class DriverConnectionError(DriverError):
    """The database was unreachable or rejected the credentials."""


class DriverExecutionError(DriverError):
    """The database rejected the submitted SQL."""


# SQLSTATE values that pin down a kind regardless of message text.
_SQLSTATE_KINDS = {
    "3D000": DriverErrorKind.CONNECTION,
    "42501": DriverErrorKind.PERMISSION,
    "42601": DriverErrorKind.SYNTAX,
    "42P01": DriverErrorKind.SYNTAX,
    "42703": DriverErrorKind.SYNTAX,
    "42S02": DriverErrorKind.SYNTAX,
    "42S22": DriverErrorKind.SYNTAX,
}
_CONNECTION_SQLSTATE_PREFIXES = ("08", "28", "HYT")

_CONNECTION_HINTS = (
    "login failed",
    "cannot connect",
    "network-related",
    "connection timeout",
    "connection refused",
    "could not connect",
    "password authentication failed",
    "login timeout expired",
)
_SYNTAX_HINTS = (
    "incorrect syntax",
    "invalid object name",
    "multi-part identifier",
    "invalid column name",
    "syntax error",
    "does not exist",
)
_PERMISSION_HINTS = ("permission", "denied", "authorization")


def _driver_sqlstate(exc: BaseException) -> Optional[str]:
    """Return the SQLSTATE a driver attached to an exception, if any."""
    sqlstate = getattr(exc, "sqlstate", None)
    if sqlstate:
        return str(sqlstate)
    # pyodbc puts the SQLSTATE first: Error('42S02', '[42S02] ... Invalid object name')
    args = getattr(exc, "args", ())
    if len(args) >= 2 and isinstance(args[0], str) and len(args[0]) == 5:
        return args[0]
    return None


def classify_driver_error(exc: BaseException) -> DriverErrorKind:
    """
    Classify a raw driver error as a connection, syntax or permission problem.

    SQLSTATE codes win when the driver exposes them, and anything raised while
    opening a session is a connection failure. Otherwise the message is
    matched against known SQL Server and PostgreSQL phrasings. The result is a
    hint for the operator, not an authoritative diagnosis.
    """
    sqlstate = _driver_sqlstate(exc)
    if sqlstate:
        if sqlstate in _SQLSTATE_KINDS:
            return _SQLSTATE_KINDS[sqlstate]
        if sqlstate.startswith(_CONNECTION_SQLSTATE_PREFIXES):
            return DriverErrorKind.CONNECTION

    if isinstance(exc, DriverConnectionError):
        return DriverErrorKind.CONNECTION

    message = str(exc).lower()
    if any(hint in message for hint in _CONNECTION_HINTS):
        return DriverErrorKind.CONNECTION
    if any(hint in message for hint in _SYNTAX_HINTS):
        return DriverErrorKind.SYNTAX
    if any(hint in message for hint in _PERMISSION_HINTS):
        return DriverErrorKind.PERMISSION

    if sqlstate and sqlstate.startswith("42"):
        return DriverErrorKind.SYNTAX
    return DriverErrorKind.UNKNOWN


def format_validation_errors(errors: Sequence[Dict[str, Any]]) -> str:
    """
    Render pydantic validation errors as one human-readable sentence.

    Example: ``Validation error: Field required at "password"``
    """
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        msg = err.get("msg", "Invalid value")
        parts.append(f'{msg} at "{".".join(loc)}"' if loc else msg)
    if not parts:
        return "Validation error"
    return "Validation error: " + "; ".join(parts)


def create_error_response(
    request: Request,
    code: str,
    message: str,
    category: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    retryable: bool = False,
    error: Optional[str] = None,
    kind: Optional[DriverErrorKind] = None,
) -> JSONResponse:
    """Create a structured error response."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    body = APIError(
        message=message,
        error=error,
        code=code,
        category=category,
        kind=kind,
        details=details or None,
        request_id=request_id,
        timestamp=datetime.now(timezone.utc).isoformat(),
        retryable=retryable,
    )

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"API Error: {code} - {message}",
        extra={
            "error_code": code,
            "error_category": category,
            "request_id": request_id,
            "status_code": status_code,
            "details": details,
        },
    )

    metrics.record_error(code, category)

    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True),
    )


async def error_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle APIException instances."""
    return create_error_response(
        request=request,
        code=exc.code,
        message=exc.message,
        category=exc.category,
        status_code=exc.status_code,
        details=exc.details,
        retryable=exc.retryable,
        error=exc.error,
        kind=exc.kind,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer malformed request bodies and parameters with 400 and a readable message."""
    return create_error_response(
        request=request,
        code=ErrorCode.VALIDATION_ERROR,
        message=format_validation_errors(exc.errors()),
        category=ErrorCategory.VALIDATION,
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the same envelope."""
    return create_error_response(
        request=request,
        code=ErrorCode.HTTP_ERROR,
        message=str(exc.detail),
        category=ErrorCategory.NOT_FOUND if exc.status_code == 404 else ErrorCategory.VALIDATION,
        status_code=exc.status_code,
    )


async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception", exc_info=exc)
    message = "An internal error occurred"
    details: Optional[Dict[str, Any]] = None
    if settings.environment == "development":
        message = str(exc) or message
        details = {"exception_type": type(exc).__name__, "detail": str(exc)}
    return create_error_response(
        request=request,
        code=ErrorCode.INTERNAL_ERROR,
        message=message,
        category=ErrorCategory.INTERNAL,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        retryable=False,
        details=details,
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Register error handlers with FastAPI app."""
    app.add_exception_handler(APIException, error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
