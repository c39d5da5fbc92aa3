"""
API Error Handling Middleware for ComplyGrid
Turns exceptions that escape route handlers into standardized JSON responses
"""

import logging
import traceback
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from redis.exceptions import RedisError
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from complygrid.services.errors import ComplyGridError, NotFoundError

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    message: str
    type: Optional[str] = None


class APIErrorResponse(BaseModel):
    """Body returned for any error the routes did not translate themselves"""

    success: bool = False
    error: str
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)
    error_id: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    path: Optional[str] = None
    method: Optional[str] = None


class ErrorType:
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND_ERROR = "not_found_error"
    DATABASE_ERROR = "database_error"
    DATABASE_UNAVAILABLE = "database_unavailable"
    CACHE_ERROR = "cache_error"
    INTERNAL_ERROR = "internal_error"


# Most specific first; the first isinstance match wins
EXCEPTION_RULES: List[Tuple[type, str, int, str]] = [
    (NotFoundError, ErrorType.NOT_FOUND_ERROR, status.HTTP_404_NOT_FOUND, "Requested resource not found"),
    (ValueError, ErrorType.VALIDATION_ERROR, status.HTTP_400_BAD_REQUEST, "Invalid request data provided"),
    (
        OperationalError,
        ErrorType.DATABASE_UNAVAILABLE,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable",
    ),
    (SQLAlchemyError, ErrorType.DATABASE_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR, "Database operation failed"),
    (RedisError, ErrorType.CACHE_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR, "Cache operation failed"),
]


def classify_exception(exc: Exception) -> Tuple[str, int, str]:
    """
    Map an exception to (error type, HTTP status, user-facing message).

    Domain errors keep their own message since it is written for users.
    Everything else gets a generic message so internals never leak.
    """
    for exc_class, error_type, status_code, default_message in EXCEPTION_RULES:
        if isinstance(exc, exc_class):
            message = exc.message if isinstance(exc, ComplyGridError) else default_message
            return error_type, status_code, message

    return ErrorType.INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error occurred"


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch-all for exceptions routes did not translate themselves"""

    def __init__(self, app, include_debug_info: bool = False):
        super().__init__(app)
        self.include_debug_info = include_debug_info

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return self.build_response(request, exc)

    def build_response(self, request: Request, exc: Exception) -> JSONResponse:
        error_id = uuid.uuid4().hex[:8]
        error_type, status_code, message = classify_exception(exc)

        details = []
        if isinstance(exc, ComplyGridError) or self.include_debug_info:
            details.append(ErrorDetail(message=str(exc), type=type(exc).__name__))
        if self.include_debug_info:
            details.append(ErrorDetail(message=traceback.format_exc(), type="traceback"))

        if status_code >= 500:
            logger.error(
                f"Unhandled {type(exc).__name__} ({error_id}) on {request.method} {request.url.path}: {exc}",
                exc_info=True,
            )
        else:
            logger.warning(f"{type(exc).__name__} ({error_id}) on {request.method} {request.url.path}: {exc}")

        body = APIErrorResponse(
            error=error_type,
            message=message,
            details=details,
            error_id=error_id,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))
