"""
API Middleware

Custom middleware for cross-cutting concerns.
"""

import math
import time
from collections.abc import Callable
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from toolgate.core.exceptions import RateLimitError, ToolgateError
from toolgate.observability.logging import StructuredLogger, get_logger

logger = get_logger("toolgate.api")


class TracingMiddleware(BaseHTTPMiddleware):
    """
    Adds request ids, timing headers and log context to requests.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get("X-Request-Id") or f"req_{uuid4().hex[:12]}"
        request.state.request_id = request_id

        start_time = time.perf_counter()

        with StructuredLogger.context(request_id=request_id):
            response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        return response


def error_response(error: ToolgateError) -> JSONResponse:
    """Render a ToolgateError with its HTTP status."""
    headers = {}
    if isinstance(error, RateLimitError):
        headers["Retry-After"] = str(max(1, math.ceil(error.retry_after_ms / 1000)))

    return JSONResponse(error.to_dict(), status_code=error.status_code, headers=headers)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        try:
            return await call_next(request)
        except ToolgateError as e:
            if e.status_code >= 500:
                logger.error("Request failed", error=e, path=request.url.path)
            return error_response(e)
        except Exception as e:
            logger.error("Unhandled error", error=e, path=request.url.path)
            return JSONResponse(
                {"error": "INTERNAL_ERROR", "message": "Internal server error"},
                status_code=500,
            )
