"""
Custom middleware for the SiteGuard API
Request tracking, timing logs, and a JSON fallback for unhandled errors
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an ID, reusing one supplied by the caller
    """
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log method, path, status and duration of every request
    """
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.monotonic()
        route = f"{request.method} {request.url.path}"
        logger.info(f"{route} started (ID: {_request_id(request)})")

        response = await call_next(request)

        elapsed = time.monotonic() - started
        logger.info(
            f"{route} -> {response.status_code} in {elapsed:.3f}s "
            f"(ID: {_request_id(request)})"
        )
        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Turn any exception escaping a route into a JSON 500 response
    """
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            request_id = _request_id(request)
            logger.error(f"Unhandled error in {request.method} {request.url.path} (ID: {request_id}): {exc}", exc_info=True)

            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal Server Error",
                    "message": "An unexpected error occurred",
                    "request_id": request_id,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            )


def setup_middleware(app):
    """
    Install the middleware stack on a FastAPI application

    Args:
        app: FastAPI application instance
    """
    # Last added runs outermost: ID, then logging, then error handling
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    logger.info("Middleware setup complete")
