"""Middleware configuration for the HTTP API."""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, time it and log the outcome.

    The request id is taken from the incoming X-Request-ID header when the
    dashboard sends one, echoed on the response and attached to every log
    line this middleware writes (surfaced as a field by StructuredFormatter).
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        context = {"request_id": request_id, "endpoint": request.url.path}
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} failed after "
                f"{time.perf_counter() - started:.3f}s: {e}",
                exc_info=True,
                extra=context,
            )
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "detail": "An unexpected error occurred"},
                headers={REQUEST_ID_HEADER: request_id},
            )

        elapsed = time.perf_counter() - started
        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        response.headers[REQUEST_ID_HEADER] = request_id

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s",
            extra=context,
        )
        return response


def setup_middleware(app) -> None:
    """Setup application middleware.

    Parameters:
        app: FastAPI application instance
    """
    app.add_middleware(RequestLoggingMiddleware)
