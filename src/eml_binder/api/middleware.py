"""
Request middleware: request ids, access logging and the last-resort error handler.
"""

import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    return incoming[:64] if incoming else uuid.uuid4().hex


def setup_request_context_middleware(app: FastAPI) -> None:
    """
    Bind a request id to all log records of a request and log its outcome.

    The id is taken from an incoming ``X-Request-ID`` header when present and
    echoed back on the response together with ``X-Process-Time``.
    """

    @app.middleware("http")
    async def request_context(request: Request, call_next: Callable) -> Response:
        request_id = _request_id(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        start_time = time.perf_counter()

        response = await call_next(request)

        elapsed = time.perf_counter() - start_time
        logger.info(
            "Request completed",
            status_code=response.status_code,
            process_time_ms=round(elapsed * 1000, 2),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        structlog.contextvars.clear_contextvars()
        return response


def setup_error_handling_middleware(app: FastAPI) -> None:
    """
    Turn unhandled exceptions into a JSON 500 response.

    Expected failures (bad uploads, nothing to merge) are answered by the routes
    themselves; anything reaching this handler is a bug.
    """

    @app.middleware("http")
    async def handle_errors(request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error("Unhandled exception", error=str(e), exc_info=True)
            request_id = structlog.contextvars.get_contextvars().get("request_id")
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "Internal server error",
                    "error_code": getattr(e, "error_code", "internal_error"),
                    "request_id": request_id,
                },
                headers={REQUEST_ID_HEADER: request_id} if request_id else None,
            )
