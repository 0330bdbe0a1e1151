"""Custom middleware for request correlation, metrics, and logging."""

import logging
import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match
from starlette.types import ASGIApp

from .config import Settings
from .observability import REQUEST_COUNT, REQUEST_DURATION

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that tags each request with an ID.

    The ID comes from the X-Request-ID header or is generated, is echoed in
    the response and is bound into the structlog context for the request.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.header_name] = request_id
        return response


def _route_template(request: Request) -> str:
    """Matched route path (e.g. "/v1/fare/get") so metric labels stay bounded."""
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
    return "unmatched"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs HTTP requests and records request metrics.

    Every request is counted and timed; paths in ``skip_paths`` are not logged.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        skip_paths: Optional[list] = None,
    ):
        super().__init__(app)
        self.log_request_body = log_request_body
        self.skip_paths = skip_paths or ["/health", "/ready", "/metrics", "/favicon.ico"]

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        endpoint = _route_template(request)
        should_log = request.url.path not in self.skip_paths

        log_data = {
            "request_id": getattr(request.state, "request_id", "unknown"),
            "method": request.method,
            "path": request.url.path,
            "client_ip": self._get_client_ip(request),
        }

        if should_log and self.log_request_body and request.method == "POST":
            body = await request.body()
            if body:
                log_data["request_body"] = body.decode("utf-8", errors="replace")[:1000]

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status_code="500").inc()
            REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(duration)
            logger.error(
                "HTTP request failed",
                extra={**log_data, "error": str(e), "duration_ms": round(duration * 1000, 2)}
            )
            raise

        duration = time.perf_counter() - start_time
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=str(response.status_code)
        ).inc()
        REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(duration)

        if should_log:
            log_data.update({
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
            })
            if response.status_code >= 500:
                logger.error("HTTP request completed with server error", extra=log_data)
            elif response.status_code >= 400:
                logger.warning("HTTP request completed with client error", extra=log_data)
            else:
                logger.info("HTTP request completed successfully", extra=log_data)

        return response


def setup_middleware(app, settings: Settings, enable_logging: bool = True) -> None:
    """
    Setup custom middleware on the FastAPI app.

    Args:
        app: FastAPI application instance
        settings: Application settings
        enable_logging: Whether to enable request logging middleware
    """
    # Last added runs first
    if enable_logging:
        app.add_middleware(
            LoggingMiddleware,
            log_request_body=settings.debug and not settings.is_production,
        )

    app.add_middleware(RequestIDMiddleware)
