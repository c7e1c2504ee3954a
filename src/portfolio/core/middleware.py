"""Logging and deadline middleware for HTTP requests and responses."""

import asyncio
import logging
import time
from collections.abc import Callable

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses with timing metrics.

    Automatically logs:
    - Incoming requests with method, path, and client information
    - Response status codes and processing time
    - Adds X-Process-Time header for observability

    Skips logging for health checks and API documentation endpoints.
    """

    def __init__(self, app: ASGIApp) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application instance
        """
        super().__init__(app)
        self._quiet_paths = {"/health", "/docs", "/openapi.json", "/redoc"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process the request and log details about it.

        Args:
            request: The incoming HTTP request
            call_next: The next middleware/route handler in the chain

        Returns:
            The HTTP response with timing header added
        """
        if request.url.path in self._quiet_paths:
            return await call_next(request)

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"→ {request.method} {request.url.path} from {client_host}")

        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO
        logger.log(
            log_level,
            f"← {request.method} {request.url.path} - {response.status_code} ({duration:.3f}s)",
        )

        response.headers["X-Process-Time"] = f"{duration:.3f}"
        return response


class RequestTimeoutMiddleware:
    """Bound every HTTP request by a deadline.

    The downstream application is cancelled when the deadline passes, so a
    request-scoped database session is closed without committing and any
    partially applied statements are rolled back. The client receives a
    504 response unless the response had already started.
    """

    def __init__(self, app: ASGIApp, timeout: float) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application instance
            timeout: Deadline in seconds; 0 or less disables it
        """
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self.timeout <= 0:
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), timeout=self.timeout)
        except TimeoutError:
            logger.error(
                f"Request {scope.get('method')} {scope.get('path')} "
                f"exceeded {self.timeout:.1f}s deadline and was cancelled"
            )
            if response_started:
                return
            response = JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"detail": "Request timed out", "error_code": "TIMEOUT"},
            )
            await response(scope, receive, send)
