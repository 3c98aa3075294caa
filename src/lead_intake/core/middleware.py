"""
Request logging middleware.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with an id and timing, and echoes both as headers."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        client_ip = self._get_client_ip(request)

        logger.info(
            f"Request started: {request.method} {request.url.path} "
            f"(request_id={request_id}, client_ip={client_ip})"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request failed: request_id={request_id}, error={type(e).__name__}: {e}, "
                f"process_time={round(process_time * 1000, 2)}ms"
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            f"Request completed: request_id={request_id}, status={response.status_code}, "
            f"process_time={round(process_time * 1000, 2)}ms"
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))
        return response

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"
