"""
Per-request logging context for the lesson and keyword API.

Each request runs inside ``log_context(request_id=..., operation="GET /path")``
so service logs written while serving it (index rebuilds, lookups) can be
traced back to the request. The id is taken from ``X-Request-ID`` when the
client sends one and echoed back on the response.
"""

import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from nora.config import get_settings
from nora.logging_config import get_logger, log_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Sets the logging context, echoes the request id, and times each request."""

    def __init__(self, app, slow_request_ms: Optional[int] = None):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms if slow_request_ms is not None else get_settings().slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        with log_context(request_id=request_id, operation=f"{request.method} {request.url.path}"):
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            response.headers[REQUEST_ID_HEADER] = request_id
            if duration_ms > self.slow_request_ms:
                logger.warning(
                    "Slow content request",
                    extra={"status_code": response.status_code, "duration_ms": duration_ms},
                )
            else:
                logger.debug(
                    "Served content request",
                    extra={"status_code": response.status_code, "duration_ms": duration_ms},
                )
        return response
