"""
Observability middleware and logging setup.

Adds correlation IDs and structured logging context to requests.
"""

import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("icondo.requests")


def configure_logging(level: str = "INFO") -> None:
    """Configure the icondo logger hierarchy once at startup."""
    root = logging.getLogger("icondo")
    if root.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root.addHandler(handler)
    root.setLevel(level.upper())


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # Reuse the caller's correlation id when the front desk app sends one
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))

        start_time = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}"

        log_data = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "ip": request.client.host if request.client else "unknown"
        }
        message = "%(method)s %(path)s -> %(status_code)s (%(duration_ms)sms) [%(correlation_id)s]" % log_data

        # 5xx as errors, 4xx as warnings
        if response.status_code >= 500:
            logger.error(message, extra=log_data)
        elif response.status_code >= 400:
            logger.warning(message, extra=log_data)
        else:
            logger.info(message, extra=log_data)

        return response
