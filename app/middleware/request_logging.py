# app/middleware/request_logging.py
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("app.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client = request.client.host if request.client else "-"
        logger.info(
            f'{client} "{request.method} {request.url.path}" '
            f"{response.status_code} {elapsed_ms:.1f}ms"
        )
        return response
