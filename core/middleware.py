import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from utils.logger import get_logger

logger = get_logger("Middleware")

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms} ms)",
            extra={"method": request.method, "path": request.url.path, "status": response.status_code}
        )
        return response
