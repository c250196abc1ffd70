"""
Custom middleware for the FastAPI application.
"""
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

# Set up logging
logger = logging.getLogger(__name__)

# Polled by load balancers; only logged when they fail
QUIET_PATHS = {"/health"}


def _outcome_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id and logs how it ended.

    A client-supplied X-Request-ID is reused so frontend and API logs can be
    joined. Request bodies are never logged: they carry passwords and photos.
    """
    def __init__(self, app: ASGIApp, quiet_paths=None):
        super().__init__(app)
        self.quiet_paths = QUIET_PATHS if quiet_paths is None else set(quiet_paths)

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        path = request.url.path
        quiet = path in self.quiet_paths

        if not quiet:
            client_host = request.client.host if request.client else "unknown"
            logger.info(f"➡️ {request_id} {request.method} {path} from {client_host}")

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"❌ {request_id} {request.method} {path} failed after {time.perf_counter() - start_time:.4f}s: {str(e)}")
            raise

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        response.headers["X-Request-ID"] = request_id

        level = _outcome_level(response.status_code)
        if not quiet or level > logging.INFO:
            logger.log(level, f"⬅️ {request_id} {request.method} {path} -> {response.status_code} in {process_time:.4f}s")
        return response


def setup_middlewares(app):
    """
    Set up all custom middlewares for the application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(RequestLoggingMiddleware)
