"""
Request ID tracking middleware for log correlation.
"""
import uuid
import time
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add unique request ID to each request.
    The ID is taken from X-Request-ID when the caller sends one.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID")
        if not request_id:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id

        start = time.time()
        try:
            response: Response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            duration_ms = int((time.time() - start) * 1000)
            logger.info(
                "Request completed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            return response

        except Exception as e:
            duration_ms = int((time.time() - start) * 1000)
            logger.error(
                f"Request failed: {str(e)}",
                extra={"request_id": request_id, "duration_ms": duration_ms},
                exc_info=True,
            )
            raise


def get_request_id(request: Request) -> str:
    """Request ID assigned by RequestIDMiddleware, or "unknown" outside a request."""
    return getattr(request.state, "request_id", "unknown")
