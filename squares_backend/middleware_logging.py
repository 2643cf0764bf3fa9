# squares_backend/middleware_logging.py
import logging
import time
import uuid
from typing import Callable
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from squares_backend.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

logger = logging.getLogger("squares.request")

def configure_logging(level: str | None = None) -> None:
    """Root logger setup; a no-op if the host (uvicorn, pytest) already configured it."""
    logging.basicConfig(level=(level or get_settings().LOG_LEVEL).upper(), format=LOG_FORMAT)

class RequestLogMiddleware(BaseHTTPMiddleware):
    """One line per request; OCR uploads are slow, so long ones log at WARNING."""

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        client = request.client.host if request.client else "-"

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "rid=%s client=%s %s %s status=500 duration_ms=%.2f UNHANDLED",
                rid, client, request.method, request.url.path, (time.perf_counter() - start) * 1000.0,
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000.0
        level = logging.WARNING if duration_ms > get_settings().SLOW_REQUEST_MS else logging.INFO
        logger.log(
            level,
            "rid=%s client=%s %s %s status=%s duration_ms=%.2f",
            rid, client, request.method, request.url.path, response.status_code, duration_ms,
        )
        response.headers["X-Request-ID"] = rid
        return response

def register_request_logging(app):
    configure_logging()
    app.add_middleware(RequestLogMiddleware)
