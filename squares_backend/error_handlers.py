import logging
from typing import Any, Dict, Optional, Type
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from squares_backend.core.errors import (
    DetectionCancelled,
    FeedUnavailable,
    GridNotFound,
    PoolNotFound,
    RecognitionUnavailable,
    SquaresError,
)

logger = logging.getLogger("squares.errors")

# Everything here is retryable from the UI; none of it should read as a 500.
ENGINE_ERROR_STATUS: Dict[Type[SquaresError], int] = {
    PoolNotFound: 404,
    DetectionCancelled: 409,
    GridNotFound: 422,
    RecognitionUnavailable: 503,
    FeedUnavailable: 503,
}

def status_for(exc: SquaresError) -> int:
    for cls, code in ENGINE_ERROR_STATUS.items():
        if isinstance(exc, cls):
            return code
    return 400

def error_response(code: int, message: str, kind: str, details: Optional[Any] = None) -> JSONResponse:
    body: Dict[str, Any] = {"error": message, "kind": kind}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=code, content=body)

def register_error_handlers(app: FastAPI):
    @app.exception_handler(SquaresError)
    async def engine_exc_handler(request: Request, exc: SquaresError):
        code = status_for(exc)
        logger.warning("%s %s %s -> %s: %s", type(exc).__name__, request.method, request.url.path, code, exc)
        return error_response(code, str(exc), type(exc).__name__)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        logger.warning("http %s %s -> %s: %r", request.method, request.url.path, exc.status_code, exc.detail)
        return error_response(exc.status_code, str(exc.detail or "HTTP error"), "HTTPException")

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        details = jsonable_errors(exc)
        logger.warning("invalid request %s %s (%d errors)", request.method, request.url.path, len(details))
        return error_response(422, "Validation error", "ValidationError", details)

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        logger.exception("unhandled %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error", type(exc).__name__)

def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic v2 puts the raw exception object under "ctx" for custom validators
    out = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        err.pop("input", None)
        out.append(err)
    return out
