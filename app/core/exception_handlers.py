import logging
from typing import Any, Callable, Coroutine, Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from app.core.exceptions import AppError, ConflictError

logger = logging.getLogger(__name__)

ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


def _envelope(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, "data": None, **extra})


async def app_error_handler(request: Request, exc: Exception) -> JSONResponse:
    extra = {}
    if isinstance(exc, ConflictError) and exc.seat_ids:
        extra["seat_ids"] = exc.seat_ids
    return _envelope(exc.status_code, exc.message, **extra)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail))


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    return _envelope(status.HTTP_400_BAD_REQUEST, f"Invalid request: {problems}")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


EXCEPTION_HANDLERS: Dict[Type[Exception], ExceptionHandler] = {
    AppError: app_error_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_error_handler,
    Exception: unhandled_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
