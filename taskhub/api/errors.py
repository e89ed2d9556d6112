import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import settings

logger = logging.getLogger("taskhub.errors")


def _error_body(request: Request, error: str, status_code: int, **extra) -> dict:
    return {"error": error, "status": status_code, "path": request.url.path, **extra}


def register_exception_handlers(app: FastAPI) -> None:
    """Attach consistent JSON error handlers.

    Missing or malformed input is a 400, unique-key violations are a 400 and
    anything unexpected becomes a 500 (with a traceback in development).
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                request,
                exc.detail if isinstance(exc.detail, str) else "HTTPError",
                exc.status_code,
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(
                request,
                "ValidationError",
                status.HTTP_400_BAD_REQUEST,
                details=jsonable_encoder(exc.errors()),
            ),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("integrity error path=%s detail=%s", request.url.path, exc.orig)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(request, "Duplicate or conflicting value", status.HTTP_400_BAD_REQUEST),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error path=%s", request.url.path)
        extra = {}
        if settings.ENVIRONMENT == "development":
            extra["traceback"] = traceback.format_exception(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                request,
                "Internal Server Error",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                **extra,
            ),
        )
