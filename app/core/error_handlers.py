"""
Exception handlers for the FastAPI application.

Application exceptions carry their own status code and render through
``BaseAppException.to_dict``. Database errors and anything unexpected
are logged with their traceback and answered with a generic 500.
"""

import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import BaseAppException, ErrorCode
from app.core.logging import get_logger

logger = get_logger(__name__)


def _error_body(code: ErrorCode, message: str) -> dict:
    return {
        "error": {
            "message": message,
            "code": code.value,
            "details": {},
            "type": "InternalError",
            "timestamp": int(time.time()),
        }
    }


async def handle_application_exception(request: Request, exc: BaseAppException) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Application exception: {exc.error_code.value} - {exc.message}",
        extra={
            "error_code": exc.error_code.value,
            "details": exc.details,
            "url": request.url.path,
            "method": request.method,
        }
    )

    body = exc.to_dict()
    body["error"]["timestamp"] = int(time.time())
    return JSONResponse(status_code=exc.status_code, content=body)


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        f"Database error: {exc}",
        exc_info=True,
        extra={"url": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(ErrorCode.DATABASE_ERROR, "Database operation failed"),
    )


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=True,
        extra={"url": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAppException, handle_application_exception)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(Exception, handle_unexpected_exception)
