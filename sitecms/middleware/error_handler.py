"""Global error handlers rendering ``{"success": false, "message": ...}`` bodies."""
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from sitecms.config import settings
from sitecms.exceptions import (
    AppException,
    DuplicateSubmission,
    RateLimitExceeded,
    StorageError,
    ValidationError,
)
from sitecms.schemas.common import ErrorResponse

logger = structlog.get_logger()


def error_body(message: str, errors: dict | None = None, retry_after: int | None = None) -> dict:
    body = ErrorResponse(message=message, errors=errors or None, retry_after=retry_after)
    return body.model_dump(exclude_none=True)


def rate_limited_response(exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.detail, retry_after=exc.retry_after),
        headers={"Retry-After": str(exc.retry_after)},
    )


def _field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        message = error.get("msg", "Invalid value.")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, []).append(message)
    return errors


def _server_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "storage_error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    message = StorageError.default_detail
    if settings.expose_error_detail:
        message = f"{message} {exc}"
    return JSONResponse(status_code=500, content=error_body(message))


def setup_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        logger.info("rate_limit_exceeded", path=request.url.path, retry_after=exc.retry_after)
        return rate_limited_response(exc)

    @app.exception_handler(DuplicateSubmission)
    async def duplicate_handler(request: Request, exc: DuplicateSubmission) -> JSONResponse:
        logger.info("duplicate_submission", path=request.url.path)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.detail))

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        return _server_error(request, exc)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.detail, exc.errors))

    @app.exception_handler(AppException)
    async def app_exception_handler(_request: Request, exc: AppException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=error_body(ValidationError.default_detail, _field_errors(exc)),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        return _server_error(request, exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", error=str(exc), exc_info=True)
        return JSONResponse(status_code=500, content=error_body(AppException.default_detail))
