"""Map board errors onto HTTP responses with a ``{"detail", "code"}`` body."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from taskboard.core.errors import BadInputError, BoardError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    _register_board_error_handler(app)
    _register_validation_error_handler(app)
    _register_integrity_error_handler(app)
    _register_generic_error_handler(app)


def _register_board_error_handler(app: FastAPI) -> None:
    @app.exception_handler(BoardError)
    async def board_error_handler(request: Request, exc: BoardError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("%s on %s: %s", exc.kind, request.url.path, exc.message)
        else:
            logger.info("%s on %s: %s", exc.kind, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())


def _register_validation_error_handler(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", ""), "type": error.get("type", "")}
            for error in exc.errors()
        ]
        logger.info("Validation error on %s: %s", request.url.path, errors)
        content = BadInputError(errors[0]["msg"] if errors else None).to_response()
        content["errors"] = errors
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


def _register_integrity_error_handler(app: FastAPI) -> None:
    # Unique/foreign-key violations that slipped past service validation,
    # e.g. two concurrent creates racing on a label name.
    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("Integrity error on %s: %s", request.url.path, exc.orig)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=BadInputError("Request conflicts with existing data").to_response(),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception on %s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=BoardError().to_response(),
        )
