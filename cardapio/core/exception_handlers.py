from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cardapio.core.errors import (
    GENERIC_FAILURE_MESSAGE,
    CardapioError,
    ForbiddenError,
    NotAuthenticatedError,
    NotFoundError,
    PersistenceError,
    StoreTimeoutError,
    ValidationError,
)

logger = logging.getLogger(__name__)


async def _validation_error(_request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.message, "errors": exc.errors},
    )


REQUEST_SECTIONS = ("body", "query", "path", "header", "cookie")


def _request_errors(exc: RequestValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in REQUEST_SECTIONS:
            loc = loc[1:]
        field = ".".join(loc) or "body"
        # primeiro erro de cada campo vale
        errors.setdefault(field, "Campo obrigatório" if error.get("type") == "missing" else "Valor inválido")
    return errors


async def _request_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": ValidationError.message, "errors": _request_errors(exc)},
    )


async def _not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


async def _timeout(_request: Request, exc: StoreTimeoutError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        content={"detail": exc.message, "retryable": True},
    )


async def _not_authenticated(_request: Request, exc: NotAuthenticatedError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": exc.message})


async def _forbidden(_request: Request, exc: ForbiddenError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.message})


async def _generic(request: Request, exc: CardapioError) -> JSONResponse:
    # PersistenceError já foi registrado com contexto na camada de store
    if not isinstance(exc, PersistenceError):
        logger.error("Unhandled service error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": GENERIC_FAILURE_MESSAGE},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(StoreTimeoutError, _timeout)
    app.add_exception_handler(NotAuthenticatedError, _not_authenticated)
    app.add_exception_handler(ForbiddenError, _forbidden)
    app.add_exception_handler(CardapioError, _generic)
