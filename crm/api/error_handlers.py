"""
Exception handlers para FastAPI.

Toda resposta de erro tem o formato:
    {"error": <classe>, "message": ..., "details": {...}}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from crm.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    CRMException,
    DatabaseError,
    ExternalAPIError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_EXCEPTION = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ExternalAPIError, 502),
    (DatabaseError, 500),
    (ConfigurationError, 500),
)


def status_code_for(exc: CRMException) -> int:
    for exc_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def crm_exception_handler(request: Request, exc: CRMException) -> JSONResponse:
    """Handler para todas as exceptions customizadas."""
    status_code = status_code_for(exc)
    error_type = exc.__class__.__name__

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{error_type}: {exc.message}",
        extra={"error_type": error_type, "details": exc.details, "path": request.url.path},
    )

    return JSONResponse(
        status_code=status_code,
        content={"error": error_type, "message": exc.message, "details": exc.details},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Corpo ou parametros fora do schema viram 400 no mesmo formato."""
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    logger.warning(f"Requisicao invalida em {request.url.path}: {errors}")

    return JSONResponse(
        status_code=400,
        content={"error": "ValidationError", "message": "Invalid request", "details": {"errors": errors}},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler para exceptions nao tratadas."""
    logger.exception(f"Erro nao tratado: {exc}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "Internal server error",
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Registra os exception handlers no app FastAPI.

    Usage:
        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(CRMException, crm_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
