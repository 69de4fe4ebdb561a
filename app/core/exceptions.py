"""
Excepciones de negocio y manejadores globales

Cada subclase fija su código HTTP; los manejadores convierten cualquier error
al sobre {success, code, message, data}.
"""
from typing import Optional

from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from loguru import logger

from .response import error_response


class AppException(Exception):
    """Excepción base; `code` es también el status HTTP"""
    code = 500
    default_message = "Error interno del servidor"

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None, data: Optional[dict] = None):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.data = data
        super().__init__(self.message)


class BadRequestException(AppException):
    code = 400
    default_message = "Parámetros inválidos"


class UnauthorizedException(AppException):
    code = 401
    default_message = "No autenticado"


class InsufficientCreditsException(AppException):
    """Saldo insuficiente; data lleva lo requerido y lo disponible"""
    code = 402

    def __init__(self, required: int, available: int, message: Optional[str] = None):
        super().__init__(
            message or f"Créditos insuficientes. Necesitas {required} créditos, tienes {available}",
            data={"required": required, "available": available},
        )


class ForbiddenException(AppException):
    code = 403
    default_message = "No tienes permisos para esta acción"


class NotFoundException(AppException):
    code = 404
    default_message = "Recurso no encontrado"


class ConflictException(AppException):
    code = 409
    default_message = "El recurso ya existe"


class ExternalServiceException(AppException):
    """Stripe o el LLM fallaron"""
    code = 502
    default_message = "Error al comunicarse con un servicio externo"


def _envelope(status_code: int, message: str, data=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(message=message, code=status_code, data=data),
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning("{} {}: {} ({})", request.method, request.url.path, exc.message, exc.code)
    return _envelope(exc.code, exc.message, exc.data)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning("{} {}: {} ({})", request.method, request.url.path, exc.detail, exc.status_code)
    return _envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    summary = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in errors
    )
    logger.warning("{} {}: validación fallida: {}", request.method, request.url.path, summary)
    return _envelope(
        422,
        "Error de validación en la petición",
        {"errors": jsonable_encoder(errors, custom_encoder={Exception: str})},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Error no controlado en {} {}: {}", request.method, request.url.path, exc)
    return _envelope(500, "Error interno del servidor")
