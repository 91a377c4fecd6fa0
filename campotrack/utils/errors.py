"""
Taxonomía de errores del dominio y handlers que los traducen al sobre
de respuesta `{ok: false, mensaje, detalle?, issues?}`.
"""
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from campotrack.utils.logging import get_logger

logger = get_logger(module="errors")


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Error interno del servidor"

    def __init__(self, mensaje: str | None = None, detalle: Any = None, issues: list | None = None):
        self.mensaje = mensaje or self.default_message
        self.detalle = detalle
        self.issues = issues
        super().__init__(self.mensaje)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Datos inválidos"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Token requerido"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Sin permisos"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Recurso no encontrado"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicto con el estado actual del recurso"


class InvalidReferenceError(AppError):
    """Referencia a una entidad inexistente (FK inválida)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Referencia inválida"


class InvalidStateError(AppError):
    """Transición de ciclo de vida no permitida."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Transición de estado no permitida"


def error_body(mensaje: str, detalle: Any = None, issues: list | None = None) -> dict:
    body: dict[str, Any] = {"ok": False, "mensaje": mensaje}
    if detalle is not None:
        body["detalle"] = detalle
    if issues is not None:
        body["issues"] = issues
    return body


def _normalize_errors(errs):
    norm = []
    for e in errs:
        e = dict(e)
        val = e.get("input")
        if isinstance(val, (bytes, bytearray)):
            e["input"] = val.decode("utf-8", errors="ignore")
        # ctx puede traer excepciones no serializables (p. ej. ValueError de un validator)
        if "ctx" in e:
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        e.pop("url", None)
        norm.append(e)
    return norm


def install_error_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("Error de aplicación en {} {}: {}", request.method, request.url.path, exc.mensaje)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.mensaje, exc.detalle, exc.issues),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Datos inválidos", issues=_normalize_errors(exc.errors())),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_handler(request: Request, exc: IntegrityError):
        logger.warning("Violación de integridad en {} {}: {}", request.method, request.url.path, exc.orig)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_body("Conflicto por restricción de integridad", detalle=str(exc.orig)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_handler(request: Request, exc: StarletteHTTPException):
        mensaje = exc.detail if isinstance(exc.detail, str) else "Error en la solicitud"
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            mensaje = "Ruta no encontrada"
        return JSONResponse(status_code=exc.status_code, content=error_body(mensaje), headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error("Error no controlado en {} {}", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Error interno del servidor"),
        )
