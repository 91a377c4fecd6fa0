# api/auth.py
"""
API de autenticación.
Endpoints: login, register, refresh.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from campotrack.schemas.auth import LoginIn, LoginOut, RefreshIn, RegisterIn, TokenPair
from campotrack.schemas.membership import AsignacionOut
from campotrack.schemas.user import UsuarioOut
from campotrack.services.auth_service import login, refresh_tokens, register_user
from campotrack.utils.db import get_db
from campotrack.utils.dependencies import get_optional_actor
from campotrack.utils.permissions import Actor

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=LoginOut,
    summary="Login",
    description=(
        "Autenticación por nombre de usuario o correo.\n\n"
        "**Response:**\n"
        "- `accessToken`: JWT para el header `Authorization: Bearer <token>`\n"
        "- `refreshToken`: JWT para renovar el par en `/auth/refresh`"
    )
)
def post_login(payload: LoginIn, db: Session = Depends(get_db)):
    user, tokens = login(db, payload.usuario, payload.contrasena)
    return {"ok": True, **tokens, "usuario": UsuarioOut.model_validate(user)}


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Registrar usuario",
    description=(
        "Registro público de usuarios.\n\n"
        "- Crear un `SuperAdmin` requiere token de SuperAdmin.\n"
        "- `asignacion` requiere token de SuperAdmin o AdminFinca de esa finca."
    )
)
def post_register(
        payload: RegisterIn,
        db: Session = Depends(get_db),
        actor: Actor | None = Depends(get_optional_actor),
):
    user, asignacion = register_user(db, actor, payload)
    body = {"ok": True, "usuario": UsuarioOut.model_validate(user)}
    if asignacion is not None:
        body["asignacion"] = AsignacionOut.model_validate(asignacion)
    return body


@router.post("/refresh", summary="Renovar tokens")
def post_refresh(payload: RefreshIn, db: Session = Depends(get_db)):
    """Emite un nuevo par {accessToken, refreshToken}"""
    tokens = TokenPair(**refresh_tokens(db, payload.refreshToken))
    return {"ok": True, **tokens.model_dump()}
