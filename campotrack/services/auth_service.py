# services/auth_service.py
"""
Servicio de autenticación.
Maneja login, registro y renovación del par de tokens JWT.
"""
from sqlalchemy import or_
from sqlalchemy.orm import Session

from campotrack.enums.roles import RolGlobal
from campotrack.models.user import Usuario, UsuarioFincaRol
from campotrack.schemas.auth import RegisterIn
from campotrack.services.membership_service import asignar_rol
from campotrack.utils.errors import AuthenticationError, AuthorizationError, ConflictError
from campotrack.utils.logging import get_logger
from campotrack.utils.permissions import Actor, Contexto, Decision, Operacion, can_perform, ensure_can
from campotrack.utils.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    token_claims,
    verify_password,
)
from campotrack.utils.transactions import uow

logger = get_logger(module="auth_service")


def authenticate_user(db: Session, usuario: str, contrasena: str) -> Usuario:
    """
    Autenticar por nombre de usuario o correo electrónico.

    Raises:
        AuthenticationError: Si las credenciales no son válidas
    """
    user = (
        db.query(Usuario)
        .filter(or_(Usuario.nombre_usuario == usuario, Usuario.correo_electronico == usuario))
        .first()
    )
    if not user or not verify_password(contrasena, user.contrasena):
        logger.info("Login fallido", usuario=usuario)
        raise AuthenticationError("Credenciales inválidas")
    return user


def issue_tokens(user: Usuario) -> dict:
    """Par {accessToken, refreshToken} con claims {sub, nombre_usuario, rol}."""
    claims = token_claims(user.id_usuario, user.nombre_usuario, RolGlobal(user.rol).value)
    return {
        "accessToken": create_access_token(claims),
        "refreshToken": create_refresh_token(claims),
    }


def login(db: Session, usuario: str, contrasena: str) -> tuple[Usuario, dict]:
    user = authenticate_user(db, usuario, contrasena)
    logger.info("Login correcto", id_usuario=user.id_usuario)
    return user, issue_tokens(user)


def refresh_tokens(db: Session, refresh_token: str) -> dict:
    payload = decode_refresh_token(refresh_token)
    if payload is None:
        raise AuthenticationError("Refresh token inválido o expirado")
    user = db.get(Usuario, int(payload["sub"]))
    if user is None:
        raise AuthenticationError("Usuario no encontrado")
    return issue_tokens(user)


def register_user(
        db: Session,
        actor: Actor | None,
        payload: RegisterIn,
) -> tuple[Usuario, UsuarioFincaRol | None]:
    """
    Registro de usuario.

    - Solo un SuperAdmin autenticado puede crear otro SuperAdmin.
    - `asignacion` requiere token de SuperAdmin o AdminFinca de esa finca.
    """
    if payload.rol_global == RolGlobal.SUPER_ADMIN:
        if actor is None or can_perform(actor, Operacion.CREAR_SUPERADMIN) == Decision.DENY:
            raise AuthorizationError("Solo un SuperAdmin puede crear otro SuperAdmin")

    if payload.asignacion is not None:
        if actor is None:
            raise AuthenticationError("Token requerido para asignar una finca")
        ensure_can(
            actor, Operacion.ADMINISTRAR_FINCA, Contexto(id_finca=payload.asignacion.id_finca),
            "Solo SuperAdmin o AdminFinca de esa finca puede asignar roles",
        )

    existe = (
        db.query(Usuario.id_usuario)
        .filter(or_(
            Usuario.nombre_usuario == payload.nombre_usuario,
            Usuario.correo_electronico == payload.correo_electronico,
        ))
        .first()
    )
    if existe:
        raise ConflictError("Usuario o correo ya registrado")

    asignacion = None
    with uow(db):
        user = Usuario(
            nombre_usuario=payload.nombre_usuario,
            correo_electronico=payload.correo_electronico,
            contrasena=hash_password(payload.contrasena),
            nombre_completo=payload.nombre_completo,
            rol=payload.rol_global,
        )
        db.add(user)
        db.flush()  # id_usuario

        if payload.asignacion is not None:
            asignacion = asignar_rol(db, user.id_usuario, payload.asignacion.id_finca, payload.asignacion.rol)

    db.refresh(user)
    if asignacion is not None:
        db.refresh(asignacion)
    logger.info(
        "Usuario registrado",
        id_usuario=user.id_usuario,
        rol=user.rol.value,
        registrado_por=actor.id_usuario if actor else None,
    )
    return user, asignacion
