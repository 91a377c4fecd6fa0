from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from campotrack.enums.roles import RolGlobal
from campotrack.models.user import Usuario, UsuarioFincaRol
from campotrack.utils.db import get_db
from campotrack.utils.errors import AuthenticationError, ValidationError
from campotrack.utils.permissions import Actor
from campotrack.utils.security import bearer_scheme, decode_access_token


def build_actor(db: Session, user: Usuario) -> Actor:
    """Actor con el rol global vigente en BD y sus roles por finca."""
    rows = (
        db.query(UsuarioFincaRol.id_finca, UsuarioFincaRol.rol)
        .filter(UsuarioFincaRol.id_usuario == user.id_usuario)
        .all()
    )
    return Actor(
        id_usuario=user.id_usuario,
        nombre_usuario=user.nombre_usuario,
        rol_global=RolGlobal(user.rol),
        roles_por_finca={id_finca: rol for id_finca, rol in rows},
    )


def _actor_from_token(db: Session, token: str) -> Actor:
    payload = decode_access_token(token)
    if not payload:
        raise AuthenticationError("Token inválido o expirado")
    user = db.get(Usuario, int(payload["sub"]))
    if not user:
        raise AuthenticationError("Usuario no encontrado")
    return build_actor(db, user)


def get_current_actor(
        db: Session = Depends(get_db),
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Token requerido")
    return _actor_from_token(db, credentials.credentials)


def get_optional_actor(
        db: Session = Depends(get_db),
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor | None:
    """Para /auth/register: sin token se registra como anónimo; con token inválido, 401."""
    if credentials is None or not credentials.credentials:
        return None
    return _actor_from_token(db, credentials.credentials)


def get_finca_id(
        id_finca: int | None = None,
        x_finca_id: str | None = Header(None, alias="X-Finca-Id"),
) -> int | None:
    """Finca de contexto: query `id_finca` o header `X-Finca-Id`."""
    if id_finca is not None:
        return id_finca
    if x_finca_id is None or x_finca_id.strip() == "":
        return None
    try:
        return int(x_finca_id)
    except ValueError as e:
        raise ValidationError("X-Finca-Id inválido", detalle={"X-Finca-Id": x_finca_id}) from e
