from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campotrack.enums.roles import RolGlobal
from campotrack.models.farm import Finca
from campotrack.models.user import Usuario, UsuarioFincaRol
from campotrack.schemas.user import (
    CambioContrasenaIn,
    CambioContrasenaPropiaIn,
    PerfilUpdate,
    ResetContrasenaIn,
    UsuarioAdminUpdate,
)
from campotrack.services.common import aplicar_parche, get_or_404
from campotrack.services.membership_service import fincas_de_usuario
from campotrack.utils.errors import (
    AuthenticationError,
    ConflictError,
    ValidationError,
)
from campotrack.utils.logging import get_logger
from campotrack.utils.permissions import Actor, Contexto, Operacion, ensure_can
from campotrack.utils.security import hash_password, verify_password
from campotrack.utils.transactions import uow

logger = get_logger(module="user_service")

CAMPOS_PERFIL = frozenset({"nombre_completo", "correo_electronico"})
CAMPOS_ADMIN = frozenset({"nombre_usuario", "correo_electronico", "nombre_completo", "rol"})


def get_user(db: Session, id_usuario: int) -> Usuario:
    """Obtener usuario por ID"""
    return get_or_404(db, Usuario, id_usuario, "Usuario no encontrado")


def _validar_unicidad(db: Session, cambios: dict, excluir_id: int) -> None:
    filtros = []
    if cambios.get("nombre_usuario") is not None:
        filtros.append(Usuario.nombre_usuario == cambios["nombre_usuario"])
    if cambios.get("correo_electronico") is not None:
        filtros.append(Usuario.correo_electronico == cambios["correo_electronico"])
    if not filtros:
        return
    existe = (
        db.query(Usuario.id_usuario)
        .filter(or_(*filtros), Usuario.id_usuario != excluir_id)
        .first()
    )
    if existe:
        raise ConflictError("Usuario o correo ya registrado")


def _rechazar_nulos(cambios: dict, campos: tuple[str, ...]) -> None:
    for campo in campos:
        if campo in cambios and cambios[campo] is None:
            raise ValidationError(f"{campo} no puede ser nulo")


# -------------------------------------------------------------------
# Perfil propio
# -------------------------------------------------------------------
def get_profile(db: Session, actor: Actor) -> dict:
    """
    Perfil + fincas del usuario.
    SuperAdmin ve todas las fincas con rol_en_finca = 'SuperAdmin'.
    """
    user = get_user(db, actor.id_usuario)
    if actor.es_superadmin:
        fincas = [
            {"id_finca": f.id_finca, "nombre_finca": f.nombre_finca, "rol_en_finca": RolGlobal.SUPER_ADMIN.value}
            for f in db.query(Finca).order_by(Finca.nombre_finca.asc()).all()
        ]
    else:
        rows = (
            db.query(Finca.id_finca, Finca.nombre_finca, UsuarioFincaRol.rol)
            .join(UsuarioFincaRol, UsuarioFincaRol.id_finca == Finca.id_finca)
            .filter(UsuarioFincaRol.id_usuario == actor.id_usuario)
            .order_by(Finca.nombre_finca.asc())
            .all()
        )
        fincas = [{"id_finca": i, "nombre_finca": n, "rol_en_finca": r.value} for i, n, r in rows]
    return {"usuario": user, "fincas": fincas}


def update_profile(db: Session, actor: Actor, payload: PerfilUpdate) -> Usuario:
    user = get_user(db, actor.id_usuario)
    cambios = payload.model_dump(exclude_unset=True)
    _rechazar_nulos(cambios, ("nombre_completo", "correo_electronico"))
    _validar_unicidad(db, cambios, excluir_id=user.id_usuario)

    with uow(db):
        aplicar_parche(user, cambios, CAMPOS_PERFIL)
    db.refresh(user)
    return user


def change_own_password(db: Session, actor: Actor, payload: CambioContrasenaPropiaIn) -> None:
    """Cambiar la propia contraseña (401 si la actual no coincide)"""
    user = get_user(db, actor.id_usuario)
    if not verify_password(payload.contrasena_actual, user.contrasena):
        raise AuthenticationError("Contraseña actual incorrecta")
    if payload.nueva == payload.contrasena_actual:
        raise ValidationError("La nueva contraseña debe ser distinta de la actual")

    with uow(db):
        user.contrasena = hash_password(payload.nueva)
    logger.info("Contraseña cambiada", id_usuario=user.id_usuario)


# -------------------------------------------------------------------
# Administración
# -------------------------------------------------------------------
def list_users(db: Session, actor: Actor) -> list[Usuario]:
    ensure_can(actor, Operacion.LISTAR_USUARIOS, mensaje="Solo SuperAdmin puede listar usuarios")
    return db.query(Usuario).order_by(Usuario.nombre_usuario.asc()).all()


def update_user(db: Session, actor: Actor, id_usuario: int, payload: UsuarioAdminUpdate) -> Usuario:
    ensure_can(actor, Operacion.ADMINISTRAR_USUARIOS, mensaje="Solo SuperAdmin puede editar usuarios")
    user = get_user(db, id_usuario)

    cambios = payload.model_dump(exclude_unset=True)
    _rechazar_nulos(cambios, ("nombre_usuario", "correo_electronico", "nombre_completo", "rol"))
    _validar_unicidad(db, cambios, excluir_id=id_usuario)

    with uow(db):
        cambiados = aplicar_parche(user, cambios, CAMPOS_ADMIN)
    db.refresh(user)
    logger.info("Usuario actualizado", id_usuario=id_usuario, campos=cambiados, por=actor.id_usuario)
    return user


def delete_user(db: Session, actor: Actor, id_usuario: int) -> None:
    """
    Eliminar usuario.

    - SuperAdmin: cualquier usuario que no sea SuperAdmin.
    - AdminFinca: usuarios (no SuperAdmin) de alguna finca que administra.
    """
    user = get_user(db, id_usuario)
    contexto = Contexto(objetivo_rol_global=user.rol, objetivo_fincas=fincas_de_usuario(db, id_usuario))
    ensure_can(actor, Operacion.ELIMINAR_USUARIO, contexto, "No autorizado para eliminar este usuario")

    try:
        with uow(db):
            db.delete(user)
    except IntegrityError as e:
        raise ConflictError("No se puede eliminar: el usuario tiene registros asociados") from e
    logger.info("Usuario eliminado", id_usuario=id_usuario, por=actor.id_usuario)


def change_password(db: Session, actor: Actor, id_usuario: int, payload: CambioContrasenaIn) -> None:
    """
    - Propio usuario: requiere contrasena_actual (400 si no coincide).
    - SuperAdmin sobre terceros: solo `nueva`.
    - Cualquier otro caso: 403.
    """
    propio = actor.id_usuario == id_usuario
    if not propio:
        ensure_can(actor, Operacion.ADMINISTRAR_USUARIOS, mensaje="No autorizado para cambiar esta contraseña")
    user = get_user(db, id_usuario)

    if propio:
        if not payload.contrasena_actual or not verify_password(payload.contrasena_actual, user.contrasena):
            raise ValidationError("Contraseña actual incorrecta")

    with uow(db):
        user.contrasena = hash_password(payload.nueva)
    logger.info("Contraseña cambiada", id_usuario=id_usuario, por=actor.id_usuario)


def reset_password(db: Session, actor: Actor, id_usuario: int, payload: ResetContrasenaIn) -> None:
    ensure_can(actor, Operacion.ADMINISTRAR_USUARIOS, mensaje="Solo SuperAdmin puede restablecer contraseñas")
    user = get_user(db, id_usuario)
    with uow(db):
        user.contrasena = hash_password(payload.nueva)
    logger.info("Contraseña restablecida", id_usuario=id_usuario, por=actor.id_usuario)
