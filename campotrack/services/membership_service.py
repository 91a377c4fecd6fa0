"""
Registro de membresías usuario ↔ finca.

Invariantes:
- Como máximo una fila por (usuario, finca); reasignar reemplaza el rol.
- fincas.administrador_id, si no es NULL, apunta a un usuario con AdminFinca
  en esa finca. Ninguna operación de este módulo lo deja desactualizado.

`asignar_rol` / `revocar_rol` corren dentro de la unidad de trabajo de quien
llama (registro, alta de finca, endpoints de miembros).
"""
from sqlalchemy.orm import Session

from campotrack.enums.roles import RolFinca
from campotrack.models.farm import Finca
from campotrack.models.user import Usuario, UsuarioFincaRol
from campotrack.schemas.membership import MiembroIn
from campotrack.services.common import get_or_404
from campotrack.utils.errors import InvalidReferenceError, NotFoundError, ValidationError
from campotrack.utils.logging import get_logger
from campotrack.utils.permissions import Actor, Contexto, Operacion, ensure_can
from campotrack.utils.transactions import uow

logger = get_logger(module="membership_service")


def _finca_bloqueada(db: Session, id_finca: int) -> Finca | None:
    return db.query(Finca).filter(Finca.id_finca == id_finca).with_for_update().first()


def asignar_rol(db: Session, id_usuario: int, id_finca: int, rol: RolFinca | str) -> UsuarioFincaRol:
    """Upsert del único rol del usuario en la finca, manteniendo administrador_id."""
    rol = RolFinca(rol)

    if db.get(Usuario, id_usuario) is None:
        raise InvalidReferenceError("Usuario inexistente", detalle={"id_usuario": id_usuario})
    finca = _finca_bloqueada(db, id_finca)
    if finca is None:
        raise InvalidReferenceError("Finca inexistente", detalle={"id_finca": id_finca})

    asignacion = (
        db.query(UsuarioFincaRol)
        .filter(UsuarioFincaRol.id_usuario == id_usuario, UsuarioFincaRol.id_finca == id_finca)
        .with_for_update()
        .first()
    )
    rol_anterior = asignacion.rol if asignacion else None

    if asignacion is None:
        asignacion = UsuarioFincaRol(id_usuario=id_usuario, id_finca=id_finca, rol=rol)
        db.add(asignacion)
    else:
        asignacion.rol = rol

    if rol == RolFinca.ADMIN_FINCA:
        finca.administrador_id = id_usuario
    elif finca.administrador_id == id_usuario:
        # Degradación desde AdminFinca del administrador registrado
        finca.administrador_id = None

    db.flush()
    logger.info(
        "Rol asignado",
        id_usuario=id_usuario,
        id_finca=id_finca,
        rol=rol.value,
        rol_anterior=rol_anterior.value if rol_anterior else None,
    )
    return asignacion


def revocar_rol(db: Session, id_usuario: int, id_finca: int, rol: RolFinca | str) -> None:
    """Elimina la membresía solo si el rol almacenado coincide exactamente."""
    rol = RolFinca(rol)

    asignacion = (
        db.query(UsuarioFincaRol)
        .filter(
            UsuarioFincaRol.id_usuario == id_usuario,
            UsuarioFincaRol.id_finca == id_finca,
            UsuarioFincaRol.rol == rol,
        )
        .with_for_update()
        .first()
    )
    if asignacion is None:
        raise NotFoundError("No existía esa asignación")

    finca = _finca_bloqueada(db, id_finca)
    db.delete(asignacion)
    if finca is not None and rol == RolFinca.ADMIN_FINCA and finca.administrador_id == id_usuario:
        finca.administrador_id = None

    db.flush()
    logger.info("Rol revocado", id_usuario=id_usuario, id_finca=id_finca, rol=rol.value)


def listar_miembros(db: Session, id_finca: int) -> list[dict]:
    rows = (
        db.query(Usuario, UsuarioFincaRol.rol)
        .join(UsuarioFincaRol, UsuarioFincaRol.id_usuario == Usuario.id_usuario)
        .filter(UsuarioFincaRol.id_finca == id_finca)
        .order_by(Usuario.nombre_usuario.asc())
        .all()
    )
    return [
        {
            "id_usuario": u.id_usuario,
            "nombre_usuario": u.nombre_usuario,
            "nombre_completo": u.nombre_completo,
            "correo_electronico": u.correo_electronico,
            "rol_global": u.rol,
            "rol_en_finca": rol,
        }
        for u, rol in rows
    ]


def fincas_de_usuario(db: Session, id_usuario: int) -> frozenset[int]:
    rows = db.query(UsuarioFincaRol.id_finca).filter(UsuarioFincaRol.id_usuario == id_usuario).all()
    return frozenset(r[0] for r in rows)


# -------------------------------------------------------------------
# Operaciones expuestas por el API (autorización + transacción)
# -------------------------------------------------------------------
def listar_miembros_finca(db: Session, actor: Actor, id_finca: int) -> list[dict]:
    get_or_404(db, Finca, id_finca, "Finca no encontrada")
    ensure_can(actor, Operacion.LEER_FINCA, Contexto(id_finca=id_finca), "No perteneces a esta finca")
    return listar_miembros(db, id_finca)


def asignar_miembro(db: Session, actor: Actor, id_finca: int, payload: MiembroIn) -> UsuarioFincaRol:
    get_or_404(db, Finca, id_finca, "Finca no encontrada")
    ensure_can(
        actor, Operacion.ADMINISTRAR_FINCA, Contexto(id_finca=id_finca),
        "Solo SuperAdmin o AdminFinca de esta finca puede asignar roles",
    )
    with uow(db):
        asignacion = asignar_rol(db, payload.id_usuario, id_finca, payload.rol)
    db.refresh(asignacion)
    return asignacion


def revocar_miembro(
        db: Session,
        actor: Actor,
        id_finca: int,
        id_usuario: int,
        rol: RolFinca | None,
) -> None:
    get_or_404(db, Finca, id_finca, "Finca no encontrada")
    ensure_can(
        actor, Operacion.ADMINISTRAR_FINCA, Contexto(id_finca=id_finca),
        "Solo SuperAdmin o AdminFinca de esta finca puede revocar roles",
    )
    if rol is None:
        raise ValidationError("Debe indicar el rol a revocar (?rol=)")
    with uow(db):
        revocar_rol(db, id_usuario, id_finca, rol)
