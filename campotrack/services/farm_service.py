# ============================================================================
# SERVICES: services/farm_service.py
# ============================================================================

from sqlalchemy.orm import Session

from campotrack.enums.roles import RolFinca
from campotrack.models.farm import Finca
from campotrack.models.semoviente import Semoviente
from campotrack.schemas.farm import FincaCreate, FincaUpdate
from campotrack.services.common import aplicar_parche, get_or_404
from campotrack.services.membership_service import asignar_rol
from campotrack.utils.errors import ConflictError, ValidationError
from campotrack.utils.logging import get_logger
from campotrack.utils.permissions import Actor, Contexto, Operacion, ensure_can
from campotrack.utils.transactions import uow

logger = get_logger(module="farm_service")

CAMPOS_EDITABLES = frozenset({"nombre_finca", "ubicacion", "nombre_admin", "telefono_admin"})


def listar_fincas(db: Session, actor: Actor) -> list[Finca]:
    """
    Listar fincas según permisos del usuario.

    - SuperAdmin: todas las fincas
    - Usuario normal: solo las fincas donde tiene algún rol
    """
    q = db.query(Finca)
    if not actor.es_superadmin:
        ids = list(actor.roles_por_finca.keys())
        if not ids:
            return []
        q = q.filter(Finca.id_finca.in_(ids))
    return q.order_by(Finca.nombre_finca.asc()).all()


def obtener_finca(db: Session, actor: Actor, id_finca: int) -> Finca:
    finca = get_or_404(db, Finca, id_finca, "Finca no encontrada")
    ensure_can(actor, Operacion.LEER_FINCA, Contexto(id_finca=id_finca), "No autorizado para esta finca")
    return finca


def crear_finca(db: Session, actor: Actor, payload: FincaCreate) -> Finca:
    """
    Crear una nueva finca (solo SuperAdmin).

    Si viene administrador_id, ese usuario recibe AdminFinca en la misma transacción.
    """
    ensure_can(actor, Operacion.GESTIONAR_FINCAS, mensaje="Solo SuperAdmin puede crear fincas")

    data = payload.model_dump(exclude={"administrador_id"})
    with uow(db):
        finca = Finca(**data)
        db.add(finca)
        db.flush()  # id_finca
        if payload.administrador_id is not None:
            asignar_rol(db, payload.administrador_id, finca.id_finca, RolFinca.ADMIN_FINCA)

    db.refresh(finca)
    logger.info("Finca creada", id_finca=finca.id_finca, id_usuario=actor.id_usuario)
    return finca


def actualizar_finca(db: Session, actor: Actor, id_finca: int, payload: FincaUpdate) -> Finca:
    ensure_can(actor, Operacion.GESTIONAR_FINCAS, mensaje="Solo SuperAdmin puede editar fincas")
    finca = get_or_404(db, Finca, id_finca, "Finca no encontrada")

    cambios = payload.model_dump(exclude_unset=True)
    if not cambios:
        raise ValidationError("Debe enviar al menos un campo")
    if "nombre_finca" in cambios and cambios["nombre_finca"] is None:
        raise ValidationError("nombre_finca no puede ser nulo")

    cambia_admin = "administrador_id" in cambios
    nuevo_admin = cambios.pop("administrador_id", None)

    with uow(db):
        if cambios:
            aplicar_parche(finca, cambios, CAMPOS_EDITABLES)
        if cambia_admin:
            if nuevo_admin is None:
                finca.administrador_id = None
            else:
                asignar_rol(db, nuevo_admin, id_finca, RolFinca.ADMIN_FINCA)

    db.refresh(finca)
    logger.info("Finca actualizada", id_finca=id_finca, id_usuario=actor.id_usuario)
    return finca


def eliminar_finca(db: Session, actor: Actor, id_finca: int) -> None:
    """Eliminar finca (solo SuperAdmin). Las membresías caen en cascada; con semovientes se rechaza."""
    ensure_can(actor, Operacion.GESTIONAR_FINCAS, mensaje="Solo SuperAdmin puede eliminar fincas")
    finca = get_or_404(db, Finca, id_finca, "Finca no encontrada")

    tiene_semovientes = db.query(Semoviente.id_semoviente).filter(Semoviente.id_finca == id_finca).first()
    if tiene_semovientes is not None:
        raise ConflictError("No se puede eliminar la finca: tiene semovientes registrados")

    with uow(db):
        db.delete(finca)
    logger.info("Finca eliminada", id_finca=id_finca, id_usuario=actor.id_usuario)
