# services/registro_medico_service.py
"""
Registros médicos (eventos sanitarios) de un semoviente.

Permisos sobre la finca actual del semoviente:
- Listar: cualquier rol en la finca.
- Crear / editar: AdminFinca, Empleado o Veterinario.
- Eliminar: solo AdminFinca.
"""
from sqlalchemy.orm import Session

from campotrack.models.registro_medico import RegistroMedico
from campotrack.models.semoviente import Semoviente
from campotrack.schemas.registro_medico import RegistroMedicoCreate, RegistroMedicoUpdate
from campotrack.services.common import aplicar_parche, get_or_404
from campotrack.utils.errors import NotFoundError, ValidationError
from campotrack.utils.logging import get_logger
from campotrack.utils.permissions import Actor, Contexto, Operacion, ensure_can
from campotrack.utils.transactions import uow

logger = get_logger(module="registro_medico_service")

CAMPOS_EDITABLES = frozenset(RegistroMedicoUpdate.model_fields)


def _semoviente_autorizado(db: Session, actor: Actor, id_semoviente: int, operacion: Operacion) -> Semoviente:
    semoviente = get_or_404(db, Semoviente, id_semoviente, "Semoviente no encontrado")
    ensure_can(actor, operacion, Contexto(id_finca=semoviente.id_finca), "No autorizado para esta finca")
    return semoviente


def _registro_de(db: Session, id_semoviente: int, id_registro: int) -> RegistroMedico:
    registro = db.get(RegistroMedico, id_registro)
    if registro is None or registro.id_semoviente != id_semoviente:
        raise NotFoundError("Registro médico no encontrado")
    return registro


def listar_registros(db: Session, actor: Actor, id_semoviente: int) -> list[RegistroMedico]:
    _semoviente_autorizado(db, actor, id_semoviente, Operacion.LEER_FINCA)
    return (
        db.query(RegistroMedico)
        .filter(RegistroMedico.id_semoviente == id_semoviente)
        .order_by(RegistroMedico.fecha_consulta.desc(), RegistroMedico.id_registro_medico.desc())
        .all()
    )


def crear_registro(db: Session, actor: Actor, id_semoviente: int, payload: RegistroMedicoCreate) -> RegistroMedico:
    _semoviente_autorizado(db, actor, id_semoviente, Operacion.ESCRIBIR_REGISTROS)
    with uow(db):
        registro = RegistroMedico(id_semoviente=id_semoviente, **payload.model_dump())
        db.add(registro)
    db.refresh(registro)
    logger.info(
        "Registro médico creado",
        id_registro_medico=registro.id_registro_medico,
        id_semoviente=id_semoviente,
        id_usuario=actor.id_usuario,
    )
    return registro


def actualizar_registro(
        db: Session,
        actor: Actor,
        id_semoviente: int,
        id_registro: int,
        payload: RegistroMedicoUpdate,
) -> RegistroMedico:
    _semoviente_autorizado(db, actor, id_semoviente, Operacion.ESCRIBIR_REGISTROS)
    registro = _registro_de(db, id_semoviente, id_registro)

    cambios = payload.model_dump(exclude_unset=True)
    for campo in ("fecha_consulta", "tipo_evento_medico"):
        if campo in cambios and cambios[campo] is None:
            raise ValidationError(f"{campo} no puede ser nulo")

    with uow(db):
        aplicar_parche(registro, cambios, CAMPOS_EDITABLES)
    db.refresh(registro)
    return registro


def eliminar_registro(db: Session, actor: Actor, id_semoviente: int, id_registro: int) -> None:
    _semoviente_autorizado(db, actor, id_semoviente, Operacion.ADMINISTRAR_FINCA)
    registro = _registro_de(db, id_semoviente, id_registro)
    with uow(db):
        db.delete(registro)
    logger.info("Registro médico eliminado", id_registro_medico=id_registro, id_usuario=actor.id_usuario)
