# services/semoviente_service.py
from sqlalchemy.orm import Session

from campotrack.enums.enums import EstadoSemoviente, TipoIngreso, TipoMovimiento
from campotrack.models.catalog import Especie, Raza
from campotrack.models.farm import Finca
from campotrack.models.movimiento import MovimientoSemoviente
from campotrack.models.registro_medico import RegistroMedico
from campotrack.models.semoviente import Semoviente
from campotrack.schemas.semoviente import SemovienteCreate, SemovienteUpdate
from campotrack.services.common import aplicar_parche, get_or_404
from campotrack.services.lifecycle_service import movimientos_de
from campotrack.utils.errors import ConflictError, InvalidReferenceError, ValidationError
from campotrack.utils.logging import get_logger
from campotrack.utils.permissions import Actor, Contexto, Operacion, ensure_can
from campotrack.utils.transactions import uow

logger = get_logger(module="semoviente_service")

CAMPOS_EDITABLES = frozenset(SemovienteUpdate.model_fields)


# -------------------------------------------------------------------
# Validaciones de referencias
# -------------------------------------------------------------------
def _validar_raza_especie(db: Session, id_raza: int, id_especie: int) -> None:
    if db.get(Especie, id_especie) is None:
        raise InvalidReferenceError("Especie inexistente", detalle={"id_especie": id_especie})
    raza = db.get(Raza, id_raza)
    if raza is None:
        raise InvalidReferenceError("Raza inexistente", detalle={"id_raza": id_raza})
    if raza.id_especie != id_especie:
        raise ValidationError("La raza no pertenece a esa especie")


def _validar_progenitores(
        db: Session,
        id_madre: int | None,
        id_padre: int | None,
        id_semoviente: int | None = None,
) -> None:
    for campo, valor in (("id_madre", id_madre), ("id_padre", id_padre)):
        if valor is None:
            continue
        if id_semoviente is not None and valor == id_semoviente:
            raise ValidationError("Un semoviente no puede ser su propio progenitor", detalle={campo: valor})
        if db.get(Semoviente, valor) is None:
            raise InvalidReferenceError("Progenitor inexistente", detalle={campo: valor})


def _validar_unicos(db: Session, nro_marca: str | None, nro_registro: str | None, excluir_id: int | None = None):
    def _existe(col, valor) -> bool:
        q = db.query(Semoviente.id_semoviente).filter(col == valor)
        if excluir_id is not None:
            q = q.filter(Semoviente.id_semoviente != excluir_id)
        return q.first() is not None

    if nro_marca is not None and _existe(Semoviente.nro_marca, nro_marca):
        raise ConflictError("El número de marca ya está registrado", detalle={"nro_marca": nro_marca})
    if nro_registro is not None and _existe(Semoviente.nro_registro, nro_registro):
        raise ConflictError("El número de registro ya está registrado", detalle={"nro_registro": nro_registro})


# -------------------------------------------------------------------
# Lectura
# -------------------------------------------------------------------
def listar_semovientes(
        db: Session,
        actor: Actor,
        id_finca: int | None,
        incluir_inactivos: bool = False,
) -> list[Semoviente]:
    if id_finca is None:
        raise ValidationError("Debe indicar id_finca (query o header X-Finca-Id)")
    get_or_404(db, Finca, id_finca, "Finca no encontrada")
    ensure_can(actor, Operacion.LEER_FINCA, Contexto(id_finca=id_finca), "No autorizado para esta finca")

    q = db.query(Semoviente).filter(Semoviente.id_finca == id_finca)
    if not incluir_inactivos:
        q = q.filter(Semoviente.estado == EstadoSemoviente.ACTIVO)
    return q.order_by(Semoviente.nro_marca.asc()).all()


def obtener_semoviente(db: Session, actor: Actor, id_semoviente: int) -> Semoviente:
    semoviente = get_or_404(db, Semoviente, id_semoviente, "Semoviente no encontrado")
    ensure_can(actor, Operacion.LEER_FINCA, Contexto(id_finca=semoviente.id_finca), "No autorizado para esta finca")
    return semoviente


def ficha_completa(db: Session, actor: Actor, id_semoviente: int) -> dict:
    """Datos del semoviente + historial médico + historial de movimientos."""
    semoviente = obtener_semoviente(db, actor, id_semoviente)
    historial_medico = (
        db.query(RegistroMedico)
        .filter(RegistroMedico.id_semoviente == id_semoviente)
        .order_by(RegistroMedico.fecha_consulta.desc(), RegistroMedico.id_registro_medico.desc())
        .all()
    )
    return {
        "datos": semoviente,
        "historial_medico": historial_medico,
        "historial_movimientos": movimientos_de(db, id_semoviente),
    }


# -------------------------------------------------------------------
# Escritura
# -------------------------------------------------------------------
def crear_semoviente(db: Session, actor: Actor, payload: SemovienteCreate) -> Semoviente:
    """
    Alta de semoviente en estado 'Activo' con su asiento de origen
    (Nacimiento o Compra) en el ledger, todo en una transacción.
    """
    ensure_can(
        actor, Operacion.ADMINISTRAR_FINCA, Contexto(id_finca=payload.id_finca),
        "No autorizado: requiere AdminFinca de la finca",
    )
    if db.get(Finca, payload.id_finca) is None:
        raise InvalidReferenceError("Finca inexistente", detalle={"id_finca": payload.id_finca})
    _validar_raza_especie(db, payload.id_raza, payload.id_especie)
    _validar_progenitores(db, payload.id_madre, payload.id_padre)
    _validar_unicos(db, payload.nro_marca, payload.nro_registro)

    es_compra = payload.tipo_ingreso == TipoIngreso.COMPRA
    with uow(db):
        semoviente = Semoviente(
            **payload.model_dump(),
            estado=EstadoSemoviente.ACTIVO,
        )
        db.add(semoviente)
        db.flush()  # id_semoviente

        db.add(MovimientoSemoviente(
            id_semoviente=semoviente.id_semoviente,
            nro_marca=semoviente.nro_marca,
            tipo_movimiento=TipoMovimiento(payload.tipo_ingreso.value),
            fecha_movimiento=payload.fecha_ingreso,
            finca_origen_id=None,
            finca_destino_id=payload.id_finca,
            valor=payload.valor_compra if es_compra else None,
            registrado_por=actor.id_usuario,
        ))

    db.refresh(semoviente)
    logger.info(
        "Semoviente creado",
        id_semoviente=semoviente.id_semoviente,
        id_finca=semoviente.id_finca,
        tipo_ingreso=payload.tipo_ingreso.value,
        id_usuario=actor.id_usuario,
    )
    return semoviente


def actualizar_semoviente(db: Session, actor: Actor, id_semoviente: int, payload: SemovienteUpdate) -> Semoviente:
    semoviente = get_or_404(db, Semoviente, id_semoviente, "Semoviente no encontrado")
    ensure_can(
        actor, Operacion.ADMINISTRAR_FINCA, Contexto(id_finca=semoviente.id_finca),
        "No autorizado: requiere AdminFinca de esta finca",
    )

    cambios = payload.model_dump(exclude_unset=True)
    if not cambios:
        raise ValidationError("Debe enviar al menos un campo")
    for campo in ("nro_marca", "nombre", "fecha_nacimiento", "sexo", "id_raza", "id_especie"):
        if campo in cambios and cambios[campo] is None:
            raise ValidationError(f"{campo} no puede ser nulo")

    if "id_raza" in cambios or "id_especie" in cambios:
        _validar_raza_especie(
            db,
            cambios.get("id_raza", semoviente.id_raza),
            cambios.get("id_especie", semoviente.id_especie),
        )
    _validar_progenitores(db, cambios.get("id_madre"), cambios.get("id_padre"), id_semoviente)
    _validar_unicos(db, cambios.get("nro_marca"), cambios.get("nro_registro"), excluir_id=id_semoviente)

    with uow(db):
        cambiados = aplicar_parche(semoviente, cambios, CAMPOS_EDITABLES)

    db.refresh(semoviente)
    logger.info("Semoviente actualizado", id_semoviente=id_semoviente, campos=cambiados)
    return semoviente


def eliminar_semoviente(db: Session, actor: Actor, id_semoviente: int) -> None:
    """
    Borra el semoviente. La BD pone en NULL las referencias de madre/padre de
    sus crías y el id en el ledger (que se conserva), y borra sus registros médicos.
    """
    semoviente = get_or_404(db, Semoviente, id_semoviente, "Semoviente no encontrado")
    ensure_can(
        actor, Operacion.ADMINISTRAR_FINCA, Contexto(id_finca=semoviente.id_finca),
        "No autorizado: requiere AdminFinca de esta finca",
    )
    with uow(db):
        db.delete(semoviente)
    logger.info("Semoviente eliminado", id_semoviente=id_semoviente, id_usuario=actor.id_usuario)
