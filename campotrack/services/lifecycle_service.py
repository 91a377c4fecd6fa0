# services/lifecycle_service.py
"""
Máquina de estados del ciclo de vida de un semoviente.

Estados: Activo (inicial), Traslado, Vendido, Fallecido, Inactivo, Robado, Perdido.

Transiciones con asiento en el ledger (exigen estado 'Activo'):
- Traslado → estado 'Traslado', finca = destino.
- Venta    → estado 'Vendido', baja con motivo 'Venta' y valor > 0.
- Muerte   → estado 'Fallecido', baja con motivo 'Muerte'.

Cambio manual de estado: cualquier estado destino, sin asiento en el ledger.

Todas exigen AdminFinca de la finca actual (o SuperAdmin). En las transiciones
con asiento el orden es: existencia (404) → estado 'Activo' (400) → permiso (403)
→ datos de la operación; el cambio manual valida existencia y luego permiso.
La fila del semoviente se bloquea (FOR UPDATE) y la mutación y el asiento se
confirman en una sola transacción.
"""
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from campotrack.enums.enums import EstadoSemoviente, TipoMovimiento, TipoTransicion
from campotrack.models.farm import Finca
from campotrack.models.movimiento import MovimientoSemoviente
from campotrack.models.semoviente import Semoviente
from campotrack.schemas.movimiento import MovimientoIn
from campotrack.services.common import get_or_404
from campotrack.utils.datetime_utils import today_local
from campotrack.utils.errors import InvalidStateError, NotFoundError, ValidationError
from campotrack.utils.logging import get_logger
from campotrack.utils.permissions import Actor, Contexto, Operacion, ensure_can
from campotrack.utils.transactions import uow

logger = get_logger(module="lifecycle_service")

# Mensaje por tipo de transición para la respuesta del API
MENSAJES_TRANSICION = {
    TipoTransicion.TRASLADO: "Traslado registrado",
    TipoTransicion.VENTA: "Venta registrada. Semoviente actualizado a estado 'Vendido'.",
    TipoTransicion.MUERTE: "Muerte registrada. Semoviente actualizado a estado 'Fallecido'.",
}


def _bloquear_semoviente(db: Session, id_semoviente: int) -> Semoviente:
    return get_or_404(db, Semoviente, id_semoviente, "Semoviente no encontrado", for_update=True)


def _autorizar_admin(actor: Actor, semoviente: Semoviente) -> None:
    ensure_can(
        actor, Operacion.ADMINISTRAR_FINCA, Contexto(id_finca=semoviente.id_finca),
        "No autorizado: debe ser AdminFinca de la finca de origen",
    )


def _exigir_activo(semoviente: Semoviente) -> None:
    if semoviente.estado != EstadoSemoviente.ACTIVO:
        raise InvalidStateError(
            f"No se puede mover un semoviente que no está 'Activo' (estado actual: {semoviente.estado.value})"
        )


def _semoviente_para_transicion(db: Session, actor: Actor, id_semoviente: int) -> Semoviente:
    """Existencia (404) → estado 'Activo' (400) → AdminFinca de la finca actual (403)."""
    semoviente = _bloquear_semoviente(db, id_semoviente)
    _exigir_activo(semoviente)
    _autorizar_admin(actor, semoviente)
    return semoviente


def _asentar(
        db: Session,
        actor: Actor,
        semoviente: Semoviente,
        tipo: TipoMovimiento,
        *,
        finca_origen_id: int | None,
        finca_destino_id: int | None = None,
        valor: Decimal | None = None,
        observaciones: str | None = None,
        fecha: date | None = None,
) -> MovimientoSemoviente:
    """Inserta un asiento en el ledger. Nunca se actualiza ni se borra uno existente."""
    movimiento = MovimientoSemoviente(
        id_semoviente=semoviente.id_semoviente,
        nro_marca=semoviente.nro_marca,
        tipo_movimiento=tipo,
        fecha_movimiento=fecha or today_local(),
        finca_origen_id=finca_origen_id,
        finca_destino_id=finca_destino_id,
        valor=valor,
        observaciones=observaciones,
        registrado_por=actor.id_usuario,
    )
    db.add(movimiento)
    db.flush()
    return movimiento


def _dar_de_baja(semoviente: Semoviente, motivo: TipoMovimiento, observaciones: str | None) -> None:
    hoy = today_local()
    semoviente.fecha_salida = hoy
    semoviente.fecha_baja = hoy
    semoviente.motivo_baja = motivo.value
    semoviente.observaciones_baja = observaciones


def transferir(
        db: Session,
        actor: Actor,
        id_semoviente: int,
        destino_id: int | None,
        observaciones: str | None = None,
) -> MovimientoSemoviente:
    with uow(db):
        semoviente = _semoviente_para_transicion(db, actor, id_semoviente)

        if destino_id is None:
            raise ValidationError("destino_id es requerido para Traslado")
        if destino_id == semoviente.id_finca:
            raise ValidationError("El destino debe ser distinto a la finca actual")
        if db.get(Finca, destino_id) is None:
            raise NotFoundError("Finca destino inexistente")

        origen = semoviente.id_finca
        semoviente.id_finca = destino_id
        semoviente.estado = EstadoSemoviente.TRASLADO
        movimiento = _asentar(
            db, actor, semoviente, TipoMovimiento.TRASLADO,
            finca_origen_id=origen, finca_destino_id=destino_id, observaciones=observaciones,
        )

    logger.info(
        "Traslado registrado",
        id_semoviente=id_semoviente,
        finca_origen=origen,
        finca_destino=destino_id,
        id_usuario=actor.id_usuario,
    )
    return movimiento


def vender(
        db: Session,
        actor: Actor,
        id_semoviente: int,
        valor: Decimal | None,
        observaciones: str | None = None,
) -> MovimientoSemoviente:
    with uow(db):
        semoviente = _semoviente_para_transicion(db, actor, id_semoviente)

        if valor is None or valor <= 0:
            raise ValidationError('El "valor" (precio de venta) es requerido para una Venta')

        semoviente.estado = EstadoSemoviente.VENDIDO
        _dar_de_baja(semoviente, TipoMovimiento.VENTA, observaciones)
        movimiento = _asentar(
            db, actor, semoviente, TipoMovimiento.VENTA,
            finca_origen_id=semoviente.id_finca, valor=valor, observaciones=observaciones,
        )

    logger.info("Venta registrada", id_semoviente=id_semoviente, valor=str(valor), id_usuario=actor.id_usuario)
    return movimiento


def registrar_muerte(
        db: Session,
        actor: Actor,
        id_semoviente: int,
        observaciones: str | None = None,
) -> MovimientoSemoviente:
    with uow(db):
        semoviente = _semoviente_para_transicion(db, actor, id_semoviente)

        semoviente.estado = EstadoSemoviente.FALLECIDO
        _dar_de_baja(semoviente, TipoMovimiento.MUERTE, observaciones)
        movimiento = _asentar(
            db, actor, semoviente, TipoMovimiento.MUERTE,
            finca_origen_id=semoviente.id_finca, observaciones=observaciones,
        )

    logger.info("Muerte registrada", id_semoviente=id_semoviente, id_usuario=actor.id_usuario)
    return movimiento


def registrar_movimiento(db: Session, actor: Actor, id_semoviente: int, payload: MovimientoIn) -> MovimientoSemoviente:
    """Despacha el cuerpo de POST /semovientes/{id}/movimientos según `tipo`."""
    if payload.tipo == TipoTransicion.TRASLADO:
        return transferir(db, actor, id_semoviente, payload.destino_id, payload.observaciones)
    if payload.tipo == TipoTransicion.VENTA:
        return vender(db, actor, id_semoviente, payload.valor, payload.observaciones)
    return registrar_muerte(db, actor, id_semoviente, payload.observaciones)


def cambiar_estado(
        db: Session,
        actor: Actor,
        id_semoviente: int,
        estado: EstadoSemoviente | str,
        fecha: date | None = None,
        motivo: str | None = None,
        observaciones: str | None = None,
) -> Semoviente:
    """
    Cambio administrativo de estado (no exige 'Activo' y no escribe en el ledger).

    - A 'Activo': limpia los datos de baja.
    - A otro estado: solo sobrescribe los datos de baja que se envían.
    """
    estado = EstadoSemoviente(estado)
    with uow(db):
        semoviente = _bloquear_semoviente(db, id_semoviente)
        _autorizar_admin(actor, semoviente)
        anterior = semoviente.estado

        semoviente.estado = estado
        if estado == EstadoSemoviente.ACTIVO:
            semoviente.fecha_salida = None
            semoviente.fecha_baja = None
            semoviente.motivo_baja = None
            semoviente.observaciones_baja = None
        else:
            if fecha is not None:
                semoviente.fecha_baja = fecha
            if motivo is not None:
                semoviente.motivo_baja = motivo
            if observaciones is not None:
                semoviente.observaciones_baja = observaciones

    logger.info(
        "Estado cambiado manualmente",
        id_semoviente=id_semoviente,
        estado_anterior=anterior.value,
        estado_nuevo=estado.value,
        id_usuario=actor.id_usuario,
    )
    db.refresh(semoviente)
    return semoviente


# -------------------------------------------------------------------
# Lectura del ledger
# -------------------------------------------------------------------
def movimientos_de(db: Session, id_semoviente: int) -> list[MovimientoSemoviente]:
    return (
        db.query(MovimientoSemoviente)
        .filter(MovimientoSemoviente.id_semoviente == id_semoviente)
        .order_by(MovimientoSemoviente.fecha_movimiento.desc(), MovimientoSemoviente.id_movimiento.desc())
        .all()
    )


def _fincas_relacionadas(db: Session, semoviente: Semoviente) -> frozenset[int]:
    """Finca actual más toda finca de origen/destino en su historial."""
    rows = (
        db.query(MovimientoSemoviente.finca_origen_id, MovimientoSemoviente.finca_destino_id)
        .filter(MovimientoSemoviente.id_semoviente == semoviente.id_semoviente)
        .all()
    )
    fincas = {semoviente.id_finca}
    for origen, destino in rows:
        fincas.update(f for f in (origen, destino) if f is not None)
    return frozenset(fincas)


def listar_movimientos(db: Session, actor: Actor, id_semoviente: int) -> list[MovimientoSemoviente]:
    """Historial (más reciente primero), visible para miembros de cualquier finca relacionada."""
    semoviente = get_or_404(db, Semoviente, id_semoviente, "Semoviente no encontrado")
    ensure_can(
        actor,
        Operacion.LEER_FINCA,
        Contexto(id_finca=semoviente.id_finca, fincas_relacionadas=_fincas_relacionadas(db, semoviente)),
        "Acceso prohibido: no es miembro de ninguna finca relacionada con este semoviente",
    )
    return movimientos_de(db, id_semoviente)
