from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from campotrack.schemas.movimiento import MovimientoIn, MovimientoOut
from campotrack.services.lifecycle_service import MENSAJES_TRANSICION, listar_movimientos, registrar_movimiento
from campotrack.utils.db import get_db
from campotrack.utils.dependencies import get_current_actor
from campotrack.utils.permissions import Actor

router = APIRouter(prefix="/semovientes/{id_semoviente}/movimientos", tags=["movimientos"])


@router.post("", status_code=status.HTTP_201_CREATED)
def post_movimiento(
        id_semoviente: int,
        payload: MovimientoIn,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """
    Registrar Traslado, Venta o Muerte.

    - Solo semovientes en estado 'Activo'.
    - Requiere AdminFinca de la finca de origen.
    - Traslado: `destino_id` obligatorio y distinto de la finca actual.
    - Venta: `valor` obligatorio y positivo.
    """
    movimiento = registrar_movimiento(db, actor, id_semoviente, payload)
    return {
        "ok": True,
        "mensaje": MENSAJES_TRANSICION[payload.tipo],
        "id_movimiento": movimiento.id_movimiento,
    }


@router.get("")
def get_movimientos(id_semoviente: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    """Historial del semoviente, más reciente primero"""
    movimientos = listar_movimientos(db, actor, id_semoviente)
    return {"ok": True, "movimientos": [MovimientoOut.model_validate(m) for m in movimientos]}
