from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campotrack.schemas.movimiento import MovimientoOut
from campotrack.schemas.registro_medico import RegistroMedicoOut
from campotrack.schemas.semoviente import EstadoUpdate, SemovienteCreate, SemovienteOut, SemovienteUpdate
from campotrack.services.lifecycle_service import cambiar_estado
from campotrack.services.semoviente_service import (
    actualizar_semoviente,
    crear_semoviente,
    eliminar_semoviente,
    ficha_completa,
    listar_semovientes,
    obtener_semoviente,
)
from campotrack.utils.db import get_db
from campotrack.utils.dependencies import get_current_actor, get_finca_id
from campotrack.utils.permissions import Actor

router = APIRouter(prefix="/semovientes", tags=["semovientes"])


@router.get("")
def get_semovientes(
        id_finca: int | None = Depends(get_finca_id),
        incluir_inactivos: bool = Query(
            False, alias="include_inactivos", description="Incluir semovientes no activos"
        ),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """
    Listar semovientes de una finca.

    La finca se toma de `?id_finca=` o del header `X-Finca-Id`;
    `?include_inactivos=true` incluye vendidos, fallecidos y trasladados.
    Por defecto solo los semovientes en estado 'Activo'.
    """
    semovientes = listar_semovientes(db, actor, id_finca, incluir_inactivos)
    return {"ok": True, "semovientes": [SemovienteOut.model_validate(s) for s in semovientes]}


@router.post("", status_code=status.HTTP_201_CREATED)
def post_semoviente(
        payload: SemovienteCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Alta de semoviente (AdminFinca de la finca). Registra el movimiento de origen."""
    semoviente = crear_semoviente(db, actor, payload)
    return {"ok": True, "semoviente": SemovienteOut.model_validate(semoviente)}


@router.get("/{id_semoviente}")
def get_semoviente(id_semoviente: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return {"ok": True, "semoviente": SemovienteOut.model_validate(obtener_semoviente(db, actor, id_semoviente))}


@router.get("/{id_semoviente}/ficha-completa")
def get_ficha_completa(id_semoviente: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    """Datos + historial médico + historial de movimientos"""
    ficha = ficha_completa(db, actor, id_semoviente)
    return {
        "ok": True,
        "datos": SemovienteOut.model_validate(ficha["datos"]),
        "historial_medico": [RegistroMedicoOut.model_validate(r) for r in ficha["historial_medico"]],
        "historial_movimientos": [MovimientoOut.model_validate(m) for m in ficha["historial_movimientos"]],
    }


@router.patch("/{id_semoviente}")
def patch_semoviente(
        id_semoviente: int,
        payload: SemovienteUpdate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    semoviente = actualizar_semoviente(db, actor, id_semoviente, payload)
    return {"ok": True, "semoviente": SemovienteOut.model_validate(semoviente)}


@router.patch("/{id_semoviente}/estado")
def patch_estado(
        id_semoviente: int,
        payload: EstadoUpdate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Cambio administrativo de estado (AdminFinca). No registra movimiento."""
    semoviente = cambiar_estado(
        db, actor, id_semoviente, payload.estado, payload.fecha, payload.motivo, payload.observaciones
    )
    return {"ok": True, "mensaje": "Estado actualizado", "semoviente": SemovienteOut.model_validate(semoviente)}


@router.delete("/{id_semoviente}")
def delete_semoviente(id_semoviente: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    eliminar_semoviente(db, actor, id_semoviente)
    return {"ok": True, "mensaje": "Semoviente eliminado"}
