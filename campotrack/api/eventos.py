from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from campotrack.schemas.registro_medico import RegistroMedicoCreate, RegistroMedicoOut, RegistroMedicoUpdate
from campotrack.services.registro_medico_service import (
    actualizar_registro,
    crear_registro,
    eliminar_registro,
    listar_registros,
)
from campotrack.utils.db import get_db
from campotrack.utils.dependencies import get_current_actor
from campotrack.utils.permissions import Actor

router = APIRouter(prefix="/semovientes/{id_semoviente}/eventos", tags=["registros médicos"])


@router.get("")
def get_eventos(id_semoviente: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    registros = listar_registros(db, actor, id_semoviente)
    return {"ok": True, "eventos": [RegistroMedicoOut.model_validate(r) for r in registros]}


@router.post("", status_code=status.HTTP_201_CREATED)
def post_evento(
        id_semoviente: int,
        payload: RegistroMedicoCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Registrar evento sanitario (AdminFinca, Empleado o Veterinario)"""
    registro = crear_registro(db, actor, id_semoviente, payload)
    return {"ok": True, "evento": RegistroMedicoOut.model_validate(registro)}


@router.patch("/{id_registro}")
def patch_evento(
        id_semoviente: int,
        id_registro: int,
        payload: RegistroMedicoUpdate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    registro = actualizar_registro(db, actor, id_semoviente, id_registro, payload)
    return {"ok": True, "evento": RegistroMedicoOut.model_validate(registro)}


@router.delete("/{id_registro}")
def delete_evento(
        id_semoviente: int,
        id_registro: int,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Eliminar evento sanitario (solo AdminFinca)"""
    eliminar_registro(db, actor, id_semoviente, id_registro)
    return {"ok": True, "mensaje": "Registro médico eliminado"}
