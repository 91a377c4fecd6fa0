from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from campotrack.schemas.catalog import EspecieCreate, EspecieOut, RazaCreate, RazaOut
from campotrack.services.catalog_service import crear_especie, crear_raza, listar_especies, listar_razas
from campotrack.utils.db import get_db
from campotrack.utils.dependencies import get_current_actor
from campotrack.utils.permissions import Actor

router = APIRouter(prefix="/especies", tags=["catalogo"])


@router.get("")
def get_especies(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return {"ok": True, "especies": [EspecieOut.model_validate(e) for e in listar_especies(db)]}


@router.post("", status_code=status.HTTP_201_CREATED)
def post_especie(
        payload: EspecieCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Crear especie (solo SuperAdmin)"""
    return {"ok": True, "especie": EspecieOut.model_validate(crear_especie(db, actor, payload))}


@router.get("/{id_especie}/razas")
def get_razas(id_especie: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return {"ok": True, "razas": [RazaOut.model_validate(r) for r in listar_razas(db, id_especie)]}


@router.post("/{id_especie}/razas", status_code=status.HTTP_201_CREATED)
def post_raza(
        id_especie: int,
        payload: RazaCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Crear raza dentro de una especie (solo SuperAdmin)"""
    return {"ok": True, "raza": RazaOut.model_validate(crear_raza(db, actor, id_especie, payload))}
