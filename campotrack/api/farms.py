from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campotrack.enums.roles import RolFinca
from campotrack.schemas.farm import FincaCreate, FincaOut, FincaUpdate
from campotrack.schemas.membership import AsignacionOut, MiembroIn, MiembroOut
from campotrack.schemas.reports import ReporteInventarioOut, ReporteSanitarioOut
from campotrack.services.farm_service import (
    actualizar_finca,
    crear_finca,
    eliminar_finca,
    listar_fincas,
    obtener_finca,
)
from campotrack.services.membership_service import asignar_miembro, listar_miembros_finca, revocar_miembro
from campotrack.services.reporting_service import reporte_inventario, reporte_sanitario
from campotrack.utils.db import get_db
from campotrack.utils.dependencies import get_current_actor
from campotrack.utils.permissions import Actor

router = APIRouter(prefix="/fincas", tags=["fincas"])


@router.get("")
def get_fincas(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    """
    Listar fincas según permisos del usuario.

    - SuperAdmin: todas las fincas
    - Usuario normal: solo fincas donde tiene algún rol
    """
    return {"ok": True, "fincas": [FincaOut.model_validate(f) for f in listar_fincas(db, actor)]}


@router.post("", status_code=status.HTTP_201_CREATED)
def post_finca(
        payload: FincaCreate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Crear finca (solo SuperAdmin)"""
    return {"ok": True, "finca": FincaOut.model_validate(crear_finca(db, actor, payload))}


@router.get("/{id_finca}")
def get_finca(id_finca: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return {"ok": True, "finca": FincaOut.model_validate(obtener_finca(db, actor, id_finca))}


@router.patch("/{id_finca}")
def patch_finca(
        id_finca: int,
        payload: FincaUpdate,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """Editar finca (solo SuperAdmin)"""
    return {"ok": True, "finca": FincaOut.model_validate(actualizar_finca(db, actor, id_finca, payload))}


@router.delete("/{id_finca}")
def delete_finca(id_finca: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    """Eliminar finca (solo SuperAdmin; 409 si aún tiene semovientes)"""
    eliminar_finca(db, actor, id_finca)
    return {"ok": True, "mensaje": "Finca eliminada"}


# ============ MIEMBROS ============

@router.get("/{id_finca}/miembros")
def get_miembros(id_finca: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    """Miembros de la finca (visible para cualquier rol en la finca)"""
    miembros = listar_miembros_finca(db, actor, id_finca)
    return {"ok": True, "miembros": [MiembroOut(**m) for m in miembros]}


@router.post("/{id_finca}/miembros", status_code=status.HTTP_201_CREATED)
def post_miembro(
        id_finca: int,
        payload: MiembroIn,
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    """
    Asigna (o cambia) el rol de un usuario en la finca.
    Permisos: SuperAdmin o AdminFinca de esa finca.
    """
    asignacion = asignar_miembro(db, actor, id_finca, payload)
    return {"ok": True, "asignacion": AsignacionOut.model_validate(asignacion)}


@router.delete("/{id_finca}/miembros/{id_usuario}")
def delete_miembro(
        id_finca: int,
        id_usuario: int,
        rol: RolFinca | None = Query(None, description="Rol exacto a revocar"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    revocar_miembro(db, actor, id_finca, id_usuario, rol)
    return {"ok": True, "mensaje": "Asignación eliminada"}


# ============ REPORTES ============

@router.get("/{id_finca}/reportes/inventario")
def get_reporte_inventario(
        id_finca: int,
        incluir_inactivos: bool | None = Query(None, description="Contar también semovientes no activos"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    reporte = reporte_inventario(db, actor, id_finca, incluir_inactivos)
    return {"ok": True, "reporte": ReporteInventarioOut(**reporte)}


@router.get("/{id_finca}/reportes/sanitario")
def get_reporte_sanitario(
        id_finca: int,
        dias: int | None = Query(None, description="Horizonte en días (1..1825, por defecto 30)"),
        db: Session = Depends(get_db),
        actor: Actor = Depends(get_current_actor),
):
    reporte = reporte_sanitario(db, actor, id_finca, dias)
    return {"ok": True, "reporte": ReporteSanitarioOut(**reporte)}
