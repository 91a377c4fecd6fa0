from datetime import datetime

from pydantic import BaseModel, Field

from campotrack.enums.roles import RolFinca, RolGlobal


class MiembroIn(BaseModel):
    """Asignar (o reemplazar) el rol de un usuario en la finca"""
    id_usuario: int = Field(..., gt=0)
    rol: RolFinca


class AsignacionOut(BaseModel):
    id_usuario_finca_rol: int
    id_usuario: int
    id_finca: int
    rol: RolFinca
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class MiembroOut(BaseModel):
    id_usuario: int
    nombre_usuario: str
    nombre_completo: str
    correo_electronico: str
    rol_global: RolGlobal
    rol_en_finca: RolFinca
