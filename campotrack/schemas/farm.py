from datetime import datetime

from pydantic import BaseModel, Field


class FincaBase(BaseModel):
    nombre_finca: str = Field(..., min_length=3, max_length=150)
    ubicacion: str | None = None
    nombre_admin: str | None = None
    telefono_admin: str | None = None


class FincaCreate(FincaBase):
    # Si viene, se le asigna AdminFinca en la misma transacción
    administrador_id: int | None = Field(None, gt=0)


class FincaUpdate(BaseModel):
    nombre_finca: str | None = Field(None, min_length=3, max_length=150)
    ubicacion: str | None = None
    nombre_admin: str | None = None
    telefono_admin: str | None = None
    administrador_id: int | None = Field(None, gt=0)

    class Config:
        extra = "forbid"


class FincaOut(FincaBase):
    id_finca: int
    administrador_id: int | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
