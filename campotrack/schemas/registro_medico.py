from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, condecimal


class RegistroMedicoCreate(BaseModel):
    fecha_consulta: date
    tipo_evento_medico: str = Field(..., min_length=1, max_length=50)
    diagnostico: str | None = None
    tratamiento_aplicado: str | None = None
    veterinario_responsable: str | None = Field(None, max_length=100)
    costo: condecimal(gt=0, max_digits=14, decimal_places=2) | None = None
    observaciones: str | None = None
    nombre_vacuna: str | None = Field(None, max_length=100)
    dosis: str | None = Field(None, max_length=50)
    proxima_fecha: date | None = None


class RegistroMedicoUpdate(BaseModel):
    fecha_consulta: date | None = None
    tipo_evento_medico: str | None = Field(None, min_length=1, max_length=50)
    diagnostico: str | None = None
    tratamiento_aplicado: str | None = None
    veterinario_responsable: str | None = Field(None, max_length=100)
    costo: condecimal(gt=0, max_digits=14, decimal_places=2) | None = None
    observaciones: str | None = None
    nombre_vacuna: str | None = Field(None, max_length=100)
    dosis: str | None = Field(None, max_length=50)
    proxima_fecha: date | None = None

    class Config:
        extra = "forbid"


class RegistroMedicoOut(BaseModel):
    id_registro_medico: int
    id_semoviente: int
    fecha_consulta: date
    tipo_evento_medico: str
    diagnostico: str | None = None
    tratamiento_aplicado: str | None = None
    veterinario_responsable: str | None = None
    costo: Decimal | None = None
    observaciones: str | None = None
    nombre_vacuna: str | None = None
    dosis: str | None = None
    proxima_fecha: date | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
