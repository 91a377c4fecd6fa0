from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, condecimal, model_validator

from campotrack.enums.enums import EstadoSemoviente, Sexo, TipoIngreso


class SemovienteBase(BaseModel):
    nro_marca: str = Field(..., min_length=1, max_length=50)
    nro_registro: str | None = Field(None, max_length=50)
    nombre: str = Field(..., min_length=1, max_length=100)
    fecha_nacimiento: date
    sexo: Sexo
    id_raza: int = Field(..., gt=0)
    id_especie: int = Field(..., gt=0)
    id_madre: int | None = Field(None, gt=0)
    id_padre: int | None = Field(None, gt=0)


class SemovienteCreate(SemovienteBase):
    """
    Alta de semoviente.

    - Compra: valor_compra > 0 y fecha_ingreso obligatorios.
    - Nacimiento: sin valor_compra; fecha_ingreso = fecha_nacimiento si no se envía.
    """
    id_finca: int = Field(..., gt=0)
    tipo_ingreso: TipoIngreso
    fecha_ingreso: date | None = None
    valor_compra: condecimal(gt=0, max_digits=14, decimal_places=2) | None = None
    peso_actual: condecimal(gt=0, max_digits=10, decimal_places=2) | None = None
    fecha_peso: date | None = None
    nro_chip: str | None = Field(None, max_length=50)
    nro_sanitario: str | None = Field(None, max_length=50)

    @model_validator(mode="after")
    def _validar_ingreso(self):
        if self.tipo_ingreso == TipoIngreso.COMPRA:
            if self.valor_compra is None:
                raise ValueError("valor_compra es requerido y debe ser positivo para una Compra")
            if self.fecha_ingreso is None:
                raise ValueError("fecha_ingreso es requerida para una Compra")
        else:
            if self.valor_compra is not None:
                raise ValueError("valor_compra no aplica para un Nacimiento")
            if self.fecha_ingreso is None:
                self.fecha_ingreso = self.fecha_nacimiento
        return self


class SemovienteUpdate(BaseModel):
    """Campos editables; estado, finca e ingreso solo cambian por sus propias operaciones."""
    nro_marca: str | None = Field(None, min_length=1, max_length=50)
    nro_registro: str | None = Field(None, max_length=50)
    nombre: str | None = Field(None, min_length=1, max_length=100)
    fecha_nacimiento: date | None = None
    sexo: Sexo | None = None
    id_raza: int | None = Field(None, gt=0)
    id_especie: int | None = Field(None, gt=0)
    id_madre: int | None = Field(None, gt=0)
    id_padre: int | None = Field(None, gt=0)
    peso_actual: condecimal(gt=0, max_digits=10, decimal_places=2) | None = None
    fecha_peso: date | None = None
    nro_chip: str | None = Field(None, max_length=50)
    nro_sanitario: str | None = Field(None, max_length=50)

    class Config:
        extra = "forbid"


class EstadoUpdate(BaseModel):
    estado: EstadoSemoviente
    fecha: date | None = None
    motivo: str | None = Field(None, max_length=50)
    observaciones: str | None = Field(None, max_length=500)


class SemovienteOut(SemovienteBase):
    id_semoviente: int
    id_finca: int
    estado: EstadoSemoviente
    tipo_ingreso: TipoIngreso
    fecha_ingreso: date
    valor_compra: Decimal | None = None
    peso_actual: Decimal | None = None
    fecha_peso: date | None = None
    nro_chip: str | None = None
    nro_sanitario: str | None = None
    fecha_salida: date | None = None
    fecha_baja: date | None = None
    motivo_baja: str | None = None
    observaciones_baja: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
