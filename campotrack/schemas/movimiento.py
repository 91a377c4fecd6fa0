from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from campotrack.enums.enums import TipoMovimiento, TipoTransicion


class MovimientoIn(BaseModel):
    """
    Cuerpo de POST /semovientes/{id}/movimientos.

    destino_id (Traslado) y valor (Venta) se validan en el servicio, después de
    comprobar existencia, estado y permisos del semoviente. Aquí solo se acota
    el formato de valor (14 dígitos, 2 decimales).
    """
    tipo: TipoTransicion
    destino_id: int | None = None
    observaciones: str | None = Field(None, max_length=500)
    valor: Decimal | None = Field(None, max_digits=14, decimal_places=2)


class MovimientoOut(BaseModel):
    id_movimiento: int
    id_semoviente: int | None = None
    nro_marca: str
    tipo_movimiento: TipoMovimiento
    fecha_movimiento: date
    finca_origen_id: int | None = None
    finca_destino_id: int | None = None
    observaciones: str | None = None
    valor: Decimal | None = None
    registrado_por: int | None = None

    class Config:
        from_attributes = True
