from datetime import date

from pydantic import BaseModel


class ReporteInventarioOut(BaseModel):
    id_finca: int
    incluir_inactivos: bool
    total_semovientes: int
    por_estado: dict[str, int]
    por_especie: dict[str, int]
    por_sexo: dict[str, int]


class EventoSanitarioOut(BaseModel):
    id_registro_medico: int
    id_semoviente: int
    nro_marca: str
    nombre: str
    tipo_evento_medico: str
    nombre_vacuna: str | None = None
    dosis: str | None = None
    proxima_fecha: date


class ReporteSanitarioOut(BaseModel):
    id_finca: int
    dias: int
    total_encontrado: int
    eventos: list[EventoSanitarioOut]
