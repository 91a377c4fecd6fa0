# services/reporting_service.py
"""
Reportes de solo lectura por finca (requieren cualquier rol en la finca).

- Inventario: total y desgloses por estado, especie y sexo.
- Sanitario: registros médicos con proxima_fecha en [hoy, hoy + dias].
"""
from sqlalchemy import func
from sqlalchemy.orm import Session

from campotrack.config.settings import settings
from campotrack.enums.enums import EstadoSemoviente
from campotrack.models.catalog import Especie
from campotrack.models.farm import Finca
from campotrack.models.registro_medico import RegistroMedico
from campotrack.models.semoviente import Semoviente
from campotrack.services.common import get_or_404
from campotrack.utils.datetime_utils import horizon_local
from campotrack.utils.errors import ValidationError
from campotrack.utils.permissions import Actor, Contexto, Operacion, ensure_can


def _autorizar_lectura(db: Session, actor: Actor, id_finca: int) -> None:
    get_or_404(db, Finca, id_finca, "Finca no encontrada")
    ensure_can(actor, Operacion.LEER_FINCA, Contexto(id_finca=id_finca), "No autorizado para esta finca")


def _valor(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


def reporte_inventario(db: Session, actor: Actor, id_finca: int, incluir_inactivos: bool | None = None) -> dict:
    _autorizar_lectura(db, actor, id_finca)
    if incluir_inactivos is None:
        incluir_inactivos = settings.INVENTORY_INCLUDE_INACTIVE

    filtros = [Semoviente.id_finca == id_finca]
    if not incluir_inactivos:
        filtros.append(Semoviente.estado == EstadoSemoviente.ACTIVO)

    total = db.query(func.count(Semoviente.id_semoviente)).filter(*filtros).scalar() or 0

    por_estado = (
        db.query(Semoviente.estado, func.count(Semoviente.id_semoviente))
        .filter(*filtros)
        .group_by(Semoviente.estado)
        .all()
    )
    por_especie = (
        db.query(Especie.nombre_especie, func.count(Semoviente.id_semoviente))
        .join(Especie, Especie.id_especie == Semoviente.id_especie)
        .filter(*filtros)
        .group_by(Especie.nombre_especie)
        .all()
    )
    por_sexo = (
        db.query(Semoviente.sexo, func.count(Semoviente.id_semoviente))
        .filter(*filtros)
        .group_by(Semoviente.sexo)
        .all()
    )

    return {
        "id_finca": id_finca,
        "incluir_inactivos": incluir_inactivos,
        "total_semovientes": int(total),
        "por_estado": {_valor(k): int(n) for k, n in sorted(por_estado, key=lambda r: _valor(r[0]))},
        "por_especie": {k: int(n) for k, n in sorted(por_especie)},
        "por_sexo": {_valor(k): int(n) for k, n in sorted(por_sexo, key=lambda r: _valor(r[0]))},
    }


def reporte_sanitario(db: Session, actor: Actor, id_finca: int, dias: int | None = None) -> dict:
    _autorizar_lectura(db, actor, id_finca)
    if dias is None:
        dias = settings.MEDICAL_HORIZON_DEFAULT_DAYS
    if not 1 <= dias <= settings.MEDICAL_HORIZON_MAX_DAYS:
        raise ValidationError(
            f"dias debe estar entre 1 y {settings.MEDICAL_HORIZON_MAX_DAYS}",
            detalle={"dias": dias},
        )

    desde, hasta = horizon_local(dias)
    rows = (
        db.query(RegistroMedico, Semoviente.nro_marca, Semoviente.nombre)
        .join(Semoviente, Semoviente.id_semoviente == RegistroMedico.id_semoviente)
        .filter(
            Semoviente.id_finca == id_finca,
            RegistroMedico.proxima_fecha.isnot(None),
            RegistroMedico.proxima_fecha >= desde,
            RegistroMedico.proxima_fecha <= hasta,
        )
        .order_by(RegistroMedico.proxima_fecha.asc(), RegistroMedico.id_registro_medico.asc())
        .all()
    )
    eventos = [
        {
            "id_registro_medico": r.id_registro_medico,
            "id_semoviente": r.id_semoviente,
            "nro_marca": nro_marca,
            "nombre": nombre,
            "tipo_evento_medico": r.tipo_evento_medico,
            "nombre_vacuna": r.nombre_vacuna,
            "dosis": r.dosis,
            "proxima_fecha": r.proxima_fecha,
        }
        for r, nro_marca, nombre in rows
    ]
    return {"id_finca": id_finca, "dias": dias, "total_encontrado": len(eventos), "eventos": eventos}
