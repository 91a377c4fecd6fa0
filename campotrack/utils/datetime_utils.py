"""
Utilidades centralizadas para manejo de fechas y timestamps.
Todas las operaciones usan settings.TIMEZONE como zona horaria de referencia
(independiente de la zona horaria del servidor de BD).
"""
from datetime import datetime, date, timedelta
from zoneinfo import ZoneInfo

from campotrack.config.settings import settings

LOCAL_TZ = ZoneInfo(settings.TIMEZONE)


def now_local() -> datetime:
    """
    Retorna el datetime actual en la zona local (naive, para columnas DATETIME).
    """
    return datetime.now(LOCAL_TZ).replace(tzinfo=None, microsecond=0)


def today_local() -> date:
    """
    Retorna la fecha actual (date) en la zona local.
    """
    return datetime.now(LOCAL_TZ).date()


def horizon_local(days: int) -> tuple[date, date]:
    """
    Rango cerrado [hoy, hoy + days] en la zona local.
    """
    start = today_local()
    return start, start + timedelta(days=days)
