from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import String, BigInteger, Date, DateTime, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from campotrack.models.base import BigIntPK
from campotrack.utils.db import Base
from campotrack.utils.datetime_utils import now_local


class RegistroMedico(Base):
    __tablename__ = "registros_medicos"

    id_registro_medico: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    id_semoviente: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("semovientes.id_semoviente", ondelete="CASCADE"), nullable=False, index=True
    )

    fecha_consulta: Mapped[date] = mapped_column(Date, nullable=False)
    tipo_evento_medico: Mapped[str] = mapped_column(String(50), nullable=False)
    diagnostico: Mapped[str | None] = mapped_column(Text)
    tratamiento_aplicado: Mapped[str | None] = mapped_column(Text)
    veterinario_responsable: Mapped[str | None] = mapped_column(String(100))
    costo: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    observaciones: Mapped[str | None] = mapped_column(Text)
    nombre_vacuna: Mapped[str | None] = mapped_column(String(100))
    dosis: Mapped[str | None] = mapped_column(String(50))
    proxima_fecha: Mapped[date | None] = mapped_column(Date, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, onupdate=now_local,
                                                 nullable=False)
