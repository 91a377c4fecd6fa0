from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import String, BigInteger, Date, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from campotrack.enums.enums import TipoMovimiento
from campotrack.models.base import BigIntPK, enum_column
from campotrack.utils.db import Base
from campotrack.utils.datetime_utils import now_local


class MovimientoSemoviente(Base):
    """
    Ledger inmutable de movimientos de un semoviente (solo INSERT).

    Cada alta (Nacimiento/Compra) y cada transición (Traslado/Venta/Muerte)
    escribe exactamente una fila. Si el semoviente se elimina, la fila se
    conserva con id_semoviente en NULL; nro_marca guarda la identificación.
    """
    __tablename__ = "movimientos_semovientes"

    id_movimiento: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    id_semoviente: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("semovientes.id_semoviente", ondelete="SET NULL"), index=True
    )
    nro_marca: Mapped[str] = mapped_column(String(50), nullable=False)
    tipo_movimiento: Mapped[TipoMovimiento] = mapped_column(enum_column(TipoMovimiento), nullable=False)
    fecha_movimiento: Mapped[date] = mapped_column(Date, nullable=False)
    finca_origen_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("fincas.id_finca", ondelete="SET NULL")
    )
    finca_destino_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("fincas.id_finca", ondelete="SET NULL")
    )
    observaciones: Mapped[str | None] = mapped_column(String(500))
    valor: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))

    # Auditoría
    registrado_por: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("usuarios.id_usuario", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
