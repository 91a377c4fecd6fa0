from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import String, BigInteger, Date, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from campotrack.enums.enums import EstadoSemoviente, Sexo, TipoIngreso
from campotrack.models.base import BigIntPK, enum_column
from campotrack.utils.db import Base
from campotrack.utils.datetime_utils import now_local


class Semoviente(Base):
    """
    Animal registrado en una finca.

    - Nace siempre en estado 'Activo' con una fila Nacimiento/Compra en el ledger.
    - id_madre / id_padre son referencias débiles: al borrar un animal, sus crías
      quedan con la referencia en NULL (no hay cascada).
    - Los campos *_baja se llenan en Venta/Muerte o por cambio de estado manual.
    """
    __tablename__ = "semovientes"

    id_semoviente: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    nro_marca: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    nro_registro: Mapped[str | None] = mapped_column(String(50), unique=True)
    nombre: Mapped[str] = mapped_column(String(100), nullable=False)
    fecha_nacimiento: Mapped[date] = mapped_column(Date, nullable=False)
    sexo: Mapped[Sexo] = mapped_column(enum_column(Sexo), nullable=False)

    id_raza: Mapped[int] = mapped_column(BigInteger, ForeignKey("razas.id_raza", ondelete="RESTRICT"), nullable=False)
    id_especie: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("especies.id_especie", ondelete="RESTRICT"), nullable=False, index=True
    )
    id_madre: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("semovientes.id_semoviente", ondelete="SET NULL")
    )
    id_padre: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("semovientes.id_semoviente", ondelete="SET NULL")
    )
    id_finca: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("fincas.id_finca", ondelete="RESTRICT"), nullable=False, index=True
    )
    estado: Mapped[EstadoSemoviente] = mapped_column(
        enum_column(EstadoSemoviente), default=EstadoSemoviente.ACTIVO, nullable=False, index=True
    )

    # Ingreso
    tipo_ingreso: Mapped[TipoIngreso] = mapped_column(enum_column(TipoIngreso), nullable=False)
    fecha_ingreso: Mapped[date] = mapped_column(Date, nullable=False)
    valor_compra: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))

    # Datos productivos / sanitarios
    peso_actual: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    fecha_peso: Mapped[date | None] = mapped_column(Date)
    nro_chip: Mapped[str | None] = mapped_column(String(50))
    nro_sanitario: Mapped[str | None] = mapped_column(String(50))

    # Baja
    fecha_salida: Mapped[date | None] = mapped_column(Date)
    fecha_baja: Mapped[date | None] = mapped_column(Date)
    motivo_baja: Mapped[str | None] = mapped_column(String(50))
    observaciones_baja: Mapped[str | None] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, onupdate=now_local,
                                                 nullable=False)
