from __future__ import annotations

from sqlalchemy import String, BigInteger, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campotrack.models.base import BigIntPK
from campotrack.utils.db import Base


class Especie(Base):
    __tablename__ = "especies"

    id_especie: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    nombre_especie: Mapped[str] = mapped_column(String(80), unique=True, nullable=False)

    razas: Mapped[list[Raza]] = relationship("Raza", back_populates="especie", order_by="Raza.nombre_raza")


class Raza(Base):
    """Una raza pertenece a exactamente una especie."""
    __tablename__ = "razas"
    __table_args__ = (
        UniqueConstraint("id_especie", "nombre_raza", name="uq_razas_especie_nombre"),
    )

    id_raza: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    id_especie: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("especies.id_especie", ondelete="RESTRICT"), nullable=False, index=True
    )
    nombre_raza: Mapped[str] = mapped_column(String(80), nullable=False)

    especie: Mapped[Especie] = relationship("Especie", back_populates="razas")
