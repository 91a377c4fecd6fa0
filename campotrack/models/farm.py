from __future__ import annotations

from datetime import datetime
from sqlalchemy import String, BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campotrack.models.base import BigIntPK
from campotrack.utils.db import Base
from campotrack.utils.datetime_utils import now_local


class Finca(Base):
    __tablename__ = "fincas"

    id_finca: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    nombre_finca: Mapped[str] = mapped_column(String(150), nullable=False)
    ubicacion: Mapped[str | None] = mapped_column(String(200))
    nombre_admin: Mapped[str | None] = mapped_column(String(150))
    telefono_admin: Mapped[str | None] = mapped_column(String(30))
    # Caché desnormalizada: usuario que tiene AdminFinca en esta finca (no es propiedad)
    administrador_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("usuarios.id_usuario", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, onupdate=now_local,
                                                 nullable=False)

    # Relationships
    miembros: Mapped[list["UsuarioFincaRol"]] = relationship(
        "UsuarioFincaRol", back_populates="finca", cascade="save-update, merge, delete", passive_deletes=True
    )
