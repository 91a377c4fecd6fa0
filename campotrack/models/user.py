# models/user.py
from __future__ import annotations

from datetime import datetime
from sqlalchemy import String, BigInteger, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campotrack.enums.roles import RolFinca, RolGlobal
from campotrack.models.base import BigIntPK, enum_column
from campotrack.utils.db import Base
from campotrack.utils.datetime_utils import now_local


class Usuario(Base):
    __tablename__ = "usuarios"

    id_usuario: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    nombre_usuario: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    correo_electronico: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    contrasena: Mapped[str] = mapped_column(String(255), nullable=False)  # hash bcrypt
    rol: Mapped[RolGlobal] = mapped_column(enum_column(RolGlobal), default=RolGlobal.USUARIO, nullable=False)
    nombre_completo: Mapped[str] = mapped_column(String(150), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, onupdate=now_local,
                                                 nullable=False)

    fincas: Mapped[list[UsuarioFincaRol]] = relationship(
        "UsuarioFincaRol", back_populates="usuario", cascade="save-update, merge, delete", passive_deletes=True
    )


class UsuarioFincaRol(Base):
    """
    Asignación de usuario a finca con UN rol.

    Características:
    - Un usuario puede estar en múltiples fincas con roles diferentes
    - Como máximo una fila por (usuario, finca): reasignar reemplaza el rol
    """
    __tablename__ = "usuario_finca_roles"
    __table_args__ = (
        UniqueConstraint("id_usuario", "id_finca", name="uq_usuario_finca_roles_usuario_finca"),
    )

    id_usuario_finca_rol: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    id_usuario: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("usuarios.id_usuario", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    id_finca: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("fincas.id_finca", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rol: Mapped[RolFinca] = mapped_column(enum_column(RolFinca), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_local, nullable=False)

    # Relationships
    usuario: Mapped[Usuario] = relationship("Usuario", back_populates="fincas")
    finca: Mapped["Finca"] = relationship("Finca", back_populates="miembros")
