# models/base.py
from enum import Enum as PyEnum

from sqlalchemy import BigInteger, Integer, Enum as SQLEnum


def enum_column(enum_cls: type[PyEnum], length: int = 20) -> SQLEnum:
    """
    Columna VARCHAR que persiste el *valor* del enum ('AdminFinca', 'Activo', ...)
    en lugar del nombre del miembro, sin depender de ENUM nativos del motor.
    """
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        validate_strings=True,
        length=length,
    )


# BIGINT en MySQL/PostgreSQL; INTEGER en SQLite para que la PK sea alias de rowid (autoincremento)
BigIntPK = BigInteger().with_variant(Integer, "sqlite")
