# services/common.py
from __future__ import annotations

from typing import Any, Iterable, Mapping, TypeVar

from sqlalchemy.orm import Session

from campotrack.utils.errors import NotFoundError, ValidationError

T = TypeVar("T")


# -------------------------------------------------------------------
# Búsqueda por PK
# -------------------------------------------------------------------
def get_or_404(db: Session, model: type[T], pk: Any, mensaje: str, *, for_update: bool = False) -> T:
    """
    Obtiene una fila por PK o lanza NotFoundError.
    Con `for_update=True` bloquea la fila (SELECT ... FOR UPDATE) hasta el fin de la transacción.
    """
    if for_update:
        pk_col = model.__mapper__.primary_key[0]
        obj = db.query(model).filter(pk_col == pk).with_for_update().first()
    else:
        obj = db.get(model, pk)
    if obj is None:
        raise NotFoundError(mensaje)
    return obj


# -------------------------------------------------------------------
# Actualizaciones parciales
# -------------------------------------------------------------------
def aplicar_parche(obj: Any, cambios: Mapping[str, Any], permitidos: Iterable[str]) -> list[str]:
    """
    Aplica un parche explícito sobre `obj`.

    - `cambios` viene de `payload.model_dump(exclude_unset=True)`.
    - Rechaza parches vacíos y campos fuera de la lista `permitidos`.
    - Devuelve los nombres de los campos que realmente cambiaron.
    """
    if not cambios:
        raise ValidationError("Debe enviar al menos un campo")

    no_permitidos = sorted(set(cambios) - set(permitidos))
    if no_permitidos:
        raise ValidationError("Campos no editables", detalle=no_permitidos)

    cambiados: list[str] = []
    for campo, valor in cambios.items():
        if getattr(obj, campo) != valor:
            setattr(obj, campo, valor)
            cambiados.append(campo)
    return cambiados
