# services/catalog_service.py
from sqlalchemy.orm import Session

from campotrack.models.catalog import Especie, Raza
from campotrack.schemas.catalog import EspecieCreate, RazaCreate
from campotrack.services.common import get_or_404
from campotrack.utils.errors import ConflictError
from campotrack.utils.logging import get_logger
from campotrack.utils.permissions import Actor, Operacion, ensure_can
from campotrack.utils.transactions import uow

logger = get_logger(module="catalog_service")


def listar_especies(db: Session) -> list[Especie]:
    return db.query(Especie).order_by(Especie.nombre_especie.asc()).all()


def crear_especie(db: Session, actor: Actor, payload: EspecieCreate) -> Especie:
    ensure_can(actor, Operacion.GESTIONAR_CATALOGO, mensaje="Solo SuperAdmin puede gestionar el catálogo")
    nombre = payload.nombre_especie.strip()
    if db.query(Especie).filter(Especie.nombre_especie == nombre).first():
        raise ConflictError("La especie ya existe")

    with uow(db):
        especie = Especie(nombre_especie=nombre)
        db.add(especie)
    db.refresh(especie)
    logger.info("Especie creada", id_especie=especie.id_especie)
    return especie


def listar_razas(db: Session, id_especie: int) -> list[Raza]:
    get_or_404(db, Especie, id_especie, "Especie no encontrada")
    return (
        db.query(Raza)
        .filter(Raza.id_especie == id_especie)
        .order_by(Raza.nombre_raza.asc())
        .all()
    )


def crear_raza(db: Session, actor: Actor, id_especie: int, payload: RazaCreate) -> Raza:
    ensure_can(actor, Operacion.GESTIONAR_CATALOGO, mensaje="Solo SuperAdmin puede gestionar el catálogo")
    get_or_404(db, Especie, id_especie, "Especie no encontrada")
    nombre = payload.nombre_raza.strip()
    existe = db.query(Raza).filter(Raza.id_especie == id_especie, Raza.nombre_raza == nombre).first()
    if existe:
        raise ConflictError("La raza ya existe para esa especie")

    with uow(db):
        raza = Raza(id_especie=id_especie, nombre_raza=nombre)
        db.add(raza)
    db.refresh(raza)
    logger.info("Raza creada", id_raza=raza.id_raza, id_especie=id_especie)
    return raza
