import os

# Configuración de pruebas antes de importar la app (Settings se lee al importar)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-access-secret"
os.environ["REFRESH_SECRET_KEY"] = "test-refresh-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from campotrack.enums.enums import Sexo, TipoIngreso  # noqa: E402
from campotrack.enums.roles import RolFinca, RolGlobal  # noqa: E402
from campotrack.main import app  # noqa: E402
from campotrack.models import Especie, Finca, Raza, Usuario  # noqa: E402
from campotrack.schemas.semoviente import SemovienteCreate  # noqa: E402
from campotrack.services.membership_service import asignar_rol  # noqa: E402
from campotrack.services.semoviente_service import crear_semoviente  # noqa: E402
from campotrack.utils.db import Base, SessionLocal, engine  # noqa: E402
from campotrack.utils.dependencies import build_actor  # noqa: E402
from campotrack.utils.security import create_access_token, hash_password, token_claims  # noqa: E402
from campotrack.utils.transactions import uow  # noqa: E402

PASSWORD = "secreto123"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


# ───────────────────────────────────────────────
# Factories
# ───────────────────────────────────────────────
@pytest.fixture
def make_user(db):
    def _make(nombre_usuario: str, rol: RolGlobal = RolGlobal.USUARIO, contrasena: str = PASSWORD) -> Usuario:
        user = Usuario(
            nombre_usuario=nombre_usuario,
            correo_electronico=f"{nombre_usuario}@campo.co",
            contrasena=hash_password(contrasena),
            nombre_completo=nombre_usuario.title(),
            rol=rol,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_finca(db):
    def _make(nombre_finca: str = "La Esperanza") -> Finca:
        finca = Finca(nombre_finca=nombre_finca, ubicacion="Vereda El Roble")
        db.add(finca)
        db.commit()
        db.refresh(finca)
        return finca
    return _make


@pytest.fixture
def add_member(db):
    def _add(user: Usuario, finca: Finca, rol: RolFinca):
        with uow(db):
            asignacion = asignar_rol(db, user.id_usuario, finca.id_finca, rol)
        return asignacion
    return _add


@pytest.fixture
def catalogo(db):
    """Especie Bovino con raza Brahman y especie Equino con raza Criollo."""
    bovino = Especie(nombre_especie="Bovino")
    equino = Especie(nombre_especie="Equino")
    db.add_all([bovino, equino])
    db.flush()
    brahman = Raza(id_especie=bovino.id_especie, nombre_raza="Brahman")
    criollo = Raza(id_especie=equino.id_especie, nombre_raza="Criollo")
    db.add_all([brahman, criollo])
    db.commit()
    return {"bovino": bovino, "equino": equino, "brahman": brahman, "criollo": criollo}


@pytest.fixture
def superadmin(make_user):
    return make_user("root", RolGlobal.SUPER_ADMIN)


@pytest.fixture
def actor_de(db):
    def _actor(user: Usuario):
        db.expire_all()
        return build_actor(db, user)
    return _actor


@pytest.fixture
def make_semoviente(db, catalogo, superadmin, actor_de):
    contador = {"n": 0}

    def _make(finca: Finca, tipo_ingreso: TipoIngreso = TipoIngreso.NACIMIENTO, **extra):
        contador["n"] += 1
        data = {
            "nro_marca": f"M-{contador['n']:03d}",
            "nombre": f"Animal {contador['n']}",
            "fecha_nacimiento": date(2022, 3, 1),
            "sexo": Sexo.HEMBRA,
            "id_raza": catalogo["brahman"].id_raza,
            "id_especie": catalogo["bovino"].id_especie,
            "id_finca": finca.id_finca,
            "tipo_ingreso": tipo_ingreso,
        }
        if tipo_ingreso == TipoIngreso.COMPRA:
            data.update(valor_compra=Decimal("1500000"), fecha_ingreso=date(2023, 1, 15))
        data.update(extra)
        return crear_semoviente(db, actor_de(superadmin), SemovienteCreate(**data))
    return _make


# ───────────────────────────────────────────────
# Tokens
# ───────────────────────────────────────────────
def bearer(user: Usuario) -> dict:
    token = create_access_token(token_claims(user.id_usuario, user.nombre_usuario, RolGlobal(user.rol).value))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth():
    return bearer
