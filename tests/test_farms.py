from fastapi.testclient import TestClient
from sqlalchemy import inspect

from campotrack.enums.roles import RolFinca
from campotrack.main import app
from campotrack.models import Finca, UsuarioFincaRol
from campotrack.utils.db import Base, engine


def test_superadmin_creates_farm_with_administrator(client, db, superadmin, make_user, auth):
    ana = make_user("ana")
    body = {"nombre_finca": "Los Guaduales", "ubicacion": "Quindío", "administrador_id": ana.id_usuario}

    r = client.post("/api/fincas", json=body, headers=auth(superadmin))
    assert r.status_code == 201, r.text
    finca = r.json()["finca"]
    assert finca["administrador_id"] == ana.id_usuario

    db.expire_all()
    fila = db.query(UsuarioFincaRol).filter_by(id_usuario=ana.id_usuario, id_finca=finca["id_finca"]).one()
    assert fila.rol == RolFinca.ADMIN_FINCA


def test_farm_creation_with_unknown_administrator_rolls_back(client, db, superadmin, auth):
    r = client.post("/api/fincas", json={"nombre_finca": "Fantasma", "administrador_id": 9999},
                    headers=auth(superadmin))
    assert r.status_code == 400
    db.expire_all()
    assert db.query(Finca).filter_by(nombre_finca="Fantasma").count() == 0


def test_only_superadmin_manages_farms(client, make_user, make_finca, add_member, auth):
    admin = make_user("admin")
    finca = make_finca()
    add_member(admin, finca, RolFinca.ADMIN_FINCA)

    assert client.post("/api/fincas", json={"nombre_finca": "Nueva"}, headers=auth(admin)).status_code == 403
    assert client.patch(f"/api/fincas/{finca.id_finca}", json={"ubicacion": "X"},
                        headers=auth(admin)).status_code == 403
    assert client.delete(f"/api/fincas/{finca.id_finca}", headers=auth(admin)).status_code == 403


def test_list_is_filtered_by_membership(client, make_user, make_finca, add_member, superadmin, auth):
    ana = make_user("ana")
    a, _ = make_finca("Alfa"), make_finca("Beta")
    add_member(ana, a, RolFinca.EMPLEADO)

    r = client.get("/api/fincas", headers=auth(ana))
    assert [f["nombre_finca"] for f in r.json()["fincas"]] == ["Alfa"]

    r = client.get("/api/fincas", headers=auth(superadmin))
    assert [f["nombre_finca"] for f in r.json()["fincas"]] == ["Alfa", "Beta"]

    assert client.get("/api/fincas", headers=auth(make_user("nadie"))).json()["fincas"] == []


def test_get_farm_not_found_before_forbidden(client, make_user, make_finca, auth):
    ana = make_user("ana")
    finca = make_finca()
    assert client.get("/api/fincas/9999", headers=auth(ana)).status_code == 404
    assert client.get(f"/api/fincas/{finca.id_finca}", headers=auth(ana)).status_code == 403


def test_update_farm(client, superadmin, make_finca, auth):
    finca = make_finca()
    url = f"/api/fincas/{finca.id_finca}"

    r = client.patch(url, json={"telefono_admin": "3001234567"}, headers=auth(superadmin))
    assert r.status_code == 200
    assert r.json()["finca"]["telefono_admin"] == "3001234567"

    assert client.patch(url, json={}, headers=auth(superadmin)).status_code == 400
    assert client.patch(url, json={"id_finca": 5}, headers=auth(superadmin)).status_code == 400


def test_delete_farm_with_animals_is_conflict(client, db, superadmin, make_finca, make_semoviente, auth):
    finca = make_finca()
    make_semoviente(finca)

    r = client.delete(f"/api/fincas/{finca.id_finca}", headers=auth(superadmin))
    assert r.status_code == 409
    db.expire_all()
    assert db.get(Finca, finca.id_finca) is not None


def test_delete_farm_cascades_memberships(client, db, superadmin, make_user, make_finca, add_member, auth):
    ana = make_user("ana")
    finca = make_finca()
    add_member(ana, finca, RolFinca.ADMIN_FINCA)
    id_finca = finca.id_finca

    r = client.delete(f"/api/fincas/{id_finca}", headers=auth(superadmin))
    assert r.status_code == 200

    db.expire_all()
    assert db.get(Finca, id_finca) is None
    assert db.query(UsuarioFincaRol).filter_by(id_finca=id_finca).count() == 0


# ───────────── catálogo ─────────────

def test_catalog_management(client, make_user, superadmin, auth):
    ana = make_user("ana")
    assert client.post("/api/especies", json={"nombre_especie": "Ovino"}, headers=auth(ana)).status_code == 403

    r = client.post("/api/especies", json={"nombre_especie": "Ovino"}, headers=auth(superadmin))
    assert r.status_code == 201, r.text
    id_especie = r.json()["especie"]["id_especie"]
    assert client.post("/api/especies", json={"nombre_especie": "Ovino"},
                       headers=auth(superadmin)).status_code == 409

    r = client.post(f"/api/especies/{id_especie}/razas", json={"nombre_raza": "Merino"}, headers=auth(superadmin))
    assert r.status_code == 201

    r = client.get(f"/api/especies/{id_especie}/razas", headers=auth(ana))
    assert [x["nombre_raza"] for x in r.json()["razas"]] == ["Merino"]


# ───────────── envelope de errores ─────────────

def test_unknown_route_uses_error_envelope(client, db):
    r = client.get("/api/no-existe")
    assert r.status_code == 404
    assert r.json() == {"ok": False, "mensaje": "Ruta no encontrada"}


def test_validation_error_uses_error_envelope(client, superadmin, auth):
    r = client.post("/api/fincas", json={"nombre_finca": "X"}, headers=auth(superadmin))
    assert r.status_code == 400
    body = r.json()
    assert body["ok"] is False
    assert body["mensaje"] == "Datos inválidos"
    assert body["issues"][0]["loc"] == ["body", "nombre_finca"]


def test_health(client, db):
    assert client.get("/health").json() == {"ok": True, "status": "ok"}


def test_startup_creates_missing_tables(db):
    Base.metadata.drop_all(bind=engine)
    assert not inspect(engine).has_table("semovientes")

    with TestClient(app) as c:
        assert set(inspect(engine).get_table_names()) == set(Base.metadata.tables)
        assert c.get("/health").status_code == 200
