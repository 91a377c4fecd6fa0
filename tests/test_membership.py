import pytest

from campotrack.enums.roles import RolFinca
from campotrack.models import Finca, UsuarioFincaRol
from campotrack.services.membership_service import asignar_rol, revocar_rol
from campotrack.utils.errors import InvalidReferenceError, NotFoundError
from campotrack.utils.transactions import uow


def _filas(db, user, finca):
    return (
        db.query(UsuarioFincaRol)
        .filter(UsuarioFincaRol.id_usuario == user.id_usuario, UsuarioFincaRol.id_finca == finca.id_finca)
        .all()
    )


def _admin_id(db, finca):
    db.expire_all()
    return db.get(Finca, finca.id_finca).administrador_id


def _invariante_admin(db, finca):
    admin_id = _admin_id(db, finca)
    if admin_id is None:
        return True
    return (
        db.query(UsuarioFincaRol)
        .filter_by(id_usuario=admin_id, id_finca=finca.id_finca, rol=RolFinca.ADMIN_FINCA)
        .first()
        is not None
    )


def test_reassigning_replaces_role_instead_of_adding_rows(db, make_user, make_finca, add_member):
    ana = make_user("ana")
    finca = make_finca()

    add_member(ana, finca, RolFinca.EMPLEADO)
    add_member(ana, finca, RolFinca.VETERINARIO)

    filas = _filas(db, ana, finca)
    assert len(filas) == 1
    assert filas[0].rol == RolFinca.VETERINARIO


def test_admin_role_sets_and_downgrade_clears_administrator(db, make_user, make_finca, add_member):
    ana = make_user("ana")
    finca = make_finca()

    add_member(ana, finca, RolFinca.ADMIN_FINCA)
    assert _admin_id(db, finca) == ana.id_usuario
    assert _invariante_admin(db, finca)

    add_member(ana, finca, RolFinca.EMPLEADO)
    assert _admin_id(db, finca) is None
    assert _invariante_admin(db, finca)


def test_new_admin_replaces_cached_administrator(db, make_user, make_finca, add_member):
    ana, beto = make_user("ana"), make_user("beto")
    finca = make_finca()

    add_member(ana, finca, RolFinca.ADMIN_FINCA)
    add_member(beto, finca, RolFinca.ADMIN_FINCA)
    assert _admin_id(db, finca) == beto.id_usuario

    # Degradar a quien ya no está registrado como administrador no toca la caché
    add_member(ana, finca, RolFinca.EMPLEADO)
    assert _admin_id(db, finca) == beto.id_usuario
    assert _invariante_admin(db, finca)


def test_revoking_recorded_admin_clears_administrator(db, make_user, make_finca, add_member):
    ana = make_user("ana")
    finca = make_finca()
    add_member(ana, finca, RolFinca.ADMIN_FINCA)

    with uow(db):
        revocar_rol(db, ana.id_usuario, finca.id_finca, RolFinca.ADMIN_FINCA)

    assert _admin_id(db, finca) is None
    assert _filas(db, ana, finca) == []


def test_revoking_other_user_keeps_administrator(db, make_user, make_finca, add_member):
    ana, beto = make_user("ana"), make_user("beto")
    finca = make_finca()
    add_member(ana, finca, RolFinca.ADMIN_FINCA)
    add_member(beto, finca, RolFinca.EMPLEADO)

    with uow(db):
        revocar_rol(db, beto.id_usuario, finca.id_finca, "empleado")

    assert _admin_id(db, finca) == ana.id_usuario
    assert _invariante_admin(db, finca)


def test_revoke_requires_exact_role_match(db, make_user, make_finca, add_member):
    ana = make_user("ana")
    finca = make_finca()
    add_member(ana, finca, RolFinca.EMPLEADO)

    with pytest.raises(NotFoundError):
        with uow(db):
            revocar_rol(db, ana.id_usuario, finca.id_finca, RolFinca.VETERINARIO)

    assert len(_filas(db, ana, finca)) == 1


def test_assign_with_missing_references(db, make_user, make_finca):
    ana = make_user("ana")
    finca = make_finca()

    with pytest.raises(InvalidReferenceError):
        with uow(db):
            asignar_rol(db, 9999, finca.id_finca, RolFinca.EMPLEADO)
    with pytest.raises(InvalidReferenceError):
        with uow(db):
            asignar_rol(db, ana.id_usuario, 9999, RolFinca.EMPLEADO)


# ───────────── API ─────────────

def test_admin_assigns_member_through_api(client, db, make_user, make_finca, add_member, auth):
    admin, ana = make_user("admin"), make_user("ana")
    finca = make_finca()
    add_member(admin, finca, RolFinca.ADMIN_FINCA)

    r = client.post(
        f"/api/fincas/{finca.id_finca}/miembros",
        json={"id_usuario": ana.id_usuario, "rol": "veterinario"},
        headers=auth(admin),
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["ok"] is True
    assert body["asignacion"]["rol"] == "Veterinario"

    r = client.get(f"/api/fincas/{finca.id_finca}/miembros", headers=auth(ana))
    assert r.status_code == 200
    assert {m["nombre_usuario"]: m["rol_en_finca"] for m in r.json()["miembros"]} == {
        "admin": "AdminFinca",
        "ana": "Veterinario",
    }


def test_employee_cannot_assign_roles(client, make_user, make_finca, add_member, auth):
    empleado, ana = make_user("empleado"), make_user("ana")
    finca = make_finca()
    add_member(empleado, finca, RolFinca.EMPLEADO)

    r = client.post(
        f"/api/fincas/{finca.id_finca}/miembros",
        json={"id_usuario": ana.id_usuario, "rol": "Empleado"},
        headers=auth(empleado),
    )
    assert r.status_code == 403
    assert r.json()["ok"] is False


def test_revoke_through_api(client, db, superadmin, make_user, make_finca, add_member, auth):
    ana = make_user("ana")
    finca = make_finca()
    add_member(ana, finca, RolFinca.ADMIN_FINCA)
    url = f"/api/fincas/{finca.id_finca}/miembros/{ana.id_usuario}"

    assert client.delete(url, headers=auth(superadmin)).status_code == 400
    assert client.delete(url, params={"rol": "Empleado"}, headers=auth(superadmin)).status_code == 404

    r = client.delete(url, params={"rol": "AdminFinca"}, headers=auth(superadmin))
    assert r.status_code == 200
    assert _admin_id(db, finca) is None
