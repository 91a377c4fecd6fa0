from decimal import Decimal

import pytest

from campotrack.enums.enums import EstadoSemoviente, TipoMovimiento
from campotrack.enums.roles import RolFinca
from campotrack.models import MovimientoSemoviente, Semoviente
from campotrack.services import lifecycle_service
from campotrack.services.lifecycle_service import (
    cambiar_estado,
    listar_movimientos,
    registrar_muerte,
    transferir,
    vender,
)
from campotrack.utils.datetime_utils import today_local
from campotrack.utils.errors import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def escenario(make_user, make_finca, add_member, make_semoviente, actor_de):
    admin_a, admin_b, empleado_a = make_user("admin_a"), make_user("admin_b"), make_user("empleado_a")
    finca_a, finca_b = make_finca("Finca A"), make_finca("Finca B")
    add_member(admin_a, finca_a, RolFinca.ADMIN_FINCA)
    add_member(admin_b, finca_b, RolFinca.ADMIN_FINCA)
    add_member(empleado_a, finca_a, RolFinca.EMPLEADO)
    semoviente = make_semoviente(finca_a)
    return {
        "admin_a": admin_a,
        "admin_b": admin_b,
        "empleado_a": empleado_a,
        "finca_a": finca_a,
        "finca_b": finca_b,
        "semoviente": semoviente,
        "actor_de": actor_de,
    }


def _movimientos(db, semoviente, tipo=None):
    q = db.query(MovimientoSemoviente).filter(MovimientoSemoviente.id_semoviente == semoviente.id_semoviente)
    if tipo is not None:
        q = q.filter(MovimientoSemoviente.tipo_movimiento == tipo)
    return q.all()


def _recargar(db, semoviente):
    db.expire_all()
    return db.get(Semoviente, semoviente.id_semoviente)


def test_transfer_moves_animal_and_appends_one_entry(db, escenario):
    e = escenario
    actor = e["actor_de"](e["admin_a"])
    mov = transferir(db, actor, e["semoviente"].id_semoviente, e["finca_b"].id_finca, "Cambio de potrero")

    s = _recargar(db, e["semoviente"])
    assert s.id_finca == e["finca_b"].id_finca
    assert s.estado == EstadoSemoviente.TRASLADO
    assert mov.tipo_movimiento == TipoMovimiento.TRASLADO
    assert mov.finca_origen_id == e["finca_a"].id_finca
    assert mov.finca_destino_id == e["finca_b"].id_finca
    assert mov.valor is None
    assert len(_movimientos(db, s, TipoMovimiento.TRASLADO)) == 1

    # Ya no está Activo: un segundo traslado falla sin efectos
    with pytest.raises(InvalidStateError):
        transferir(db, actor, s.id_semoviente, e["finca_a"].id_finca)
    assert len(_movimientos(db, s, TipoMovimiento.TRASLADO)) == 1


def test_transfer_validations(db, escenario):
    e = escenario
    actor = e["actor_de"](e["admin_a"])
    id_s = e["semoviente"].id_semoviente

    with pytest.raises(ValidationError):
        transferir(db, actor, id_s, None)
    with pytest.raises(ValidationError):
        transferir(db, actor, id_s, e["finca_a"].id_finca)
    with pytest.raises(NotFoundError):
        transferir(db, actor, id_s, 9999)
    with pytest.raises(NotFoundError):
        transferir(db, actor, 9999, e["finca_b"].id_finca)

    s = _recargar(db, e["semoviente"])
    assert s.estado == EstadoSemoviente.ACTIVO
    assert s.id_finca == e["finca_a"].id_finca


def test_only_origin_admin_can_transition(db, escenario):
    e = escenario
    id_s = e["semoviente"].id_semoviente

    for user in (e["empleado_a"], e["admin_b"]):
        with pytest.raises(AuthorizationError):
            registrar_muerte(db, e["actor_de"](user), id_s)

    assert _recargar(db, e["semoviente"]).estado == EstadoSemoviente.ACTIVO
    assert _movimientos(db, e["semoviente"], TipoMovimiento.MUERTE) == []


def test_state_is_checked_before_authorization(db, escenario):
    e = escenario
    id_s = e["semoviente"].id_semoviente
    registrar_muerte(db, e["actor_de"](e["admin_a"]), id_s)

    with pytest.raises(InvalidStateError):
        vender(db, e["actor_de"](e["admin_b"]), id_s, Decimal("100"))
    with pytest.raises(InvalidStateError):
        registrar_muerte(db, e["actor_de"](e["empleado_a"]), id_s)


def test_state_is_checked_before_operation_input(db, escenario):
    e = escenario
    actor = e["actor_de"](e["admin_a"])
    id_s = e["semoviente"].id_semoviente
    transferir(db, actor, id_s, e["finca_b"].id_finca)

    # Traslado sin destino sobre un semoviente que ya no está Activo
    with pytest.raises(InvalidStateError):
        transferir(db, actor, id_s, None)
    with pytest.raises(InvalidStateError):
        vender(db, actor, id_s, None)


def test_manual_status_change_checks_permission_in_any_state(db, escenario):
    e = escenario
    id_s = e["semoviente"].id_semoviente
    registrar_muerte(db, e["actor_de"](e["admin_a"]), id_s)

    with pytest.raises(AuthorizationError):
        cambiar_estado(db, e["actor_de"](e["empleado_a"]), id_s, EstadoSemoviente.ACTIVO)
    assert _recargar(db, e["semoviente"]).estado == EstadoSemoviente.FALLECIDO


def test_sale_requires_positive_value(db, escenario):
    e = escenario
    actor = e["actor_de"](e["admin_a"])
    id_s = e["semoviente"].id_semoviente

    for valor in (None, Decimal("0"), Decimal("-5")):
        with pytest.raises(ValidationError):
            vender(db, actor, id_s, valor)
    assert _movimientos(db, e["semoviente"], TipoMovimiento.VENTA) == []


def test_sale_decommissions_and_records_value(db, escenario):
    e = escenario
    mov = vender(db, e["actor_de"](e["admin_a"]), e["semoviente"].id_semoviente, Decimal("2500000"), "Feria")

    s = _recargar(db, e["semoviente"])
    assert s.estado == EstadoSemoviente.VENDIDO
    assert s.fecha_baja == today_local()
    assert s.fecha_salida == today_local()
    assert s.motivo_baja == "Venta"
    assert s.observaciones_baja == "Feria"
    assert mov.valor == Decimal("2500000")
    assert len(_movimientos(db, s, TipoMovimiento.VENTA)) == 1


def test_death_decommissions_without_value(db, escenario):
    e = escenario
    mov = registrar_muerte(db, e["actor_de"](e["admin_a"]), e["semoviente"].id_semoviente, "Rayo")

    s = _recargar(db, e["semoviente"])
    assert s.estado == EstadoSemoviente.FALLECIDO
    assert s.motivo_baja == "Muerte"
    assert mov.valor is None
    assert len(_movimientos(db, s, TipoMovimiento.MUERTE)) == 1


def test_manual_status_change_never_writes_ledger(db, escenario):
    e = escenario
    actor = e["actor_de"](e["admin_a"])
    s = e["semoviente"]
    antes = len(_movimientos(db, s))

    cambiar_estado(db, actor, s.id_semoviente, "robado", motivo="Abigeato", observaciones="Denuncia 123")
    s = _recargar(db, s)
    assert s.estado == EstadoSemoviente.ROBADO
    assert s.motivo_baja == "Abigeato"

    # Solo sobrescribe lo enviado
    cambiar_estado(db, actor, s.id_semoviente, EstadoSemoviente.PERDIDO, observaciones="Sin rastro")
    s = _recargar(db, s)
    assert s.motivo_baja == "Abigeato"
    assert s.observaciones_baja == "Sin rastro"

    cambiar_estado(db, actor, s.id_semoviente, EstadoSemoviente.ACTIVO)
    s = _recargar(db, s)
    assert s.estado == EstadoSemoviente.ACTIVO
    assert (s.fecha_baja, s.motivo_baja, s.observaciones_baja) == (None, None, None)

    assert len(_movimientos(db, s)) == antes


def test_failed_ledger_insert_rolls_back_animal(db, escenario, monkeypatch):
    e = escenario

    def _falla(*args, **kwargs):
        raise RuntimeError("fallo al escribir el ledger")

    monkeypatch.setattr(lifecycle_service, "_asentar", _falla)
    with pytest.raises(RuntimeError):
        transferir(db, e["actor_de"](e["admin_a"]), e["semoviente"].id_semoviente, e["finca_b"].id_finca)

    s = _recargar(db, e["semoviente"])
    assert s.estado == EstadoSemoviente.ACTIVO
    assert s.id_finca == e["finca_a"].id_finca
    assert _movimientos(db, s, TipoMovimiento.TRASLADO) == []


def test_history_visible_from_any_related_farm(db, escenario):
    e = escenario
    id_s = e["semoviente"].id_semoviente
    transferir(db, e["actor_de"](e["admin_a"]), id_s, e["finca_b"].id_finca)

    # El empleado de la finca de origen sigue viendo el historial
    historial = listar_movimientos(db, e["actor_de"](e["empleado_a"]), id_s)
    assert [m.tipo_movimiento for m in historial] == [TipoMovimiento.TRASLADO, TipoMovimiento.NACIMIENTO]


def test_history_hidden_from_unrelated_users(db, escenario, make_user):
    e = escenario
    extrano = make_user("extrano")
    with pytest.raises(AuthorizationError):
        listar_movimientos(db, e["actor_de"](extrano), e["semoviente"].id_semoviente)


# ───────────── API ─────────────

def test_transfer_scenario_through_api(client, db, escenario, auth):
    e = escenario
    url = f"/api/semovientes/{e['semoviente'].id_semoviente}/movimientos"
    body = {"tipo": "Traslado", "destino_id": e["finca_b"].id_finca}

    r = client.post(url, json=body, headers=auth(e["admin_a"]))
    assert r.status_code == 201, r.text
    assert r.json()["ok"] is True
    assert isinstance(r.json()["id_movimiento"], int)

    s = _recargar(db, e["semoviente"])
    assert s.id_finca == e["finca_b"].id_finca
    assert s.estado == EstadoSemoviente.TRASLADO

    # Ni el admin de la finca anterior ni el de la nueva pueden trasladarlo otra vez:
    # el semoviente ya no está Activo
    for admin in (e["admin_a"], e["admin_b"]):
        r = client.post(url, json={"tipo": "Traslado", "destino_id": e["finca_a"].id_finca}, headers=auth(admin))
        assert r.status_code == 400, r.text
        assert r.json()["ok"] is False
    assert len(_movimientos(db, s, TipoMovimiento.TRASLADO)) == 1

    r = client.get(url, headers=auth(e["admin_b"]))
    assert r.status_code == 200
    assert r.json()["movimientos"][0]["tipo_movimiento"] == "Traslado"


def test_status_endpoint_requires_admin(client, escenario, auth):
    e = escenario
    url = f"/api/semovientes/{e['semoviente'].id_semoviente}/estado"

    assert client.patch(url, json={"estado": "Inactivo"}, headers=auth(e["empleado_a"])).status_code == 403

    r = client.patch(url, json={"estado": "Inactivo", "motivo": "Descarte"}, headers=auth(e["admin_a"]))
    assert r.status_code == 200
    assert r.json()["semoviente"]["estado"] == "Inactivo"
    assert r.json()["semoviente"]["motivo_baja"] == "Descarte"


@pytest.mark.parametrize("valor", ["123456789012345.00", "1500.125"])
def test_sale_value_out_of_money_format_is_rejected(client, db, escenario, auth, valor):
    e = escenario
    url = f"/api/semovientes/{e['semoviente'].id_semoviente}/movimientos"

    r = client.post(url, json={"tipo": "Venta", "valor": valor}, headers=auth(e["admin_a"]))
    assert r.status_code == 400, r.text
    assert r.json()["mensaje"] == "Datos inválidos"

    s = _recargar(db, e["semoviente"])
    assert s.estado == EstadoSemoviente.ACTIVO
    assert _movimientos(db, s, TipoMovimiento.VENTA) == []


def test_sale_value_in_money_format_is_accepted(client, db, escenario, auth):
    e = escenario
    url = f"/api/semovientes/{e['semoviente'].id_semoviente}/movimientos"

    r = client.post(url, json={"tipo": "Venta", "valor": "1234567.89"}, headers=auth(e["admin_a"]))
    assert r.status_code == 201, r.text

    venta = _movimientos(db, _recargar(db, e["semoviente"]), TipoMovimiento.VENTA)
    assert [m.valor for m in venta] == [Decimal("1234567.89")]
