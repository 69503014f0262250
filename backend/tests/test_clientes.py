from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from backend.app.db import models
from backend.app.utils.id_utils import generate_uuid

URL = "/api/v1/clientes-actuales"


def _vender(client, headers, lote_id, **extra):
    data = {"accion": "vendido", "nombre": "Juan Pérez", "deposito_inicial": 10000, "numero_cuotas": 12}
    data.update(extra)
    r = client.post(f"/api/v1/lotes/{lote_id}/liquidar", json=data, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def _pagar(client, headers, cliente_id, monto):
    r = client.post(
        "/api/v1/pagos-clientes",
        json={"cliente_id": cliente_id, "monto": monto},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()


# ---------------------------------------------------------------------------
# Clientes actuales
# ---------------------------------------------------------------------------

def test_crear_cliente_calcula_plan(client, admin_headers):
    r = client.post(
        URL,
        json={"nombre": "Ana", "numero_lote": "l-3", "valor_lote": 30000, "deposito_inicial": 6000, "numero_cuotas": 24},
        headers=admin_headers,
    )

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["numero_lote"] == "L-3"
    assert body["saldo_restante"] == 24000.0
    assert body["valor_cuota"] == 1000.0
    assert body["saldo_final"] == 24000.0


def test_crear_cliente_deposito_mayor_que_lote(client, admin_headers):
    r = client.post(
        URL,
        json={"nombre": "Ana", "numero_lote": "L-3", "valor_lote": 1000, "deposito_inicial": 2000},
        headers=admin_headers,
    )
    assert r.status_code == 422
    assert r.json()["detail"] == "El depósito no puede superar $1,000.00"


def test_actualizar_numero_cuotas_recalcula(client, admin_headers, make_lote):
    venta = _vender(client, admin_headers, make_lote(precio="50000"))
    cliente_id = venta["cliente"]["id"]

    r = client.put(f"{URL}/{cliente_id}", json={"numero_cuotas": 4}, headers=admin_headers)

    assert r.status_code == 200, r.text
    assert r.json()["valor_cuota"] == 10000.0
    assert r.json()["saldo_restante"] == 40000.0


def test_actualizar_sin_campos_de_plan_no_recalcula(client, admin_headers, make_lote):
    venta = _vender(client, admin_headers, make_lote(precio="50000"))
    cliente_id = venta["cliente"]["id"]

    r = client.put(f"{URL}/{cliente_id}", json={"telefono": "0999999999"}, headers=admin_headers)

    assert r.status_code == 200
    assert r.json()["telefono"] == "0999999999"
    assert r.json()["valor_cuota"] == 3333.33


def test_eliminar_cliente_borra_pagos_y_libera_lote(client, admin_headers, make_lote, db_session):
    lote_id = make_lote(precio="50000")
    venta = _vender(client, admin_headers, lote_id)
    cliente_id = venta["cliente"]["id"]
    _pagar(client, admin_headers, cliente_id, 3333.33)
    _pagar(client, admin_headers, cliente_id, 3333.33)

    r = client.delete(f"{URL}/{cliente_id}", headers=admin_headers)

    assert r.status_code == 204
    db_session.expire_all()
    assert db_session.query(models.PagoCliente).filter_by(cliente_id=cliente_id).count() == 0
    assert db_session.get(models.ClienteActual, cliente_id) is None
    lote = db_session.get(models.Lote, lote_id)
    assert lote.estado == "disponible"
    assert lote.cliente_id is None


def test_eliminar_cliente_limpia_descripcion_del_lote(client, admin_headers, viewer_headers, make_lote):
    lote_id = make_lote(precio="50000")
    venta = _vender(client, admin_headers, lote_id, accion="reservado", nombre="Marta Ruiz")
    assert venta["lote"]["descripcion"] == "Reservado a Marta Ruiz"

    r = client.delete(f"{URL}/{venta['cliente']['id']}", headers=admin_headers)

    assert r.status_code == 204
    lote = client.get(f"/api/v1/lotes/{lote_id}", headers=viewer_headers).json()
    assert lote["estado"] == "disponible"
    assert lote["descripcion"] is None


def test_estado_cuenta(client, admin_headers, viewer_headers, make_lote):
    venta = _vender(client, admin_headers, make_lote(precio="50000"))
    cliente_id = venta["cliente"]["id"]
    _pagar(client, admin_headers, cliente_id, 5000)
    hoy = datetime.utcnow().date()

    r = client.get(
        f"{URL}/{cliente_id}/estado-cuenta",
        params={"fecha_referencia": hoy.isoformat()},
        headers=viewer_headers,
    )

    assert r.status_code == 200
    assert r.json() == {
        "cliente_id": cliente_id,
        "valor_lote": 50000.0,
        "saldo_final": 40000.0,
        "total_pagado": 15000.0,
        "saldo_pendiente": 35000.0,
        "progreso": 30,
        "numero_pagos": 2,
        "situacion": "al_dia",
        "proximo_pago": (hoy + timedelta(days=30)).isoformat(),
        "dias_restantes": 30,
    }


def _cliente_con_pago(client, headers, fecha_pago):
    r = client.post(
        URL,
        json={"nombre": "Ana", "numero_lote": "C-1", "valor_lote": 30000, "deposito_inicial": 0, "numero_cuotas": 10},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    cliente_id = r.json()["id"]
    r = client.post(
        "/api/v1/pagos-clientes",
        json={"cliente_id": cliente_id, "monto": 3000, "fecha_pago": fecha_pago},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return cliente_id


@pytest.mark.parametrize(
    "fecha_referencia, situacion, dias",
    [
        ("2025-03-20", "al_dia", 11),
        ("2025-03-31", "al_dia", 0),
        ("2025-04-05", "vencido", -5),
        ("2025-04-07", "vencido", -7),
        ("2025-04-08", "mora", -8),
    ],
)
def test_estado_cuenta_situacion_segun_ultimo_pago(
    client, admin_headers, viewer_headers, fecha_referencia, situacion, dias
):
    cliente_id = _cliente_con_pago(client, admin_headers, "2025-03-01T10:00:00")

    r = client.get(
        f"{URL}/{cliente_id}/estado-cuenta",
        params={"fecha_referencia": fecha_referencia},
        headers=viewer_headers,
    )

    assert r.status_code == 200
    body = r.json()
    assert body["proximo_pago"] == "2025-03-31"
    assert body["situacion"] == situacion
    assert body["dias_restantes"] == dias


def test_estado_cuenta_sin_pagos_cuenta_desde_el_alta(client, viewer_headers, db_session):
    cliente = models.ClienteActual(
        id=generate_uuid(),
        nombre="Pedro",
        numero_lote="C-2",
        valor_lote=Decimal("20000"),
        deposito_inicial=Decimal("0"),
        saldo_restante=Decimal("20000"),
        numero_cuotas=10,
        valor_cuota=Decimal("2000"),
        saldo_final=Decimal("20000"),
        estado="activo",
        created_at=datetime(2025, 1, 10, 9, 0),
    )
    db_session.add(cliente)
    db_session.commit()

    r = client.get(
        f"{URL}/{cliente.id}/estado-cuenta",
        params={"fecha_referencia": "2025-03-01"},
        headers=viewer_headers,
    )

    assert r.json()["proximo_pago"] == "2025-02-09"
    assert r.json()["situacion"] == "mora"
    assert r.json()["dias_restantes"] == -20


def test_estado_cuenta_cliente_sin_saldo_no_espera_pagos(client, admin_headers, viewer_headers, make_lote):
    venta = _vender(client, admin_headers, make_lote(precio="50000"))
    cliente_id = venta["cliente"]["id"]
    _pagar(client, admin_headers, cliente_id, 40000)

    r = client.get(
        f"{URL}/{cliente_id}/estado-cuenta",
        params={"fecha_referencia": "2099-01-01"},
        headers=viewer_headers,
    )

    body = r.json()
    assert body["saldo_pendiente"] == 0.0
    assert body["situacion"] == "pagado"
    assert body["proximo_pago"] is None
    assert body["dias_restantes"] is None


def test_progreso_del_lote(client, admin_headers, viewer_headers, make_lote):
    lote_id = make_lote(precio="50000")
    _vender(client, admin_headers, lote_id)

    r = client.get(f"/api/v1/lotes/{lote_id}/progreso", headers=viewer_headers)

    assert r.status_code == 200
    assert r.json()["progreso"] == 20
    assert r.json()["total_pagado"] == 10000.0


def test_plan_automatico(client, admin_headers, viewer_headers, make_lote):
    venta = _vender(client, admin_headers, make_lote(precio="50000"))
    cliente_id = venta["cliente"]["id"]

    r = client.get(f"{URL}/{cliente_id}/plan", params={"fecha_inicio": "2025-01-31"}, headers=viewer_headers)

    assert r.status_code == 200
    cuotas = r.json()["cuotas"]
    assert len(cuotas) == 12
    assert cuotas[0]["fecha"] == "2025-02-28"
    assert cuotas[-1]["monto"] == 3333.37
    assert cuotas[-1]["saldo_posterior"] == 0.0


def test_cliente_inexistente_404(client, viewer_headers):
    assert client.get(f"{URL}/nada", headers=viewer_headers).status_code == 404


# ---------------------------------------------------------------------------
# Pagos y recibo
# ---------------------------------------------------------------------------

def test_recibo_no_cuenta_dos_veces_el_deposito(client, admin_headers, viewer_headers, make_lote):
    venta = _vender(client, admin_headers, make_lote(precio="50000"))
    pago = _pagar(client, admin_headers, venta["cliente"]["id"], 3333.33)

    r = client.get(f"/api/v1/pagos-clientes/{pago['id']}/recibo", headers=viewer_headers)

    assert r.status_code == 200
    body = r.json()
    assert body["saldo_anterior"] == 40000.0
    assert body["saldo_actual"] == 36666.67
    assert body["pago"]["forma_pago"] == "Transferencia Bancaria"


def test_pago_cliente_inexistente_404(client, admin_headers):
    r = client.post(
        "/api/v1/pagos-clientes",
        json={"cliente_id": "nada", "monto": 10},
        headers=admin_headers,
    )
    assert r.status_code == 404


# ---------------------------------------------------------------------------
# Clientes interesados
# ---------------------------------------------------------------------------

def test_convertir_interesado(client, admin_headers, viewer_headers):
    r = client.post(
        "/api/v1/clientes-interesados",
        json={"nombre": "Luis", "email": "Luis@Correo.com", "notas": "Quiere lote esquinero"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    interesado_id = r.json()["id"]

    r = client.post(
        f"/api/v1/clientes-interesados/{interesado_id}/convertir",
        json={"numero_lote": "b-2", "valor_lote": 20000, "deposito_inicial": 5000, "numero_cuotas": 3},
        headers=admin_headers,
    )

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["interesado"]["estado"] == "convertido"
    assert body["cliente"]["nombre"] == "Luis"
    assert body["cliente"]["email"] == "luis@correo.com"
    assert body["cliente"]["numero_lote"] == "B-2"
    assert body["cliente"]["valor_cuota"] == 5000.0

    listado = client.get("/api/v1/clientes-interesados", headers=viewer_headers).json()
    assert listado == []
    todos = client.get(
        "/api/v1/clientes-interesados",
        params={"incluir_convertidos": True},
        headers=viewer_headers,
    ).json()
    assert [i["id"] for i in todos] == [interesado_id]

    r = client.post(
        f"/api/v1/clientes-interesados/{interesado_id}/convertir",
        json={"numero_lote": "B-3", "valor_lote": 20000},
        headers=admin_headers,
    )
    assert r.status_code == 409
