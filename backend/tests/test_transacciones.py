from backend.app.db import models

URL = "/api/v1/transacciones"


def _crear(client, headers, **extra):
    data = {"date": "2025-02-10", "type": "ingreso", "amount": 1000, "category": "Ventas"}
    data.update(extra)
    r = client.post(URL, json=data, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_resumen_ingresos_egresos_balance(client, admin_headers, viewer_headers):
    _crear(client, admin_headers, amount=1000)
    _crear(client, admin_headers, amount=250.5)
    _crear(client, admin_headers, type="egreso", amount=300, category="Combustible")

    r = client.get(f"{URL}/resumen", headers=viewer_headers)

    assert r.status_code == 200
    assert r.json() == {
        "ingresos": 1250.5,
        "egresos": 300.0,
        "balance": 950.5,
        "numero_transacciones": 3,
    }


def test_resumen_vacio(client, viewer_headers):
    r = client.get(f"{URL}/resumen", headers=viewer_headers)
    assert r.json()["balance"] == 0.0
    assert r.json()["numero_transacciones"] == 0


def test_listado_filtra_por_tipo_y_fecha(client, admin_headers, viewer_headers):
    _crear(client, admin_headers, date="2025-01-05")
    _crear(client, admin_headers, date="2025-02-05")
    _crear(client, admin_headers, date="2025-02-06", type="egreso", category="Luz")

    r = client.get(URL, params={"tipo": "ingreso", "desde": "2025-02-01"}, headers=viewer_headers)

    assert r.status_code == 200
    assert [t["date"] for t in r.json()] == ["2025-02-05"]


def test_export_csv(client, admin_headers, viewer_headers):
    _crear(client, admin_headers, description="Venta lote L-1")

    r = client.get(f"{URL}/export.csv", headers=viewer_headers)

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    lineas = r.text.strip().splitlines()
    assert lineas[0] == "fecha,tipo,categoria,descripcion,monto,usuario"
    assert lineas[1] == "2025-02-10,ingreso,Ventas,Venta lote L-1,1000.00,admin"


def test_monto_debe_ser_positivo(client, admin_headers):
    r = client.post(
        URL,
        json={"date": "2025-02-10", "type": "ingreso", "amount": 0, "category": "Ventas"},
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_eliminar_transaccion_desenlaza_egreso(client, admin_headers, db_session):
    egreso = client.post(
        "/api/v1/egresos-futuros",
        json={"fecha": "2025-03-01", "categoria": "Agua", "monto": 80},
        headers=admin_headers,
    ).json()
    tx = client.post(f"/api/v1/egresos-futuros/{egreso['id']}/pagar", headers=admin_headers).json()["transaccion"]

    r = client.delete(f"{URL}/{tx['id']}", headers=admin_headers)

    assert r.status_code == 204
    db_session.expire_all()
    row = db_session.get(models.EgresoFuturo, egreso["id"])
    assert row.transaccion_id is None
    assert row.estado == "pagado"


def test_viewer_no_crea_transacciones(client, viewer_headers):
    r = client.post(
        URL,
        json={"date": "2025-02-10", "type": "ingreso", "amount": 10, "category": "Ventas"},
        headers=viewer_headers,
    )
    assert r.status_code == 403


def test_auditoria_paginada(client, admin_headers, viewer_headers):
    for i in range(3):
        _crear(client, admin_headers, amount=10 + i)

    r = client.get("/api/v1/auditoria", params={"limit": 2, "offset": 0}, headers=viewer_headers)

    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert body["limit"] == 2
    assert len(body["items"]) == 2
    assert body["items"][0]["action"] == "Crear transacción"
    assert body["items"][0]["user_name"] == "admin"


def test_auditoria_limite_fuera_de_rango(client, viewer_headers):
    r = client.get("/api/v1/auditoria", params={"limit": 501}, headers=viewer_headers)
    assert r.status_code == 422
