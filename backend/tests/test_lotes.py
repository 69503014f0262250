from backend.app.db import models

URL = "/api/v1/lotes"


def _crear_cliente(client, headers, nombre="Ana"):
    r = client.post(
        "/api/v1/clientes-actuales",
        json={"nombre": nombre, "numero_lote": "A-1", "valor_lote": 30000, "deposito_inicial": 5000},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["id"]


# ---------------------------------------------------------------------------
# Alta y número de lote
# ---------------------------------------------------------------------------

def test_crear_lote_normaliza_numero(client, admin_headers, db_session):
    r = client.post(
        URL,
        json={"numero_lote": " a-12 ", "precio": 45000, "area": 250, "ubicacion": "  Manzana B "},
        headers=admin_headers,
    )

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["numero_lote"] == "A-12"
    assert body["estado"] == "disponible"
    assert body["precio"] == 45000.0
    assert body["ubicacion"] == "Manzana B"
    assert db_session.query(models.AuditLog).one().action == "Crear lote"


def test_numero_lote_duplicado_409(client, admin_headers, make_lote):
    make_lote(numero="A-1")

    r = client.post(URL, json={"numero_lote": "a-1"}, headers=admin_headers)

    assert r.status_code == 409
    assert r.json()["detail"] == "Ya existe un lote con ese número."


def test_renombrar_a_numero_existente_409(client, admin_headers, make_lote):
    make_lote(numero="A-1")
    otro = make_lote(numero="A-2")

    r = client.put(f"{URL}/{otro}", json={"numero_lote": "A-1"}, headers=admin_headers)

    assert r.status_code == 409
    assert r.json()["detail"] == "Ya existe un lote con ese número."


def test_viewer_no_puede_crear_lotes(client, viewer_headers):
    r = client.post(URL, json={"numero_lote": "A-1"}, headers=viewer_headers)
    assert r.status_code == 403


# ---------------------------------------------------------------------------
# Estado y cliente asociado
# ---------------------------------------------------------------------------

def test_vendido_sin_cliente_422(client, admin_headers, make_lote):
    lote_id = make_lote()

    r = client.put(f"{URL}/{lote_id}", json={"estado": "vendido"}, headers=admin_headers)

    assert r.status_code == 422
    assert r.json()["detail"] == "Un lote reservado o vendido debe tener un cliente asociado."


def test_reservado_sin_cliente_422(client, admin_headers):
    r = client.post(URL, json={"numero_lote": "A-1", "estado": "reservado"}, headers=admin_headers)

    assert r.status_code == 422
    assert r.json()["detail"] == "Un lote reservado o vendido debe tener un cliente asociado."


def test_reservado_con_cliente_inexistente_422(client, admin_headers, make_lote):
    lote_id = make_lote()

    r = client.put(
        f"{URL}/{lote_id}",
        json={"estado": "reservado", "cliente_id": "no-existe"},
        headers=admin_headers,
    )

    assert r.status_code == 422


def test_disponible_limpia_cliente(client, admin_headers, make_lote):
    lote_id = make_lote()
    cliente_id = _crear_cliente(client, admin_headers)

    r = client.put(
        f"{URL}/{lote_id}",
        json={"estado": "reservado", "cliente_id": cliente_id},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["cliente_id"] == cliente_id

    r = client.put(f"{URL}/{lote_id}", json={"estado": "disponible"}, headers=admin_headers)

    assert r.status_code == 200
    assert r.json()["cliente_id"] is None


def test_bloqueado_ignora_cliente(client, admin_headers):
    cliente_id = _crear_cliente(client, admin_headers)

    r = client.post(
        URL,
        json={"numero_lote": "A-1", "estado": "bloqueado", "cliente_id": cliente_id, "bloqueado_por": "Gerencia"},
        headers=admin_headers,
    )

    assert r.status_code == 201, r.text
    assert r.json()["cliente_id"] is None
    assert r.json()["bloqueado_por"] == "Gerencia"


# ---------------------------------------------------------------------------
# Bajas
# ---------------------------------------------------------------------------

def test_eliminar_lote_disponible(client, admin_headers, viewer_headers, make_lote):
    lote_id = make_lote()

    assert client.delete(f"{URL}/{lote_id}", headers=admin_headers).status_code == 204
    assert client.get(f"{URL}/{lote_id}", headers=viewer_headers).status_code == 404


def test_no_se_elimina_lote_vendido(client, admin_headers, make_lote, db_session):
    lote_id = make_lote()
    r = client.post(
        f"{URL}/{lote_id}/liquidar",
        json={"accion": "vendido", "nombre": "Juan", "deposito_inicial": 10000},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text

    r = client.delete(f"{URL}/{lote_id}", headers=admin_headers)

    assert r.status_code == 409
    assert r.json()["detail"] == "No se puede eliminar un lote reservado o vendido."
    assert db_session.get(models.Lote, lote_id) is not None


def test_no_se_elimina_lote_reservado(client, admin_headers, make_lote):
    lote_id = make_lote()
    cliente_id = _crear_cliente(client, admin_headers)
    client.put(f"{URL}/{lote_id}", json={"estado": "reservado", "cliente_id": cliente_id}, headers=admin_headers)

    assert client.delete(f"{URL}/{lote_id}", headers=admin_headers).status_code == 409


# ---------------------------------------------------------------------------
# Consultas
# ---------------------------------------------------------------------------

def test_resumen_por_estado(client, admin_headers, viewer_headers, make_lote):
    make_lote()
    make_lote()
    make_lote(estado="bloqueado")
    vendido = make_lote()
    client.post(
        f"{URL}/{vendido}/liquidar",
        json={"accion": "vendido", "nombre": "Juan", "deposito_inicial": 10000},
        headers=admin_headers,
    )

    r = client.get(f"{URL}/resumen", headers=viewer_headers)

    assert r.status_code == 200
    assert r.json() == {"total": 4, "disponible": 2, "reservado": 0, "vendido": 1, "bloqueado": 1}


def test_resumen_sin_lotes(client, viewer_headers):
    r = client.get(f"{URL}/resumen", headers=viewer_headers)
    assert r.json() == {"total": 0, "disponible": 0, "reservado": 0, "vendido": 0, "bloqueado": 0}


def test_listar_filtra_por_estado_y_ordena(client, viewer_headers, make_lote):
    make_lote(numero="B-2")
    make_lote(numero="A-1")
    make_lote(numero="C-3", estado="bloqueado")

    r = client.get(URL, params={"estado": "disponible"}, headers=viewer_headers)

    assert r.status_code == 200
    assert [lote["numero_lote"] for lote in r.json()] == ["A-1", "B-2"]
