import base64

from backend.app.core.config import settings
from backend.app.db import models
from backend.app.utils.documento_utils import split_data_url, tamano_base64

URL = "/api/v1/documentos"


def _b64(n_bytes: int) -> str:
    return base64.b64encode(b"x" * n_bytes).decode()


def test_subir_documento_y_listar_sin_contenido(client, admin_headers, viewer_headers):
    r = client.post(
        URL,
        json={"name": "plano.png", "type": "image/png", "data": _b64(1024), "category": "Planos"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    doc = r.json()
    assert doc["size_bytes"] == 1024
    assert doc["uploaded_by"] == "admin"
    assert "data" not in doc

    listado = client.get(URL, headers=viewer_headers).json()
    assert [d["id"] for d in listado] == [doc["id"]]
    assert "data" not in listado[0]

    detalle = client.get(f"{URL}/{doc['id']}", headers=viewer_headers).json()
    assert detalle["data"] == _b64(1024)


def test_documento_de_mas_de_2mb_413(client, admin_headers, db_session):
    r = client.post(
        URL,
        json={"name": "grande.pdf", "type": "application/pdf", "data": _b64(settings.DOCUMENT_MAX_BYTES + 1)},
        headers=admin_headers,
    )

    assert r.status_code == 413
    assert r.json()["detail"] == "El archivo es demasiado grande. Máximo 2MB."
    assert db_session.query(models.Documento).count() == 0


def test_documento_justo_en_el_limite(client, admin_headers):
    r = client.post(
        URL,
        json={"name": "limite.pdf", "type": "application/pdf", "data": _b64(settings.DOCUMENT_MAX_BYTES)},
        headers=admin_headers,
    )
    assert r.status_code == 201


def test_base64_invalido_422(client, admin_headers):
    r = client.post(
        URL,
        json={"name": "roto.pdf", "type": "application/pdf", "data": "no es base64!!"},
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_eliminar_documento(client, admin_headers, viewer_headers):
    doc = client.post(
        URL,
        json={"name": "a.pdf", "type": "application/pdf", "data": _b64(10)},
        headers=admin_headers,
    ).json()

    assert client.delete(f"{URL}/{doc['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"{URL}/{doc['id']}", headers=viewer_headers).status_code == 404


def test_split_data_url():
    assert split_data_url("data:application/pdf;base64,QUJD") == ("application/pdf", "QUJD")
    assert split_data_url("QUJD") == (None, "QUJD")
    assert tamano_base64("data:image/png;base64,QUJD") == 3


# ---------------------------------------------------------------------------
# Notas
# ---------------------------------------------------------------------------

def test_notas_filtro_y_cambio_de_estado(client, admin_headers, viewer_headers):
    r = client.post(
        "/api/v1/notas",
        json={"title": "Revisar escrituras", "content": "Lote A-7"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    nota = r.json()
    assert nota["status"] == "futuro"

    r = client.patch(f"/api/v1/notas/{nota['id']}/status", json={"status": "tratado"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "tratado"

    futuras = client.get("/api/v1/notas", params={"status": "futuro"}, headers=viewer_headers).json()
    tratadas = client.get("/api/v1/notas", params={"status": "tratado"}, headers=viewer_headers).json()
    assert futuras == []
    assert [n["id"] for n in tratadas] == [nota["id"]]


def test_nota_estado_invalido_422(client, admin_headers):
    r = client.post(
        "/api/v1/notas",
        json={"title": "x", "status": "archivado"},
        headers=admin_headers,
    )
    assert r.status_code == 422
