from datetime import date

import pytest

from backend.app.db import models

URL = "/api/v1/obras"


def _crear(client, headers, **extra):
    data = {"nombre": "Vías internas", "presupuesto": 100000, "fecha_inicio": "2025-01-15"}
    data.update(extra)
    r = client.post(URL, json=data, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def _gasto(client, headers, obra_id, monto, concepto="Cemento"):
    r = client.post(
        f"{URL}/{obra_id}/gastos",
        json={"concepto": concepto, "monto": monto, "fecha": "2025-02-01"},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()


# ---------------------------------------------------------------------------
# Alta y edición
# ---------------------------------------------------------------------------

def test_crear_obra_calcula_progreso(client, admin_headers, db_session):
    body = _crear(client, admin_headers, descripcion="  Asfaltado  ")

    assert body["etapa"] == "planificacion"
    assert body["progreso"] == 8
    assert body["estado"] == "activa"
    assert body["gastado"] == 0.0
    assert body["descripcion"] == "Asfaltado"
    assert body["responsable"] == "admin"
    assert body["created_by"] == "admin"
    assert body["siguiente_etapa"] == "topografia"
    assert body["gastos"] == [] and body["hitos"] == []
    assert db_session.query(models.AuditLog).one().action == "Crear obra"


@pytest.mark.parametrize(
    "payload",
    [
        {"nombre": "   ", "presupuesto": 1000},
        {"nombre": "Vías", "presupuesto": 0},
    ],
)
def test_crear_obra_sin_nombre_o_presupuesto_422(client, admin_headers, payload):
    r = client.post(URL, json=payload, headers=admin_headers)

    assert r.status_code == 422
    assert r.json()["detail"] == "El nombre y presupuesto son obligatorios"


def test_fecha_fin_anterior_al_inicio_422(client, admin_headers):
    r = client.post(
        URL,
        json={"nombre": "Vías", "presupuesto": 1000, "fecha_inicio": "2025-05-01", "fecha_fin_estimada": "2025-04-01"},
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_viewer_no_puede_crear_obras(client, viewer_headers):
    r = client.post(URL, json={"nombre": "Vías", "presupuesto": 1000}, headers=viewer_headers)
    assert r.status_code == 403


def test_cambiar_etapa_recalcula_progreso(client, admin_headers):
    obra = _crear(client, admin_headers)

    r = client.put(f"{URL}/{obra['id']}", json={"etapa": "construccion_vias"}, headers=admin_headers)

    assert r.status_code == 200, r.text
    assert r.json()["etapa"] == "construccion_vias"
    assert r.json()["progreso"] == 62


def test_progreso_no_se_acepta_en_la_entrada(client, admin_headers):
    obra = _crear(client, admin_headers)

    r = client.put(f"{URL}/{obra['id']}", json={"progreso": 99, "ubicacion": "Sector norte"}, headers=admin_headers)

    assert r.status_code == 200
    assert r.json()["progreso"] == 8
    assert r.json()["ubicacion"] == "Sector norte"


def test_etapa_terminada_completa_la_obra(client, admin_headers):
    obra = _crear(client, admin_headers)

    r = client.put(f"{URL}/{obra['id']}", json={"etapa": "terminada"}, headers=admin_headers)

    body = r.json()
    assert body["estado"] == "completada"
    assert body["progreso"] == 100
    assert body["fecha_fin_real"] == date.today().isoformat()
    assert body["siguiente_etapa"] is None


# ---------------------------------------------------------------------------
# Avanzar / retroceder
# ---------------------------------------------------------------------------

def test_avanzar_y_retroceder(client, admin_headers, db_session):
    obra = _crear(client, admin_headers)

    r = client.post(f"{URL}/{obra['id']}/avanzar", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()["etapa"] == "topografia"
    assert r.json()["progreso"] == 15

    r = client.post(f"{URL}/{obra['id']}/retroceder", headers=admin_headers)
    assert r.json()["etapa"] == "planificacion"
    assert r.json()["progreso"] == 8

    acciones = [a.action for a in db_session.query(models.AuditLog).all()]
    assert "Avanzar etapa de obra" in acciones
    assert "Retroceder etapa de obra" in acciones


def test_retroceder_en_primera_etapa_409(client, admin_headers):
    obra = _crear(client, admin_headers)

    r = client.post(f"{URL}/{obra['id']}/retroceder", headers=admin_headers)

    assert r.status_code == 409
    assert r.json()["detail"] == "La obra está en la primera etapa."


def test_avanzar_hasta_terminada_y_no_mas(client, admin_headers):
    obra = _crear(client, admin_headers, etapa="escrituracion")

    r = client.post(f"{URL}/{obra['id']}/avanzar", headers=admin_headers)
    assert r.json()["etapa"] == "terminada"
    assert r.json()["estado"] == "completada"

    r = client.post(f"{URL}/{obra['id']}/avanzar", headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["detail"] == "La obra ya está terminada."


def test_retroceder_desde_terminada_reactiva(client, admin_headers):
    obra = _crear(client, admin_headers, etapa="terminada")
    assert obra["estado"] == "completada"

    r = client.post(f"{URL}/{obra['id']}/retroceder", headers=admin_headers)

    assert r.json()["etapa"] == "escrituracion"
    assert r.json()["estado"] == "activa"
    assert r.json()["fecha_fin_real"] is None


def test_obra_cancelada_no_cambia_de_etapa(client, admin_headers):
    obra = _crear(client, admin_headers)
    client.put(f"{URL}/{obra['id']}", json={"estado": "cancelada"}, headers=admin_headers)

    r = client.post(f"{URL}/{obra['id']}/avanzar", headers=admin_headers)

    assert r.status_code == 409


# ---------------------------------------------------------------------------
# Gastos e hitos
# ---------------------------------------------------------------------------

def test_gastos_recalculan_gastado(client, admin_headers, viewer_headers):
    obra = _crear(client, admin_headers)
    g1 = _gasto(client, admin_headers, obra["id"], 60000)
    _gasto(client, admin_headers, obra["id"], 31000.5, concepto="Arena")

    assert g1["etapa"] == "planificacion"
    assert g1["aprobado_por"] == "admin"
    detalle = client.get(f"{URL}/{obra['id']}", headers=viewer_headers).json()
    assert detalle["gastado"] == 91000.5
    assert detalle["porcentaje_gastado"] == 91.0
    assert detalle["alerta_presupuesto"] is True
    assert len(detalle["gastos"]) == 2

    r = client.delete(f"{URL}/{obra['id']}/gastos/{g1['id']}", headers=admin_headers)

    assert r.status_code == 204
    detalle = client.get(f"{URL}/{obra['id']}", headers=viewer_headers).json()
    assert detalle["gastado"] == 31000.5
    assert detalle["alerta_presupuesto"] is False


def test_gasto_sin_concepto_422(client, admin_headers):
    obra = _crear(client, admin_headers)

    r = client.post(f"{URL}/{obra['id']}/gastos", json={"concepto": "  ", "monto": 10}, headers=admin_headers)

    assert r.status_code == 422
    assert r.json()["detail"] == "Concepto y monto son obligatorios"


def test_gasto_de_otra_obra_404(client, admin_headers):
    a = _crear(client, admin_headers)
    b = _crear(client, admin_headers, nombre="Alumbrado")
    gasto = _gasto(client, admin_headers, a["id"], 100)

    r = client.delete(f"{URL}/{b['id']}/gastos/{gasto['id']}", headers=admin_headers)

    assert r.status_code == 404


def test_completar_hito(client, admin_headers, viewer_headers):
    obra = _crear(client, admin_headers)
    r = client.post(f"{URL}/{obra['id']}/hitos", json={"titulo": "Permiso municipal"}, headers=admin_headers)
    assert r.status_code == 201, r.text
    hito = r.json()
    assert hito["completado"] is False
    assert hito["etapa"] == "planificacion"

    r = client.put(f"{URL}/{obra['id']}/hitos/{hito['id']}", json={"completado": True}, headers=admin_headers)
    assert r.json()["completado"] is True
    assert r.json()["fecha_completado"] is not None

    r = client.put(f"{URL}/{obra['id']}/hitos/{hito['id']}", json={"completado": False}, headers=admin_headers)
    assert r.json()["fecha_completado"] is None

    r = client.delete(f"{URL}/{obra['id']}/hitos/{hito['id']}", headers=admin_headers)
    assert r.status_code == 204
    assert client.get(f"{URL}/{obra['id']}", headers=viewer_headers).json()["hitos"] == []


def test_eliminar_obra_borra_gastos_e_hitos(client, admin_headers, db_session):
    obra = _crear(client, admin_headers)
    _gasto(client, admin_headers, obra["id"], 500)
    client.post(f"{URL}/{obra['id']}/hitos", json={"titulo": "Replanteo"}, headers=admin_headers)

    r = client.delete(f"{URL}/{obra['id']}", headers=admin_headers)

    assert r.status_code == 204
    db_session.expire_all()
    assert db_session.get(models.Obra, obra["id"]) is None
    assert db_session.query(models.GastoObra).count() == 0
    assert db_session.query(models.HitoObra).count() == 0


# ---------------------------------------------------------------------------
# Consultas
# ---------------------------------------------------------------------------

def test_listar_filtra_por_estado_y_busqueda(client, admin_headers, viewer_headers):
    vias = _crear(client, admin_headers, nombre="Vías internas")
    agua = _crear(client, admin_headers, nombre="Red de agua", descripcion="Tubería principal")
    pausada = _crear(client, admin_headers, nombre="Alumbrado")
    client.put(f"{URL}/{pausada['id']}", json={"estado": "pausada"}, headers=admin_headers)

    activas = client.get(URL, params={"estado": "activa"}, headers=viewer_headers).json()
    tuberia = client.get(URL, params={"busqueda": "tubería"}, headers=viewer_headers).json()

    assert {o["id"] for o in activas} == {vias["id"], agua["id"]}
    assert [o["id"] for o in tuberia] == [agua["id"]]


def test_estadisticas(client, admin_headers, viewer_headers):
    a = _crear(client, admin_headers, presupuesto=100000)
    _crear(client, admin_headers, nombre="Escrituras", presupuesto=50000, etapa="terminada")
    _gasto(client, admin_headers, a["id"], 25000)
    client.post(f"{URL}/{a['id']}/hitos", json={"titulo": "Topografía contratada"}, headers=admin_headers)

    r = client.get(f"{URL}/estadisticas", headers=viewer_headers)

    assert r.status_code == 200
    assert r.json() == {
        "total": 2,
        "activas": 1,
        "completadas": 1,
        "pausadas": 0,
        "progreso_promedio": 54,
        "presupuesto_total": 150000.0,
        "gastado_total": 25000.0,
        "ahorro": 125000.0,
        "hitos_completados": 0,
        "hitos_pendientes": 1,
    }


def test_catalogo_de_etapas(client, viewer_headers):
    r = client.get(f"{URL}/etapas", params={"etapa_actual": "topografia"}, headers=viewer_headers)

    assert r.status_code == 200
    etapas = r.json()
    assert len(etapas) == 13
    assert etapas[0]["completada"] is True
    assert etapas[1]["completada"] is False
    assert etapas[-1]["clave"] == "terminada"


def test_catalogo_etapa_desconocida_422(client, viewer_headers):
    r = client.get(f"{URL}/etapas", params={"etapa_actual": "demolicion"}, headers=viewer_headers)
    assert r.status_code == 422


def test_obra_inexistente_404(client, viewer_headers):
    assert client.get(f"{URL}/nada", headers=viewer_headers).status_code == 404
