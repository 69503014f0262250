from decimal import Decimal
from types import SimpleNamespace

import pytest

from backend.app.utils.obra_utils import (
    TOTAL_ETAPAS,
    calcular_estadisticas,
    calcular_gastado,
    calcular_progreso_automatico,
    etapa_anterior,
    etapa_completada,
    listar_etapas,
    orden_etapa,
    porcentaje_gastado,
    siguiente_etapa,
    tiene_alerta_presupuesto,
)


def _obra(estado="activa", progreso=0, presupuesto="0", gastado="0", hitos=()):
    return SimpleNamespace(
        estado=estado,
        progreso=progreso,
        presupuesto=Decimal(presupuesto),
        gastado=Decimal(gastado),
        hitos=[SimpleNamespace(completado=c) for c in hitos],
    )


# ---------------------------------------------------------------------------
# Etapas
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "etapa, progreso",
    [
        ("planificacion", 8),
        ("topografia", 15),
        ("planos", 23),
        ("construccion_vias", 62),
        ("escrituracion", 92),
        ("terminada", 100),
    ],
)
def test_progreso_automatico(etapa, progreso):
    assert calcular_progreso_automatico(etapa) == progreso


def test_hay_trece_etapas_en_orden():
    assert TOTAL_ETAPAS == 13
    assert orden_etapa("planificacion") == 1
    assert orden_etapa("terminada") == 13


def test_etapa_desconocida():
    with pytest.raises(ValueError):
        orden_etapa("demolicion")


def test_siguiente_y_anterior():
    assert siguiente_etapa("planificacion") == "topografia"
    assert siguiente_etapa("escrituracion") == "terminada"
    assert siguiente_etapa("terminada") is None
    assert etapa_anterior("topografia") == "planificacion"
    assert etapa_anterior("planificacion") is None


def test_etapa_completada():
    assert etapa_completada("planos", "topografia") is True
    assert etapa_completada("planos", "planos") is False
    assert etapa_completada("planos", "curvas_nivel") is False


def test_listar_etapas_marca_completadas():
    etapas = listar_etapas("planos")

    assert len(etapas) == 13
    assert etapas[0] == {
        "clave": "planificacion",
        "etiqueta": "Planificación",
        "orden": 1,
        "dias_estimados": 30,
        "progreso": 8,
        "completada": True,
    }
    assert [e["completada"] for e in etapas[:4]] == [True, True, False, False]
    assert etapas[-1]["dias_estimados"] == 0


# ---------------------------------------------------------------------------
# Presupuesto
# ---------------------------------------------------------------------------

def test_porcentaje_gastado():
    assert porcentaje_gastado(Decimal("200000"), Decimal("50000")) == Decimal("25.00")
    assert porcentaje_gastado(Decimal("3"), Decimal("1")) == Decimal("33.33")


def test_porcentaje_gastado_sin_presupuesto():
    assert porcentaje_gastado(Decimal("0"), Decimal("500")) == Decimal("0.00")


@pytest.mark.parametrize(
    "gastado, alerta",
    [("89000", False), ("90000", False), ("90000.01", True), ("120000", True)],
)
def test_alerta_presupuesto(gastado, alerta):
    assert tiene_alerta_presupuesto(Decimal("100000"), Decimal(gastado)) is alerta


def test_calcular_gastado():
    gastos = [SimpleNamespace(monto=Decimal("100.10")), SimpleNamespace(monto=Decimal("0.25"))]
    assert calcular_gastado(gastos) == Decimal("100.35")
    assert calcular_gastado([]) == Decimal("0.00")


# ---------------------------------------------------------------------------
# Estadísticas
# ---------------------------------------------------------------------------

def test_estadisticas_vacias():
    stats = calcular_estadisticas([])

    assert stats["total"] == 0
    assert stats["progreso_promedio"] == 0
    assert stats["ahorro"] == Decimal("0.00")


def test_estadisticas():
    obras = [
        _obra("activa", 8, "100000", "25000", hitos=(True, False)),
        _obra("completada", 100, "50000", "60000", hitos=(True,)),
        _obra("pausada", 23, "10000", "0"),
    ]

    stats = calcular_estadisticas(obras)

    assert stats == {
        "total": 3,
        "activas": 1,
        "completadas": 1,
        "pausadas": 1,
        "progreso_promedio": 44,
        "presupuesto_total": Decimal("160000.00"),
        "gastado_total": Decimal("85000.00"),
        "ahorro": Decimal("75000.00"),
        "hitos_completados": 2,
        "hitos_pendientes": 1,
    }
