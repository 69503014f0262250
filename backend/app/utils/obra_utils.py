"""
Utilidades de negocio para las OBRAS de urbanización.

Una obra avanza por etapas fijas (planificación -> ... -> terminada). De
aquí salen:

- Orden, siguiente y anterior de cada etapa.
- Progreso automático de la obra según su etapa.
- % del presupuesto gastado y alerta cuando pasa del 90 %.
- Estadísticas del listado de obras.

Funciones puras: reciben valores u objetos con atributos (modelos ORM o
SimpleNamespace en tests) y no tocan la BD.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from backend.app.core.constants import (
    ALERTA_PRESUPUESTO_PCT,
    ETAPAS_OBRA,
    OBRA_ACTIVA,
    OBRA_COMPLETADA,
    OBRA_PAUSADA,
)
from backend.app.db.custom_types import ZERO, Money, to_money

CLAVES_ETAPA = tuple(clave for clave, _, _ in ETAPAS_OBRA)
TOTAL_ETAPAS = len(CLAVES_ETAPA)

_ORDEN = {clave: i for i, clave in enumerate(CLAVES_ETAPA, start=1)}


def _redondear(valor: Decimal) -> int:
    return int(valor.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ============================
# Etapas
# ============================

def orden_etapa(etapa: str) -> int:
    """
    Posición 1..13 de la etapa. Etapa desconocida -> ValueError.
    """
    try:
        return _ORDEN[etapa]
    except KeyError:
        raise ValueError(f"Etapa de obra desconocida: {etapa!r}")


def calcular_progreso_automatico(etapa: str) -> int:
    """
    orden / total_etapas * 100, redondeado al entero.
    planificacion -> 8, terminada -> 100.
    """
    pct = Decimal(orden_etapa(etapa)) / Decimal(TOTAL_ETAPAS) * Decimal(100)
    return _redondear(pct)


def siguiente_etapa(etapa: str) -> Optional[str]:
    """Etapa siguiente, o None si ya está en la última."""
    i = orden_etapa(etapa)
    return CLAVES_ETAPA[i] if i < TOTAL_ETAPAS else None


def etapa_anterior(etapa: str) -> Optional[str]:
    """Etapa anterior, o None si está en la primera."""
    i = orden_etapa(etapa)
    return CLAVES_ETAPA[i - 2] if i > 1 else None


def etapa_completada(etapa_actual: str, etapa: str) -> bool:
    # Una etapa está completada si va antes que la actual
    return orden_etapa(etapa) < orden_etapa(etapa_actual)


def listar_etapas(etapa_actual: Optional[str] = None) -> List[dict]:
    """
    Catálogo de etapas para el frontend:
      - clave, etiqueta, orden, dias_estimados, progreso
      - completada (solo si se pasa etapa_actual)
    """
    etapas = []
    for clave, etiqueta, dias in ETAPAS_OBRA:
        etapas.append(
            {
                "clave": clave,
                "etiqueta": etiqueta,
                "orden": _ORDEN[clave],
                "dias_estimados": dias,
                "progreso": calcular_progreso_automatico(clave),
                "completada": etapa_completada(etapa_actual, clave) if etapa_actual else False,
            }
        )
    return etapas


# ============================
# Presupuesto
# ============================

def calcular_gastado(gastos: Iterable) -> Money:
    """Suma de los montos de los gastos de una obra."""
    return to_money(sum((to_money(g.monto) for g in gastos), ZERO))


def porcentaje_gastado(presupuesto, gastado) -> Decimal:
    """
    gastado / presupuesto * 100 con 2 decimales. Presupuesto 0 -> 0.
    """
    total = to_money(presupuesto)
    if total <= 0:
        return ZERO
    return to_money(to_money(gastado) / total * Decimal(100))


def tiene_alerta_presupuesto(presupuesto, gastado) -> bool:
    # Sin redondear el %: 90.001 % ya avisa
    total = to_money(presupuesto)
    if total <= 0:
        return False
    return to_money(gastado) * Decimal(100) > total * Decimal(ALERTA_PRESUPUESTO_PCT)


# ============================
# Estadísticas
# ============================

def calcular_estadisticas(obras: Iterable) -> dict:
    """
    Resumen del listado de obras:

    - total / activas / completadas / pausadas
    - progreso_promedio (entero, 0 si no hay obras)
    - presupuesto_total, gastado_total, ahorro = presupuesto - gastado
    - hitos_completados / hitos_pendientes
    """
    obras = list(obras)
    presupuesto_total = to_money(sum((to_money(o.presupuesto) for o in obras), ZERO))
    gastado_total = to_money(sum((to_money(o.gastado) for o in obras), ZERO))

    hitos = [h for o in obras for h in (o.hitos or [])]
    completados = sum(1 for h in hitos if h.completado)

    promedio = 0
    if obras:
        promedio = _redondear(Decimal(sum(int(o.progreso or 0) for o in obras)) / Decimal(len(obras)))

    return {
        "total": len(obras),
        "activas": sum(1 for o in obras if o.estado == OBRA_ACTIVA),
        "completadas": sum(1 for o in obras if o.estado == OBRA_COMPLETADA),
        "pausadas": sum(1 for o in obras if o.estado == OBRA_PAUSADA),
        "progreso_promedio": promedio,
        "presupuesto_total": presupuesto_total,
        "gastado_total": gastado_total,
        "ahorro": to_money(presupuesto_total - gastado_total),
        "hitos_completados": completados,
        "hitos_pendientes": len(hitos) - completados,
    }
