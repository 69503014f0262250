"""
Utilidades de negocio para el PLAN DE PAGOS de un lote.

Aquí centralizamos los cálculos que usan la liquidación, los clientes
actuales y los recibos:

- Saldo restante tras el depósito inicial.
- Valor de cada cuota (plan automático, cuotas iguales).
- Saldo final del plan.
- Calendario mensual de cuotas (la última absorbe el redondeo).
- Progreso de pago de un cliente.
- Saldos anterior/actual para el recibo de un pago.
- Próximo pago esperado y situación (al día / vencido / mora).

Son funciones puras: no tocan BD ni lanzan HTTPException. Validar que el
depósito sea positivo y no supere el precio es cosa de quien llama
(ver liquidacion_utils).
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Tuple

from backend.app.core.constants import (
    DIAS_ENTRE_PAGOS,
    DIAS_GRACIA_MORA,
    PAGO_AL_DIA,
    PAGO_MORA,
    PAGO_VENCIDO,
    TIPOS_PAGO_LIQUIDACION,
)
from backend.app.db.custom_types import CENT, ZERO, Money, to_money


# ============================
# Saldo y cuotas
# ============================

def calcular_saldo_restante(precio, deposito) -> Money:
    """
    precio - deposito, sin validar nada (puede salir negativo).
    """
    return to_money(to_money(precio) - to_money(deposito))


def calcular_valor_cuota(saldo_restante, numero_cuotas: Optional[int]) -> Money:
    """
    saldo_restante / numero_cuotas redondeado a céntimos.
    Con numero_cuotas <= 0 (o None) devuelve 0.00.
    """
    n = int(numero_cuotas or 0)
    if n <= 0:
        return ZERO
    return (to_money(saldo_restante) / Decimal(n)).quantize(CENT, rounding=ROUND_HALF_UP)


def calcular_saldo_final(saldo_restante) -> Money:
    """
    Saldo final del plan = saldo restante en el momento de crear el plan.
    Es una foto fija: no baja al registrar pagos posteriores.
    """
    return to_money(saldo_restante)


def calcular_plan(precio, deposito, numero_cuotas: Optional[int]) -> dict:
    """
    Devuelve los tres campos derivados que se guardan en clientes_actuales:
      - saldo_restante
      - valor_cuota
      - saldo_final
    """
    saldo = calcular_saldo_restante(precio, deposito)
    return {
        "saldo_restante": saldo,
        "valor_cuota": calcular_valor_cuota(saldo, numero_cuotas),
        "saldo_final": calcular_saldo_final(saldo),
    }


# ============================
# Calendario de cuotas
# ============================

def add_months(d: date, months: int) -> date:
    """
    Suma `months` meses a una fecha `d` de forma sencilla,
    limitando el día a 28 para evitar problemas con meses más cortos.
    """
    y = d.year + (d.month - 1 + months) // 12
    m = (d.month - 1 + months) % 12 + 1
    dd = min(d.day, 28)
    return date(y, m, dd)


def generar_plan_cuotas(
    fecha_inicio: date,
    saldo_restante,
    numero_cuotas: int,
) -> List[dict]:
    """
    Genera el calendario mensual del plan automático.

    - Cuota 1 vence un mes después de fecha_inicio.
    - Todas las cuotas valen valor_cuota salvo la última, que absorbe el
      redondeo para que la suma sea exactamente saldo_restante.

    Devuelve una lista de dicts:
      - numero (int)
      - fecha (date)
      - monto (Decimal)
      - saldo_posterior (Decimal)
    """
    saldo = to_money(saldo_restante)
    if numero_cuotas <= 0 or saldo <= 0:
        return []

    cuota = calcular_valor_cuota(saldo, numero_cuotas)
    plan: List[dict] = []
    pendiente = saldo
    for k in range(1, numero_cuotas + 1):
        monto = pendiente if k == numero_cuotas else cuota
        pendiente = (pendiente - monto).quantize(CENT)
        plan.append(
            {
                "numero": k,
                "fecha": add_months(fecha_inicio, k),
                "monto": monto,
                "saldo_posterior": pendiente,
            }
        )
    return plan


# ============================
# Progreso y recibos
# ============================

def calcular_progreso_pago(total_pagado, valor_total) -> int:
    """
    Porcentaje entero (0-100 normalmente) de lo pagado sobre el total.
    Con valor_total <= 0 devuelve 0.
    """
    total = to_money(valor_total)
    if total <= 0:
        return 0
    pct = to_money(total_pagado) / total * Decimal(100)
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calcular_saldos_recibo(cliente, pagos: Iterable, pago) -> Tuple[Money, Money]:
    """
    Saldos que se imprimen en el recibo de `pago`:

    - Los pagos de liquidación (Depósito de Reserva / Cuota Inicial) ya
      están representados por deposito_inicial, así que no se suman.
    - total = deposito_inicial + resto de pagos del cliente
    - saldo_actual = valor_lote - total
    - saldo_anterior = saldo_actual + pago.monto

    Devuelve (saldo_anterior, saldo_actual).
    """
    total = to_money(cliente.deposito_inicial)
    for p in pagos:
        if p.tipo_pago in TIPOS_PAGO_LIQUIDACION:
            continue
        total += to_money(p.monto)

    saldo_actual = to_money(to_money(cliente.valor_lote) - total)
    saldo_anterior = to_money(saldo_actual + to_money(pago.monto))
    return saldo_anterior, saldo_actual


# ============================
# Próximo pago y mora
# ============================

def calcular_proximo_pago(fecha_alta: date, fechas_pagos: Iterable[date]) -> date:
    """
    Fecha en que se espera el siguiente pago del cliente:
    último pago + 30 días, o alta + 30 días si aún no pagó nada.
    """
    fechas = [f for f in fechas_pagos if f is not None]
    base = max(fechas) if fechas else fecha_alta
    return base + timedelta(days=DIAS_ENTRE_PAGOS)


def calcular_situacion_pago(proximo_pago: date, hoy: date) -> Tuple[int, str]:
    """
    Devuelve (dias_restantes, situacion).

    dias_restantes < 0 significa que el pago está atrasado:
      - hasta 7 días de atraso -> "vencido"
      - más de 7 días          -> "mora"
    """
    dias = (proximo_pago - hoy).days
    if dias < -DIAS_GRACIA_MORA:
        return dias, PAGO_MORA
    if dias < 0:
        return dias, PAGO_VENCIDO
    return dias, PAGO_AL_DIA
