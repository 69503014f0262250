# backend/app/db/custom_types.py

"""
Tipos y helpers para importes monetarios.

- Money: alias tipado de Decimal. En BD los importes son NUMERIC(14, 2).
- to_money: convierte cualquier valor numérico a Decimal con 2 decimales
  (ROUND_HALF_UP). Nunca pasamos por float para no arrastrar errores de
  redondeo binario.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypeAlias

Money: TypeAlias = Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Money:
    """
    None / "" -> 0.00
    int, str numérico, Decimal -> Decimal cuantizado a céntimos.
    float -> se convierte vía str() para evitar 0.1 -> 0.1000000000000000055...
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
