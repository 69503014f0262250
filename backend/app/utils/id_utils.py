# backend/app/utils/id_utils.py

"""
Utilidades para la generación de IDs en Molino.

Objetivo:
- Tener un único sitio donde se definan los patrones de IDs.
- Evitar duplicar lógica en cada router.

Incluye:
- random_code: genera un código aleatorio dado un alfabeto.
- generate_uuid: ID de fila (UUID4 en texto), igual que los que genera Supabase.
- generate_numero_operacion: número de operación de 6 dígitos que se
  devuelve al liquidar un lote. Se guarda en
  clientes_actuales.numero_operacion y se devuelve igual al repetir una
  liquidación con la misma clave de idempotencia.
"""

from __future__ import annotations

import secrets
import string
import uuid

# Alfabetos que reutilizaremos
UPPER_ALNUM = string.ascii_uppercase + string.digits
DIGITS = string.digits


def random_code(length: int = 6, *, alphabet: str = UPPER_ALNUM) -> str:
    """
    Genera un código aleatorio de `length` caracteres a partir del
    alfabeto indicado.

    Ejemplo:
        random_code(6, alphabet=DIGITS) -> '482913'
    """
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_uuid() -> str:
    return str(uuid.uuid4())


def generate_numero_operacion() -> str:
    # Sin ceros a la izquierda: siempre 6 cifras significativas
    return secrets.choice("123456789") + random_code(5, alphabet=DIGITS)
