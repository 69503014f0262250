# backend/app/utils/text_utils.py

"""
Utilidades de texto reutilizables en toda la app.

Por ahora:
- normalize_text: trim, devolviendo None si queda vacía.
- normalize_lower: trim + minúsculas (emails, nombres de usuario para login).
- normalize_lote: número de lote en MAYÚSCULAS sin tildes ("  a-12 " -> "A-12").
"""

from __future__ import annotations
import unicodedata
from typing import Optional


def normalize_text(value: Optional[str]) -> Optional[str]:
    """
    - None -> None
    - "  hola  " -> "hola"
    - "   " -> None
    """
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def normalize_lower(value: Optional[str]) -> Optional[str]:
    s = normalize_text(value)
    return s.lower() if s else None


def normalize_lote(value: Optional[str]) -> Optional[str]:
    """
    Igual que normalize_text, pero además elimina tildes y pasa a MAYÚSCULAS.

    Se usa para que "Lote 3", "lote 3" y " LOTE 3 " sean el mismo lote.

    Ejemplos:
    - "  lote 12 " -> "LOTE 12"
    - " Área B-3 " -> "AREA B-3"
    """
    if value is None:
        return None

    s = "".join(
        c
        for c in unicodedata.normalize("NFD", str(value))
        if unicodedata.category(c) != "Mn"
    )

    s = s.strip().upper()
    return s or None
