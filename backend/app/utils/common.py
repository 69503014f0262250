# backend/app/utils/common.py

"""
Funciones auxiliares comunes a todos los routers de Molino.

Objetivo:
- Evitar duplicar la misma lógica en varios routers.
- Tener un único sitio donde tocar si cambia la forma de confirmar
  una transacción o de responder a un 404.

Incluye:

- safe_float(v, default=0.0):
    Conversión robusta a float (para textos/prompts, nunca para guardar).

- get_or_404(db, model, obj_id, detail):
    db.get + HTTP 404 con mensaje en castellano.

- commit_or_rollback(db, contexto):
    db.commit() y, si falla, db.rollback() + HTTPException:
      * IntegrityError  -> 409
      * otro error de BD -> 500
"""

from __future__ import annotations

import logging
from typing import Any, Type, TypeVar

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================
# Conversión numérica
# ============================================================

def safe_float(value: Any, default: float = 0.0) -> float:
    """
    Convierte un valor a float de forma segura.

    Reglas:
    - None, "" o valores no numéricos -> default (por defecto 0.0).
    - Números válidos (int, float, Decimal, str numérico) -> float(valor).
    """
    try:
        if value is None or value == "":
            return float(default)
        return float(value)
    except (TypeError, ValueError):
        return float(default)


# ============================================================
# Acceso a filas
# ============================================================

def get_or_404(db: Session, model: Type[T], obj_id: Any, detail: str) -> T:
    row = db.get(model, obj_id)
    if not row:
        raise HTTPException(status_code=404, detail=detail)
    return row


# ============================================================
# Confirmación de transacciones
# ============================================================

def commit_or_rollback(
    db: Session,
    contexto: str,
    *,
    conflict_detail: str = "El registro entra en conflicto con otro existente.",
) -> None:
    """
    Confirma la transacción en curso.

    - IntegrityError (unique, FK...) -> rollback + 409 con conflict_detail.
    - Cualquier otro SQLAlchemyError -> rollback + 500.

    `contexto` solo se usa para el log (ej: "[lotes] crear").
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("%s conflicto de integridad", contexto)
        raise HTTPException(status_code=409, detail=conflict_detail)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("%s FAILED", contexto)
        raise HTTPException(
            status_code=500,
            detail="Error interno guardando los datos. No se aplicó ningún cambio.",
        )
