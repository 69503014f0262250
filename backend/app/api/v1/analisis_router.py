"""
Router del ASESOR FINANCIERO IA.

- POST /api/v1/analisis → texto de análisis generado por Gemini a partir de:
    * las 20 transacciones más recientes,
    * las notas con status "futuro",
    * el resumen financiero (ingresos, egresos, balance).

Si la IA no responde (sin API key, error HTTP, timeout...) se devuelve
200 con el mensaje por defecto y disponible=False.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.core.constants import (
    MAX_TRANSACCIONES_ANALISIS,
    MENSAJE_ANALISIS_NO_DISPONIBLE,
    NOTA_FUTURO,
)
from backend.app.schemas.notas import AnalisisOut
from backend.app.api.v1.auth_router import require_user
from backend.app.api.v1.transacciones_router import calcular_resumen
from backend.app.utils.asesor_ia import obtener_consejo_financiero

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analisis", tags=["analisis"])


@router.post("", response_model=AnalisisOut)
def analizar(
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    transacciones = (
        db.query(models.Transaccion)
        .order_by(models.Transaccion.date.desc())
        .limit(MAX_TRANSACCIONES_ANALISIS)
        .all()
    )
    notas = db.query(models.Nota).filter(models.Nota.status == NOTA_FUTURO).all()
    resumen = calcular_resumen(db).model_dump()

    texto = obtener_consejo_financiero(transacciones, notas, resumen)
    logger.info("[analisis] user_id=%s transacciones=%s notas=%s", current.id, len(transacciones), len(notas))
    return AnalisisOut(analisis=texto, disponible=texto != MENSAJE_ANALISIS_NO_DISPONIBLE)
