# backend/app/utils/asesor_ia.py

"""
Asesor financiero con IA (Google Gemini, API REST generateContent).

- construir_prompt: arma el texto con el resumen, las transacciones
  recientes y las notas pendientes.
- obtener_consejo_financiero: llama a Gemini y devuelve el texto.

Nunca lanza excepción hacia el router: sin API key, error HTTP, timeout o
respuesta con formato inesperado -> MENSAJE_ANALISIS_NO_DISPONIBLE.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx

from backend.app.core.config import settings
from backend.app.core.constants import MAX_TRANSACCIONES_ANALISIS, MENSAJE_ANALISIS_NO_DISPONIBLE
from backend.app.utils.common import safe_float

logger = logging.getLogger(__name__)


def construir_prompt(transacciones: Iterable, notas: Iterable, resumen: dict) -> str:
    lineas_tx = [
        f"- {t.date}: {t.type} de {safe_float(t.amount):.2f} en {t.category} ({t.description})"
        for t in list(transacciones)[:MAX_TRANSACCIONES_ANALISIS]
    ]
    lineas_notas = [f"- {n.title}: {n.content}" for n in notas]

    return (
        "Actúa como un asesor financiero experto para un negocio familiar.\n"
        "Analiza los siguientes datos financieros y proporciona un resumen "
        "ejecutivo conciso (máximo 3 párrafos).\n\n"
        "Resumen Actual:\n"
        f"- Ingresos Totales: {safe_float(resumen.get('ingresos')):.2f}\n"
        f"- Egresos Totales: {safe_float(resumen.get('egresos')):.2f}\n"
        f"- Balance: {safe_float(resumen.get('balance')):.2f}\n\n"
        "Transacciones Recientes:\n"
        f"{chr(10).join(lineas_tx) or '- (sin transacciones)'}\n\n"
        "Temas Pendientes en Notas:\n"
        f"{chr(10).join(lineas_notas) or '- (sin notas pendientes)'}\n"
    )


def _extraer_texto(data: dict) -> Optional[str]:
    """candidates[0].content.parts[0].text o None."""
    try:
        texto = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return texto if isinstance(texto, str) and texto.strip() else None


def obtener_consejo_financiero(
    transacciones: Iterable,
    notas: Iterable,
    resumen: dict,
    *,
    client: Optional[httpx.Client] = None,
) -> str:
    """
    Pide el análisis a Gemini.

    `client` permite inyectar un httpx.Client (tests con MockTransport).
    """
    if not settings.GEMINI_API_KEY:
        logger.warning("[analisis] GEMINI_API_KEY no configurada; se devuelve mensaje por defecto")
        return MENSAJE_ANALISIS_NO_DISPONIBLE

    url = f"{settings.GEMINI_BASE_URL.rstrip('/')}/models/{settings.GEMINI_MODEL}:generateContent"
    body = {"contents": [{"parts": [{"text": construir_prompt(transacciones, notas, resumen)}]}]}

    own_client = client is None
    http = client or httpx.Client(timeout=settings.GEMINI_TIMEOUT_SECONDS)
    try:
        resp = http.post(url, params={"key": settings.GEMINI_API_KEY}, json=body)
        resp.raise_for_status()
        texto = _extraer_texto(resp.json())
    except httpx.HTTPStatusError as e:
        logger.warning("[analisis] Gemini respondió %s", e.response.status_code)
        return MENSAJE_ANALISIS_NO_DISPONIBLE
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("[analisis] error llamando a Gemini: %s", type(e).__name__)
        return MENSAJE_ANALISIS_NO_DISPONIBLE
    finally:
        if own_client:
            http.close()

    if not texto:
        logger.warning("[analisis] respuesta de Gemini sin texto")
        return MENSAJE_ANALISIS_NO_DISPONIBLE
    return texto
