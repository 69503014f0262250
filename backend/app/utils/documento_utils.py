# backend/app/utils/documento_utils.py

"""
Validación de documentos adjuntos que llegan en base64.

Los documentos se guardan tal cual (texto base64, con o sin prefijo
"data:<mime>;base64,"), pero antes comprobamos:
- que el base64 sea válido,
- el tamaño real en bytes (decodificado) frente al límite,
- el tipo MIME cuando el contexto lo restringe (compraventa).
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Optional, Set, Tuple

from fastapi import HTTPException

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+\-/]+)?(;[\w=\-]+)*;base64,", re.IGNORECASE)


def split_data_url(data: str) -> Tuple[Optional[str], str]:
    """
    "data:application/pdf;base64,JVBER..." -> ("application/pdf", "JVBER...")
    "JVBER..."                              -> (None, "JVBER...")
    """
    m = _DATA_URL_RE.match(data or "")
    if not m:
        return None, (data or "").strip()
    return m.group("mime"), data[m.end():].strip()


def tamano_base64(data: str) -> int:
    """
    Devuelve el tamaño en bytes del contenido decodificado.
    Base64 inválido -> 422.
    """
    _, payload = split_data_url(data)
    try:
        return len(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=422, detail="El documento no es un base64 válido.")


def validar_documento(
    data: str,
    *,
    max_bytes: int,
    mime: Optional[str] = None,
    mimes_permitidos: Optional[Set[str]] = None,
) -> int:
    """
    Valida tamaño (413 si se pasa) y, si se indica, el tipo MIME (422).

    El MIME efectivo es el explícito o, si no viene, el del prefijo data URL.
    Devuelve el tamaño en bytes.
    """
    mime_url, _ = split_data_url(data)
    mime_efectivo = (mime or mime_url or "").lower() or None

    if mimes_permitidos is not None and mime_efectivo not in mimes_permitidos:
        raise HTTPException(
            status_code=422,
            detail="Tipo de archivo no permitido. Use PDF, DOC, DOCX, JPG o PNG.",
        )

    size = tamano_base64(data)
    if size > max_bytes:
        mb = max_bytes / (1024 * 1024)
        raise HTTPException(
            status_code=413,
            detail=f"El archivo es demasiado grande. Máximo {mb:g}MB.",
        )
    return size
