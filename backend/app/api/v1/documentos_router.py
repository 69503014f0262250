"""
Router de DOCUMENTOS (archivos guardados en base64).

Endpoints:
- GET    /api/v1/documentos          → listar (solo metadatos, sin `data`)
- GET    /api/v1/documentos/{id}     → detalle con `data`
- POST   /api/v1/documentos          → subir (admin), máximo DOCUMENT_MAX_BYTES
- DELETE /api/v1/documentos/{id}     → eliminar (admin)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.schemas.notas import DocumentoCreate, DocumentoMeta, DocumentoRead
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.documento_utils import validar_documento
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.text_utils import normalize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documentos", tags=["documentos"])


@router.get("", response_model=List[DocumentoMeta])
def listar_documentos(
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    q = db.query(models.Documento)
    if category:
        q = q.filter(models.Documento.category == category)
    return q.order_by(models.Documento.uploaded_at.desc()).all()


@router.get("/{documento_id}", response_model=DocumentoRead)
def obtener_documento(
    documento_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    return get_or_404(db, models.Documento, documento_id, "Documento no encontrado")


@router.post("", response_model=DocumentoMeta, status_code=status.HTTP_201_CREATED)
def subir_documento(
    payload: DocumentoCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    size = validar_documento(payload.data, max_bytes=settings.DOCUMENT_MAX_BYTES)

    row = models.Documento(
        id=generate_uuid(),
        name=normalize_text(payload.name),
        type=payload.type.strip().lower(),
        data=payload.data,
        size_bytes=size,
        uploaded_by=current.name,
        uploaded_at=datetime.utcnow(),
        category=normalize_text(payload.category) or "General",
    )
    db.add(row)
    registrar_auditoria(db, current, "Subir documento", f"{row.name} ({size} bytes)")
    commit_or_rollback(db, "[documentos] subir")
    db.refresh(row)
    logger.info("[documentos] subir id=%s size=%s", row.id, size)
    return row


@router.delete("/{documento_id}", status_code=204)
def eliminar_documento(
    documento_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.Documento, documento_id, "Documento no encontrado")
    name = row.name
    db.delete(row)
    registrar_auditoria(db, current, "Eliminar documento", name)
    commit_or_rollback(db, "[documentos] eliminar")
    return None
