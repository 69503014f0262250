"""
Router de AUDITORÍA (solo lectura).

- GET /api/v1/auditoria?limit=100&offset=0 → página de registros, más recientes primero.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.schemas.notas import AuditLogPage, AuditLogRead
from backend.app.api.v1.auth_router import require_user

router = APIRouter(prefix="/auditoria", tags=["auditoria"])


@router.get("", response_model=AuditLogPage)
def listar_auditoria(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    total = db.query(func.count(models.AuditLog.id)).scalar() or 0
    rows = (
        db.query(models.AuditLog)
        .order_by(models.AuditLog.date.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return AuditLogPage(
        total=int(total),
        limit=limit,
        offset=offset,
        items=[AuditLogRead.model_validate(r) for r in rows],
    )
