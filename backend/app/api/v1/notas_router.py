"""
Router de NOTAS del equipo.

Endpoints:
- GET    /api/v1/notas                 → listar (filtro status)
- POST   /api/v1/notas                 → crear (admin)
- PUT    /api/v1/notas/{id}            → actualizar (admin)
- PATCH  /api/v1/notas/{id}/status     → futuro <-> tratado (admin)
- DELETE /api/v1/notas/{id}            → eliminar (admin)
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.schemas.notas import EstadoNota, NotaCreate, NotaRead, NotaStatusIn, NotaUpdate
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.text_utils import normalize_text

router = APIRouter(prefix="/notas", tags=["notas"])

_NO_ENCONTRADA = "Nota no encontrada"


@router.get("", response_model=List[NotaRead])
def listar_notas(
    estado: Optional[EstadoNota] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    q = db.query(models.Nota)
    if estado:
        q = q.filter(models.Nota.status == estado)
    return q.order_by(models.Nota.created_at.desc()).all()


@router.post("", response_model=NotaRead, status_code=status.HTTP_201_CREATED)
def crear_nota(
    payload: NotaCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    title = normalize_text(payload.title)
    if not title:
        raise HTTPException(status_code=422, detail="El título de la nota es obligatorio.")

    row = models.Nota(
        id=generate_uuid(),
        title=title,
        content=payload.content or "",
        status=payload.status,
        category=normalize_text(payload.category) or "General",
        created_at=datetime.utcnow(),
    )
    db.add(row)
    registrar_auditoria(db, current, "Crear nota", title)
    commit_or_rollback(db, "[notas] crear")
    db.refresh(row)
    return row


@router.put("/{nota_id}", response_model=NotaRead)
def actualizar_nota(
    nota_id: str,
    payload: NotaUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.Nota, nota_id, _NO_ENCONTRADA)
    for campo, valor in payload.model_dump(exclude_unset=True).items():
        if valor is None:
            continue
        setattr(row, campo, valor)

    registrar_auditoria(db, current, "Actualizar nota", row.title)
    commit_or_rollback(db, "[notas] actualizar")
    db.refresh(row)
    return row


@router.patch("/{nota_id}/status", response_model=NotaRead)
def cambiar_status(
    nota_id: str,
    payload: NotaStatusIn,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.Nota, nota_id, _NO_ENCONTRADA)
    row.status = payload.status
    registrar_auditoria(db, current, "Cambiar estado de nota", f"{row.title} -> {payload.status}")
    commit_or_rollback(db, "[notas] status")
    db.refresh(row)
    return row


@router.delete("/{nota_id}", status_code=204)
def eliminar_nota(
    nota_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.Nota, nota_id, _NO_ENCONTRADA)
    title = row.title
    db.delete(row)
    registrar_auditoria(db, current, "Eliminar nota", title)
    commit_or_rollback(db, "[notas] eliminar")
    return None
