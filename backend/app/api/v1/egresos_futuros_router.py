"""
Router de EGRESOS FUTUROS (gastos planificados).

Endpoints:
- GET    /api/v1/egresos-futuros              → listar (filtro estado)
- POST   /api/v1/egresos-futuros              → crear (admin)
- PUT    /api/v1/egresos-futuros/{id}         → actualizar (admin)
- DELETE /api/v1/egresos-futuros/{id}         → eliminar (admin)
- POST   /api/v1/egresos-futuros/{id}/pagar   → marcar pagado (admin)

Marcar pagado:
- Solo si está "pendiente" (409 en otro caso): la conversión es única.
- Crea una transacción de egreso con fecha de hoy, mismo monto y categoría,
  y enlaza transaccion_id. Todo en la misma transacción de BD.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.core.constants import EGRESO_PAGADO, EGRESO_PENDIENTE, TRANSACCION_EGRESO
from backend.app.db.custom_types import to_money
from backend.app.schemas.transacciones import (
    EgresoFuturoCreate,
    EgresoFuturoRead,
    EgresoFuturoUpdate,
    EstadoEgreso,
    PagoEgresoOut,
    TransaccionRead,
)
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.text_utils import normalize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/egresos-futuros", tags=["egresos-futuros"])

_NO_ENCONTRADO = "Egreso futuro no encontrado"


@router.get("", response_model=List[EgresoFuturoRead])
def listar_egresos(
    estado: Optional[EstadoEgreso] = Query(None),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    q = db.query(models.EgresoFuturo)
    if estado:
        q = q.filter(models.EgresoFuturo.estado == estado)
    return q.order_by(models.EgresoFuturo.fecha.asc()).all()


@router.post("", response_model=EgresoFuturoRead, status_code=status.HTTP_201_CREATED)
def crear_egreso(
    payload: EgresoFuturoCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = models.EgresoFuturo(
        id=generate_uuid(),
        fecha=payload.fecha,
        tipo=payload.tipo,
        categoria=normalize_text(payload.categoria),
        descripcion=normalize_text(payload.descripcion),
        monto=to_money(payload.monto),
        usuario=current.name,
        adjuntos=payload.adjuntos,
        estado=EGRESO_PENDIENTE,
        created_at=datetime.utcnow(),
    )
    db.add(row)
    registrar_auditoria(
        db, current, "Crear egreso futuro",
        f"{row.categoria} - {row.monto:.2f} - {row.fecha.isoformat()}",
    )
    commit_or_rollback(db, "[egresos-futuros] crear")
    db.refresh(row)
    return row


@router.put("/{egreso_id}", response_model=EgresoFuturoRead)
def actualizar_egreso(
    egreso_id: str,
    payload: EgresoFuturoUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.EgresoFuturo, egreso_id, _NO_ENCONTRADO)
    if row.estado == EGRESO_PAGADO:
        raise HTTPException(status_code=409, detail="Un egreso pagado no se puede modificar.")

    cambios = payload.model_dump(exclude_unset=True)
    for campo in ("categoria", "descripcion"):
        if campo in cambios:
            cambios[campo] = normalize_text(cambios[campo])
    for campo, valor in cambios.items():
        if valor is None and campo in ("fecha", "tipo", "categoria", "monto", "estado"):
            continue
        setattr(row, campo, valor)

    registrar_auditoria(db, current, "Actualizar egreso futuro", f"{row.categoria} ({row.estado})")
    commit_or_rollback(db, "[egresos-futuros] actualizar")
    db.refresh(row)
    return row


@router.delete("/{egreso_id}", status_code=204)
def eliminar_egreso(
    egreso_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.EgresoFuturo, egreso_id, _NO_ENCONTRADO)
    detalle = f"{row.categoria} - {to_money(row.monto):.2f}"
    db.delete(row)
    registrar_auditoria(db, current, "Eliminar egreso futuro", detalle)
    commit_or_rollback(db, "[egresos-futuros] eliminar")
    return None


@router.post("/{egreso_id}/pagar", response_model=PagoEgresoOut)
def pagar_egreso(
    egreso_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.EgresoFuturo, egreso_id, _NO_ENCONTRADO)
    if row.estado != EGRESO_PENDIENTE:
        raise HTTPException(
            status_code=409,
            detail="Solo se pueden pagar egresos pendientes.",
        )

    tx = models.Transaccion(
        id=generate_uuid(),
        date=date.today(),
        type=TRANSACCION_EGRESO,
        amount=to_money(row.monto),
        category=row.categoria,
        description=row.descripcion or row.categoria,
        user=current.name,
        attachments=row.adjuntos,
    )
    db.add(tx)
    db.flush()

    # UPDATE condicional: si otra petición lo pagó antes, no toca nada
    n = (
        db.query(models.EgresoFuturo)
        .filter(
            models.EgresoFuturo.id == egreso_id,
            models.EgresoFuturo.estado == EGRESO_PENDIENTE,
        )
        .update(
            {models.EgresoFuturo.estado: EGRESO_PAGADO, models.EgresoFuturo.transaccion_id: tx.id},
            synchronize_session=False,
        )
    )
    if n != 1:
        db.rollback()
        raise HTTPException(status_code=409, detail="Solo se pueden pagar egresos pendientes.")

    registrar_auditoria(
        db, current, "Pagar egreso futuro",
        f"{row.categoria} - {tx.amount:.2f}",
    )
    commit_or_rollback(db, "[egresos-futuros] pagar")
    db.refresh(row)
    db.refresh(tx)
    logger.info("[egresos-futuros] pagar id=%s transaccion_id=%s", egreso_id, tx.id)

    return PagoEgresoOut(
        egreso=EgresoFuturoRead.model_validate(row),
        transaccion=TransaccionRead.model_validate(tx),
    )
