"""
Router de TRANSACCIONES (ingresos y egresos reales del negocio).

Endpoints:
- GET    /api/v1/transacciones             → listar (filtros tipo / fechas)
- GET    /api/v1/transacciones/resumen     → ingresos, egresos y balance
- GET    /api/v1/transacciones/export.csv  → exportación CSV
- POST   /api/v1/transacciones             → crear (admin)
- DELETE /api/v1/transacciones/{id}        → eliminar (admin)
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.core.constants import TRANSACCION_EGRESO, TRANSACCION_INGRESO
from backend.app.db.custom_types import ZERO, to_money
from backend.app.schemas.transacciones import (
    ResumenFinanciero,
    TransaccionCreate,
    TransaccionRead,
)
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.text_utils import normalize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transacciones", tags=["transacciones"])


def _filtrar(q, tipo: Optional[str], desde: Optional[date], hasta: Optional[date]):
    if tipo:
        q = q.filter(models.Transaccion.type == tipo)
    if desde:
        q = q.filter(models.Transaccion.date >= desde)
    if hasta:
        q = q.filter(models.Transaccion.date <= hasta)
    return q


def calcular_resumen(db: Session) -> ResumenFinanciero:
    """
    Totales de todas las transacciones. Lo reutiliza el asesor IA.
    """
    rows = (
        db.query(models.Transaccion.type, func.sum(models.Transaccion.amount), func.count(models.Transaccion.id))
        .group_by(models.Transaccion.type)
        .all()
    )
    totales = {TRANSACCION_INGRESO: ZERO, TRANSACCION_EGRESO: ZERO}
    n = 0
    for tipo, suma, cuenta in rows:
        totales[tipo] = to_money(suma)
        n += int(cuenta)
    ingresos = totales[TRANSACCION_INGRESO]
    egresos = totales[TRANSACCION_EGRESO]
    return ResumenFinanciero(
        ingresos=ingresos,
        egresos=egresos,
        balance=to_money(ingresos - egresos),
        numero_transacciones=n,
    )


@router.get("", response_model=List[TransaccionRead])
def listar_transacciones(
    tipo: Optional[str] = Query(None, description="ingreso / egreso"),
    desde: Optional[date] = Query(None),
    hasta: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    q = _filtrar(db.query(models.Transaccion), tipo, desde, hasta)
    return q.order_by(models.Transaccion.date.desc()).all()


@router.get("/resumen", response_model=ResumenFinanciero)
def resumen(
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    return calcular_resumen(db)


@router.get("/export.csv")
def exportar_csv(
    tipo: Optional[str] = Query(None),
    desde: Optional[date] = Query(None),
    hasta: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    rows = (
        _filtrar(db.query(models.Transaccion), tipo, desde, hasta)
        .order_by(models.Transaccion.date.desc())
        .all()
    )

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["fecha", "tipo", "categoria", "descripcion", "monto", "usuario"])
    for t in rows:
        writer.writerow([t.date.isoformat(), t.type, t.category, t.description, f"{to_money(t.amount):.2f}", t.user])

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=transacciones.csv"},
    )


@router.post("", response_model=TransaccionRead, status_code=status.HTTP_201_CREATED)
def crear_transaccion(
    payload: TransaccionCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = models.Transaccion(
        id=generate_uuid(),
        date=payload.date,
        type=payload.type,
        amount=to_money(payload.amount),
        category=normalize_text(payload.category),
        description=normalize_text(payload.description) or "",
        user=current.name,
        attachments=payload.attachments,
    )
    db.add(row)
    registrar_auditoria(
        db, current, "Crear transacción",
        f"{row.type} {row.amount:.2f} - {row.category}",
    )
    commit_or_rollback(db, "[transacciones] crear")
    db.refresh(row)
    logger.info("[transacciones] crear id=%s type=%s", row.id, row.type)
    return row


@router.delete("/{transaccion_id}", status_code=204)
def eliminar_transaccion(
    transaccion_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.Transaccion, transaccion_id, "Transacción no encontrada")
    detalle = f"{row.type} {to_money(row.amount):.2f} - {row.category}"

    # Un egreso futuro pagado deja de apuntar a esta transacción
    db.query(models.EgresoFuturo).filter(
        models.EgresoFuturo.transaccion_id == transaccion_id
    ).update({models.EgresoFuturo.transaccion_id: None}, synchronize_session=False)

    db.delete(row)
    registrar_auditoria(db, current, "Eliminar transacción", detalle)
    commit_or_rollback(db, "[transacciones] eliminar")
    return None
