"""
Router de PAGOS DE CLIENTES.

Endpoints:
- GET    /api/v1/pagos-clientes               → listar (filtro cliente_id)
- POST   /api/v1/pagos-clientes               → registrar pago (admin)
- DELETE /api/v1/pagos-clientes/{id}          → eliminar (admin)
- GET    /api/v1/pagos-clientes/{id}/recibo   → saldos para el recibo

Los pagos no se editan: si hay un error se borra y se registra de nuevo.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.db.custom_types import to_money
from backend.app.schemas.pagos import PagoClienteCreate, PagoClienteRead, ReciboPago
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.plan_pago_utils import calcular_saldos_recibo
from backend.app.utils.text_utils import normalize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pagos-clientes", tags=["pagos-clientes"])


@router.get("", response_model=List[PagoClienteRead])
def listar_pagos(
    cliente_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    q = db.query(models.PagoCliente)
    if cliente_id:
        q = q.filter(models.PagoCliente.cliente_id == cliente_id)
    return q.order_by(models.PagoCliente.fecha_pago.desc()).all()


@router.post("", response_model=PagoClienteRead, status_code=status.HTTP_201_CREATED)
def registrar_pago(
    payload: PagoClienteCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    cliente = get_or_404(db, models.ClienteActual, payload.cliente_id, "Cliente no encontrado")

    row = models.PagoCliente(
        id=generate_uuid(),
        cliente_id=cliente.id,
        fecha_pago=payload.fecha_pago or datetime.utcnow(),
        monto=to_money(payload.monto),
        tipo_pago=normalize_text(payload.tipo_pago) or "cuota",
        forma_pago=normalize_text(payload.forma_pago) or cliente.forma_pago_cuotas,
        notas=normalize_text(payload.notas),
        documento_adjunto=normalize_text(payload.documento_adjunto),
    )
    db.add(row)
    registrar_auditoria(
        db, current, "Registrar pago",
        f"Cliente {cliente.nombre} - Lote {cliente.numero_lote} - Monto: {row.monto:.2f}",
    )
    commit_or_rollback(db, "[pagos] registrar")
    db.refresh(row)
    logger.info("[pagos] registrar id=%s cliente_id=%s", row.id, cliente.id)
    return row


@router.delete("/{pago_id}", status_code=204)
def eliminar_pago(
    pago_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.PagoCliente, pago_id, "Pago no encontrado")
    detalle = f"Pago {row.tipo_pago} - Monto: {to_money(row.monto):.2f}"
    db.delete(row)
    registrar_auditoria(db, current, "Eliminar pago", detalle)
    commit_or_rollback(db, "[pagos] eliminar")
    return None


@router.get("/{pago_id}/recibo", response_model=ReciboPago)
def recibo_pago(
    pago_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    pago = get_or_404(db, models.PagoCliente, pago_id, "Pago no encontrado")
    cliente = pago.cliente
    saldo_anterior, saldo_actual = calcular_saldos_recibo(cliente, cliente.pagos, pago)
    return ReciboPago(
        pago=PagoClienteRead.model_validate(pago),
        cliente_id=cliente.id,
        cliente_nombre=cliente.nombre,
        numero_lote=cliente.numero_lote,
        valor_lote=to_money(cliente.valor_lote),
        saldo_anterior=saldo_anterior,
        saldo_actual=saldo_actual,
    )
