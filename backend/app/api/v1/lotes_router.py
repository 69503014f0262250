"""
Router de LOTES.

Endpoints:
- GET    /api/v1/lotes                    → listar (filtro por estado)
- GET    /api/v1/lotes/resumen            → totales por estado
- GET    /api/v1/lotes/{id}               → detalle
- POST   /api/v1/lotes                    → crear (admin)
- PUT    /api/v1/lotes/{id}               → actualizar (admin)
- DELETE /api/v1/lotes/{id}               → eliminar (admin)
- POST   /api/v1/lotes/{id}/liquidar      → reservar / vender (admin)
- GET    /api/v1/lotes/{id}/progreso      → progreso de pago del comprador

Reglas de negocio:
- numero_lote único (se normaliza a MAYÚSCULAS sin tildes).
- reservado / vendido exigen cliente_id; disponible / bloqueado lo limpian.
- Un lote reservado o vendido no se puede borrar (409).
- La reserva/venta va siempre por /liquidar (ver liquidacion_utils).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.core.constants import ESTADOS_LOTE, ESTADOS_LOTE_CON_CLIENTE
from backend.app.db.custom_types import to_money
from backend.app.schemas.clientes import ClienteActualRead
from backend.app.schemas.lotes import (
    EstadoLote,
    LiquidacionIn,
    LiquidacionOut,
    LoteCreate,
    LoteRead,
    LotesResumen,
    LoteUpdate,
    ProgresoLote,
)
from backend.app.schemas.pagos import PagoClienteRead
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.liquidacion_utils import liquidar_lote
from backend.app.utils.plan_pago_utils import calcular_progreso_pago
from backend.app.utils.text_utils import normalize_lote, normalize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lotes", tags=["lotes"])

_DUPLICADO = "Ya existe un lote con ese número."


# =======================================================
# Helpers
# =======================================================
def _numero_lote_existe(db: Session, numero: str, exclude_id: Optional[str] = None) -> bool:
    q = db.query(models.Lote).filter(models.Lote.numero_lote == numero)
    if exclude_id is not None:
        q = q.filter(models.Lote.id != exclude_id)
    return db.query(q.exists()).scalar()


def _aplicar_regla_cliente(db: Session, lote: models.Lote) -> None:
    """
    - reservado / vendido -> cliente_id obligatorio y existente (422)
    - disponible / bloqueado -> cliente_id = None
    """
    if lote.estado in ESTADOS_LOTE_CON_CLIENTE:
        if not lote.cliente_id:
            raise HTTPException(
                status_code=422,
                detail="Un lote reservado o vendido debe tener un cliente asociado.",
            )
        if not db.get(models.ClienteActual, lote.cliente_id):
            raise HTTPException(status_code=422, detail="El cliente asociado no existe.")
    else:
        lote.cliente_id = None


# =======================================================
# Consultas
# =======================================================
@router.get("", response_model=List[LoteRead])
def listar_lotes(
    estado: Optional[EstadoLote] = Query(None),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    q = db.query(models.Lote)
    if estado:
        q = q.filter(models.Lote.estado == estado)
    return q.order_by(models.Lote.numero_lote.asc()).all()


@router.get("/resumen", response_model=LotesResumen)
def resumen_lotes(
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    rows = (
        db.query(models.Lote.estado, func.count(models.Lote.id))
        .group_by(models.Lote.estado)
        .all()
    )
    por_estado = {e: 0 for e in ESTADOS_LOTE}
    for estado, n in rows:
        por_estado[estado] = int(n)
    return LotesResumen(total=sum(por_estado.values()), **por_estado)


@router.get("/{lote_id}", response_model=LoteRead)
def obtener_lote(
    lote_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    return get_or_404(db, models.Lote, lote_id, "Lote no encontrado")


@router.get("/{lote_id}/progreso", response_model=ProgresoLote)
def progreso_lote(
    lote_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    """
    Progreso de pago del comprador: total pagado / valor del lote.
    Sin cliente asociado -> progreso 0.
    """
    lote = get_or_404(db, models.Lote, lote_id, "Lote no encontrado")
    cliente = lote.cliente

    if not cliente:
        return ProgresoLote(
            lote_id=lote.id,
            numero_lote=lote.numero_lote,
            valor_total=to_money(lote.precio),
            total_pagado=to_money(0),
            progreso=0,
        )

    total_pagado = to_money(sum((to_money(p.monto) for p in cliente.pagos), to_money(0)))
    valor_total = to_money(cliente.valor_lote)
    return ProgresoLote(
        lote_id=lote.id,
        numero_lote=lote.numero_lote,
        cliente_id=cliente.id,
        valor_total=valor_total,
        total_pagado=total_pagado,
        progreso=calcular_progreso_pago(total_pagado, valor_total),
    )


# =======================================================
# Altas / cambios / bajas
# =======================================================
@router.post("", response_model=LoteRead, status_code=status.HTTP_201_CREATED)
def crear_lote(
    payload: LoteCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    numero = normalize_lote(payload.numero_lote)
    if not numero:
        raise HTTPException(status_code=422, detail="Por favor ingrese el número de lote")
    if _numero_lote_existe(db, numero):
        raise HTTPException(status_code=409, detail=_DUPLICADO)

    now = datetime.utcnow()
    lote = models.Lote(
        id=generate_uuid(),
        numero_lote=numero,
        estado=payload.estado,
        area=payload.area,
        precio=payload.precio,
        ubicacion=normalize_text(payload.ubicacion),
        descripcion=normalize_text(payload.descripcion),
        bloqueado_por=normalize_text(payload.bloqueado_por),
        cliente_id=payload.cliente_id,
        created_at=now,
        updated_at=now,
    )
    _aplicar_regla_cliente(db, lote)

    db.add(lote)
    registrar_auditoria(db, current, "Crear lote", f"Lote {numero} ({lote.estado})")
    commit_or_rollback(db, "[lotes] crear", conflict_detail=_DUPLICADO)
    db.refresh(lote)
    logger.info("[lotes] crear id=%s numero=%s estado=%s", lote.id, numero, lote.estado)
    return lote


@router.put("/{lote_id}", response_model=LoteRead)
def actualizar_lote(
    lote_id: str,
    payload: LoteUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    lote = get_or_404(db, models.Lote, lote_id, "Lote no encontrado")
    cambios = payload.model_dump(exclude_unset=True)

    if "numero_lote" in cambios:
        numero = normalize_lote(cambios.pop("numero_lote"))
        if not numero:
            raise HTTPException(status_code=422, detail="Por favor ingrese el número de lote")
        if _numero_lote_existe(db, numero, exclude_id=lote_id):
            raise HTTPException(status_code=409, detail=_DUPLICADO)
        lote.numero_lote = numero

    for campo in ("ubicacion", "descripcion", "bloqueado_por"):
        if campo in cambios:
            cambios[campo] = normalize_text(cambios[campo])

    for campo, valor in cambios.items():
        setattr(lote, campo, valor)

    _aplicar_regla_cliente(db, lote)
    lote.updated_at = datetime.utcnow()

    registrar_auditoria(db, current, "Actualizar lote", f"Lote {lote.numero_lote} ({lote.estado})")
    commit_or_rollback(db, "[lotes] actualizar", conflict_detail=_DUPLICADO)
    db.refresh(lote)
    return lote


@router.delete("/{lote_id}", status_code=204)
def eliminar_lote(
    lote_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    lote = get_or_404(db, models.Lote, lote_id, "Lote no encontrado")
    if lote.estado in ESTADOS_LOTE_CON_CLIENTE:
        raise HTTPException(
            status_code=409,
            detail="No se puede eliminar un lote reservado o vendido.",
        )

    numero = lote.numero_lote
    db.delete(lote)
    registrar_auditoria(db, current, "Eliminar lote", f"Lote {numero}")
    commit_or_rollback(db, "[lotes] eliminar")
    return None


# =======================================================
# Liquidación (reserva / venta)
# =======================================================
@router.post("/{lote_id}/liquidar", response_model=LiquidacionOut, status_code=status.HTTP_201_CREATED)
def liquidar(
    lote_id: str,
    payload: LiquidacionIn,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    """
    Reserva o vende un lote disponible en una única transacción:
    crea el cliente actual, cambia el estado del lote y registra el pago
    inicial. Devuelve las filas confirmadas por la BD.
    """
    res = liquidar_lote(db, lote_id, payload, current)
    return LiquidacionOut(
        numero_operacion=res.numero_operacion,
        reutilizada=res.reutilizada,
        lote=LoteRead.model_validate(res.lote),
        cliente=ClienteActualRead.model_validate(res.cliente),
        pago=PagoClienteRead.model_validate(res.pago) if res.pago else None,
    )
