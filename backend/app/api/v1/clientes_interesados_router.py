"""
Router de CLIENTES INTERESADOS (prospectos).

Endpoints:
- GET    /api/v1/clientes-interesados               → listar
- POST   /api/v1/clientes-interesados               → crear (admin)
- PUT    /api/v1/clientes-interesados/{id}          → actualizar (admin)
- DELETE /api/v1/clientes-interesados/{id}          → eliminar (admin)
- POST   /api/v1/clientes-interesados/{id}/convertir → pasar a cliente actual (admin)

Al convertir, el prospecto NO se borra: queda con estado "convertido" y
deja de salir en el listado por defecto (incluir_convertidos=true lo muestra).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.core.constants import CLIENTE_ACTIVO, INTERESADO_ACTIVO, INTERESADO_CONVERTIDO
from backend.app.schemas.clientes import (
    ClienteActualRead,
    ClienteInteresadoCreate,
    ClienteInteresadoRead,
    ClienteInteresadoUpdate,
    ConversionIn,
    ConversionOut,
)
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.plan_pago_utils import calcular_plan
from backend.app.utils.text_utils import normalize_lote, normalize_lower, normalize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clientes-interesados", tags=["clientes-interesados"])

_NO_ENCONTRADO = "Cliente interesado no encontrado"


@router.get("", response_model=List[ClienteInteresadoRead])
def listar_interesados(
    incluir_convertidos: bool = Query(False),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    q = db.query(models.ClienteInteresado)
    if not incluir_convertidos:
        q = q.filter(models.ClienteInteresado.estado != INTERESADO_CONVERTIDO)
    return q.order_by(models.ClienteInteresado.fecha_contacto.desc()).all()


@router.post("", response_model=ClienteInteresadoRead, status_code=status.HTTP_201_CREATED)
def crear_interesado(
    payload: ClienteInteresadoCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    nombre = normalize_text(payload.nombre)
    if not nombre:
        raise HTTPException(status_code=422, detail="Por favor ingrese el nombre del cliente")

    row = models.ClienteInteresado(
        id=generate_uuid(),
        nombre=nombre,
        email=normalize_lower(payload.email),
        telefono=normalize_text(payload.telefono),
        fecha_contacto=payload.fecha_contacto or datetime.utcnow(),
        notas=payload.notas or "",
        estado=INTERESADO_ACTIVO,
    )
    db.add(row)
    registrar_auditoria(db, current, "Crear cliente interesado", f"Cliente {nombre}")
    commit_or_rollback(db, "[clientes-interesados] crear")
    db.refresh(row)
    return row


@router.put("/{interesado_id}", response_model=ClienteInteresadoRead)
def actualizar_interesado(
    interesado_id: str,
    payload: ClienteInteresadoUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.ClienteInteresado, interesado_id, _NO_ENCONTRADO)
    cambios = payload.model_dump(exclude_unset=True)

    if "nombre" in cambios:
        nombre = normalize_text(cambios["nombre"])
        if not nombre:
            raise HTTPException(status_code=422, detail="Por favor ingrese el nombre del cliente")
        row.nombre = nombre
    if "email" in cambios:
        row.email = normalize_lower(cambios["email"])
    if "telefono" in cambios:
        row.telefono = normalize_text(cambios["telefono"])
    if cambios.get("fecha_contacto") is not None:
        row.fecha_contacto = cambios["fecha_contacto"]
    if "notas" in cambios:
        row.notas = cambios["notas"] or ""

    registrar_auditoria(db, current, "Actualizar cliente interesado", f"Cliente {row.nombre}")
    commit_or_rollback(db, "[clientes-interesados] actualizar")
    db.refresh(row)
    return row


@router.delete("/{interesado_id}", status_code=204)
def eliminar_interesado(
    interesado_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.ClienteInteresado, interesado_id, _NO_ENCONTRADO)
    nombre = row.nombre
    db.delete(row)
    registrar_auditoria(db, current, "Eliminar cliente interesado", f"Cliente {nombre}")
    commit_or_rollback(db, "[clientes-interesados] eliminar")
    return None


@router.post(
    "/{interesado_id}/convertir",
    response_model=ConversionOut,
    status_code=status.HTTP_201_CREATED,
)
def convertir_interesado(
    interesado_id: str,
    payload: ConversionIn,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    """
    Crea un cliente actual con el plan calculado y marca el prospecto
    como convertido. Todo en la misma transacción.
    """
    interesado = get_or_404(db, models.ClienteInteresado, interesado_id, _NO_ENCONTRADO)
    if interesado.estado == INTERESADO_CONVERTIDO:
        raise HTTPException(status_code=409, detail="El cliente interesado ya fue convertido.")

    if payload.deposito_inicial > payload.valor_lote:
        raise HTTPException(
            status_code=422,
            detail=f"El depósito no puede superar ${payload.valor_lote:,.2f}",
        )

    plan = calcular_plan(payload.valor_lote, payload.deposito_inicial, payload.numero_cuotas)
    cliente = models.ClienteActual(
        id=generate_uuid(),
        nombre=interesado.nombre,
        email=interesado.email,
        telefono=interesado.telefono,
        cedula=normalize_text(payload.cedula),
        numero_lote=normalize_lote(payload.numero_lote),
        valor_lote=payload.valor_lote,
        deposito_inicial=payload.deposito_inicial,
        numero_cuotas=payload.numero_cuotas,
        forma_pago_inicial=payload.forma_pago_inicial,
        forma_pago_cuotas=payload.forma_pago_cuotas,
        notas_especiales=interesado.notas or None,
        estado=CLIENTE_ACTIVO,
        created_at=datetime.utcnow(),
        **plan,
    )
    db.add(cliente)
    interesado.estado = INTERESADO_CONVERTIDO

    registrar_auditoria(
        db,
        current,
        "Convertir cliente interesado",
        f"Cliente {interesado.nombre} - Lote {cliente.numero_lote}",
    )
    commit_or_rollback(db, "[clientes-interesados] convertir")
    db.refresh(interesado)
    db.refresh(cliente)
    logger.info("[clientes-interesados] convertir id=%s cliente_id=%s", interesado_id, cliente.id)

    return ConversionOut(
        interesado=ClienteInteresadoRead.model_validate(interesado),
        cliente=ClienteActualRead.model_validate(cliente),
    )
