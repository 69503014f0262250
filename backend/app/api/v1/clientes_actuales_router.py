"""
Router de CLIENTES ACTUALES (compradores con plan de pagos).

Endpoints:
- GET    /api/v1/clientes-actuales                  → listar (filtro estado / numero_lote)
- GET    /api/v1/clientes-actuales/{id}             → detalle
- POST   /api/v1/clientes-actuales                  → crear (admin)
- PUT    /api/v1/clientes-actuales/{id}             → actualizar (admin)
- DELETE /api/v1/clientes-actuales/{id}             → eliminar con sus pagos (admin)
- GET    /api/v1/clientes-actuales/{id}/estado-cuenta
- GET    /api/v1/clientes-actuales/{id}/plan

Reglas de negocio:
- saldo_restante, valor_cuota y saldo_final los calcula SIEMPRE el servidor.
  Solo se recalculan si cambian valor_lote, deposito_inicial o numero_cuotas.
- El depósito no puede superar el valor del lote (422).
- Al eliminar: se borran sus pagos y los lotes que lo referencian vuelven
  a "disponible" (sin cliente ni la descripción "Vendido a ..."), en la
  misma transacción.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.core.constants import (
    CLIENTE_PAGADO,
    LOTE_DISPONIBLE,
    PAGO_COMPLETADO,
    PLAN_PERSONALIZADO,
)
from backend.app.db.custom_types import ZERO, to_money
from backend.app.schemas.clientes import (
    ClienteActualCreate,
    ClienteActualRead,
    ClienteActualUpdate,
    CuotaPlan,
    EstadoCuenta,
    PlanCuotas,
)
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.plan_pago_utils import (
    calcular_plan,
    calcular_progreso_pago,
    calcular_proximo_pago,
    calcular_situacion_pago,
    generar_plan_cuotas,
)
from backend.app.utils.text_utils import normalize_lote, normalize_lower, normalize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clientes-actuales", tags=["clientes-actuales"])

_NO_ENCONTRADO = "Cliente no encontrado"
_CAMPOS_PLAN = ("valor_lote", "deposito_inicial", "numero_cuotas")


def _validar_deposito(valor_lote, deposito) -> None:
    if to_money(deposito) > to_money(valor_lote):
        raise HTTPException(
            status_code=422,
            detail=f"El depósito no puede superar ${to_money(valor_lote):,.2f}",
        )


def _total_pagado(cliente: models.ClienteActual):
    return to_money(sum((to_money(p.monto) for p in cliente.pagos), ZERO))


# =======================================================
# Consultas
# =======================================================
@router.get("", response_model=List[ClienteActualRead])
def listar_clientes(
    estado: Optional[str] = Query(None, description="activo / pagado / mora"),
    numero_lote: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    q = db.query(models.ClienteActual)
    if estado:
        q = q.filter(models.ClienteActual.estado == estado)
    if numero_lote:
        q = q.filter(models.ClienteActual.numero_lote == normalize_lote(numero_lote))
    return q.order_by(models.ClienteActual.created_at.desc()).all()


@router.get("/{cliente_id}", response_model=ClienteActualRead)
def obtener_cliente(
    cliente_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    return get_or_404(db, models.ClienteActual, cliente_id, _NO_ENCONTRADO)


@router.get("/{cliente_id}/estado-cuenta", response_model=EstadoCuenta)
def estado_cuenta(
    cliente_id: str,
    fecha_referencia: Optional[date] = Query(None, description="Por defecto, hoy"),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    """
    Total pagado (suma de todos sus pagos, calculada en cada lectura),
    saldo pendiente respecto al valor del lote y % de progreso.

    También el próximo pago esperado (último pago + 30 días) y la situación
    del cliente en fecha_referencia: al_dia, vencido o mora (> 7 días de
    atraso). Un cliente pagado, o sin saldo pendiente, no espera más pagos.
    """
    cliente = get_or_404(db, models.ClienteActual, cliente_id, _NO_ENCONTRADO)
    total = _total_pagado(cliente)
    valor = to_money(cliente.valor_lote)
    pendiente = to_money(valor - total)

    proximo = None
    dias = None
    situacion = PAGO_COMPLETADO
    if cliente.estado != CLIENTE_PAGADO and pendiente > 0:
        hoy = fecha_referencia or datetime.utcnow().date()
        alta = (cliente.created_at or datetime.utcnow()).date()
        proximo = calcular_proximo_pago(alta, [p.fecha_pago.date() for p in cliente.pagos])
        dias, situacion = calcular_situacion_pago(proximo, hoy)

    return EstadoCuenta(
        cliente_id=cliente.id,
        valor_lote=valor,
        saldo_final=to_money(cliente.saldo_final),
        total_pagado=total,
        saldo_pendiente=pendiente,
        progreso=calcular_progreso_pago(total, valor),
        numero_pagos=len(cliente.pagos),
        situacion=situacion,
        proximo_pago=proximo,
        dias_restantes=dias,
    )


@router.get("/{cliente_id}/plan", response_model=PlanCuotas)
def plan_cliente(
    cliente_id: str,
    fecha_inicio: Optional[date] = Query(None, description="Por defecto, fecha de alta del cliente"),
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    """
    Calendario de cuotas:
    - personalizado -> las cuotas guardadas tal cual.
    - automatico    -> cuotas mensuales desde fecha_inicio (la última ajusta céntimos).
    """
    cliente = get_or_404(db, models.ClienteActual, cliente_id, _NO_ENCONTRADO)

    if cliente.tipo_plan_pago == PLAN_PERSONALIZADO:
        cuotas = [CuotaPlan.model_validate(c) for c in (cliente.cuotas_personalizadas or [])]
    else:
        inicio = fecha_inicio or (cliente.created_at or datetime.utcnow()).date()
        cuotas = [
            CuotaPlan(**c)
            for c in generar_plan_cuotas(inicio, cliente.saldo_restante, cliente.numero_cuotas)
        ]

    return PlanCuotas(
        cliente_id=cliente.id,
        tipo_plan_pago=cliente.tipo_plan_pago,
        saldo_restante=to_money(cliente.saldo_restante),
        valor_cuota=to_money(cliente.valor_cuota),
        cuotas=cuotas,
    )


# =======================================================
# Altas / cambios / bajas
# =======================================================
@router.post("", response_model=ClienteActualRead, status_code=status.HTTP_201_CREATED)
def crear_cliente(
    payload: ClienteActualCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    nombre = normalize_text(payload.nombre)
    if not nombre:
        raise HTTPException(status_code=422, detail="Por favor ingrese el nombre del cliente")
    _validar_deposito(payload.valor_lote, payload.deposito_inicial)

    plan = calcular_plan(payload.valor_lote, payload.deposito_inicial, payload.numero_cuotas)
    row = models.ClienteActual(
        id=generate_uuid(),
        nombre=nombre,
        email=normalize_lower(payload.email),
        telefono=normalize_text(payload.telefono),
        cedula=normalize_text(payload.cedula),
        numero_lote=normalize_lote(payload.numero_lote),
        valor_lote=payload.valor_lote,
        deposito_inicial=payload.deposito_inicial,
        numero_cuotas=payload.numero_cuotas,
        forma_pago_inicial=payload.forma_pago_inicial,
        forma_pago_cuotas=payload.forma_pago_cuotas,
        documento_compraventa=normalize_text(payload.documento_compraventa),
        notas_especiales=normalize_text(payload.notas_especiales),
        estado=payload.estado,
        created_at=datetime.utcnow(),
        **plan,
    )
    db.add(row)
    registrar_auditoria(db, current, "Crear cliente", f"Cliente {nombre} - Lote {row.numero_lote}")
    commit_or_rollback(db, "[clientes-actuales] crear")
    db.refresh(row)
    logger.info("[clientes-actuales] crear id=%s lote=%s", row.id, row.numero_lote)
    return row


@router.put("/{cliente_id}", response_model=ClienteActualRead)
def actualizar_cliente(
    cliente_id: str,
    payload: ClienteActualUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.ClienteActual, cliente_id, _NO_ENCONTRADO)
    cambios = payload.model_dump(exclude_unset=True)

    if "nombre" in cambios:
        nombre = normalize_text(cambios.pop("nombre"))
        if not nombre:
            raise HTTPException(status_code=422, detail="Por favor ingrese el nombre del cliente")
        row.nombre = nombre
    if "email" in cambios:
        cambios["email"] = normalize_lower(cambios["email"])
    if "numero_lote" in cambios:
        cambios["numero_lote"] = normalize_lote(cambios["numero_lote"])

    recalcular = any(cambios.get(c) is not None for c in _CAMPOS_PLAN)
    for campo, valor in cambios.items():
        if campo in _CAMPOS_PLAN and valor is None:
            continue
        setattr(row, campo, valor)

    if recalcular:
        _validar_deposito(row.valor_lote, row.deposito_inicial)
        plan = calcular_plan(row.valor_lote, row.deposito_inicial, row.numero_cuotas)
        row.saldo_restante = plan["saldo_restante"]
        row.saldo_final = plan["saldo_final"]
        row.valor_cuota = ZERO if row.tipo_plan_pago == PLAN_PERSONALIZADO else plan["valor_cuota"]

    registrar_auditoria(db, current, "Actualizar cliente", f"Cliente {row.nombre}")
    commit_or_rollback(db, "[clientes-actuales] actualizar")
    db.refresh(row)
    return row


@router.delete("/{cliente_id}", status_code=204)
def eliminar_cliente(
    cliente_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    """
    Borra el cliente y TODOS sus pagos, y libera sus lotes.
    Una sola transacción: si algo falla, no se borra nada.
    """
    row = get_or_404(db, models.ClienteActual, cliente_id, _NO_ENCONTRADO)
    nombre = row.nombre
    n_pagos = len(row.pagos)

    now = datetime.utcnow()
    for lote in db.query(models.Lote).filter(models.Lote.cliente_id == cliente_id).all():
        lote.estado = LOTE_DISPONIBLE
        lote.cliente_id = None
        lote.descripcion = None
        lote.updated_at = now

    db.delete(row)   # cascade borra los pagos
    registrar_auditoria(
        db, current, "Eliminar cliente",
        f"Cliente {nombre} - {n_pagos} pagos eliminados",
    )
    commit_or_rollback(db, "[clientes-actuales] eliminar")
    logger.info("[clientes-actuales] eliminar id=%s pagos=%s", cliente_id, n_pagos)
    return None
