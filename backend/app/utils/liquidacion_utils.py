"""
Liquidación de lotes: reservar o vender un lote disponible.

Aquí vive el flujo completo que antes hacía el frontend a base de
escrituras sueltas:

1) Validar el formulario (antes de escribir nada).
2) Calcular el plan (plan_pago_utils).
3) Crear el ClienteActual.
4) Pasar el lote a reservado/vendido con un UPDATE condicional
   (WHERE estado = 'disponible'): si otro usuario se adelantó, 409.
5) Registrar el pago inicial ("Depósito de Reserva" / "Cuota Inicial").
6) Guardar el documento de compraventa (si viene) y la auditoría.
7) Commit. Cualquier fallo en 3-6 deshace todo.

El router de lotes se limita a llamar a liquidar_lote() y devolver el
resultado.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.constants import (
    LOTE_DISPONIBLE,
    LOTE_RESERVADO,
    MIME_COMPRAVENTA,
    PLAN_PERSONALIZADO,
    TIPO_PAGO_POR_ACCION,
    TIPOS_PAGO_LIQUIDACION,
    CLIENTE_ACTIVO,
)
from backend.app.db import models
from backend.app.db.custom_types import ZERO, to_money
from backend.app.schemas.lotes import LiquidacionIn
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.documento_utils import split_data_url, validar_documento
from backend.app.utils.id_utils import generate_numero_operacion, generate_uuid
from backend.app.utils.plan_pago_utils import calcular_plan
from backend.app.utils.text_utils import normalize_lower, normalize_text

logger = logging.getLogger(__name__)

_EXTENSION_POR_MIME = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "image/jpeg": "jpg",
    "image/png": "png",
}


@dataclass
class LiquidacionResultado:
    numero_operacion: str
    lote: models.Lote
    cliente: models.ClienteActual
    pago: Optional[models.PagoCliente]
    reutilizada: bool = False


# ============================
# Validación
# ============================

def validar_liquidacion(lote: models.Lote, datos: LiquidacionIn) -> None:
    """
    Mismas reglas y mensajes que el formulario de reserva/venta.
    Lanza HTTP 422 en la primera regla que no se cumpla.
    """
    if lote.precio is None or to_money(lote.precio) <= 0:
        raise HTTPException(status_code=422, detail="El lote debe tener un precio definido")

    if not normalize_text(datos.nombre):
        raise HTTPException(status_code=422, detail="Por favor ingrese el nombre del cliente")

    deposito = to_money(datos.deposito_inicial)
    if deposito <= 0:
        raise HTTPException(
            status_code=422,
            detail="Por favor ingrese un depósito inicial mayor a cero",
        )

    precio = to_money(lote.precio)
    if deposito > precio:
        raise HTTPException(
            status_code=422,
            detail=f"El depósito no puede superar ${precio:,.2f}",
        )

    if datos.tipo_plan_pago == PLAN_PERSONALIZADO and not datos.cuotas_personalizadas:
        raise HTTPException(
            status_code=422,
            detail="Debes agregar al menos una cuota personalizada.",
        )

    if datos.documento_compraventa:
        validar_documento(
            datos.documento_compraventa,
            max_bytes=settings.COMPRAVENTA_MAX_BYTES,
            mime=datos.documento_mime,
            mimes_permitidos=MIME_COMPRAVENTA,
        )


# ============================
# Idempotencia
# ============================

def _buscar_liquidacion_previa(
    db: Session,
    lote: models.Lote,
    clave: Optional[str],
) -> Optional[LiquidacionResultado]:
    """
    Si ya existe un cliente con esa clave de idempotencia:
    - mismo lote -> devolvemos la liquidación guardada
    - otro lote  -> 409 (la clave ya se usó para otra operación)
    """
    if not clave:
        return None

    cliente = db.execute(
        select(models.ClienteActual).where(models.ClienteActual.clave_idempotencia == clave)
    ).scalar_one_or_none()
    if not cliente:
        return None

    if lote.cliente_id != cliente.id:
        raise HTTPException(
            status_code=409,
            detail="La clave de idempotencia ya se usó para otra operación.",
        )

    pago = next(
        (p for p in cliente.pagos if p.tipo_pago in TIPOS_PAGO_LIQUIDACION),
        None,
    )
    return LiquidacionResultado(
        numero_operacion=cliente.numero_operacion or "",
        lote=lote,
        cliente=cliente,
        pago=pago,
        reutilizada=True,
    )


# ============================
# Orquestación
# ============================

def _nombre_documento(datos: LiquidacionIn, numero_lote: str, numero_operacion: str) -> str:
    if datos.documento_nombre:
        return datos.documento_nombre
    mime_url, _ = split_data_url(datos.documento_compraventa or "")
    ext = _EXTENSION_POR_MIME.get((datos.documento_mime or mime_url or "").lower(), "bin")
    return f"compraventa_lote_{numero_lote}_{numero_operacion}.{ext}"


def liquidar_lote(
    db: Session,
    lote_id: str,
    datos: LiquidacionIn,
    usuario: models.User,
) -> LiquidacionResultado:
    """
    Reserva o vende el lote `lote_id` en una única transacción.

    Errores:
    - 404 si el lote no existe.
    - 422 si el formulario no es válido (nada se escribe).
    - 409 si el lote ya no está disponible.
    - 500 si falla la BD (rollback completo).
    """
    lote = db.get(models.Lote, lote_id)
    if not lote:
        raise HTTPException(status_code=404, detail="Lote no encontrado")

    clave = normalize_text(datos.clave_idempotencia)
    previa = _buscar_liquidacion_previa(db, lote, clave)
    if previa:
        logger.info(
            "[lotes] liquidar lote_id=%s clave reutilizada cliente_id=%s",
            lote_id, previa.cliente.id,
        )
        return previa

    validar_liquidacion(lote, datos)

    if lote.estado != LOTE_DISPONIBLE:
        raise HTTPException(status_code=409, detail="El lote ya no está disponible")

    precio = to_money(lote.precio)
    deposito = to_money(datos.deposito_inicial)
    personalizado = datos.tipo_plan_pago == PLAN_PERSONALIZADO

    if personalizado:
        numero_cuotas = len(datos.cuotas_personalizadas)
        cuotas_json = [c.model_dump(mode="json") for c in datos.cuotas_personalizadas]
    else:
        numero_cuotas = datos.numero_cuotas
        cuotas_json = None

    plan = calcular_plan(precio, deposito, numero_cuotas)
    valor_cuota = ZERO if personalizado else plan["valor_cuota"]

    numero_operacion = generate_numero_operacion()
    nombre = normalize_text(datos.nombre)
    now = datetime.utcnow()

    logger.info(
        "[lotes] liquidar lote_id=%s numero_lote=%s accion=%s cuotas=%s",
        lote_id, lote.numero_lote, datos.accion, numero_cuotas,
    )

    try:
        # ---------- 1. Documento de compraventa ----------
        documento_nombre = None
        if datos.documento_compraventa:
            documento_nombre = _nombre_documento(datos, lote.numero_lote, numero_operacion)
            mime_url, _ = split_data_url(datos.documento_compraventa)
            db.add(
                models.Documento(
                    id=generate_uuid(),
                    name=documento_nombre,
                    type=(datos.documento_mime or mime_url or "application/octet-stream").lower(),
                    data=datos.documento_compraventa,
                    size_bytes=validar_documento(
                        datos.documento_compraventa,
                        max_bytes=settings.COMPRAVENTA_MAX_BYTES,
                    ),
                    uploaded_by=usuario.name,
                    uploaded_at=now,
                    category="Compraventa",
                )
            )

        # ---------- 2. Cliente actual ----------
        cliente = models.ClienteActual(
            id=generate_uuid(),
            nombre=nombre,
            email=normalize_lower(datos.email),
            telefono=normalize_text(datos.telefono),
            cedula=normalize_text(datos.cedula),
            numero_lote=lote.numero_lote,
            valor_lote=precio,
            deposito_inicial=deposito,
            saldo_restante=plan["saldo_restante"],
            numero_cuotas=numero_cuotas,
            valor_cuota=valor_cuota,
            saldo_final=plan["saldo_final"],
            forma_pago_inicial=datos.forma_pago_inicial,
            forma_pago_cuotas=datos.forma_pago_cuotas,
            tipo_plan_pago=datos.tipo_plan_pago,
            cuotas_personalizadas=cuotas_json,
            documento_compraventa=documento_nombre,
            notas_especiales=normalize_text(datos.notas_especiales),
            estado=CLIENTE_ACTIVO,
            clave_idempotencia=clave,
            numero_operacion=numero_operacion,
            created_at=now,
        )
        db.add(cliente)
        db.flush()

        # ---------- 3. Lote (UPDATE condicional) ----------
        etiqueta = "Reservado" if datos.accion == LOTE_RESERVADO else "Vendido"
        res = db.execute(
            update(models.Lote)
            .where(models.Lote.id == lote_id, models.Lote.estado == LOTE_DISPONIBLE)
            .values(
                estado=datos.accion,
                cliente_id=cliente.id,
                descripcion=f"{etiqueta} a {nombre}",
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise HTTPException(status_code=409, detail="El lote ya no está disponible")

        # ---------- 4. Pago inicial ----------
        pago = None
        if deposito > 0:
            pago = models.PagoCliente(
                id=generate_uuid(),
                cliente_id=cliente.id,
                fecha_pago=now,
                monto=deposito,
                tipo_pago=TIPO_PAGO_POR_ACCION[datos.accion],
                forma_pago=datos.forma_pago_inicial,
                notas=f"Operación {numero_operacion}",
            )
            db.add(pago)

        # ---------- 5. Auditoría ----------
        accion_txt = "Reservar lote" if datos.accion == LOTE_RESERVADO else "Vender lote"
        registrar_auditoria(
            db,
            usuario,
            accion_txt,
            f"Lote {lote.numero_lote} - Cliente: {nombre} - Depósito: {deposito:.2f}",
        )

        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except IntegrityError:
        db.rollback()
        # Carrera con la misma clave: la otra petición ya lo registró
        if clave:
            db.expire_all()
            previa = _buscar_liquidacion_previa(db, db.get(models.Lote, lote_id), clave)
            if previa:
                return previa
        logger.warning("[lotes] liquidar lote_id=%s conflicto de integridad", lote_id)
        raise HTTPException(status_code=409, detail="El lote ya no está disponible")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("[lotes] liquidar FAILED lote_id=%s", lote_id)
        raise HTTPException(
            status_code=500,
            detail="Error interno registrando la operación. No se aplicó ningún cambio.",
        )

    db.refresh(lote)
    db.refresh(cliente)
    if pago is not None:
        db.refresh(pago)

    return LiquidacionResultado(
        numero_operacion=numero_operacion,
        lote=lote,
        cliente=cliente,
        pago=pago,
    )
