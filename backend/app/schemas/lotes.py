# backend/app/schemas/lotes.py

"""
Schemas Pydantic para LOTES y su LIQUIDACIÓN (reserva / venta).

- LoteCreate / LoteUpdate / LoteRead: CRUD del lote.
- LotesResumen: totales por estado (/lotes/resumen).
- CuotaPersonalizada: una cuota del plan personalizado.
- LiquidacionIn: datos del formulario de reserva/venta.
- LiquidacionOut: cliente, lote y pago confirmados por el servidor.
- ProgresoLote: progreso de pago del comprador del lote.

Notas:
- precio/area se tipan como Decimal y se serializan como float en JSON.
- Las validaciones de negocio de la liquidación (nombre vacío, depósito
  fuera de rango...) NO se hacen aquí: las hace liquidacion_utils con los
  mensajes en castellano que espera el frontend.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from backend.app.schemas.clientes import ClienteActualRead
from backend.app.schemas.pagos import PagoClienteRead

EstadoLote = Literal["disponible", "reservado", "vendido", "bloqueado"]


# ============================
# LOTE
# ============================

class LoteBase(BaseModel):
    numero_lote: str = Field(..., min_length=1)
    estado: EstadoLote = "disponible"
    area: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    precio: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    ubicacion: Optional[str] = None
    descripcion: Optional[str] = None
    bloqueado_por: Optional[str] = None
    cliente_id: Optional[str] = None


class LoteCreate(LoteBase):
    pass


class LoteUpdate(BaseModel):
    """
    Campos opcionales. Solo se modifican los que se envíen.
    """
    numero_lote: Optional[str] = Field(None, min_length=1)
    estado: Optional[EstadoLote] = None
    area: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    precio: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    ubicacion: Optional[str] = None
    descripcion: Optional[str] = None
    bloqueado_por: Optional[str] = None
    cliente_id: Optional[str] = None


class LoteRead(LoteBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("area", "precio", when_used="json")
    def _ser_decimal(self, v: Decimal | None):
        return float(v) if v is not None else None


class LotesResumen(BaseModel):
    total: int
    disponible: int = 0
    reservado: int = 0
    vendido: int = 0
    bloqueado: int = 0


# ============================
# LIQUIDACIÓN
# ============================

class CuotaPersonalizada(BaseModel):
    numero: int = Field(..., ge=1)
    fecha: date
    monto: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)

    @field_serializer("monto", when_used="json")
    def _ser_monto(self, v: Decimal):
        return float(v)


class LiquidacionIn(BaseModel):
    """
    Formulario de reserva / venta de un lote disponible.

    - accion: "reservado" o "vendido" (estado final del lote).
    - deposito_inicial: importe que entrega el cliente ahora.
    - numero_cuotas: cuotas del plan automático (en personalizado se
      toma el número de cuotas_personalizadas).
    - documento_compraventa: base64 (o data URL) del contrato, opcional.
    - clave_idempotencia: si se reenvía la misma petición con la misma
      clave, se devuelve la liquidación ya registrada.
    """
    accion: Literal["reservado", "vendido"]
    nombre: str = ""
    email: Optional[str] = None
    telefono: Optional[str] = None
    cedula: Optional[str] = None

    deposito_inicial: Decimal = Field(Decimal("0"), max_digits=14, decimal_places=2)
    numero_cuotas: int = Field(12, ge=1)
    forma_pago_inicial: str = "Efectivo"
    forma_pago_cuotas: str = "Transferencia Bancaria"

    tipo_plan_pago: Literal["automatico", "personalizado"] = "automatico"
    cuotas_personalizadas: Optional[List[CuotaPersonalizada]] = None

    documento_compraventa: Optional[str] = None
    documento_nombre: Optional[str] = None
    documento_mime: Optional[str] = None

    notas_especiales: Optional[str] = None
    clave_idempotencia: Optional[str] = Field(None, max_length=200)


class LiquidacionOut(BaseModel):
    numero_operacion: str
    reutilizada: bool = False
    lote: LoteRead
    cliente: ClienteActualRead
    pago: Optional[PagoClienteRead] = None


class ProgresoLote(BaseModel):
    lote_id: str
    numero_lote: str
    cliente_id: Optional[str] = None
    valor_total: Decimal
    total_pagado: Decimal
    progreso: int

    @field_serializer("valor_total", "total_pagado", when_used="json")
    def _ser_money(self, v: Decimal):
        return float(v)
