# backend/app/schemas/clientes.py

"""
Schemas Pydantic para CLIENTES INTERESADOS (prospectos) y CLIENTES ACTUALES.

- ClienteInteresado*: CRUD de prospectos.
- ConversionIn: datos del plan al convertir un prospecto en cliente actual.
- ClienteActual*: CRUD de clientes con plan de pagos.
  saldo_restante, valor_cuota y saldo_final NO se aceptan en la entrada:
  los calcula siempre el servidor (plan_pago_utils).
- EstadoCuenta / PlanCuotas: vistas calculadas de un cliente.

Importes: Decimal en Python, float en JSON.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


# ============================
# CLIENTE INTERESADO
# ============================

class ClienteInteresadoCreate(BaseModel):
    nombre: str = Field(..., min_length=1)
    email: Optional[str] = None
    telefono: Optional[str] = None
    fecha_contacto: Optional[datetime] = None
    notas: str = ""


class ClienteInteresadoUpdate(BaseModel):
    nombre: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    telefono: Optional[str] = None
    fecha_contacto: Optional[datetime] = None
    notas: Optional[str] = None


class ClienteInteresadoRead(BaseModel):
    id: str
    nombre: str
    email: Optional[str] = None
    telefono: Optional[str] = None
    fecha_contacto: datetime
    notas: str = ""
    estado: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ConversionIn(BaseModel):
    """
    Plan del nuevo cliente actual al convertir un prospecto.
    Nombre/email/teléfono se copian del prospecto.
    """
    numero_lote: str = Field(..., min_length=1)
    valor_lote: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    deposito_inicial: Decimal = Field(Decimal("0"), ge=0, max_digits=14, decimal_places=2)
    numero_cuotas: int = Field(1, ge=0)
    cedula: Optional[str] = None
    forma_pago_inicial: str = "Efectivo"
    forma_pago_cuotas: str = "Transferencia Bancaria"


class ConversionOut(BaseModel):
    interesado: ClienteInteresadoRead
    cliente: "ClienteActualRead"


# ============================
# CLIENTE ACTUAL
# ============================

class ClienteActualCreate(BaseModel):
    nombre: str = Field(..., min_length=1)
    email: Optional[str] = None
    telefono: Optional[str] = None
    cedula: Optional[str] = None
    numero_lote: str = Field(..., min_length=1)
    valor_lote: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    deposito_inicial: Decimal = Field(Decimal("0"), ge=0, max_digits=14, decimal_places=2)
    numero_cuotas: int = Field(1, ge=0)
    forma_pago_inicial: Optional[str] = "Efectivo"
    forma_pago_cuotas: Optional[str] = "Transferencia Bancaria"
    documento_compraventa: Optional[str] = None
    notas_especiales: Optional[str] = None
    estado: Literal["activo", "pagado", "mora"] = "activo"


class ClienteActualUpdate(BaseModel):
    """
    Si cambia valor_lote, deposito_inicial o numero_cuotas se recalcula
    el plan completo.
    """
    nombre: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    telefono: Optional[str] = None
    cedula: Optional[str] = None
    numero_lote: Optional[str] = Field(None, min_length=1)
    valor_lote: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    deposito_inicial: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    numero_cuotas: Optional[int] = Field(None, ge=0)
    forma_pago_inicial: Optional[str] = None
    forma_pago_cuotas: Optional[str] = None
    documento_compraventa: Optional[str] = None
    notas_especiales: Optional[str] = None
    estado: Optional[Literal["activo", "pagado", "mora"]] = None


class ClienteActualRead(BaseModel):
    id: str
    nombre: str
    email: Optional[str] = None
    telefono: Optional[str] = None
    cedula: Optional[str] = None
    numero_lote: str
    valor_lote: Decimal
    deposito_inicial: Decimal
    saldo_restante: Decimal
    numero_cuotas: int
    valor_cuota: Decimal
    saldo_final: Decimal
    forma_pago_inicial: Optional[str] = None
    forma_pago_cuotas: Optional[str] = None
    tipo_plan_pago: str = "automatico"
    cuotas_personalizadas: Optional[list] = None
    documento_compraventa: Optional[str] = None
    notas_especiales: Optional[str] = None
    estado: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer(
        "valor_lote", "deposito_inicial", "saldo_restante", "valor_cuota", "saldo_final",
        when_used="json",
    )
    def _ser_money(self, v: Decimal):
        return float(v)


class EstadoCuenta(BaseModel):
    cliente_id: str
    valor_lote: Decimal
    saldo_final: Decimal
    total_pagado: Decimal
    saldo_pendiente: Decimal
    progreso: int
    numero_pagos: int
    # al_dia | vencido | mora | pagado
    situacion: str
    proximo_pago: Optional[date] = None
    dias_restantes: Optional[int] = None

    @field_serializer(
        "valor_lote", "saldo_final", "total_pagado", "saldo_pendiente",
        when_used="json",
    )
    def _ser_money(self, v: Decimal):
        return float(v)


class CuotaPlan(BaseModel):
    numero: int
    fecha: date
    monto: Decimal
    saldo_posterior: Optional[Decimal] = None

    @field_serializer("monto", "saldo_posterior", when_used="json")
    def _ser_money(self, v: Decimal | None):
        return float(v) if v is not None else None


class PlanCuotas(BaseModel):
    cliente_id: str
    tipo_plan_pago: str
    saldo_restante: Decimal
    valor_cuota: Decimal
    cuotas: List[CuotaPlan]

    @field_serializer("saldo_restante", "valor_cuota", when_used="json")
    def _ser_money(self, v: Decimal):
        return float(v)


ConversionOut.model_rebuild()
