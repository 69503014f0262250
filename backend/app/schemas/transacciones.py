# backend/app/schemas/transacciones.py

"""
Schemas Pydantic para TRANSACCIONES (ingresos / egresos reales) y
EGRESOS FUTUROS (gastos planificados).

- amount / monto: Decimal > 0, serializado como float.
- attachments / adjuntos: lista JSON libre (nombres de archivo, urls...).
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


# ============================
# TRANSACCIONES
# ============================

class TransaccionCreate(BaseModel):
    date: dt.date
    type: Literal["ingreso", "egreso"]
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    category: str = Field(..., min_length=1)
    description: str = ""
    attachments: Optional[List[Any]] = None


class TransaccionRead(BaseModel):
    id: str
    date: dt.date
    type: str
    amount: Decimal
    category: str
    description: str = ""
    user: str
    attachments: Optional[List[Any]] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("amount", when_used="json")
    def _ser_amount(self, v: Decimal):
        return float(v)


class ResumenFinanciero(BaseModel):
    ingresos: Decimal
    egresos: Decimal
    balance: Decimal
    numero_transacciones: int

    @field_serializer("ingresos", "egresos", "balance", when_used="json")
    def _ser_money(self, v: Decimal):
        return float(v)


# ============================
# EGRESOS FUTUROS
# ============================

TipoEgreso = Literal["planificado", "recurrente", "extraordinario"]
EstadoEgreso = Literal["pendiente", "pagado", "cancelado"]


class EgresoFuturoCreate(BaseModel):
    fecha: dt.date
    tipo: TipoEgreso = "planificado"
    categoria: str = Field(..., min_length=1)
    descripcion: Optional[str] = None
    monto: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    adjuntos: Optional[List[Any]] = None


class EgresoFuturoUpdate(BaseModel):
    """
    Solo pendiente <-> cancelado se cambia por aquí.
    Para pasar a "pagado" se usa POST /egresos-futuros/{id}/pagar.
    """
    fecha: Optional[dt.date] = None
    tipo: Optional[TipoEgreso] = None
    categoria: Optional[str] = Field(None, min_length=1)
    descripcion: Optional[str] = None
    monto: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
    adjuntos: Optional[List[Any]] = None
    estado: Optional[Literal["pendiente", "cancelado"]] = None


class EgresoFuturoRead(BaseModel):
    id: str
    fecha: dt.date
    tipo: str
    categoria: str
    descripcion: Optional[str] = None
    monto: Decimal
    usuario: str
    adjuntos: Optional[List[Any]] = None
    estado: str
    transaccion_id: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("monto", when_used="json")
    def _ser_monto(self, v: Decimal):
        return float(v)


class PagoEgresoOut(BaseModel):
    egreso: EgresoFuturoRead
    transaccion: TransaccionRead
