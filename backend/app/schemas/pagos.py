# backend/app/schemas/pagos.py

"""
Schemas Pydantic para PAGOS DE CLIENTES.

Los pagos no se modifican nunca: solo crear, leer y borrar.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class PagoClienteCreate(BaseModel):
    cliente_id: str
    fecha_pago: Optional[datetime] = None   # None -> ahora
    monto: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    tipo_pago: str = "cuota"
    forma_pago: Optional[str] = None
    notas: Optional[str] = None
    documento_adjunto: Optional[str] = None


class PagoClienteRead(BaseModel):
    id: str
    cliente_id: str
    fecha_pago: datetime
    monto: Decimal
    tipo_pago: str
    forma_pago: Optional[str] = None
    notas: Optional[str] = None
    documento_adjunto: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("monto", when_used="json")
    def _ser_monto(self, v: Decimal):
        return float(v)


class ReciboPago(BaseModel):
    """
    Datos del recibo de un pago (sin maquetar: el PDF lo genera el cliente).
    """
    pago: PagoClienteRead
    cliente_id: str
    cliente_nombre: str
    numero_lote: str
    valor_lote: Decimal
    saldo_anterior: Decimal
    saldo_actual: Decimal

    @field_serializer("valor_lote", "saldo_anterior", "saldo_actual", when_used="json")
    def _ser_money(self, v: Decimal):
        return float(v)
