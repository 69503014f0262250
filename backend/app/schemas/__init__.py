# backend/app/schemas/__init__.py
"""
Paquete de schemas Pydantic de Molino.

Exponemos los schemas de la liquidación de lotes, que son los que
comparten varios routers y utilidades.
"""

from .lotes import LiquidacionIn, LiquidacionOut, LoteRead
from .clientes import ClienteActualRead
from .pagos import PagoClienteRead

__all__ = ["LiquidacionIn", "LiquidacionOut", "LoteRead", "ClienteActualRead", "PagoClienteRead"]
