# backend/app/schemas/obras.py

"""
Schemas Pydantic para OBRAS de urbanización.

- Obra*: CRUD de la obra. progreso y gastado NO se aceptan en la entrada:
  progreso sale de la etapa y gastado de la suma de sus gastos.
- GastoObra* / HitoObra*: gastos e hitos de una obra.
- EtapaInfo: catálogo de etapas (/obras/etapas).
- EstadisticasObras: resumen del listado (/obras/estadisticas).

Importes: Decimal en Python, float en JSON.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

EtapaObra = Literal[
    "planificacion",
    "topografia",
    "planos",
    "curvas_nivel",
    "planos_finales",
    "documentacion_planeacion",
    "remocion_piedras",
    "construccion_vias",
    "entrega_lotes",
    "sucesion_interna",
    "sucesion_lotes",
    "escrituracion",
    "terminada",
]
EstadoObra = Literal["activa", "pausada", "completada", "cancelada"]
CategoriaGastoObra = Literal[
    "materiales", "mano_obra", "maquinaria", "permisos", "servicios", "transporte", "otros",
]


# ============================
# GASTOS
# ============================

class GastoObraCreate(BaseModel):
    fecha: Optional[date] = None   # None -> hoy
    concepto: str = Field(..., min_length=1)
    categoria: CategoriaGastoObra = "materiales"
    monto: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    proveedor: Optional[str] = None
    notas: Optional[str] = None


class GastoObraRead(BaseModel):
    id: str
    obra_id: str
    fecha: date
    concepto: str
    categoria: str
    monto: Decimal
    proveedor: Optional[str] = None
    notas: Optional[str] = None
    etapa: Optional[str] = None
    aprobado_por: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("monto", when_used="json")
    def _ser_monto(self, v: Decimal):
        return float(v)


# ============================
# HITOS
# ============================

class HitoObraCreate(BaseModel):
    titulo: str = Field(..., min_length=1)
    descripcion: Optional[str] = None
    fecha: Optional[date] = None
    responsable: Optional[str] = None
    etapa: Optional[EtapaObra] = None


class HitoObraUpdate(BaseModel):
    titulo: Optional[str] = Field(None, min_length=1)
    descripcion: Optional[str] = None
    fecha: Optional[date] = None
    responsable: Optional[str] = None
    completado: Optional[bool] = None


class HitoObraRead(BaseModel):
    id: str
    obra_id: str
    titulo: str
    descripcion: Optional[str] = None
    fecha: Optional[date] = None
    responsable: Optional[str] = None
    etapa: Optional[str] = None
    completado: bool = False
    fecha_completado: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ============================
# OBRA
# ============================

class ObraCreate(BaseModel):
    nombre: str = Field(..., min_length=1)
    descripcion: Optional[str] = None
    etapa: EtapaObra = "planificacion"
    presupuesto: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    fecha_inicio: Optional[date] = None   # None -> hoy
    fecha_fin_estimada: Optional[date] = None
    ubicacion: Optional[str] = None
    responsable: Optional[str] = None     # None -> usuario que la crea
    compartido_con_clientes: bool = False
    lotes_asociados: Optional[List[str]] = None


class ObraUpdate(BaseModel):
    """
    Campos opcionales. Si cambia la etapa se recalcula el progreso.
    """
    nombre: Optional[str] = Field(None, min_length=1)
    descripcion: Optional[str] = None
    etapa: Optional[EtapaObra] = None
    presupuesto: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    fecha_inicio: Optional[date] = None
    fecha_fin_estimada: Optional[date] = None
    ubicacion: Optional[str] = None
    responsable: Optional[str] = None
    estado: Optional[EstadoObra] = None
    compartido_con_clientes: Optional[bool] = None
    lotes_asociados: Optional[List[str]] = None


class ObraRead(BaseModel):
    id: str
    nombre: str
    descripcion: Optional[str] = None
    etapa: str
    progreso: int
    presupuesto: Decimal
    gastado: Decimal
    fecha_inicio: date
    fecha_fin_estimada: Optional[date] = None
    fecha_fin_real: Optional[date] = None
    ubicacion: Optional[str] = None
    responsable: Optional[str] = None
    estado: str
    compartido_con_clientes: bool = False
    lotes_asociados: Optional[List[str]] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    gastos: List[GastoObraRead] = []
    hitos: List[HitoObraRead] = []

    # Derivados (los rellena el router)
    porcentaje_gastado: Decimal = Decimal("0")
    alerta_presupuesto: bool = False
    siguiente_etapa: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("presupuesto", "gastado", "porcentaje_gastado", when_used="json")
    def _ser_money(self, v: Decimal):
        return float(v)


# ============================
# CATÁLOGO Y ESTADÍSTICAS
# ============================

class EtapaInfo(BaseModel):
    clave: str
    etiqueta: str
    orden: int
    dias_estimados: int
    progreso: int
    completada: bool = False


class EstadisticasObras(BaseModel):
    total: int
    activas: int
    completadas: int
    pausadas: int
    progreso_promedio: int
    presupuesto_total: Decimal
    gastado_total: Decimal
    ahorro: Decimal
    hitos_completados: int
    hitos_pendientes: int

    @field_serializer("presupuesto_total", "gastado_total", "ahorro", when_used="json")
    def _ser_money(self, v: Decimal):
        return float(v)
