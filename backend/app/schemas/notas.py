# backend/app/schemas/notas.py

"""
Schemas Pydantic para NOTAS, DOCUMENTOS y AUDITORÍA.

- Nota*: notas del equipo; status "futuro" (pendiente) o "tratado".
- Documento*: archivos en base64. El listado NO devuelve `data`.
- AuditLog*: listado paginado con total.
- AnalisisOut: texto del asesor IA.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

EstadoNota = Literal["futuro", "tratado"]


# ============================
# NOTAS
# ============================

class NotaCreate(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = ""
    status: EstadoNota = "futuro"
    category: str = "General"


class NotaUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None
    status: Optional[EstadoNota] = None
    category: Optional[str] = None


class NotaStatusIn(BaseModel):
    status: EstadoNota


class NotaRead(BaseModel):
    id: str
    title: str
    content: str = ""
    status: str
    category: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ============================
# DOCUMENTOS
# ============================

class DocumentoCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="Tipo MIME")
    data: str = Field(..., min_length=1, description="Contenido en base64 (o data URL)")
    category: str = "General"


class DocumentoMeta(BaseModel):
    id: str
    name: str
    type: str
    size_bytes: int = 0
    uploaded_by: str
    uploaded_at: Optional[datetime] = None
    category: str

    model_config = ConfigDict(from_attributes=True)


class DocumentoRead(DocumentoMeta):
    data: str


# ============================
# AUDITORÍA
# ============================

class AuditLogRead(BaseModel):
    id: str
    date: datetime
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    action: str
    details: str = ""

    model_config = ConfigDict(from_attributes=True)


class AuditLogPage(BaseModel):
    total: int
    limit: int
    offset: int
    items: List[AuditLogRead]


# ============================
# ANÁLISIS IA
# ============================

class AnalisisOut(BaseModel):
    analisis: str
    disponible: bool
