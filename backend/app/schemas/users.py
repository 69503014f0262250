"""
Schemas Pydantic v2 para gestión de usuarios en Molino.

Reglas de negocio principales:
- El nombre de usuario y el email deben ser únicos.
- El campo `role` es "admin" (puede modificar) o "viewer" (solo lectura).
- La contraseña nunca se devuelve; en BD solo se guarda su hash.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, ConfigDict


class UserCreate(BaseModel):
    """
    Datos necesarios para crear un usuario.

    Notas:
    - `name` se usa para hacer login (igual que el email).
    - `password` debe superar la evaluación de fortaleza (ver seguridad_utils).
    - `role` por defecto es 'viewer'.
    """

    name: str = Field(
        ...,
        min_length=1,
        description="Nombre de usuario. Debe ser único.",
        examples=["administracion"],
    )
    email: Optional[EmailStr] = Field(
        None,
        description="Correo electrónico del usuario. Debe ser único.",
        examples=["usuario@correo.com"],
    )
    password: str = Field(..., description="Contraseña en texto (se guarda hasheada).")
    role: Literal["admin", "viewer"] = "viewer"


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[Literal["admin", "viewer"]] = None
    is_active: Optional[bool] = None


class UserRead(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PasswordEvaluacion(BaseModel):
    puntuacion: int
    valida: bool
    sugerencias: List[str] = []
