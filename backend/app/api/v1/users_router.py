"""
Router para gestión de usuarios.

Endpoints principales:
- GET    /api/v1/users                    → listar usuarios
- POST   /api/v1/users                    → crear usuario (admin)
- POST   /api/v1/users/evaluar-password   → fortaleza de una contraseña
- PUT    /api/v1/users/{id}               → actualizar (admin)
- DELETE /api/v1/users/{id}               → eliminar (admin)

Reglas de negocio:
- Nombre y email únicos (409 si se repiten).
- La contraseña debe ser "válida" (puntuación >= 60 y 8+ caracteres).
- Se guarda solo el hash (passlib).
- Un admin no puede borrarse a sí mismo.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import func, or_

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.schemas.users import PasswordEvaluacion, UserCreate, UserRead, UserUpdate
from backend.app.api.v1.auth_router import require_admin, require_user
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.common import commit_or_rollback, get_or_404
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.seguridad_utils import evaluar_password, hash_password
from backend.app.utils.text_utils import normalize_lower, normalize_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


# ================================
# Helpers internos
# ================================
def _usuario_existe(
    db: Session,
    name: Optional[str],
    email: Optional[str],
    exclude_id: Optional[str] = None,
) -> bool:
    """
    Comprueba si ya existe un usuario con ese nombre o email (sin mayúsculas).

    - Si `exclude_id` se indica, se excluye ese usuario de la comprobación.
    """
    conds = []
    if name:
        conds.append(func.lower(models.User.name) == name.lower())
    if email:
        conds.append(func.lower(models.User.email) == email.lower())
    if not conds:
        return False
    q = db.query(models.User).filter(or_(*conds))
    if exclude_id is not None:
        q = q.filter(models.User.id != exclude_id)
    return db.query(q.exists()).scalar()


def _exigir_password_valida(password: str) -> None:
    _, valida, sugerencias = evaluar_password(password)
    if not valida:
        raise HTTPException(
            status_code=422,
            detail="Contraseña débil: " + "; ".join(sugerencias),
        )


# ================================
# Endpoints
# ================================
@router.get("", response_model=List[UserRead])
def list_users(
    db: Session = Depends(get_db),
    current: models.User = Depends(require_user),
):
    return db.query(models.User).order_by(models.User.created_at.desc()).all()


@router.post("/evaluar-password", response_model=PasswordEvaluacion)
def evaluar(password: str = Body(..., embed=True)):
    puntuacion, valida, sugerencias = evaluar_password(password)
    return PasswordEvaluacion(puntuacion=puntuacion, valida=valida, sugerencias=sugerencias)


@router.post("", response_model=UserRead, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    """
    Crea un nuevo usuario.

    Reglas:
    - Nombre y email únicos.
    - Contraseña con fortaleza suficiente.
    - is_active se inicializa a True.
    """
    name = normalize_text(payload.name)
    email = normalize_lower(payload.email)

    if _usuario_existe(db, name, email):
        raise HTTPException(status_code=409, detail="El usuario o email ya existe.")

    _exigir_password_valida(payload.password)

    row = models.User(
        id=generate_uuid(),
        name=name,
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role,
        is_active=True,
    )
    db.add(row)
    registrar_auditoria(db, current, "Crear usuario", f"Usuario {name} ({payload.role})")
    commit_or_rollback(db, "[users] crear", conflict_detail="El usuario o email ya existe.")
    db.refresh(row)
    logger.info("[users] crear id=%s role=%s", row.id, row.role)
    return row


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.User, user_id, "Usuario no encontrado")

    email = normalize_lower(payload.email)
    if email and _usuario_existe(db, None, email, exclude_id=user_id):
        raise HTTPException(status_code=409, detail="El usuario o email ya existe.")

    if payload.email is not None:
        row.email = email
    if payload.password is not None:
        _exigir_password_valida(payload.password)
        row.password_hash = hash_password(payload.password)
    if payload.role is not None:
        row.role = payload.role
    if payload.is_active is not None:
        row.is_active = payload.is_active

    registrar_auditoria(db, current, "Actualizar usuario", f"Usuario {row.name}")
    commit_or_rollback(db, "[users] actualizar", conflict_detail="El usuario o email ya existe.")
    db.refresh(row)
    return row


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(require_admin),
):
    row = get_or_404(db, models.User, user_id, "Usuario no encontrado")
    if row.id == current.id:
        raise HTTPException(status_code=409, detail="No puede eliminar su propio usuario.")

    db.delete(row)
    registrar_auditoria(db, current, "Eliminar usuario", f"Usuario {row.name}")
    commit_or_rollback(db, "[users] eliminar")
    return None
