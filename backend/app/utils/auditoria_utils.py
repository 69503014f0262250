# backend/app/utils/auditoria_utils.py

"""
Registro de auditoría (tabla audit_logs).

Cada mutación de negocio añade una fila con quién, qué y cuándo.
La fila se añade a la sesión del llamador y viaja en SU transacción:
si la operación hace rollback, la auditoría también desaparece.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from backend.app.db import models
from backend.app.utils.id_utils import generate_uuid

logger = logging.getLogger(__name__)


def registrar_auditoria(
    db: Session,
    usuario: Optional[models.User],
    accion: str,
    detalles: str = "",
) -> models.AuditLog:
    row = models.AuditLog(
        id=generate_uuid(),
        date=datetime.utcnow(),
        user_id=usuario.id if usuario else None,
        user_name=usuario.name if usuario else "sistema",
        action=accion,
        details=detalles or "",
    )
    db.add(row)
    logger.debug("[auditoria] %s user=%s", accion, row.user_name)
    return row
