"""
Autenticación de Molino.

Endpoints:
- POST /api/v1/auth/login  -> devuelve access_token (JWT)
- GET  /api/v1/auth/me     -> devuelve datos del usuario autenticado

Reglas de negocio principales:
- Login por nombre de usuario o email (mismo campo `username`).
- Token tipo Bearer (Authorization: Bearer <token>).
- El token incluye el ID de usuario en el campo 'sub'.
- Se comprueba que el usuario exista y esté activo.
- 5 intentos fallidos seguidos bloquean ese usuario 15 minutos (429).
  Configurable con LOGIN_MAX_ATTEMPTS / LOGIN_LOCKOUT_MINUTES.
- Contraseñas SIEMPRE hasheadas (passlib). No hay comparación en texto plano.

Dependencias para el resto de routers:
- require_user: cualquier usuario autenticado (lecturas).
- require_admin: rol admin (altas, cambios, borrados).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from jose.exceptions import ExpiredSignatureError
from pydantic import BaseModel
from sqlalchemy.orm import Session
from sqlalchemy import func, or_

from backend.app.db.session import get_db
from backend.app.db import models
from backend.app.core.config import settings
from backend.app.schemas.users import UserRead
from backend.app.utils.auditoria_utils import registrar_auditoria
from backend.app.utils.seguridad_utils import BloqueoLogin, verify_password
from backend.app.utils.text_utils import normalize_lower

logger = logging.getLogger(__name__)

# ---------- Config JWT ----------
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

# ---------- Router ----------
router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)

bloqueo_login = BloqueoLogin(
    max_intentos=settings.LOGIN_MAX_ATTEMPTS,
    minutos_bloqueo=settings.LOGIN_LOCKOUT_MINUTES,
)


# ---------- Schemas ----------
class LoginIn(BaseModel):
    """
    Datos de entrada para el login:

    - username: nombre de usuario o email.
    - password: contraseña en texto.
    """
    username: str
    password: str


# ---------- Helpers internos ----------
def create_access_token(sub: str, minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    """
    Crea un JWT con:
    - sub: identificador del usuario (string)
    - iat: momento de emisión (timestamp)
    - exp: momento de expiración (iat + minutes)
    """
    now = datetime.now(tz=timezone.utc)
    exp = now + timedelta(minutes=minutes)
    payload = {"sub": sub, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


# =========================================================
# Endpoints
# =========================================================
@router.post("/login")
def login(data: LoginIn, db: Session = Depends(get_db)):
    """
    Login del usuario.

    Flujo:
    1. Normaliza username a minúsculas.
    2. Si ese identificador está bloqueado -> 429.
    3. Busca el usuario por nombre o email.
    4. Verifica la contraseña (hash passlib).
    5. Devuelve access_token, token_type, expires_in y datos del usuario.
    """
    clave = normalize_lower(data.username)
    if not clave:
        raise HTTPException(status_code=422, detail="Usuario requerido")

    hasta = bloqueo_login.bloqueado_hasta(clave)
    if hasta:
        minutos = max(1, int((hasta - datetime.utcnow()).total_seconds() // 60) + 1)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Demasiados intentos fallidos. Intente de nuevo en {minutos} minutos.",
        )

    user = (
        db.query(models.User)
        .filter(
            or_(
                func.lower(models.User.name) == clave,
                func.lower(models.User.email) == clave,
            )
        )
        .first()
    )

    if not user or not verify_password(data.password, user.password_hash):
        restantes = bloqueo_login.registrar_fallo(clave)
        logger.info("[auth] login fallido usuario=%s restantes=%s", clave, restantes)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuario inactivo",
        )

    bloqueo_login.limpiar(clave)

    registrar_auditoria(db, user, "Inicio de sesión", f"Usuario {user.name}")
    db.commit()

    token = create_access_token(str(user.id))
    return {
        "access_token": token,
        "token_type": "Bearer",
        "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": UserRead.model_validate(user).model_dump(mode="json"),
    }


def require_user(
    creds: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db),
) -> models.User:
    """
    Dependencia que obliga a estar autenticado.

    - Lee el token Bearer del header Authorization.
    - Decodifica el JWT.
    - Valida:
        * que no esté expirado,
        * que tenga 'sub',
        * que el usuario exista y esté activo.

    Si falla, lanza 401.
    """
    if not creds or creds.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Falta Bearer token",
        )

    try:
        payload = jwt.decode(creds.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        # Señal clara para el cliente para hacer logout
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="token_expired",
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido",
        )

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token sin 'sub'",
        )

    user = db.get(models.User, str(sub))
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario no encontrado o inactivo",
        )
    return user


def require_admin(current: models.User = Depends(require_user)) -> models.User:
    """
    Igual que require_user, pero además exige rol admin (403 si no).
    """
    if current.role != models.RoleEnum.admin.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tiene permisos para realizar esta acción",
        )
    return current


@router.get("/me", response_model=UserRead)
def me(current: models.User = Depends(require_user)):
    """
    Devuelve los datos del usuario autenticado a partir del token Bearer.
    """
    return current
