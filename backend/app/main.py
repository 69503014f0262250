# backend/app/main.py

"""
Punto de entrada principal del backend de Molino.

Aquí definimos:
- La instancia de FastAPI.
- Logging (nivel desde LOG_LEVEL).
- CORS.
- Endpoints base: /, /health, /api/health, /ready.
- Arranque: comprobación de BD y alta del admin inicial (si la tabla
  users está vacía y hay BOOTSTRAP_ADMIN_*).
- Routers de negocio (api/v1).

IMPORTANTE:
- Cargamos backend/.env antes de inicializar engine / settings.
"""

from __future__ import annotations

import logging
from pathlib import Path

# ---------------------------------------------------------------------------
# 0) Carga de variables de entorno (backend/.env) ANTES de importar engine
# ---------------------------------------------------------------------------
from dotenv import load_dotenv

# Este fichero está en: backend/app/main.py
# backend/.env => parents[1] del directorio "app" = ".../backend"
BACKEND_ENV = Path(__file__).resolve().parents[1] / ".env"
if BACKEND_ENV.is_file():
    load_dotenv(BACKEND_ENV)
    print(f"[startup] Loaded env: {BACKEND_ENV}")
else:
    # fallback: carga .env “por defecto” si existe en CWD
    load_dotenv()

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from sqlalchemy import text as sa_text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.db import models
from backend.app.db.session import SessionLocal, engine, get_db
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.seguridad_utils import hash_password

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 1) Generador de operation_id únicos
# ---------------------------------------------------------------------------
def custom_generate_unique_id(route: APIRoute) -> str:
    """
    Genera un operation_id estable y único para OpenAPI.
    Patrón: <tag>_<route.name>
    """
    tag_prefix = route.tags[0] if route.tags else "default"
    return f"{tag_prefix}_{route.name}"


# ---------------------------------------------------------------------------
# 2) Crear la app FastAPI
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Molino API",
    version="0.1.0",
    description="Backend de Molino: lotes, clientes, pagos y finanzas.",
    generate_unique_id_function=custom_generate_unique_id,
)


# ---------------------------------------------------------------------------
# 3) CORS
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# 4) Evento startup
# ---------------------------------------------------------------------------
def bootstrap_admin(db: Session) -> bool:
    """
    Crea el admin inicial si:
    - BOOTSTRAP_ADMIN_NAME y BOOTSTRAP_ADMIN_PASSWORD están definidos
    - la tabla users está vacía
    Devuelve True si lo ha creado.
    """
    if not settings.BOOTSTRAP_ADMIN_NAME or not settings.BOOTSTRAP_ADMIN_PASSWORD:
        return False
    if db.query(models.User.id).first():
        return False

    db.add(
        models.User(
            id=generate_uuid(),
            name=settings.BOOTSTRAP_ADMIN_NAME.strip(),
            email=settings.BOOTSTRAP_ADMIN_EMAIL.strip().lower() or None,
            password_hash=hash_password(settings.BOOTSTRAP_ADMIN_PASSWORD),
            role=models.RoleEnum.admin.value,
            is_active=True,
        )
    )
    db.commit()
    return True


@app.on_event("startup")
def on_startup() -> None:
    """
    Arranque del backend.

    - Comprueba conectividad con la BD.
    - Crea el admin inicial si procede.
    """
    print("[startup] ENV =", settings.ENV)
    print("[startup] GEMINI_API_KEY set? ", bool(settings.GEMINI_API_KEY))

    try:
        with engine.connect() as conn:
            conn.execute(sa_text("SELECT 1"))
    except SQLAlchemyError as e:
        print(f"[startup] Error al comprobar la BD: {e}")
        return

    db = SessionLocal()
    try:
        if bootstrap_admin(db):
            logger.info("[startup] admin inicial creado: %s", settings.BOOTSTRAP_ADMIN_NAME)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("[startup] no se pudo crear el admin inicial")
    finally:
        db.close()


# ---------------------------------------------------------------------------
# 5) Endpoints básicos
# ---------------------------------------------------------------------------
@app.get("/", tags=["core"])
def root() -> dict:
    """Endpoint raíz de la API."""
    return {"message": "Molino backend is running"}


@app.get("/health", tags=["core"])
def health_simple() -> dict:
    """
    Healthcheck simple:
    - servidor vivo (sin tocar BD).
    """
    return {"status": "ok"}


@app.get("/api/health", tags=["core"])
def health_api(db: Session = Depends(get_db)) -> dict:
    """
    Healthcheck completo:
    - SELECT 1 a BD.
    """
    try:
        db.execute(sa_text("SELECT 1"))
        return {"status": "ok", "db": "reachable"}
    except SQLAlchemyError as e:
        return {"status": "error", "db": "unreachable", "detail": str(e)}


@app.get("/ready", tags=["core"])
def ready(db: Session = Depends(get_db)) -> dict:
    """
    Readiness check:
    - servidor vivo + BD accesible
    """
    try:
        db.execute(sa_text("SELECT 1"))
        return {"status": "ok", "db": "reachable"}
    except SQLAlchemyError as e:
        return {"status": "error", "db": "unreachable", "detail": str(e)}


# ---------------------------------------------------------------------------
# 6) Routers de negocio (v1)
# ---------------------------------------------------------------------------
from backend.app.api.v1 import (
    analisis_router,
    auditoria_router,
    auth_router,
    clientes_actuales_router,
    clientes_interesados_router,
    documentos_router,
    egresos_futuros_router,
    lotes_router,
    notas_router,
    obras_router,
    pagos_router,
    transacciones_router,
    users_router,
)

API_V1 = "/api/v1"

app.include_router(auth_router.router,                 prefix=API_V1)
app.include_router(users_router.router,                prefix=API_V1)
app.include_router(lotes_router.router,                prefix=API_V1)
app.include_router(clientes_interesados_router.router, prefix=API_V1)
app.include_router(clientes_actuales_router.router,    prefix=API_V1)
app.include_router(pagos_router.router,                prefix=API_V1)
app.include_router(transacciones_router.router,        prefix=API_V1)
app.include_router(egresos_futuros_router.router,      prefix=API_V1)
app.include_router(obras_router.router,                prefix=API_V1)
app.include_router(notas_router.router,                prefix=API_V1)
app.include_router(documentos_router.router,           prefix=API_V1)
app.include_router(auditoria_router.router,            prefix=API_V1)
app.include_router(analisis_router.router,             prefix=API_V1)
