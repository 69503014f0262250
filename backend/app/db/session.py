# backend/app/db/session.py
"""
Engine y sesiones de SQLAlchemy.

- Postgres (Supabase): driver psycopg con prepare_threshold=0, que el
  pooler de Supabase necesita, y NullPool opcional (DB_USE_NULLPOOL).
- SQLite (local / tests): check_same_thread=False para que FastAPI pueda
  usar la conexión desde su threadpool.
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from backend.app.core.config import is_postgres_url, settings

DATABASE_URL = settings.resolve_database_url()
IS_POSTGRES = is_postgres_url(DATABASE_URL)

engine_kwargs = dict(pool_pre_ping=True, future=True)

if IS_POSTGRES:
    engine_kwargs["connect_args"] = {"connect_timeout": 10, "prepare_threshold": 0}
    if settings.DB_USE_NULLPOOL:
        engine_kwargs["poolclass"] = NullPool
else:
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


def get_db():
    """Dependencia FastAPI: una sesión por petición, cerrada al terminar."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
