# backend/app/core/config.py
"""
Configuración central del backend de Molino.

Todo sale del entorno (o de backend/.env):
- JWT y bloqueo de login.
- Admin inicial para la primera puesta en marcha.
- URL de la BD. En producción es el Postgres de Supabase; en local y en
  los tests basta una URL SQLite, que se usa tal cual.
- Límites de documentos y configuración del asesor IA (Gemini).
"""

from __future__ import annotations

import re
from typing import List

from pydantic_settings import BaseSettings

_POSTGRES_RE = re.compile(r"^postgres(ql)?(\+\w+)?://")


def _sin_comillas(value: str) -> str:
    # DATABASE_URL="postgresql://..." en el panel del hosting incluye las comillas
    v = (value or "").strip()
    if len(v) >= 2 and v[0] == v[-1] and v[0] in "\"'":
        return v[1:-1].strip()
    return v


def is_postgres_url(url: str) -> bool:
    return bool(_POSTGRES_RE.match((url or "").strip()))


def normalizar_url_postgres(url: str, sslmode: str = "require") -> str:
    """
    postgres://u:p@host/db -> postgresql+psycopg://u:p@host/db?sslmode=require

    - Driver psycopg 3 siempre (también si venía psycopg2).
    - sslmode solo se añade si la URL no lo trae.
    """
    u = _POSTGRES_RE.sub("postgresql+psycopg://", url.strip(), count=1)
    if sslmode and "sslmode=" not in u:
        u += ("&" if "?" in u else "?") + f"sslmode={sslmode}"
    return u


class Settings(BaseSettings):
    """
    Ajustes de la aplicación (pydantic-settings convierte los tipos).
    """

    # ---- entorno general
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # ---- seguridad / JWT
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ---- login: bloqueo tras intentos fallidos
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_LOCKOUT_MINUTES: int = 15

    # ---- admin inicial (solo si la tabla users está vacía)
    BOOTSTRAP_ADMIN_NAME: str = ""
    BOOTSTRAP_ADMIN_EMAIL: str = ""
    BOOTSTRAP_ADMIN_PASSWORD: str = ""

    # ---- CORS: CSV "http://a,http://b". Vacío -> "*"
    CORS_ORIGINS: str = ""

    # ---- base de datos
    DATABASE_URL: str = "sqlite:///./molino.db"
    DB_SSLMODE: str = "require"
    DB_USE_NULLPOOL: bool = False   # pooler de Supabase (puerto 6543)

    # ---- documentos (base64 en BD)
    DOCUMENT_MAX_BYTES: int = 2 * 1024 * 1024
    COMPRAVENTA_MAX_BYTES: int = 5 * 1024 * 1024

    # ---- asesor IA (Gemini)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TIMEOUT_SECONDS: float = 20.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in (self.CORS_ORIGINS or "").split(",") if o.strip()]

    def resolve_database_url(self) -> str:
        """URL final para SQLAlchemy. Vacía -> RuntimeError."""
        url = _sin_comillas(self.DATABASE_URL)
        if not url:
            raise RuntimeError("DATABASE_URL está vacía.")
        if is_postgres_url(url):
            return normalizar_url_postgres(url, self.DB_SSLMODE)
        return url


# Instancia global
settings = Settings()
