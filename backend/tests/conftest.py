"""Infraestructura compartida de tests de Molino.

Provee:
- engine / db_session: SQLite en memoria (StaticPool) con todas las tablas
- client: TestClient con get_db apuntando a esa BD
- admin_user / viewer_user y sus cabeceras Bearer
- make_lote: factoría de lotes
"""

import os

# Antes de importar la app: settings exige SECRET_KEY y una URL de BD
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GEMINI_API_KEY"] = ""
os.environ["BOOTSTRAP_ADMIN_NAME"] = ""
os.environ["BOOTSTRAP_ADMIN_PASSWORD"] = ""

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.db.base import Base
from backend.app.db import models
from backend.app.db.session import get_db
from backend.app.main import app
from backend.app.api.v1.auth_router import bloqueo_login, create_access_token
from backend.app.utils.id_utils import generate_uuid
from backend.app.utils.seguridad_utils import hash_password

ADMIN_PASSWORD = "Admin#2024"
VIEWER_PASSWORD = "Viewer#2024"


# ---------------------------------------------------------------------------
# Base de datos
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    bloqueo_login.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()
    bloqueo_login.reset()


# ---------------------------------------------------------------------------
# Usuarios
# ---------------------------------------------------------------------------

def _crear_usuario(db, name, password, role, email=None):
    user = models.User(
        id=generate_uuid(),
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        created_at=datetime.utcnow(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    return _crear_usuario(db_session, "admin", ADMIN_PASSWORD, "admin", "admin@molino.com")


@pytest.fixture
def viewer_user(db_session):
    return _crear_usuario(db_session, "consulta", VIEWER_PASSWORD, "viewer", "consulta@molino.com")


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id)}"}


@pytest.fixture
def viewer_headers(viewer_user):
    return {"Authorization": f"Bearer {create_access_token(viewer_user.id)}"}


# ---------------------------------------------------------------------------
# Factorías
# ---------------------------------------------------------------------------

@pytest.fixture
def make_lote(db_session):
    """Factory: crea un Lote y devuelve su id."""
    contador = {"n": 0}

    def _make(precio="50000", estado="disponible", numero=None):
        contador["n"] += 1
        lote = models.Lote(
            id=generate_uuid(),
            numero_lote=numero or f"L-{contador['n']}",
            estado=estado,
            precio=Decimal(precio) if precio is not None else None,
            area=Decimal("300"),
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
        )
        db_session.add(lote)
        db_session.commit()
        return lote.id

    return _make
