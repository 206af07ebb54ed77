"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL.
Le répertoire d'upload pointe vers un dossier temporaire ; ni seed ni scheduler au démarrage.
"""

import os
import tempfile

os.environ.setdefault("DB_AUTO_INIT", "false")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="bucohub-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool
from unittest.mock import MagicMock

from app.database import Base, get_db
from app.dependencies import get_current_admin, get_file_store
from app.main import app
from app.services.file_store import FileStore


def make_admin(**overrides):
    admin = MagicMock()
    admin.id = 1
    admin.first_name = "System"
    admin.last_name = "Administrator"
    admin.email = "admin@bucohub.com"
    admin.role = "super_admin"
    admin.is_active = True
    admin.last_login = None
    admin.created_at = None
    for key, value in overrides.items():
        setattr(admin, key, value)
    return admin


@pytest.fixture
def mock_db():
    return MagicMock()


@pytest.fixture
def store(tmp_path):
    """Stockage de fichiers isolé dans un répertoire temporaire (limite : 1 Ko)."""
    return FileStore(str(tmp_path / "uploads"), max_size_bytes=1024)


@pytest.fixture
def client(mock_db, store):
    """Client HTTP de test avec la BDD mockée."""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_file_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    """Client HTTP authentifié comme super_admin (sans jeton)."""
    app.dependency_overrides[get_current_admin] = lambda: make_admin()
    return client


@pytest.fixture
def sqlite_db():
    """Session sur une base SQLite en mémoire, schéma complet créé à partir des modèles."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = Session(bind=engine)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
