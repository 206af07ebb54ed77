"""
Tests de l'initialisation de la base (catalogue et administrateur par défaut) sur SQLite.
"""

from unittest.mock import patch

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.config import settings
from app.models.admin import Admin
from app.models.course import Course
from app.security import verify_password
from app.seed import DEFAULT_COURSES, init_database, seed_courses, seed_default_admin


def test_seed_courses_inserts_default_catalog(sqlite_db):
    assert seed_courses(sqlite_db) == len(DEFAULT_COURSES)

    names = sqlite_db.execute(select(Course.name)).scalars().all()
    assert set(names) == {name for name, *_ in DEFAULT_COURSES}


def test_seed_courses_is_idempotent(sqlite_db):
    seed_courses(sqlite_db)
    assert seed_courses(sqlite_db) == 0
    assert len(sqlite_db.execute(select(Course)).scalars().all()) == len(DEFAULT_COURSES)


def test_seed_default_admin_creates_super_admin(sqlite_db):
    assert seed_default_admin(sqlite_db) is True

    admin = sqlite_db.execute(select(Admin)).scalar_one()
    assert admin.email == settings.DEFAULT_ADMIN_EMAIL.lower()
    assert admin.role == "super_admin"
    assert admin.is_active is True
    assert verify_password(settings.DEFAULT_ADMIN_PASSWORD, admin.password_hash)


def test_seed_default_admin_skips_when_admins_exist(sqlite_db):
    seed_default_admin(sqlite_db)
    assert seed_default_admin(sqlite_db) is False
    assert len(sqlite_db.execute(select(Admin)).scalars().all()) == 1


def test_init_database_survives_unreachable_database():
    error = OperationalError("CREATE TABLE", {}, Exception("connection refused"))
    with patch("app.seed.Base.metadata.create_all", side_effect=error), \
         patch("app.seed.SessionLocal") as session_factory:
        init_database()
    session_factory.assert_not_called()
