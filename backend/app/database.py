"""
Configuration de la connexion à la base de données PostgreSQL.
Un moteur SQLAlchemy avec pool de connexions, injecté dans les routes via get_db.
"""

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import settings

logger = logging.getLogger(__name__)

# Le moteur ne se connecte qu'à la première requête : importer ce module reste sans effet réseau.
engine = create_engine(
    settings.database_url,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI : ouvre une session par requête et la ferme ensuite."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_database_reachable(db: Session) -> bool:
    """Exécute un SELECT 1 ; False si la base ne répond pas."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.warning("Base de données injoignable : %s", exc)
        return False
