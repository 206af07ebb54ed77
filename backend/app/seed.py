"""
Initialisation de la base au démarrage : création des tables manquantes,
catalogue de formations et compte super_admin par défaut.
Chaque étape est idempotente : rien n'est inséré si les données existent déjà.
"""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import app.models  # noqa: F401  enregistre toutes les tables dans Base.metadata
from app.config import settings
from app.database import Base, SessionLocal, engine
from app.models.admin import Admin
from app.models.course import Course
from app.security import hash_password

logger = logging.getLogger(__name__)

DEFAULT_COURSES = [
    ("UI/UX Design", "Learn user interface and user experience design principles", 12, "299.99"),
    ("Front-end Development", "Master HTML, CSS, JavaScript and modern frameworks", 16, "399.99"),
    ("Back-end Development", "Learn server-side programming with Node.js and databases", 20, "449.99"),
    ("Full Stack Development", "Complete web development from front-end to back-end", 24, "599.99"),
    ("Data Science", "Data analysis, machine learning and visualization", 20, "499.99"),
    ("Digital Marketing", "SEO, social media marketing, and analytics", 12, "349.99"),
    ("Mobile App Development", "Build iOS and Android applications", 18, "449.99"),
    ("Artificial Intelligence", "Machine learning and AI fundamentals", 22, "549.99"),
    ("Cybersecurity", "Network security and ethical hacking", 16, "499.99"),
]


def seed_courses(db: Session) -> int:
    """Insère le catalogue par défaut si la table courses est vide. Retourne le nombre inséré."""
    existing = db.execute(select(func.count()).select_from(Course)).scalar() or 0
    if existing:
        return 0

    db.add_all([
        Course(name=name, description=description, duration_weeks=weeks, price=Decimal(price))
        for name, description, weeks, price in DEFAULT_COURSES
    ])
    db.commit()
    logger.info("Catalogue initialisé : %d formations", len(DEFAULT_COURSES))
    return len(DEFAULT_COURSES)


def seed_default_admin(db: Session) -> bool:
    """Crée le super_admin par défaut si aucun administrateur n'existe. Retourne True si créé."""
    existing = db.execute(select(func.count()).select_from(Admin)).scalar() or 0
    if existing:
        return False

    db.add(Admin(
        first_name="System",
        last_name="Administrator",
        email=settings.DEFAULT_ADMIN_EMAIL.lower(),
        password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
        role="super_admin",
    ))
    db.commit()
    logger.warning(
        "Administrateur par défaut créé (%s) : changer son mot de passe avant la mise en production.",
        settings.DEFAULT_ADMIN_EMAIL,
    )
    return True


def init_database() -> None:
    """
    Crée les tables puis insère les données initiales.
    Une base injoignable est journalisée sans empêcher l'API de démarrer
    (GET /health signale alors la base comme déconnectée).
    """
    try:
        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            seed_courses(db)
            seed_default_admin(db)
        finally:
            db.close()
    except SQLAlchemyError as exc:
        logger.error("Initialisation de la base impossible : %s", exc)
        return
    logger.info("Base de données initialisée.")
