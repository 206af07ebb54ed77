"""
Service de réinitialisation de mot de passe des étudiants.

La demande ne révèle jamais si l'email existe : le router répond toujours 202.
Le jeton est à usage unique et expire après PASSWORD_RESET_EXPIRE_MINUTES.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.password_reset import PasswordReset
from app.models.student import Student
from app.security import hash_password

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Lien de réinitialisation invalide ou expiré."


def _find_active_student(db: Session, email: str) -> Optional[Student]:
    return db.execute(
        select(Student).where(
            func.lower(Student.email) == email.lower(),
            Student.is_active.is_(True),
        )
    ).scalar_one_or_none()


def create_reset_token(db: Session, email: str) -> Optional[tuple[Student, PasswordReset]]:
    """
    Crée un jeton de réinitialisation pour un étudiant actif.
    Retourne None (sans erreur) si aucun étudiant actif ne correspond.
    """
    student = _find_active_student(db, email)
    if student is None:
        logger.info("Demande de réinitialisation pour un email inconnu : %s", email)
        return None

    reset = PasswordReset(
        email=student.email,
        token=secrets.token_urlsafe(32),
        expires_at=datetime.now() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
    )
    db.add(reset)
    db.commit()
    db.refresh(reset)

    logger.info("Jeton de réinitialisation créé pour %s", student.email)
    return student, reset


def confirm_reset(db: Session, token: str, new_password: str) -> None:
    """
    Applique le nouveau mot de passe et consomme le jeton.
    Lève une ValueError si le jeton est inconnu, déjà utilisé ou expiré.
    """
    reset = db.execute(
        select(PasswordReset).where(
            PasswordReset.token == token,
            PasswordReset.used.is_(False),
        )
    ).scalar_one_or_none()

    if reset is None or reset.expires_at < datetime.now():
        raise ValueError(INVALID_TOKEN_MESSAGE)

    student = _find_active_student(db, reset.email)
    if student is None:
        raise ValueError(INVALID_TOKEN_MESSAGE)

    student.password_hash = hash_password(new_password)
    reset.used = True
    db.commit()

    logger.info("Mot de passe réinitialisé pour %s", student.email)
