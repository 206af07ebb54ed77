"""
Service d'authentification des étudiants et administrateurs.

Un email inconnu et un mauvais mot de passe produisent le même résultat (None)
et un coût de vérification équivalent, pour ne pas révéler les comptes existants.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import DuplicateEmailError
from app.models.admin import Admin
from app.models.student import Student
from app.schemas.auth import (
    AdminCreate,
    AdminLoginResponse,
    AdminResponse,
    StudentLoginResponse,
)
from app.schemas.student import StudentResponse
from app.security import STUDENT_ROLE, create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def _authenticate(
    db: Session, model: type[Union[Admin, Student]], email: str, password: str
) -> Optional[Union[Admin, Student]]:
    """Cherche un compte actif par email, vérifie le mot de passe et met à jour last_login."""
    principal = db.execute(
        select(model).where(
            func.lower(model.email) == email.lower(),
            model.is_active.is_(True),
        )
    ).scalar_one_or_none()

    if not verify_password(password, principal.password_hash if principal else None):
        logger.info("Échec de connexion (%s) pour %s", model.__tablename__, email)
        return None

    principal.last_login = datetime.now()
    db.commit()
    db.refresh(principal)
    return principal


def login_student(db: Session, email: str, password: str) -> Optional[StudentLoginResponse]:
    """Retourne le jeton et le profil de l'étudiant, ou None si les identifiants sont invalides."""
    student = _authenticate(db, Student, email, password)
    if student is None:
        return None

    logger.info("Connexion étudiant réussie : %s", student.email)
    return StudentLoginResponse(
        access_token=create_access_token(student.id, STUDENT_ROLE),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        student=StudentResponse.model_validate(student),
    )


def login_admin(db: Session, email: str, password: str) -> Optional[AdminLoginResponse]:
    """Retourne le jeton et le profil de l'administrateur, ou None si les identifiants sont invalides."""
    admin = _authenticate(db, Admin, email, password)
    if admin is None:
        return None

    logger.info("Connexion administrateur réussie : %s (%s)", admin.email, admin.role)
    return AdminLoginResponse(
        access_token=create_access_token(admin.id, admin.role),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        admin=AdminResponse.model_validate(admin),
    )


def register_admin(db: Session, data: AdminCreate) -> Admin:
    """
    Crée un administrateur.
    Lève une DuplicateEmailError si l'email est déjà utilisé par un administrateur.
    """
    email = data.email.lower()
    existing = db.execute(
        select(Admin.id).where(func.lower(Admin.email) == email)
    ).scalar()
    if existing is not None:
        raise DuplicateEmailError("Cet email est déjà enregistré.")

    admin = Admin(
        first_name=data.first_name,
        last_name=data.last_name,
        email=email,
        password_hash=hash_password(data.password),
        role=data.role,
    )
    db.add(admin)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmailError("Cet email est déjà enregistré.")
    db.refresh(admin)

    logger.info("Administrateur créé : %s (%s)", admin.email, admin.role)
    return admin
