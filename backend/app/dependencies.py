"""
Dépendances FastAPI partagées : authentification par jeton Bearer,
contrôle des rôles, stockage des fichiers et origine de la requête (audit).
"""

import logging
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.admin import ADMIN_ROLES, Admin
from app.models.student import Student
from app.security import STUDENT_ROLE, decode_access_token
from app.services.file_store import FileStore

logger = logging.getLogger(__name__)

# auto_error=False : un en-tête absent donne un 401 explicite plutôt que le 403 par défaut
bearer_scheme = HTTPBearer(auto_error=False, description="Jeton JWT obtenu via /login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode_credentials(credentials: Optional[HTTPAuthorizationCredentials]) -> dict[str, Any]:
    """Valide le jeton (signature, expiration, type) et retourne ses claims."""
    if credentials is None:
        raise _unauthorized("Authentification requise.")
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as exc:
        logger.info("Jeton refusé : %s", exc)
        raise _unauthorized("Jeton invalide ou expiré.")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise _unauthorized("Jeton invalide ou expiré.")
    return payload


def _principal_id(payload: dict[str, Any]) -> int:
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        raise _unauthorized("Jeton invalide ou expiré.")


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Admin:
    """Administrateur actif correspondant au jeton, sinon 401 / 403."""
    payload = _decode_credentials(credentials)
    if payload.get("role") not in ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="Accès réservé aux administrateurs.")

    admin = db.get(Admin, _principal_id(payload))
    if admin is None or not admin.is_active:
        raise _unauthorized("Compte administrateur introuvable ou désactivé.")
    return admin


def require_roles(*roles: str):
    """Dépendance qui restreint une route aux administrateurs ayant l'un des rôles donnés."""

    def checker(admin: Admin = Depends(get_current_admin)) -> Admin:
        if admin.role not in roles:
            raise HTTPException(status_code=403, detail="Droits insuffisants pour cette action.")
        return admin

    return checker


def get_current_student(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Student:
    """Étudiant actif correspondant au jeton, sinon 401 / 403."""
    payload = _decode_credentials(credentials)
    if payload.get("role") != STUDENT_ROLE:
        raise HTTPException(status_code=403, detail="Accès réservé aux étudiants.")

    student = db.get(Student, _principal_id(payload))
    if student is None or not student.is_active:
        raise _unauthorized("Compte étudiant introuvable ou désactivé.")
    return student


def get_file_store() -> FileStore:
    return FileStore(
        settings.UPLOAD_DIR,
        settings.max_upload_size_bytes,
        orphan_grace_seconds=settings.ORPHAN_GRACE_SECONDS,
    )


def get_request_origin(request: Request) -> dict[str, Optional[str]]:
    """Adresse IP et user-agent du client, enregistrés dans le journal d'audit."""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }
