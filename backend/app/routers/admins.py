"""
Router pour les administrateurs.
Connexion (POST /api/admins/login), création réservée aux super_admin
(POST /api/admins/register) et profil courant (GET /api/admins/me).
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_admin, require_roles
from app.errors import DuplicateEmailError
from app.models.admin import Admin
from app.schemas.auth import AdminCreate, AdminLoginResponse, AdminResponse, LoginRequest
from app.services import auth_service

router = APIRouter(prefix="/api/admins", tags=["Administrateurs"])


@router.post("/login", response_model=AdminLoginResponse, summary="Connexion administrateur")
def login_admin(data: LoginRequest, db: Session = Depends(get_db)):
    """Échange email + mot de passe contre un jeton d'accès signé portant le rôle."""
    result = auth_service.login_admin(db, data.email, data.password)
    if result is None:
        raise HTTPException(
            status_code=401,
            detail="Email ou mot de passe invalide.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return result


@router.post("/register", response_model=AdminResponse, status_code=201,
             summary="Créer un administrateur")
def register_admin(
    data: AdminCreate,
    db: Session = Depends(get_db),
    current: Admin = Depends(require_roles("super_admin")),
):
    """Crée un compte administrateur (super_admin uniquement). 409 si l'email existe déjà."""
    try:
        return auth_service.register_admin(db, data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/me", response_model=AdminResponse, summary="Profil de l'administrateur connecté")
def read_own_profile(admin: Admin = Depends(get_current_admin)):
    return admin
