"""
Schémas Pydantic pour l'authentification (étudiants et administrateurs)
et la réinitialisation de mot de passe.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.admin import ADMIN_ROLES
from app.schemas.student import StudentResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AdminCreate(BaseModel):
    """Création d'un administrateur (POST /api/admins/register, super_admin uniquement)."""
    first_name: str
    last_name: str
    email: EmailStr
    password: str = Field(min_length=8)
    role: str = "admin"

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()

    @field_validator("role")
    @classmethod
    def valid_role(cls, v: str) -> str:
        if v not in ADMIN_ROLES:
            raise ValueError(f"Rôle invalide. Valeurs acceptées : {', '.join(ADMIN_ROLES)}")
        return v


class AdminResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: str
    is_active: bool
    last_login: Optional[datetime]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    message: str = "Connexion réussie."
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # secondes


class StudentLoginResponse(TokenResponse):
    student: StudentResponse


class AdminLoginResponse(TokenResponse):
    admin: AdminResponse


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=6)
