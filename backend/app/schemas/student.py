"""
Schémas Pydantic pour les étudiants (inscription, liste paginée, mise à jour, inscriptions aux formations).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.course import ENROLLMENT_STATUSES


def _clean_courses(v: Optional[List[str]]) -> Optional[List[str]]:
    """Supprime les entrées vides et les doublons en conservant l'ordre."""
    if v is None:
        return v
    cleaned: list[str] = []
    for name in v:
        name = name.strip()
        if name and name not in cleaned:
            cleaned.append(name)
    return cleaned


class StudentRegistration(BaseModel):
    """Champs du formulaire d'inscription (POST /api/register)."""
    first_name: str
    last_name: str
    email: EmailStr
    phone: str
    password: str = Field(min_length=6)
    age: Optional[int] = Field(None, ge=1, le=120)
    education: Optional[str] = None
    experience: Optional[str] = None
    motivation: Optional[str] = None
    courses: List[str] = []

    @field_validator("first_name", "last_name", "phone")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()

    @field_validator("courses")
    @classmethod
    def clean_courses(cls, v: List[str]) -> List[str]:
        return _clean_courses(v)


class StudentUpdate(BaseModel):
    """Mise à jour partielle (PUT /api/students/{id}). Les champs absents ne sont pas modifiés."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6)
    age: Optional[int] = Field(None, ge=1, le=120)
    education: Optional[str] = None
    experience: Optional[str] = None
    motivation: Optional[str] = None
    courses: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator("first_name", "last_name", "phone")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v

    @field_validator("courses")
    @classmethod
    def clean_courses(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_courses(v)


class StudentResponse(BaseModel):
    """Étudiant tel que renvoyé par l'API (sans le hash du mot de passe)."""
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    age: Optional[int]
    education: Optional[str]
    experience: Optional[str]
    motivation: Optional[str]
    courses: List[str]
    profile_picture_url: Optional[str]
    is_active: bool
    last_login: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class RegistrationData(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    courses: List[str]
    profile_picture_url: Optional[str]


class RegistrationResponse(BaseModel):
    """Réponse après une inscription réussie."""
    message: str
    student_id: int
    data: RegistrationData


class StudentListResponse(BaseModel):
    """Page de résultats de GET /api/students."""
    model_config = ConfigDict(populate_by_name=True)

    students: List[StudentResponse]
    total: int
    total_pages: int = Field(alias="totalPages")
    current_page: int = Field(alias="currentPage")
    limit: int


class StudentSummary(BaseModel):
    """Ligne de synthèse : étudiant actif et progression moyenne sur ses formations."""
    id: int
    full_name: str
    email: str
    phone: Optional[str]
    age: Optional[int]
    education: Optional[str]
    enrolled_courses: int
    avg_progress: Optional[float]
    created_at: Optional[datetime]


class StudentSummaryResponse(BaseModel):
    students: List[StudentSummary]
    total: int


class EnrollmentResponse(BaseModel):
    id: int
    student_id: int
    course_id: int
    course_name: str
    enrollment_date: Optional[datetime]
    progress_percentage: int
    status: str
    completed_at: Optional[datetime]


class EnrollmentUpdate(BaseModel):
    """Mise à jour de la progression d'un étudiant sur une formation."""
    status: Optional[str] = None
    progress_percentage: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ENROLLMENT_STATUSES:
            raise ValueError(f"Statut invalide. Valeurs acceptées : {', '.join(ENROLLMENT_STATUSES)}")
        return v
