"""
Router pour les étudiants.
Inscription publique (POST /api/register) avec photo de profil optionnelle
Connexion étudiant (POST /api/students/login) et profil (GET /api/students/me)
Réinitialisation de mot de passe (POST /api/students/password-reset/...)
Gestion administrateur : liste paginée, synthèse, exports CSV/PDF,
lecture / mise à jour / suppression, suivi des inscriptions aux formations
"""

import logging
from typing import List, Optional

from fastapi import (
    APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, Response, UploadFile,
)
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import (
    get_current_admin,
    get_current_student,
    get_file_store,
    get_request_origin,
)
from app.errors import DuplicateEmailError, format_validation_errors
from app.models.admin import Admin
from app.models.student import Student
from app.schemas.auth import LoginRequest, PasswordResetConfirm, PasswordResetRequest, StudentLoginResponse
from app.schemas.student import (
    EnrollmentResponse,
    EnrollmentUpdate,
    RegistrationResponse,
    StudentListResponse,
    StudentRegistration,
    StudentResponse,
    StudentSummaryResponse,
    StudentUpdate,
)
from app.services import auth_service, email_service, export_service, password_reset_service, student_service
from app.services.file_store import FileStore, PictureUpload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Étudiants"])

INVALID_CREDENTIALS = "Email ou mot de passe invalide."
STUDENT_NOT_FOUND = "Étudiant introuvable."


async def _read_picture(upload: Optional[UploadFile]) -> Optional[PictureUpload]:
    """Lit le fichier multipart en mémoire ; un champ fichier vide équivaut à aucune photo."""
    if upload is None or not upload.filename:
        return None
    content = await upload.read()
    return PictureUpload(content=content, filename=upload.filename, content_type=upload.content_type)


# ============================================================
# Inscription et connexion
# ============================================================

@router.post("/register", response_model=RegistrationResponse, status_code=201,
             summary="Inscription d'un étudiant")
async def register_student(
    first_name: str = Form(...),
    last_name: str = Form(...),
    email: str = Form(...),
    phone: str = Form(...),
    password: str = Form(...),
    age: Optional[int] = Form(None),
    education: Optional[str] = Form(None),
    experience: Optional[str] = Form(None),
    motivation: Optional[str] = Form(None),
    courses: List[str] = Form([]),
    profile_picture: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
):
    """
    Inscrit un étudiant depuis un formulaire multipart.

    - Champs obligatoires : `first_name`, `last_name`, `email`, `phone`, `password`
    - `courses` : champ répété, un nom de formation du catalogue par valeur
    - `profile_picture` : image JPEG, PNG, GIF ou WebP de 5 Mo maximum

    Erreurs : 400 (champ manquant, formation inconnue, fichier refusé), 409 (email déjà enregistré).
    """
    try:
        data = StudentRegistration(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            password=password,
            age=age,
            education=education,
            experience=experience,
            motivation=motivation,
            courses=courses,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=format_validation_errors(e.errors()))

    picture = await _read_picture(profile_picture)

    try:
        return await run_in_threadpool(student_service.register_student, db, store, data, picture)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/students/login", response_model=StudentLoginResponse, summary="Connexion étudiant")
def login_student(data: LoginRequest, db: Session = Depends(get_db)):
    """Échange email + mot de passe contre un jeton d'accès signé."""
    result = auth_service.login_student(db, data.email, data.password)
    if result is None:
        raise HTTPException(
            status_code=401, detail=INVALID_CREDENTIALS, headers={"WWW-Authenticate": "Bearer"}
        )
    return result


@router.get("/students/me", response_model=StudentResponse, summary="Profil de l'étudiant connecté")
def read_own_profile(student: Student = Depends(get_current_student)):
    return student


@router.post("/students/password-reset/request", status_code=202,
             summary="Demander la réinitialisation du mot de passe")
def request_password_reset(
    data: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Envoie un code de réinitialisation par email si le compte existe.
    La réponse est identique que l'email soit connu ou non.
    """
    created = password_reset_service.create_reset_token(db, data.email)
    if created is not None:
        student, reset = created
        background_tasks.add_task(
            email_service.deliver_password_reset,
            student.email,
            f"{student.first_name} {student.last_name}",
            reset.token,
        )
    return {"message": "Si un compte correspond à cet email, un code de réinitialisation a été envoyé."}


@router.post("/students/password-reset/confirm", summary="Définir un nouveau mot de passe")
def confirm_password_reset(data: PasswordResetConfirm, db: Session = Depends(get_db)):
    try:
        password_reset_service.confirm_reset(db, data.token, data.new_password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Mot de passe mis à jour."}


# ============================================================
# Gestion administrateur
# ============================================================

@router.get("/students", response_model=StudentListResponse, summary="Lister les étudiants")
def list_students(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=255),
    sort: str = Query("id"),
    order: str = Query("asc"),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    Liste paginée des étudiants.

    - `search` : sous-chaîne recherchée dans le prénom, le nom et l'email (insensible à la casse)
    - `sort` : id, first_name, last_name, email, age, created_at, last_login (défaut : id)
    - `order` : asc ou desc
    """
    return student_service.list_students(
        db, page=page, limit=limit, search=search, sort=sort, order=order, is_active=is_active
    )


@router.get("/students/summary", response_model=StudentSummaryResponse,
            summary="Synthèse des étudiants actifs")
def student_summary(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    """Nombre de formations suivies (hors abandons) et progression moyenne par étudiant actif."""
    return student_service.get_student_summary(db)


@router.get("/students/export/csv", summary="Exporter les étudiants en CSV")
def export_students_csv(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    """Exporte tous les étudiants en CSV (UTF-8 BOM, valeurs entre guillemets)."""
    content = export_service.export_students_csv(db)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=bucodel-students.csv"},
    )


@router.get("/students/export/pdf", summary="Exporter les étudiants en PDF")
def export_students_pdf(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    """Exporte les étudiants les plus récents en PDF (100 au maximum par défaut)."""
    content = export_service.export_students_pdf(db)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=bucodel-students.pdf"},
    )


@router.get("/students/{student_id}", response_model=StudentResponse, summary="Détail d'un étudiant")
def get_student(
    student_id: int,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    student = student_service.get_student(db, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail=STUDENT_NOT_FOUND)
    return student


@router.put("/students/{student_id}", response_model=StudentResponse, summary="Modifier un étudiant")
async def update_student(
    student_id: int,
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    age: Optional[int] = Form(None),
    education: Optional[str] = Form(None),
    experience: Optional[str] = Form(None),
    motivation: Optional[str] = Form(None),
    courses: Optional[List[str]] = Form(None),
    is_active: Optional[bool] = Form(None),
    profile_picture: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    admin: Admin = Depends(get_current_admin),
    origin: dict = Depends(get_request_origin),
):
    """
    Met à jour les champs fournis (formulaire multipart). Les champs absents ne sont pas modifiés.
    Une nouvelle photo remplace l'ancienne, supprimée seulement après l'enregistrement réussi.
    `is_active=false` désactive le compte sans le supprimer.
    """
    provided = {
        field: value
        for field, value in {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone": phone,
            "password": password,
            "age": age,
            "education": education,
            "experience": experience,
            "motivation": motivation,
            "courses": courses,
            "is_active": is_active,
        }.items()
        if value is not None
    }
    try:
        data = StudentUpdate(**provided)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=format_validation_errors(e.errors()))

    picture = await _read_picture(profile_picture)

    try:
        student = await run_in_threadpool(
            student_service.update_student,
            db, store, student_id, data, picture, admin.id, origin,
        )
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if student is None:
        raise HTTPException(status_code=404, detail=STUDENT_NOT_FOUND)
    return student


@router.delete("/students/{student_id}", status_code=204, summary="Supprimer un étudiant")
def delete_student(
    student_id: int,
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    admin: Admin = Depends(get_current_admin),
    origin: dict = Depends(get_request_origin),
):
    """
    Supprime définitivement un étudiant et ses inscriptions.
    La photo de profil est supprimée si possible ; un échec est journalisé sans bloquer la suppression.
    """
    if not student_service.delete_student(db, store, student_id, admin.id, origin):
        raise HTTPException(status_code=404, detail=STUDENT_NOT_FOUND)


@router.get("/students/{student_id}/enrollments", response_model=List[EnrollmentResponse],
            summary="Inscriptions d'un étudiant")
def list_enrollments(
    student_id: int,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    enrollments = student_service.get_enrollments(db, student_id)
    if enrollments is None:
        raise HTTPException(status_code=404, detail=STUDENT_NOT_FOUND)
    return enrollments


@router.put("/students/{student_id}/enrollments/{course_id}", response_model=EnrollmentResponse,
            summary="Mettre à jour la progression d'un étudiant")
def update_enrollment(
    student_id: int,
    course_id: int,
    data: EnrollmentUpdate,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """Statut (enrolled, in_progress, completed, dropped) et/ou progression entre 0 et 100."""
    enrollment = student_service.update_enrollment(db, student_id, course_id, data)
    if enrollment is None:
        raise HTTPException(status_code=404, detail="Inscription introuvable.")
    return enrollment
