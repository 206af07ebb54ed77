"""
Service métier pour les étudiants : inscription, liste paginée, mise à jour,
suppression, synthèse et suivi des inscriptions aux formations.

Toute photo écrite sur disque pendant une opération qui échoue ensuite est
supprimée avant de propager l'erreur (pas de fichier orphelin).
"""

import logging
import math
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import DuplicateEmailError
from app.models.course import Course, Enrollment
from app.models.student import Student
from app.schemas.student import (
    EnrollmentResponse,
    EnrollmentUpdate,
    RegistrationData,
    RegistrationResponse,
    StudentListResponse,
    StudentRegistration,
    StudentResponse,
    StudentSummary,
    StudentSummaryResponse,
    StudentUpdate,
)
from app.security import hash_password
from app.services import audit_service, course_service
from app.services.file_store import FileStore, PictureUpload

logger = logging.getLogger(__name__)

# Champs autorisés pour le tri de la liste ; toute autre valeur retombe sur id
SORTABLE_FIELDS = {
    "id": Student.id,
    "first_name": Student.first_name,
    "last_name": Student.last_name,
    "email": Student.email,
    "age": Student.age,
    "created_at": Student.created_at,
    "last_login": Student.last_login,
}

AUDITED_FIELDS = (
    "first_name", "last_name", "email", "phone", "age", "education",
    "experience", "motivation", "courses", "profile_picture_url", "is_active",
)

DUPLICATE_EMAIL_MESSAGE = "Cet email est déjà enregistré."

# Contrainte unique sur registrations.email : nom PostgreSQL, puis message SQLite
EMAIL_CONSTRAINT_MARKERS = ("registrations_email_key", "registrations.email")


def is_email_conflict(exc: IntegrityError) -> bool:
    """Vrai si la violation d'intégrité porte sur l'unicité de l'email étudiant."""
    message = str(exc.orig)
    return any(marker in message for marker in EMAIL_CONSTRAINT_MARKERS)


def email_exists(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    """Vérifie si un étudiant utilise déjà cet email (insensible à la casse)."""
    stmt = select(Student.id).where(func.lower(Student.email) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(Student.id != exclude_id)
    return db.execute(stmt).scalar() is not None


def register_student(
    db: Session,
    store: FileStore,
    data: StudentRegistration,
    picture: Optional[PictureUpload] = None,
) -> RegistrationResponse:
    """
    Inscrit un étudiant et crée une inscription par formation choisie.

    Étapes :
    1. Refuser un email déjà enregistré (DuplicateEmailError)
    2. Vérifier les formations contre le catalogue actif (ValueError)
    3. Valider puis écrire la photo éventuelle (ValueError)
    4. Insérer l'étudiant et ses inscriptions, commit

    La vérification d'email précède l'insertion sans verrou : deux requêtes
    simultanées peuvent passer l'étape 1, la contrainte unique tranche alors (→ 409).
    """
    email = data.email.lower()
    if email_exists(db, email):
        raise DuplicateEmailError(DUPLICATE_EMAIL_MESSAGE)

    courses = course_service.resolve_courses(db, data.courses)

    picture_url = None
    if picture is not None:
        picture_url = store.save(picture.content, picture.filename, picture.content_type)

    try:
        student = Student(
            first_name=data.first_name,
            last_name=data.last_name,
            email=email,
            phone=data.phone,
            password_hash=hash_password(data.password),
            age=data.age,
            education=data.education,
            experience=data.experience,
            motivation=data.motivation,
            courses=[c.name for c in courses],
            profile_picture_url=picture_url,
        )
        db.add(student)
        db.flush()  # obtenir l'ID avant d'insérer les inscriptions

        if courses:
            db.bulk_insert_mappings(Enrollment, [
                {"student_id": student.id, "course_id": c.id}
                for c in courses
            ])

        db.commit()
    except IntegrityError as exc:
        db.rollback()
        store.delete(picture_url)
        if is_email_conflict(exc):
            raise DuplicateEmailError(DUPLICATE_EMAIL_MESSAGE)
        raise
    except Exception:
        db.rollback()
        store.delete(picture_url)
        raise

    db.refresh(student)
    logger.info(
        "Inscription réussie : étudiant %s (%s), %d formation(s), photo : %s",
        student.id, email, len(courses), picture_url or "aucune",
    )

    return RegistrationResponse(
        message="Inscription réussie.",
        student_id=student.id,
        data=RegistrationData(
            first_name=student.first_name,
            last_name=student.last_name,
            email=student.email,
            phone=student.phone,
            courses=list(student.courses or []),
            profile_picture_url=student.profile_picture_url,
        ),
    )


def list_students(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    sort: str = "id",
    order: str = "asc",
    is_active: Optional[bool] = None,
) -> StudentListResponse:
    """
    Page d'étudiants filtrée par recherche (prénom, nom, email) et triée.

    Deux requêtes distinctes (comptage puis page) sans transaction explicite :
    sous écritures concurrentes, total et lignes peuvent refléter deux états différents.
    """
    filters = []
    if search:
        filters.append(or_(
            Student.first_name.icontains(search, autoescape=True),
            Student.last_name.icontains(search, autoescape=True),
            Student.email.icontains(search, autoescape=True),
        ))
    if is_active is not None:
        filters.append(Student.is_active.is_(is_active))

    count_stmt = select(func.count()).select_from(Student)
    page_stmt = select(Student)
    if filters:
        count_stmt = count_stmt.where(*filters)
        page_stmt = page_stmt.where(*filters)

    total = db.execute(count_stmt).scalar() or 0

    sort_column = SORTABLE_FIELDS.get(sort, Student.id)
    ordering = sort_column.desc() if order.lower() == "desc" else sort_column.asc()

    students = db.execute(
        page_stmt.order_by(ordering).limit(limit).offset((page - 1) * limit)
    ).scalars().all()

    logger.debug(
        "Liste étudiants : page=%d limit=%d search=%r sort=%s %s → %d/%d",
        page, limit, search, sort, order, len(students), total,
    )

    return StudentListResponse(
        students=[StudentResponse.model_validate(s) for s in students],
        total=total,
        total_pages=math.ceil(total / limit),
        current_page=page,
        limit=limit,
    )


def get_student(db: Session, student_id: int) -> Optional[Student]:
    """Retourne un étudiant par son ID, ou None s'il n'existe pas."""
    return db.get(Student, student_id)


def _snapshot(student: Student, fields=AUDITED_FIELDS) -> dict[str, Any]:
    return {field: getattr(student, field) for field in fields}


def _sync_enrollments(db: Session, student: Student, courses: list[Course]) -> None:
    """
    Aligne student_courses sur la nouvelle liste de formations.
    Les inscriptions conservées gardent leur progression ; les autres sont supprimées.
    """
    wanted_ids = [c.id for c in courses]

    db.execute(
        delete(Enrollment).where(
            Enrollment.student_id == student.id,
            Enrollment.course_id.not_in(wanted_ids),
        )
    )

    existing_ids = set(db.execute(
        select(Enrollment.course_id).where(Enrollment.student_id == student.id)
    ).scalars().all())

    to_insert = [
        {"student_id": student.id, "course_id": course_id}
        for course_id in wanted_ids
        if course_id not in existing_ids
    ]
    if to_insert:
        db.bulk_insert_mappings(Enrollment, to_insert)


def update_student(
    db: Session,
    store: FileStore,
    student_id: int,
    data: StudentUpdate,
    picture: Optional[PictureUpload] = None,
    admin_id: Optional[int] = None,
    origin: Optional[dict[str, Optional[str]]] = None,
) -> Optional[Student]:
    """
    Met à jour les champs fournis d'un étudiant. Les champs absents ne sont pas modifiés.

    - email : unicité revérifiée (DuplicateEmailError)
    - password : re-haché
    - courses : liste remplacée et inscriptions resynchronisées
    - photo : la nouvelle est validée et écrite avant le commit ; l'ancienne
      n'est supprimée qu'après un commit réussi

    Retourne None si l'étudiant n'existe pas.
    """
    student = db.get(Student, student_id)
    if student is None:
        return None

    update_data = data.model_dump(exclude_unset=True)

    if "email" in update_data:
        update_data["email"] = update_data["email"].lower()
        if update_data["email"] != student.email and email_exists(db, update_data["email"], exclude_id=student_id):
            raise DuplicateEmailError(DUPLICATE_EMAIL_MESSAGE)

    courses = None
    if "courses" in update_data:
        courses = course_service.resolve_courses(db, update_data["courses"])
        update_data["courses"] = [c.name for c in courses]

    new_picture_url = None
    if picture is not None:
        new_picture_url = store.save(picture.content, picture.filename, picture.content_type)

    old_picture_url = student.profile_picture_url
    changed_fields = [f for f in update_data if f != "password"]
    if new_picture_url:
        changed_fields.append("profile_picture_url")
    old_values = _snapshot(student, changed_fields)

    try:
        password = update_data.pop("password", None)
        if password:
            student.password_hash = hash_password(password)

        for field, value in update_data.items():
            setattr(student, field, value)

        if new_picture_url:
            student.profile_picture_url = new_picture_url

        if courses is not None:
            _sync_enrollments(db, student, courses)

        new_values = _snapshot(student, changed_fields)
        if password:
            new_values["password"] = "changed"

        audit_service.record_action(
            db,
            admin_id=admin_id,
            action="STUDENT_UPDATE",
            table_name=Student.__tablename__,
            record_id=student_id,
            old_values=old_values,
            new_values=new_values,
            **(origin or {}),
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        store.delete(new_picture_url)
        if is_email_conflict(exc):
            raise DuplicateEmailError(DUPLICATE_EMAIL_MESSAGE)
        raise
    except Exception:
        db.rollback()
        store.delete(new_picture_url)
        raise

    if new_picture_url and old_picture_url:
        store.delete(old_picture_url)

    db.refresh(student)
    logger.info("Étudiant %s mis à jour : %s", student_id, ", ".join(changed_fields) or "aucun champ")
    return student


def delete_student(
    db: Session,
    store: FileStore,
    student_id: int,
    admin_id: Optional[int] = None,
    origin: Optional[dict[str, Optional[str]]] = None,
) -> bool:
    """
    Supprime définitivement un étudiant (ses inscriptions suivent en cascade),
    puis tente de supprimer sa photo. L'échec de suppression du fichier est
    journalisé et ne remet pas en cause la suppression en base.
    Retourne False si l'étudiant n'existe pas.
    """
    student = db.get(Student, student_id)
    if student is None:
        return False

    picture_url = student.profile_picture_url

    audit_service.record_action(
        db,
        admin_id=admin_id,
        action="STUDENT_DELETE",
        table_name=Student.__tablename__,
        record_id=student_id,
        old_values=_snapshot(student),
        **(origin or {}),
    )
    db.delete(student)
    db.commit()

    if picture_url and not store.delete(picture_url):
        logger.warning("Étudiant %s supprimé, photo %s non supprimée", student_id, picture_url)

    logger.info("Étudiant %s supprimé", student_id)
    return True


def get_student_summary(db: Session) -> StudentSummaryResponse:
    """Étudiants actifs avec nombre de formations suivies (hors abandons) et progression moyenne."""
    rows = db.execute(
        select(
            Student.id,
            Student.first_name,
            Student.last_name,
            Student.email,
            Student.phone,
            Student.age,
            Student.education,
            func.count(Enrollment.id),
            func.avg(Enrollment.progress_percentage),
            Student.created_at,
        )
        .outerjoin(
            Enrollment,
            and_(Enrollment.student_id == Student.id, Enrollment.status != "dropped"),
        )
        .where(Student.is_active.is_(True))
        .group_by(Student.id)
        .order_by(Student.created_at.desc())
    ).all()

    students = [
        StudentSummary(
            id=row[0],
            full_name=f"{row[1]} {row[2]}",
            email=row[3],
            phone=row[4],
            age=row[5],
            education=row[6],
            enrolled_courses=row[7],
            avg_progress=float(row[8]) if row[8] is not None else None,
            created_at=row[9],
        )
        for row in rows
    ]
    return StudentSummaryResponse(students=students, total=len(students))


def _enrollment_response(enrollment: Enrollment, course_name: str) -> EnrollmentResponse:
    return EnrollmentResponse(
        id=enrollment.id,
        student_id=enrollment.student_id,
        course_id=enrollment.course_id,
        course_name=course_name,
        enrollment_date=enrollment.enrollment_date,
        progress_percentage=enrollment.progress_percentage or 0,
        status=enrollment.status,
        completed_at=enrollment.completed_at,
    )


def get_enrollments(db: Session, student_id: int) -> Optional[list[EnrollmentResponse]]:
    """Inscriptions d'un étudiant avec le nom de la formation. None si l'étudiant n'existe pas."""
    if db.get(Student, student_id) is None:
        return None

    rows = db.execute(
        select(Enrollment, Course.name)
        .join(Course, Course.id == Enrollment.course_id)
        .where(Enrollment.student_id == student_id)
        .order_by(Enrollment.enrollment_date, Enrollment.id)
    ).all()
    return [_enrollment_response(enrollment, name) for enrollment, name in rows]


def update_enrollment(
    db: Session, student_id: int, course_id: int, data: EnrollmentUpdate
) -> Optional[EnrollmentResponse]:
    """
    Met à jour le statut et/ou la progression d'une inscription.
    - status=completed : progression à 100 % (sauf valeur fournie) et date de fin renseignée
    - autre statut : date de fin effacée
    - progression > 0 sur une inscription « enrolled » sans statut fourni : passage à in_progress
    Retourne None si l'inscription n'existe pas.
    """
    row = db.execute(
        select(Enrollment, Course.name)
        .join(Course, Course.id == Enrollment.course_id)
        .where(Enrollment.student_id == student_id, Enrollment.course_id == course_id)
    ).first()
    if row is None:
        return None
    enrollment, course_name = row

    if data.progress_percentage is not None:
        enrollment.progress_percentage = data.progress_percentage

    if data.status is not None:
        enrollment.status = data.status
        if data.status == "completed":
            if data.progress_percentage is None:
                enrollment.progress_percentage = 100
            enrollment.completed_at = datetime.now()
        else:
            enrollment.completed_at = None
    elif data.progress_percentage and enrollment.status == "enrolled":
        enrollment.status = "in_progress"

    db.commit()
    db.refresh(enrollment)
    return _enrollment_response(enrollment, course_name)
