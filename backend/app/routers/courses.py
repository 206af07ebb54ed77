"""
Router pour le catalogue de formations.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_admin
from app.models.admin import Admin
from app.schemas.course import CourseListResponse, CourseStatsResponse
from app.services import course_service

router = APIRouter(prefix="/api/courses", tags=["Formations"])


@router.get("", response_model=CourseListResponse, summary="Lister les formations actives")
def list_courses(db: Session = Depends(get_db)):
    """Retourne le catalogue des formations actives, trié par nom."""
    return course_service.get_active_courses(db)


@router.get("/stats", response_model=CourseStatsResponse, summary="Statistiques d'inscription")
def course_stats(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    """Inscriptions, progression moyenne et formations terminées, par formation active."""
    return course_service.get_course_stats(db)
