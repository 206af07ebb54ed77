"""
Service métier pour le catalogue de formations.
"""

import logging

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from app.models.course import Course, Enrollment
from app.schemas.course import CourseListResponse, CourseResponse, CourseStats, CourseStatsResponse

logger = logging.getLogger(__name__)


def get_active_courses(db: Session) -> CourseListResponse:
    """Retourne les formations actives triées par nom."""
    courses = db.execute(
        select(Course).where(Course.is_active.is_(True)).order_by(Course.name)
    ).scalars().all()
    return CourseListResponse(
        courses=[CourseResponse.model_validate(c) for c in courses],
        total=len(courses),
    )


def resolve_courses(db: Session, names: list[str]) -> list[Course]:
    """
    Fait correspondre une liste de noms de formations au catalogue actif.
    Lève une ValueError si un nom est inconnu. L'ordre de `names` est conservé.
    """
    if not names:
        return []

    found = db.execute(
        select(Course).where(Course.name.in_(names), Course.is_active.is_(True))
    ).scalars().all()
    by_name = {c.name: c for c in found}

    unknown = [n for n in names if n not in by_name]
    if unknown:
        raise ValueError(f"Formation inconnue : {', '.join(unknown)}")

    return [by_name[n] for n in names]


def get_course_stats(db: Session) -> CourseStatsResponse:
    """Inscriptions, progression moyenne et nombre de formations terminées, par formation active."""
    rows = db.execute(
        select(
            Course.id,
            Course.name,
            Course.duration_weeks,
            func.count(Enrollment.id),
            func.avg(Enrollment.progress_percentage),
            func.coalesce(func.sum(case((Enrollment.status == "completed", 1), else_=0)), 0),
        )
        .outerjoin(Enrollment, Enrollment.course_id == Course.id)
        .where(Course.is_active.is_(True))
        .group_by(Course.id)
        .order_by(Course.name)
    ).all()

    return CourseStatsResponse(course_stats=[
        CourseStats(
            id=row[0],
            name=row[1],
            duration_weeks=row[2],
            total_enrollments=row[3],
            avg_progress=float(row[4]) if row[4] is not None else None,
            completed_count=int(row[5]),
        )
        for row in rows
    ])
