"""
Modèles SQLAlchemy pour le catalogue de formations et les inscriptions.
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text,
    UniqueConstraint, func,
)

from app.database import Base

ENROLLMENT_STATUSES = ("enrolled", "in_progress", "completed", "dropped")


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    duration_weeks = Column(Integer, nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Enrollment(Base):
    """Association étudiant ↔ formation avec progression."""
    __tablename__ = "student_courses"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="unique_student_course"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    enrollment_date = Column(DateTime, server_default=func.now())
    progress_percentage = Column(Integer, default=0, index=True)
    status = Column(String(20), default="enrolled")  # enrolled, in_progress, completed, dropped
    completed_at = Column(DateTime, nullable=True)
