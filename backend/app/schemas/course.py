"""
Schémas Pydantic pour le catalogue de formations.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class CourseResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    duration_weeks: Optional[int]
    price: Optional[Decimal]
    is_active: bool

    model_config = {"from_attributes": True}


class CourseListResponse(BaseModel):
    courses: List[CourseResponse]
    total: int


class CourseStats(BaseModel):
    """Statistiques d'inscription pour une formation active."""
    id: int
    name: str
    duration_weeks: Optional[int]
    total_enrollments: int
    avg_progress: Optional[float]
    completed_count: int


class CourseStatsResponse(BaseModel):
    course_stats: List[CourseStats]
