"""
Modèle SQLAlchemy pour la table registrations (étudiants inscrits).
La colonne courses conserve la liste des noms de formations choisies (JSON) ;
la relation normalisée est portée par student_courses (voir course.py).
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, func

from app.database import Base


class Student(Base):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(20), nullable=True, index=True)
    password_hash = Column(String(255), nullable=False)
    age = Column(Integer, nullable=True)
    education = Column(String(255), nullable=True)
    experience = Column(Text, nullable=True)
    motivation = Column(Text, nullable=True)
    courses = Column(JSON, nullable=False, default=list)
    profile_picture_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, index=True)
    email_verified = Column(Boolean, default=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
