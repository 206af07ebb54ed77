"""
Modèle SQLAlchemy pour les administrateurs de la plateforme.
Le rôle est une simple étiquette ; seule la création d'administrateurs exige super_admin.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from app.database import Base

ADMIN_ROLES = ("super_admin", "admin", "moderator")


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="admin")  # super_admin, admin, moderator
    is_active = Column(Boolean, default=True, index=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
