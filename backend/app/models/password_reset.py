"""
Modèle SQLAlchemy pour les jetons de réinitialisation de mot de passe.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from app.database import Base


class PasswordReset(Base):
    __tablename__ = "password_resets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)
    token = Column(String(255), unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    used = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
