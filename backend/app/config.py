"""
Configuration centrale de l'application via variables d'environnement.
Charger depuis un fichier .env en développement.

Les paramètres de connexion à la base acceptent plusieurs noms de variables :
d'abord ceux injectés par la plateforme d'hébergement (PGHOST, PGUSER...),
puis les noms génériques (DB_HOST, DB_USER...), puis la valeur par défaut.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    # Base de données
    DATABASE_URL: Optional[str] = None  # prioritaire sur les champs ci-dessous si défini
    DB_HOST: str = Field("localhost", validation_alias=AliasChoices("PGHOST", "DB_HOST"))
    DB_USER: str = Field("postgres", validation_alias=AliasChoices("PGUSER", "DB_USER"))
    DB_PASSWORD: str = Field("", validation_alias=AliasChoices("PGPASSWORD", "DB_PASSWORD"))
    DB_NAME: str = Field("bucohub", validation_alias=AliasChoices("PGDATABASE", "DB_NAME"))
    DB_PORT: int = Field(5432, validation_alias=AliasChoices("PGPORT", "DB_PORT"))
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5
    DB_AUTO_INIT: bool = True  # création des tables + seed au démarrage

    # Serveur
    PORT: int = 3000

    # JWT
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Fichiers uploadés (photos de profil)
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE_MB: int = 5
    ORPHAN_CLEANUP_INTERVAL_HOURS: int = 24
    ORPHAN_GRACE_SECONDS: int = 3600  # âge minimal d'un fichier avant nettoyage
    SCHEDULER_ENABLED: bool = True

    # Exports
    PDF_EXPORT_LIMIT: int = 100

    # Compte administrateur créé au premier démarrage
    DEFAULT_ADMIN_EMAIL: str = "admin@bucohub.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    # Réinitialisation de mot de passe
    PASSWORD_RESET_EXPIRE_MINUTES: int = 30

    # SMTP (envoi des codes de réinitialisation)
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "no-reply@bucohub.com"
    SMTP_USE_TLS: bool = True

    # Environnement
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    @property
    def database_url(self):
        """URL SQLAlchemy : DATABASE_URL tel quel, sinon construite depuis les champs DB_*."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return URL.create(
            "postgresql+psycopg2",
            username=self.DB_USER,
            password=self.DB_PASSWORD or None,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        )

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024


settings = Settings()
