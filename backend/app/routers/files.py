"""
Router pour la maintenance des fichiers uploadés (administrateurs).
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_admin, get_file_store
from app.models.admin import Admin
from app.schemas.file import CleanupResult, FilesInfoResponse
from app.services.file_store import FileStore, cleanup_orphaned_files

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["Fichiers"])


@router.get("/info", response_model=FilesInfoResponse, summary="Inventaire des fichiers")
def files_info(
    store: FileStore = Depends(get_file_store),
    admin: Admin = Depends(get_current_admin),
):
    """Liste les fichiers du répertoire d'upload avec leur taille et leur URL publique."""
    return store.files_info()


@router.post("/cleanup", response_model=CleanupResult, summary="Nettoyer les fichiers orphelins")
def cleanup_files(
    db: Session = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    admin: Admin = Depends(get_current_admin),
):
    """Supprime les photos qui ne sont plus référencées par aucun étudiant."""
    removed = cleanup_orphaned_files(db, store)
    logger.info("Nettoyage manuel par l'administrateur %s : %d fichier(s)", admin.id, removed)
    return CleanupResult(message="Nettoyage des fichiers terminé.", orphaned_files_removed=removed)
