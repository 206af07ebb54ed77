"""
Planificateur APScheduler pour le nettoyage périodique des photos orphelines.

Le job s'exécute toutes les ORPHAN_CLEANUP_INTERVAL_HOURS heures et supprime
les fichiers du répertoire d'upload qu'aucun étudiant ne référence plus.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _cleanup_orphaned_files_scheduled() -> None:
    """
    Tâche planifiée : compare le répertoire d'upload aux références en base.
    Import local pour éviter les imports circulaires.
    """
    from app.dependencies import get_file_store
    from app.services.file_store import cleanup_orphaned_files

    db = SessionLocal()
    try:
        removed = cleanup_orphaned_files(db, get_file_store())
        logger.info("Nettoyage automatique : %d fichier(s) orphelin(s) supprimé(s)", removed)
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Erreur lors du nettoyage automatique des fichiers : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    scheduler.add_job(
        _cleanup_orphaned_files_scheduled,
        trigger="interval",
        hours=settings.ORPHAN_CLEANUP_INTERVAL_HOURS,
        id="orphan_files_cleanup",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré : nettoyage des fichiers orphelins toutes les %d h.",
        settings.ORPHAN_CLEANUP_INTERVAL_HOURS,
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
