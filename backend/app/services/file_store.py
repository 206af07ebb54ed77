"""
Stockage local des photos de profil.

Les fichiers sont rangés à plat dans UPLOAD_DIR sous un nom généré :
profile-<nom-original-assaini>-<timestamp-ms>-<aléatoire>.<ext>
La référence stockée en base est l'URL publique /uploads/<nom>.

Les suppressions sont « best effort » : un échec est journalisé, jamais propagé.
"""

import logging
import random
import re
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.student import Student
from app.schemas.file import FileInfo, FilesInfoResponse

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
EXTENSIONS_BY_TYPE = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
URL_PREFIX = "/uploads/"
IGNORED_FILES = {".gitkeep"}


@dataclass
class PictureUpload:
    """Fichier reçu dans une requête multipart, déjà lu en mémoire."""
    content: bytes
    filename: Optional[str]
    content_type: Optional[str]


class FileStore:
    """Répertoire d'upload : validation, écriture, suppression et inventaire des fichiers."""

    def __init__(self, directory: str, max_size_bytes: int, orphan_grace_seconds: int = 0):
        self.directory = Path(directory)
        self.max_size_bytes = max_size_bytes
        self.orphan_grace_seconds = orphan_grace_seconds

    def ensure_directory(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info("Répertoire d'upload créé : %s", self.directory.resolve())

    def validate(self, content: bytes, content_type: Optional[str]) -> None:
        """Lève une ValueError si le fichier n'est pas une image acceptée ou dépasse la taille maximale."""
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValueError(
                "Type de fichier invalide. Formats acceptés : "
                + ", ".join(sorted(ALLOWED_CONTENT_TYPES))
            )
        if not content:
            raise ValueError("Le fichier est vide.")
        if len(content) > self.max_size_bytes:
            max_mb = self.max_size_bytes // (1024 * 1024)
            raise ValueError(f"Fichier trop volumineux. Taille maximale : {max_mb} Mo.")

    @staticmethod
    def generate_filename(original_name: Optional[str], content_type: Optional[str] = None) -> str:
        original = Path(original_name or "")
        ext = original.suffix.lower() or EXTENSIONS_BY_TYPE.get(content_type or "", "")
        safe_stem = re.sub(r"[^a-zA-Z0-9]", "-", original.stem) or "image"
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"profile-{safe_stem}-{unique_suffix}{ext}"

    def save(self, content: bytes, original_name: Optional[str], content_type: Optional[str]) -> str:
        """Valide puis écrit le fichier. Retourne l'URL publique à stocker en base."""
        self.validate(content, content_type)
        self.ensure_directory()
        filename = self.generate_filename(original_name, content_type)
        (self.directory / filename).write_bytes(content)
        logger.info("Fichier enregistré : %s (%d octets)", filename, len(content))
        return URL_PREFIX + filename

    def path_for(self, url: str) -> Path:
        # Seul le nom de fichier est conservé : pas de remontée hors du répertoire d'upload
        return self.directory / Path(url.replace(URL_PREFIX, "", 1)).name

    def delete(self, url: Optional[str]) -> bool:
        """Supprime le fichier référencé par l'URL. Retourne False en cas d'échec, sans lever."""
        if not url:
            return True
        path = self.path_for(url)
        try:
            path.unlink()
        except OSError as exc:
            logger.error("Erreur lors de la suppression du fichier %s : %s", path.name, exc)
            return False
        logger.info("Fichier supprimé : %s", path.name)
        return True

    def list_files(self) -> list[Path]:
        if not self.directory.exists():
            return []
        return sorted(
            p for p in self.directory.iterdir()
            if p.is_file() and p.name not in IGNORED_FILES
        )

    def files_info(self) -> FilesInfoResponse:
        files = []
        for path in self.list_files():
            stats = path.stat()
            files.append(FileInfo(
                filename=path.name,
                size=stats.st_size,
                created=datetime.fromtimestamp(stats.st_ctime),
                url=URL_PREFIX + path.name,
            ))
        return FilesInfoResponse(
            total_files=len(files),
            total_size=sum(f.size for f in files),
            files=files,
        )

    def remove_unreferenced(self, referenced: set[str]) -> int:
        """
        Supprime les fichiers dont le nom n'est pas dans `referenced`. Retourne le nombre supprimé.

        Un fichier plus récent que `orphan_grace_seconds` est conservé : il peut
        appartenir à une inscription ou une mise à jour pas encore validée en base.
        """
        removed = 0
        cutoff = time.time() - self.orphan_grace_seconds
        for path in self.list_files():
            if path.name in referenced:
                continue
            if self.orphan_grace_seconds and path.stat().st_mtime > cutoff:
                logger.debug("Fichier récent conservé : %s", path.name)
                continue
            if self.delete(URL_PREFIX + path.name):
                logger.info("Fichier orphelin nettoyé : %s", path.name)
                removed += 1
        return removed


def cleanup_orphaned_files(db: Session, store: FileStore) -> int:
    """Supprime les photos qui ne sont plus référencées par aucun étudiant."""
    urls = db.execute(
        select(Student.profile_picture_url).where(Student.profile_picture_url.is_not(None))
    ).scalars().all()
    referenced = {Path(url.replace(URL_PREFIX, "", 1)).name for url in urls}
    return store.remove_unreferenced(referenced)
