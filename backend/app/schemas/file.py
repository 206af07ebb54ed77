"""
Schémas Pydantic pour la gestion des fichiers uploadés.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel


class FileInfo(BaseModel):
    filename: str
    size: int
    created: datetime
    url: str


class FilesInfoResponse(BaseModel):
    total_files: int
    total_size: int
    files: List[FileInfo]


class CleanupResult(BaseModel):
    message: str
    orphaned_files_removed: int
