"""
Point d'entrée principal de l'API BUCODel (inscriptions aux formations).
Démarrage : uvicorn app.main:app --reload  (ou : bucohub-api, port lu dans PORT)
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import app.models  # noqa: F401  enregistre tous les modèles dans Base.metadata avant les routers
from app.config import settings
from app.database import get_db, is_database_reachable
from app.dependencies import get_file_store
from app.errors import format_validation_errors
from app.routers import admins, courses, files, students
from app.scheduler import start_scheduler, stop_scheduler
from app.seed import init_database

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie : répertoire d'upload, initialisation de la base, scheduler de nettoyage."""
    get_file_store().ensure_directory()
    if settings.DB_AUTO_INIT:
        init_database()
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    logger.info("API démarrée (%s), uploads : %s", settings.ENV, settings.UPLOAD_DIR)
    yield
    stop_scheduler()


app = FastAPI(
    title="BUCODel API",
    description="API d'inscription aux formations : étudiants, administrateurs, catalogue, exports",
    version=API_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(students.router)
app.include_router(admins.router)
app.include_router(courses.router)
app.include_router(files.router)

# Photos de profil ; le répertoire est créé au démarrage s'il n'existe pas
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Champs manquants ou invalides → 400 avec la liste des champs concernés."""
    return JSONResponse(status_code=400, content={"detail": format_validation_errors(exc.errors())})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Le message du SGBD reste dans les logs : le client reçoit un message générique."""
    logger.error("Erreur base de données sur %s %s : %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Erreur de base de données."},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/", tags=["Santé"])
def root():
    """Présentation de l'API et de ses principales routes."""
    return {
        "message": "BUCODel API is running",
        "version": API_VERSION,
        "environment": settings.ENV,
        "endpoints": {
            "health": "/health",
            "student_registration": "/api/register",
            "student_login": "/api/students/login",
            "admin_login": "/api/admins/login",
            "courses": "/api/courses",
            "file_uploads": "/uploads/",
            "docs": "/api/docs",
        },
    }


@app.get("/health", tags=["Santé"])
def health_check(db: Session = Depends(get_db)):
    """Vérifie que l'API est opérationnelle et que la base répond."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENV,
        "database": "connected" if is_database_reachable(db) else "disconnected",
    }


def run() -> None:
    """Lance uvicorn sur le port configuré (variable PORT)."""
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
