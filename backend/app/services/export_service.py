"""
Export de la base étudiants en CSV et en PDF.

CSV : colonnes fixes, toutes les valeurs entre guillemets, formations jointes
par des virgules, BOM UTF-8 pour l'ouverture directe dans Excel.
PDF (reportlab) : tableau à colonnes fixes, hauteur de ligne fixe, saut de page
sous un seuil ; les cellules sont tronquées au nombre de caractères, sans retour à la ligne.
"""

import csv
import io
import logging
from datetime import datetime
from typing import Optional, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.student import Student

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "id", "first_name", "last_name", "email", "phone", "age", "education",
    "experience", "courses", "motivation", "status", "last_login", "created_at",
]

PDF_HEADERS = ["ID", "Nom", "Email", "Téléphone", "Statut", "Formations"]
PDF_LEFT_MARGIN = 50
PDF_COLUMN_WIDTH = 80
PDF_ROW_HEIGHT = 20
PDF_TOP_MARGIN = 50
PDF_BOTTOM_THRESHOLD = 60  # en dessous : nouvelle page
PDF_TRUNCATE = {"name": 12, "email": 15, "courses": 20}
PDF_MAX_COURSES = 2


def _status_label(student: Student) -> str:
    return "Actif" if student.is_active else "Inactif"


def _courses_text(courses: Optional[Sequence[str]], max_items: Optional[int] = None) -> str:
    if not courses:
        return ""
    if isinstance(courses, str):
        return courses
    items = list(courses)[:max_items] if max_items else list(courses)
    return ", ".join(items)


def fetch_students_for_export(db: Session, limit: Optional[int] = None) -> list[Student]:
    """Étudiants du plus récent au plus ancien, éventuellement limités."""
    stmt = select(Student).order_by(Student.created_at.desc())
    if limit:
        stmt = stmt.limit(limit)
    return db.execute(stmt).scalars().all()


def build_students_csv(students: Sequence[Student]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for s in students:
        writer.writerow([
            s.id,
            s.first_name,
            s.last_name,
            s.email,
            s.phone or "",
            s.age if s.age is not None else "",
            s.education or "",
            s.experience or "",
            _courses_text(s.courses),
            s.motivation or "",
            _status_label(s),
            s.last_login.strftime("%Y-%m-%d %H:%M:%S") if s.last_login else "Jamais",
            s.created_at.strftime("%Y-%m-%d") if s.created_at else "",
        ])

    return "\ufeff" + output.getvalue()  # BOM pour compatibilité Excel


def export_students_csv(db: Session) -> str:
    students = fetch_students_for_export(db)
    logger.info("Export CSV : %d étudiants", len(students))
    return build_students_csv(students)


def _draw_table_header(pdf: canvas.Canvas, y: float) -> None:
    pdf.setFont("Helvetica-Bold", 10)
    for i, header in enumerate(PDF_HEADERS):
        pdf.drawString(PDF_LEFT_MARGIN + i * PDF_COLUMN_WIDTH, y, header)
    line_end = PDF_LEFT_MARGIN + len(PDF_HEADERS) * PDF_COLUMN_WIDTH
    pdf.line(PDF_LEFT_MARGIN, y - 5, line_end, y - 5)
    pdf.setFont("Helvetica", 9)


def _pdf_row(student: Student) -> list[str]:
    full_name = f"{student.first_name} {student.last_name}"
    return [
        str(student.id),
        full_name[:PDF_TRUNCATE["name"]],
        (student.email or "")[:PDF_TRUNCATE["email"]],
        student.phone or "N/A",
        _status_label(student),
        (_courses_text(student.courses, PDF_MAX_COURSES) or "Aucune")[:PDF_TRUNCATE["courses"]],
    ]


def build_students_pdf(students: Sequence[Student], generated_at: Optional[datetime] = None) -> bytes:
    generated_at = generated_at or datetime.now()
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    pdf.setTitle("BUCODel : rapport des étudiants")

    pdf.setFont("Helvetica-Bold", 18)
    pdf.drawCentredString(width / 2, height - PDF_TOP_MARGIN - 10, "BUCODel : rapport des étudiants")
    pdf.setFont("Helvetica", 11)
    pdf.drawCentredString(width / 2, height - PDF_TOP_MARGIN - 30, f"Généré le : {generated_at.strftime('%d/%m/%Y')}")
    pdf.drawCentredString(width / 2, height - PDF_TOP_MARGIN - 46, f"Nombre d'étudiants : {len(students)}")

    y = height - PDF_TOP_MARGIN - 80
    _draw_table_header(pdf, y)
    y -= PDF_ROW_HEIGHT + 5

    for student in students:
        if y < PDF_BOTTOM_THRESHOLD:
            pdf.showPage()
            y = height - PDF_TOP_MARGIN
            _draw_table_header(pdf, y)
            y -= PDF_ROW_HEIGHT + 5

        for i, cell in enumerate(_pdf_row(student)):
            pdf.drawString(PDF_LEFT_MARGIN + i * PDF_COLUMN_WIDTH, y, cell)
        y -= PDF_ROW_HEIGHT

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def export_students_pdf(db: Session) -> bytes:
    students = fetch_students_for_export(db, limit=settings.PDF_EXPORT_LIMIT)
    logger.info("Export PDF : %d étudiants", len(students))
    return build_students_pdf(students)
