"""
Tests des requêtes étudiants et formations sur une base SQLite en mémoire :
recherche, pagination, synthèse, statistiques et resynchronisation des inscriptions.
"""

from unittest.mock import patch

import pytest

from app.errors import DuplicateEmailError
from app.models.course import Enrollment
from app.schemas.student import EnrollmentUpdate, StudentRegistration, StudentUpdate
from app.seed import seed_courses
from app.services import course_service, student_service
from app.services.file_store import FileStore, PictureUpload, cleanup_orphaned_files

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture(autouse=True)
def fast_hash():
    with patch("app.services.student_service.hash_password", return_value="hashed"):
        yield


@pytest.fixture
def db(sqlite_db):
    seed_courses(sqlite_db)
    return sqlite_db


@pytest.fixture
def store(tmp_path):
    return FileStore(str(tmp_path / "uploads"), max_size_bytes=1024)


def register(db, store, first_name, last_name, email, courses=()):
    data = StudentRegistration(
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone="+221700000000",
        password="secret123",
        courses=list(courses),
    )
    return student_service.register_student(db, store, data)


def test_register_persists_student_and_enrollments(db, store):
    result = register(db, store, "Amina", "Diallo", "amina@example.com", ["Data Science", "Cybersecurity"])

    enrollments = student_service.get_enrollments(db, result.student_id)
    assert [e.course_name for e in enrollments] == ["Data Science", "Cybersecurity"]
    assert all(e.status == "enrolled" and e.progress_percentage == 0 for e in enrollments)


def test_duplicate_email_is_case_insensitive(db, store):
    register(db, store, "Amina", "Diallo", "amina@example.com")

    with pytest.raises(DuplicateEmailError):
        register(db, store, "Autre", "Personne", "AMINA@example.com")

    assert student_service.list_students(db).total == 1


def test_search_matches_email_substring_only_once(db, store):
    register(db, store, "Amina", "Diallo", "amina@example.com")
    register(db, store, "Moussa", "Sow", "moussa.sow@bucodel.org")
    register(db, store, "Fatou", "Ndiaye", "fatou@example.com")

    result = student_service.list_students(db, search="bucodel")

    assert result.total == 1
    assert result.students[0].email == "moussa.sow@bucodel.org"


def test_search_is_case_insensitive_on_names(db, store):
    register(db, store, "Amina", "Diallo", "amina@example.com")
    register(db, store, "Moussa", "Sow", "moussa@example.com")

    result = student_service.list_students(db, search="DIAL")

    assert [s.last_name for s in result.students] == ["Diallo"]


def test_search_treats_wildcards_literally(db, store):
    register(db, store, "Amina", "Diallo", "amina@example.com")
    assert student_service.list_students(db, search="%").total == 0


def test_pagination_beyond_last_page_is_empty(db, store):
    for i in range(5):
        register(db, store, f"Etudiant{i}", "Test", f"etudiant{i}@example.com")

    page = student_service.list_students(db, page=2, limit=2, sort="first_name")
    assert [s.first_name for s in page.students] == ["Etudiant2", "Etudiant3"]
    assert page.total_pages == 3

    beyond = student_service.list_students(db, page=4, limit=2)
    assert beyond.students == []
    assert beyond.total == 5


def test_filter_on_active_flag(db, store):
    first = register(db, store, "Amina", "Diallo", "amina@example.com")
    register(db, store, "Moussa", "Sow", "moussa@example.com")
    student_service.update_student(db, store, first.student_id, StudentUpdate(is_active=False))

    active = student_service.list_students(db, is_active=True)
    inactive = student_service.list_students(db, is_active=False)

    assert [s.first_name for s in active.students] == ["Moussa"]
    assert [s.first_name for s in inactive.students] == ["Amina"]


def test_update_courses_resyncs_enrollments(db, store):
    result = register(db, store, "Amina", "Diallo", "amina@example.com", ["Data Science", "Cybersecurity"])
    data_science = student_service.get_enrollments(db, result.student_id)[0]
    student_service.update_enrollment(
        db, result.student_id, data_science.course_id,
        EnrollmentUpdate(progress_percentage=50),
    )

    student = student_service.update_student(
        db, store, result.student_id, StudentUpdate(courses=["Data Science", "UI/UX Design"])
    )

    assert student.courses == ["Data Science", "UI/UX Design"]
    enrollments = {e.course_name: e for e in student_service.get_enrollments(db, result.student_id)}
    assert set(enrollments) == {"Data Science", "UI/UX Design"}
    assert enrollments["Data Science"].progress_percentage == 50
    assert enrollments["UI/UX Design"].progress_percentage == 0


def test_update_with_unknown_course_changes_nothing(db, store):
    result = register(db, store, "Amina", "Diallo", "amina@example.com", ["Data Science"])

    with pytest.raises(ValueError):
        student_service.update_student(db, store, result.student_id, StudentUpdate(courses=["Astrologie"]))

    assert student_service.get_student(db, result.student_id).courses == ["Data Science"]


def test_summary_excludes_inactive_and_dropped(db, store):
    first = register(db, store, "Amina", "Diallo", "amina@example.com", ["Data Science", "Cybersecurity"])
    second = register(db, store, "Moussa", "Sow", "moussa@example.com", ["Data Science"])
    student_service.update_student(db, store, second.student_id, StudentUpdate(is_active=False))

    enrollments = student_service.get_enrollments(db, first.student_id)
    student_service.update_enrollment(
        db, first.student_id, enrollments[0].course_id,
        EnrollmentUpdate(progress_percentage=80),
    )
    student_service.update_enrollment(
        db, first.student_id, enrollments[1].course_id,
        EnrollmentUpdate(status="dropped"),
    )

    summary = student_service.get_student_summary(db)

    assert summary.total == 1
    row = summary.students[0]
    assert row.full_name == "Amina Diallo"
    assert row.enrolled_courses == 1
    assert row.avg_progress == pytest.approx(80.0)


def test_course_stats_count_enrollments_and_completions(db, store):
    first = register(db, store, "Amina", "Diallo", "amina@example.com", ["Data Science"])
    register(db, store, "Moussa", "Sow", "moussa@example.com", ["Data Science"])
    course_id = student_service.get_enrollments(db, first.student_id)[0].course_id
    student_service.update_enrollment(
        db, first.student_id, course_id, EnrollmentUpdate(status="completed")
    )

    stats = {s.name: s for s in course_service.get_course_stats(db).course_stats}

    assert len(stats) == 9
    assert stats["Data Science"].total_enrollments == 2
    assert stats["Data Science"].completed_count == 1
    assert stats["Data Science"].avg_progress == pytest.approx(50.0)
    assert stats["Cybersecurity"].total_enrollments == 0
    assert stats["Cybersecurity"].avg_progress is None


def test_delete_student_removes_row(db, store):
    result = register(db, store, "Amina", "Diallo", "amina@example.com")

    assert student_service.delete_student(db, store, result.student_id) is True
    assert student_service.get_student(db, result.student_id) is None
    assert student_service.delete_student(db, store, result.student_id) is False


def test_enrollment_rows_are_unique_per_course(db, store):
    result = register(db, store, "Amina", "Diallo", "amina@example.com", ["Data Science", "Data Science"])
    count = db.query(Enrollment).filter(Enrollment.student_id == result.student_id).count()
    assert count == 1


def test_cleanup_during_registration_keeps_new_picture(db, tmp_path):
    """Un nettoyage qui passe entre l'écriture de la photo et le commit ne la supprime pas."""
    store = FileStore(str(tmp_path / "uploads"), max_size_bytes=1024, orphan_grace_seconds=3600)
    original_save = store.save
    removed = []

    def save_then_cleanup(*args, **kwargs):
        url = original_save(*args, **kwargs)
        removed.append(cleanup_orphaned_files(db, store))
        return url

    store.save = save_then_cleanup
    data = StudentRegistration(
        first_name="Amina",
        last_name="Diallo",
        email="amina@example.com",
        phone="+221700000000",
        password="secret123",
    )
    picture = PictureUpload(content=PNG_BYTES, filename="photo.png", content_type="image/png")

    result = student_service.register_student(db, store, data, picture)

    url = student_service.get_student(db, result.student_id).profile_picture_url
    assert removed == [0]
    assert store.path_for(url).exists()
