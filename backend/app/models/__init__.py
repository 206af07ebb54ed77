# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles
# (student_courses.student_id → registrations.id) et avant create_all().

from app.models.admin import Admin  # noqa: F401
from app.models.student import Student  # noqa: F401  doit précéder course
from app.models.course import Course, Enrollment  # noqa: F401
from app.models.password_reset import PasswordReset  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
