"""
Journal d'audit des actions administrateur.
L'entrée est ajoutée à la session du caller : elle est validée dans la même transaction.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog

HIDDEN_FIELDS = {"password", "password_hash"}


def _jsonable(values: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if values is None:
        return None
    cleaned = {}
    for key, value in values.items():
        if key in HIDDEN_FIELDS:
            value = "***"
        elif isinstance(value, datetime):
            value = value.isoformat()
        cleaned[key] = value
    return cleaned


def record_action(
    db: Session,
    admin_id: Optional[int],
    action: str,
    table_name: str,
    record_id: Optional[int],
    old_values: Optional[dict[str, Any]] = None,
    new_values: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    entry = AuditLog(
        admin_id=admin_id,
        action=action,
        table_name=table_name,
        record_id=record_id,
        old_values=_jsonable(old_values),
        new_values=_jsonable(new_values),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    return entry
