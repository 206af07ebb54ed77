"""
Erreurs métier partagées entre services et routers.
"""

from typing import Any, Sequence


class DuplicateEmailError(ValueError):
    """L'email est déjà utilisé par un autre compte du même type (→ 409)."""


def format_validation_errors(errors: Sequence[Any]) -> str:
    """Résume les erreurs pydantic en un message lisible : « champ : raison ; ... »."""
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")]
        field = ".".join(loc) or "requête"
        parts.append(f"{field} : {err.get('msg', 'valeur invalide')}")
    return " ; ".join(parts) or "Requête invalide."
