"""
Hachage des mots de passe (bcrypt via passlib) et jetons d'accès JWT (python-jose).
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import jwt
from passlib.context import CryptContext

from app.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

STUDENT_ROLE = "student"


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """
    Vérifie un mot de passe contre son hash.
    Sans hash (compte inconnu), effectue une vérification factice pour que
    le temps de réponse ne révèle pas l'existence de l'email.
    """
    if not hashed:
        pwd_context.dummy_verify()
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Hash corrompu ou d'un format inconnu : traité comme un échec
        return False


def create_access_token(subject: Any, role: str, expires_minutes: Optional[int] = None) -> str:
    """Jeton signé portant l'identifiant du principal (sub) et son rôle."""
    now = datetime.now(tz=timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(subject),
        "role": role,
        "type": "access",
        "iat": now,
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Décode et valide un JWT (signature, expiration). Lève JWTError en cas d'échec."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
