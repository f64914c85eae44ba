import secrets
import string
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from catering.core.config import settings

# PBKDF2 avoids bcrypt backend/version issues and the 72-byte bcrypt input limit.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGO = "HS256"
ACCESS = "access"
REFRESH = "refresh"

_TEMP_PASSWORD_ALPHABET = string.ascii_letters + string.digits


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def generate_temp_password(length: int = 12) -> str:
    """One-time password handed to staff accounts created or reset by a manager."""
    return "".join(secrets.choice(_TEMP_PASSWORD_ALPHABET) for _ in range(length))


def _encode(subject: str, token_type: str, lifetime: timedelta, **claims) -> str:
    payload = {"sub": subject, "type": token_type, "exp": datetime.now(timezone.utc) + lifetime, **claims}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def create_access_token(subject: str, role: str = "", expires_minutes: int | None = None) -> str:
    """Short-lived token; the role claim lets clients pick a dashboard without calling /auth/me."""
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    return _encode(subject, ACCESS, timedelta(minutes=minutes), role=role)


def create_refresh_token(subject: str, expires_days: int | None = None) -> str:
    days = settings.REFRESH_TOKEN_EXPIRE_DAYS if expires_days is None else expires_days
    return _encode(subject, REFRESH, timedelta(days=days))


def decode_token(token: str, expected_type: str | None = None) -> dict:
    """Decode and verify; raises JWTError on a bad signature, expiry or the wrong token type."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])
    if expected_type and payload.get("type") != expected_type:
        raise JWTError(f"expected a {expected_type} token")
    return payload
