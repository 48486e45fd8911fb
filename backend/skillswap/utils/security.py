"""
Password hashing and JWT token handling for the SkillSwap API. No plain-text passwords in logs.
Uses bcrypt directly; passwords are truncated to bcrypt's 72-byte limit.
"""
import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from skillswap.config import get_settings

BCRYPT_MAX_PASSWORD_BYTES = 72
BCRYPT_ROUNDS = 12
TOKEN_ISSUER = "skillswap"


def _to_bcrypt_bytes(s: str) -> bytes:
    return (s or "").encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(plain_password: str) -> str:
    """Hash password with bcrypt (cost factor 12)."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_to_bcrypt_bytes(plain_password), salt).decode("ascii")


def verify_password(plain_password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_to_bcrypt_bytes(plain_password), hashed.encode("ascii"))
    except ValueError:
        return False


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    """Create JWT access token. Subject is the user id."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims = {"sub": str(subject), "iat": now, "exp": expire, "iss": TOKEN_ISSUER, "type": "access"}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token() -> str:
    """Opaque random refresh token; only its hash is stored."""
    return secrets.token_urlsafe(32)


def hash_refresh_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def decode_access_token(token: str) -> str | None:
    """Decode and validate access token. Returns sub (user id) or None."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=TOKEN_ISSUER,
        )
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload.get("sub")


def get_refresh_token_expiry() -> datetime:
    settings = get_settings()
    return datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days)
