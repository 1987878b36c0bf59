"""Password hashing and signed session tokens."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from dukasmart.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def session_expiry(ttl: timedelta | None = None) -> datetime:
    return datetime.now(timezone.utc) + (ttl or timedelta(minutes=settings.SESSION_TTL_MINUTES))


def create_session_token(session_id: UUID, user_id: UUID, expires_at: datetime) -> str:
    """Sign a cookie value pointing at a server-side session row."""
    payload = {
        "sid": str(session_id),
        "sub": str(user_id),
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: str) -> tuple[UUID, UUID]:
    """Return (session_id, user_id). Raises JWTError on a bad or expired token."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    try:
        return UUID(payload["sid"]), UUID(payload["sub"])
    except (KeyError, ValueError) as exc:
        raise JWTError("Malformed session token") from exc
