# PURPOSE: password hashing, JWT issuance/verification and the current-user dependency.

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
import bcrypt
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .db_models import UserDB

# Bearer token in the Authorization header; missing header is reported as 401 below
bearer_scheme = HTTPBearer(auto_error=False)


# --- Password helpers (bcrypt, no passlib) ---

def hash_password(password: str) -> str:
    """Return a bcrypt hash for the given plain password."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        return False


# --- JWT helpers ---

def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def get_access_token_ttl_minutes() -> int:
    """
    Return access token TTL in minutes, parsed safely from settings.
    Falls back to 60 if env contains invalid value (e.g., '60m').
    """
    try:
        return int(settings.JWT_EXPIRE_MIN)
    except (TypeError, ValueError):
        return 60


def create_access_token(user_id: int, extra: Dict[str, Any] | None = None) -> str:
    """
    Create a signed JWT for a user.
    - `sub` is the user id as a string (stable across email changes).
    - Expiration controlled by settings.JWT_EXPIRE_MIN (safely parsed).
    """
    payload: Dict[str, Any] = {**(extra or {}), "sub": str(user_id)}
    expire = _now_utc() + timedelta(minutes=get_access_token_ttl_minutes())
    payload.update({"exp": expire})
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> int | None:
    """Return the user id carried by a valid token, or None."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> UserDB:
    """Decode the bearer JWT and load the user row it names."""
    cred_error = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, authorization denied",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise cred_error

    row = db.get(UserDB, user_id)
    if row is None:
        raise cred_error
    return row
