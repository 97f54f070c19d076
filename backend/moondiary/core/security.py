"""
Session tokens.

Login issues our own signed JWT carrying the user's id, email and nickname,
plus the Supabase access/refresh token pair so store calls can run under
row-level security as that user. The Supabase access token is short-lived;
``POST /api/auth/refresh`` trades the refresh token for a new pair.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from ..config import AUTH_SECRET, SESSION_ALGORITHM, SESSION_MAX_AGE_SECONDS
from ..models.user import User


def create_session_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(seconds=SESSION_MAX_AGE_SECONDS))
    claims = {
        "sub": user.id,
        "email": user.email,
        "nickname": user.nickname,
        "exp": expire,
    }
    if user.access_token:
        claims["access_token"] = user.access_token
    if user.refresh_token:
        claims["refresh_token"] = user.refresh_token
    return jwt.encode(claims, AUTH_SECRET, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str) -> Optional[User]:
    """Returns None for anything that is not a valid, unexpired session."""
    try:
        payload = jwt.decode(token, AUTH_SECRET, algorithms=[SESSION_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return User(
        id=payload["sub"],
        email=payload.get("email") or "",
        nickname=payload.get("nickname") or "",
        access_token=payload.get("access_token"),
        refresh_token=payload.get("refresh_token"),
    )
