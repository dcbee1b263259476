import re
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from core.config import (
    logger,
    JWT_SECRET,
    JWT_TOKEN_NAME,
    JWT_EXPIRES_IN,
    JWT_ALGORITHM,
    IS_PRODUCTION,
)
from core.database import get_db
from core.errors import UnauthorizedError
from models.user import User

_DEFAULT_EXPIRES_MS = 7 * 24 * 60 * 60 * 1000
_UNIT_MS = {
    "d": 24 * 60 * 60 * 1000,
    "h": 60 * 60 * 1000,
    "m": 60 * 1000,
    "s": 1000,
    "ms": 1,
}


def parse_expires_in(value: str) -> int:
    """
    Convert a duration like "7d", "12h", "30m", "45s", "500ms" or "1000" to milliseconds.
    Unparsable input falls back to 7 days; unknown units are read as milliseconds.
    """
    raw = (value or "").strip().lower()
    match = re.match(r"^(\d+)([a-z]+)?$", raw)
    if not match:
        return _DEFAULT_EXPIRES_MS
    amount = int(match.group(1))
    unit = match.group(2) or "ms"
    return amount * _UNIT_MS.get(unit, 1)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: str) -> str:
    if not JWT_SECRET:
        raise RuntimeError("JWT_SECRET is not defined in environment variables")
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(milliseconds=parse_expires_in(JWT_EXPIRES_IN))).timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """Return the user id carried by a valid token, None otherwise."""
    if not token or not JWT_SECRET:
        return None
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as ex:
        logger.warning(f"Token verification failed: {ex}")
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": IS_PRODUCTION,
        "samesite": "none" if IS_PRODUCTION else "lax",
    }


def set_auth_cookie(response: Response, token: str) -> None:
    max_age_ms = parse_expires_in(JWT_EXPIRES_IN)
    response.set_cookie(JWT_TOKEN_NAME, token, max_age=max_age_ms // 1000, **_cookie_options())


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(JWT_TOKEN_NAME, **_cookie_options())


def get_uid_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(JWT_TOKEN_NAME)
    if not token:
        auth_header = request.headers.get("authorization") or ""
        if auth_header.lower().startswith("bearer "):
            token = auth_header.split(" ", 1)[1].strip()
    if not token:
        return None
    return decode_access_token(token)


async def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    uid = get_uid_from_request(request)
    if not uid:
        raise UnauthorizedError()
    user = db.query(User).filter(User.id == uid).first()
    if not user:
        raise UnauthorizedError()
    return user


async def get_current_user_uid(user: User = Depends(get_current_user)) -> str:
    return user.id
