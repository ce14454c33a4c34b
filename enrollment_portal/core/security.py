# enrollment_portal/core/security.py
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from enrollment_portal.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(pw: str) -> str:
    return pwd_context.hash(pw)


def verify_password(pw: str, hashed: str) -> bool:
    return pwd_context.verify(pw, hashed)


def generate_temp_password() -> str:
    # ~96 bits of entropy, URL/e-mail safe
    return secrets.token_urlsafe(12)


def create_token(sub: str, roles: list[str], minutes: Optional[int] = None,
                 full_name: str = None, email: str = None) -> str:
    now = datetime.now(tz=timezone.utc)
    minutes = minutes or settings.JWT_EXPIRES_MINUTES
    payload: dict[str, Any] = {
        "sub": sub,
        "roles": roles,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes)).timestamp()),
    }

    if full_name:
        payload["full_name"] = full_name
    if email:
        payload["email"] = email

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
