# enrollment_portal/api/deps/auth.py
from typing import Dict, Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from enrollment_portal.core.authz import Permission, has_permission
from enrollment_portal.core.db import get_db
from enrollment_portal.core.security import decode_token
from enrollment_portal.models.user import User

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Decode JWT and return user + claims.
    Returns: {"user": User, "claims": dict}
    """
    try:
        claims = decode_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub = claims.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token missing user ID")

    try:
        user_id = int(sub)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user ID format")

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return {"user": user, "claims": claims}


def require_permission(permission: Permission):
    """Dependency factory: 403 unless the caller's roles grant ``permission``."""
    def checker(ctx: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if not has_permission(ctx["user"], permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"kind": "Forbidden", "message": f"Requires {permission.value}"},
            )
        return ctx
    return checker
