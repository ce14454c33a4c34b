# enrollment_portal/api/routers/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from enrollment_portal.api.deps.auth import get_current_user
from enrollment_portal.api.errors import service_errors
from enrollment_portal.core.db import get_db
from enrollment_portal.core.security import create_token
from enrollment_portal.schemas.auth import LoginIn, LoginOut, ChangePasswordIn, MeOut
from enrollment_portal.services.identity import LocalIdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = LocalIdentityProvider(db).authenticate(payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_token(
        sub=str(user.id),
        roles=user.roles,
        full_name=user.full_name,
        email=user.email,
    )
    logger.info(f"User {user.id} logged in")
    return LoginOut(access_token=token, must_change_password=user.must_change_password)


@router.get("/me", response_model=MeOut)
def me(ctx=Depends(get_current_user)):
    u = ctx["user"]
    return MeOut(
        id=u.id,
        email=u.email,
        full_name=u.full_name,
        roles=u.roles,
        must_change_password=u.must_change_password,
    )


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(payload: ChangePasswordIn, ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    with service_errors(db):
        LocalIdentityProvider(db).change_password(ctx["user"], payload.current_password, payload.new_password)
        db.commit()
