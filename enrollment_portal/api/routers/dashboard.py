# enrollment_portal/api/routers/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from enrollment_portal.api.deps.auth import require_permission
from enrollment_portal.core.authz import Permission
from enrollment_portal.core.db import get_db
from enrollment_portal.schemas.student import AdminAnalyticsOut
from enrollment_portal.services.students import admin_analytics

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/admin", response_model=AdminAnalyticsOut)
def admin_dashboard(ctx=Depends(require_permission(Permission.VIEW_REPORTS)), db: Session = Depends(get_db)):
    return AdminAnalyticsOut(**admin_analytics(db))
