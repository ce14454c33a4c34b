# enrollment_portal/api/routers/notifications.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from enrollment_portal.api.deps.auth import require_permission
from enrollment_portal.core.authz import Permission
from enrollment_portal.core.db import get_db
from enrollment_portal.schemas.notification import NotificationOut
from enrollment_portal.services.notifications import NotificationLog

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationOut])
def list_notifications(
    recipient: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    ctx=Depends(require_permission(Permission.REVIEW_REGISTRATIONS)),
    db: Session = Depends(get_db),
):
    return [NotificationOut.model_validate(n) for n in NotificationLog(db).recent(recipient, limit)]
