# enrollment_portal/schemas/notification.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    channel: str
    recipient: str
    subject: str | None
    status: str
    error: str | None
    created_at: datetime
