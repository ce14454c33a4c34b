# enrollment_portal/schemas/registration.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr


class RegistrationCreate(BaseModel):
    first_name: str
    middle_name: str | None = None
    last_name: str
    email: EmailStr
    contact_number: str | None = None
    address: str | None = None
    program_id: int
    year_level: int
    is_returning_student: bool = False


class RegistrationUpdate(BaseModel):
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    contact_number: str | None = None
    address: str | None = None
    program_id: int | None = None
    year_level: int | None = None
    is_returning_student: bool | None = None
    remarks: str | None = None


class RegistrationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    middle_name: str | None
    last_name: str
    email: str
    contact_number: str | None
    address: str | None
    program_id: int
    year_level: int
    is_returning_student: bool
    status: str
    remarks: str | None
    reviewed_by: int | None
    reviewed_at: datetime | None
    created_at: datetime


class RejectIn(BaseModel):
    remarks: str | None = None
