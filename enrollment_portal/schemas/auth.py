# enrollment_portal/schemas/auth.py
from pydantic import BaseModel


class LoginIn(BaseModel):
    email: str
    password: str


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    must_change_password: bool = False


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: str


class MeOut(BaseModel):
    id: int
    email: str
    full_name: str
    roles: list[str]
    must_change_password: bool
