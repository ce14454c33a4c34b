# enrollment_portal/core/authz.py
import enum

from enrollment_portal.core.errors import Forbidden
from enrollment_portal.models.user import User, UserRole


class Permission(str, enum.Enum):
    REVIEW_REGISTRATIONS = "REVIEW_REGISTRATIONS"
    MANAGE_ENROLLMENTS = "MANAGE_ENROLLMENTS"
    MANAGE_CATALOG = "MANAGE_CATALOG"
    RECORD_PAYMENTS = "RECORD_PAYMENTS"
    REVIEW_DOCUMENTS = "REVIEW_DOCUMENTS"
    VIEW_REPORTS = "VIEW_REPORTS"


ROLE_PERMISSIONS: dict[str, set[Permission]] = {
    UserRole.ADMIN.value: set(Permission),
    UserRole.CASHIER.value: {Permission.RECORD_PAYMENTS, Permission.VIEW_REPORTS},
    UserRole.STUDENT.value: set(),
}


def has_permission(user: User | None, permission: Permission) -> bool:
    if user is None:
        return False
    return any(permission in ROLE_PERMISSIONS.get(role, set()) for role in user.roles)


def authorize(user: User | None, permission: Permission) -> User:
    """Raise Forbidden unless one of the user's roles grants ``permission``."""
    if not has_permission(user, permission):
        who = user.email if user is not None else "anonymous"
        raise Forbidden(f"{who} is not allowed to {permission.value.lower().replace('_', ' ')}")
    return user
