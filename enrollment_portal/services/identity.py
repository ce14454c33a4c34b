# enrollment_portal/services/identity.py
"""
Identity provider and provisioner.

``IdentityProvider`` is the small surface the approval workflow needs from an
auth backend. ``LocalIdentityProvider`` keeps identities in the ``users``
table, so provisioning shares the caller's transaction and is undone with it.
"""

import logging
from typing import Optional, List

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from enrollment_portal.core.errors import IdentityProvisionFailed, ValidationFailed
from enrollment_portal.core.security import hash_password, verify_password
from enrollment_portal.models.user import User, UserRole

logger = logging.getLogger(__name__)


class EmailExists(Exception):
    """Raised by create_user when the address already has an identity."""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class IdentityProvider:
    def create_user(self, email: str, password: str, pre_confirmed: bool = True,
                    full_name: str = "", roles: Optional[List[str]] = None) -> int:
        raise NotImplementedError

    def list_users(self) -> List[User]:
        raise NotImplementedError

    def find_by_email(self, email: str) -> Optional[User]:
        for user in self.list_users():
            if normalize_email(user.email) == normalize_email(email):
                return user
        return None

    def set_password(self, user_id: int, password: str, temporary: bool = True) -> None:
        raise NotImplementedError

    def get_user(self, user_id: int) -> Optional[User]:
        raise NotImplementedError


class LocalIdentityProvider(IdentityProvider):
    def __init__(self, db: Session):
        self.db = db

    def create_user(self, email, password, pre_confirmed=True, full_name="", roles=None) -> int:
        email = normalize_email(email)
        if self.find_by_email(email):
            raise EmailExists(email)

        user = User(
            email=email,
            full_name=full_name or "",
            password_hash=hash_password(password),
            is_active=pre_confirmed,
            must_change_password=True,
        )
        user.set_roles(roles or [UserRole.STUDENT.value])
        self.db.add(user)
        self.db.flush()
        return user.id

    def list_users(self) -> List[User]:
        return list(self.db.execute(select(User).order_by(User.id)).scalars().all())

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.execute(
            select(User).where(func.lower(User.email) == normalize_email(email))
        ).scalar_one_or_none()

    def set_password(self, user_id: int, password: str, temporary: bool = True) -> None:
        user = self.db.get(User, user_id)
        if not user:
            raise IdentityProvisionFailed(f"Identity {user_id} not found")
        user.password_hash = hash_password(password)
        user.must_change_password = temporary
        self.db.flush()

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.find_by_email(email)
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            return None
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise ValidationFailed("Current password is incorrect")
        if len(new_password) < 8:
            raise ValidationFailed("New password must be at least 8 characters")
        self.set_password(user.id, new_password, temporary=False)


class IdentityProvisioner:
    """Create-or-reset: the identity always ends up with the new temporary password."""

    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    def ensure_identity(self, email: str, temp_password: str, full_name: str = "") -> int:
        try:
            try:
                user_id = self.provider.create_user(email, temp_password, pre_confirmed=True, full_name=full_name)
                logger.info(f"Created identity {user_id} for {email}")
                return user_id
            except EmailExists:
                existing = self.provider.find_by_email(email)
                if not existing:
                    raise IdentityProvisionFailed(f"Existing identity for {email} not found")
                # Re-approval overwrites whatever password the account had
                logger.warning(f"Identity for {email} exists; resetting password of user {existing.id}")
                self.provider.set_password(existing.id, temp_password, temporary=True)
                return existing.id
        except IdentityProvisionFailed:
            raise
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Identity provisioning failed for {email}: {e}")
            raise IdentityProvisionFailed(f"Failed to create or fetch identity for {email}") from e
