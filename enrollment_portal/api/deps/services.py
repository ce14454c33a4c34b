# enrollment_portal/api/deps/services.py
"""Collaborators that talk to the outside world; tests override these."""

from enrollment_portal.services.notifications import CredentialsNotifier, get_email_service
from enrollment_portal.services.storage import ObjectStorage, get_storage


def get_notifier() -> CredentialsNotifier:
    return get_email_service()


def get_object_storage() -> ObjectStorage:
    return get_storage()
