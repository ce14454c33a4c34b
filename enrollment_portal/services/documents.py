# enrollment_portal/services/documents.py
import logging
import uuid
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from enrollment_portal.core.authz import Permission, authorize, has_permission
from enrollment_portal.core.config import settings
from enrollment_portal.core.errors import EnrollmentNotFound, Forbidden, NotFound, ValidationFailed
from enrollment_portal.models.base import utcnow
from enrollment_portal.models.enrollment import Enrollment, EnrollmentDocument, DocumentStatus
from enrollment_portal.models.student import Student
from enrollment_portal.models.user import User
from enrollment_portal.services.storage import ObjectStorage, get_storage

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    'image/jpeg', 'image/jpg', 'image/png', 'image/gif',
    'image/webp', 'image/bmp', 'image/tiff',
    'application/pdf',
}
REVIEW_STATUSES = (DocumentStatus.VERIFIED.value, DocumentStatus.REJECTED.value)


class DocumentService:
    """Uploads enrollment requirements to object storage and tracks their review."""

    def __init__(self, db: Session, storage: Optional[ObjectStorage] = None, max_bytes: Optional[int] = None):
        self.db = db
        self.storage = storage or get_storage()
        self.max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES

    def _enrollment_for(self, enrollment_id: int, actor: User) -> Enrollment:
        enrollment = self.db.get(Enrollment, enrollment_id)
        if not enrollment:
            raise EnrollmentNotFound(f"Enrollment {enrollment_id} not found")
        if has_permission(actor, Permission.MANAGE_ENROLLMENTS):
            return enrollment

        owner = self.db.get(Student, enrollment.student_id)
        if not owner or owner.user_id != actor.id:
            raise Forbidden("You can only upload documents for your own enrollment")
        return enrollment

    def validate_file(self, filename: str, content_type: Optional[str], size: int) -> None:
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationFailed(f"Unsupported file type: {content_type}. Supported types: images and PDFs")
        if size == 0:
            raise ValidationFailed("File is empty")
        if size > self.max_bytes:
            raise ValidationFailed(f"File too large: {size} bytes. Maximum allowed: {self.max_bytes} bytes")

    def upload_document(
        self,
        enrollment_id: int,
        document_type: str,
        filename: str,
        content: bytes,
        content_type: Optional[str],
        actor: User,
    ) -> EnrollmentDocument:
        document_type = (document_type or "").strip()
        if not document_type:
            raise ValidationFailed("Document type is required")

        enrollment = self._enrollment_for(enrollment_id, actor)
        self.validate_file(filename, content_type, len(content))

        extension = filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else 'bin'
        path = f"enrollment/{enrollment.id}/{uuid.uuid4()}.{extension}"

        url = self.storage.upload(path, content, content_type) or self.storage.public_url(path)

        document = EnrollmentDocument(
            enrollment_id=enrollment.id,
            document_type=document_type,
            status=DocumentStatus.PENDING.value,
            file_url=url,
            storage_path=path,
        )
        self.db.add(document)
        enrollment.documents_submitted = True
        self.db.flush()
        logger.info(f"Stored {document_type} for enrollment {enrollment.id} at {path}")
        return document

    def list_documents(self, enrollment_id: int, actor: User) -> List[EnrollmentDocument]:
        enrollment = self._enrollment_for(enrollment_id, actor)
        return list(self.db.execute(
            select(EnrollmentDocument)
            .where(EnrollmentDocument.enrollment_id == enrollment.id)
            .order_by(EnrollmentDocument.id)
        ).scalars().all())

    def review_document(self, document_id: int, status: str, actor: User) -> EnrollmentDocument:
        authorize(actor, Permission.REVIEW_DOCUMENTS)
        if status not in REVIEW_STATUSES:
            raise ValidationFailed(f"Invalid document status. Expected one of {list(REVIEW_STATUSES)}")

        document = self.db.get(EnrollmentDocument, document_id)
        if not document:
            raise NotFound(f"Document {document_id} not found")

        document.status = status
        document.verified_by = actor.id
        document.verified_at = utcnow()
        self.db.flush()
        return document


def get_document_service(db: Session, storage: Optional[ObjectStorage] = None) -> DocumentService:
    return DocumentService(db, storage=storage)
