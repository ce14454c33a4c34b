# enrollment_portal/schemas/enrollment.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from enrollment_portal.models.enrollment import Enrollment


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    enrollment_id: int
    document_type: str
    status: str
    file_url: str
    uploaded_at: datetime
    verified_by: int | None
    verified_at: datetime | None


class DocumentReviewIn(BaseModel):
    status: str  # Verified / Rejected


class EnrollmentCreate(BaseModel):
    student_id: int
    academic_year: str
    semester: int


class EnrollmentStatusIn(BaseModel):
    status: str


class EnrollmentOut(BaseModel):
    id: int
    student_id: int
    academic_year: str
    semester: int
    enrollment_status: str
    documents_submitted: bool
    payment_status: str
    total_amount: float
    amount_paid: float
    balance: float
    approved_by: int | None = None
    approved_at: datetime | None = None
    documents: list[DocumentOut] = []

    @classmethod
    def from_model(cls, e: Enrollment, with_documents: bool = True) -> "EnrollmentOut":
        return cls(
            id=e.id,
            student_id=e.student_id,
            academic_year=e.academic_year,
            semester=e.semester,
            enrollment_status=e.enrollment_status,
            documents_submitted=e.documents_submitted,
            payment_status=e.payment_status,
            total_amount=float(e.total_amount),
            amount_paid=float(e.amount_paid),
            balance=float(e.balance),
            approved_by=e.approved_by,
            approved_at=e.approved_at,
            documents=[DocumentOut.model_validate(d) for d in e.documents] if with_documents else [],
        )
