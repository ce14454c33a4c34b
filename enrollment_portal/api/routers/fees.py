# enrollment_portal/api/routers/fees.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from enrollment_portal.api.deps.auth import get_current_user
from enrollment_portal.core.db import get_db
from enrollment_portal.schemas.catalog import FeeQuoteOut, FeeLineOut
from enrollment_portal.services.fees import get_fee_calculator

router = APIRouter(prefix="/fees", tags=["Fees"])


@router.get("/quote", response_model=FeeQuoteOut)
def quote(
    program_id: int,
    year_level: int = Query(..., ge=1),
    semester: int = Query(..., ge=1, le=2),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    b = get_fee_calculator(db).calculate_fees(program_id, year_level, semester)
    return FeeQuoteOut(
        program_id=program_id,
        year_level=year_level,
        semester=semester,
        total_units=b.total_units,
        tuition=float(b.tuition),
        miscellaneous_fee=float(b.miscellaneous_fee),
        program_fee=float(b.program_fee),
        total_amount=float(b.total_amount),
        courses=[
            FeeLineOut(course_id=c.course_id, course_code=c.course_code, course_name=c.course_name, units=c.units)
            for c in b.courses
        ],
    )
