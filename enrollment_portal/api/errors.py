# enrollment_portal/api/errors.py
import logging
from contextlib import contextmanager

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from enrollment_portal.core.errors import PortalError

logger = logging.getLogger(__name__)


@contextmanager
def service_errors(db: Session):
    """Roll back and translate domain / constraint errors into HTTP responses."""
    try:
        yield
    except PortalError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error: {e.orig}")
        raise HTTPException(status_code=409, detail={"kind": "Conflict", "message": "Conflicting record already exists"})
