# enrollment_portal/api/routers/catalog.py
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from enrollment_portal.api.deps.auth import get_current_user, require_permission
from enrollment_portal.api.errors import service_errors
from enrollment_portal.core.authz import Permission
from enrollment_portal.core.db import get_db
from enrollment_portal.schemas.catalog import (
    ProgramCreate, ProgramUpdate, ProgramOut,
    YearCreate, YearOut,
    CourseCreate, CourseUpdate, CourseOut,
)
from enrollment_portal.services.catalog import get_catalog_service

router = APIRouter(tags=["Catalog"])

manager = require_permission(Permission.MANAGE_CATALOG)


# ---- Programs ----

@router.get("/programs", response_model=list[ProgramOut])
def list_programs(db: Session = Depends(get_db)):
    """Public: the registration form needs the program list."""
    return [ProgramOut.model_validate(p) for p in get_catalog_service(db).list_programs()]


@router.get("/programs/{program_id}", response_model=ProgramOut)
def get_program(program_id: int, db: Session = Depends(get_db)):
    with service_errors(db):
        return ProgramOut.model_validate(get_catalog_service(db).get_program(program_id))


@router.post("/programs", response_model=ProgramOut, status_code=status.HTTP_201_CREATED)
def create_program(payload: ProgramCreate, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        program = get_catalog_service(db).create_program(payload.model_dump(), ctx["user"])
        db.commit()
    return ProgramOut.model_validate(program)


@router.patch("/programs/{program_id}", response_model=ProgramOut)
def update_program(program_id: int, payload: ProgramUpdate, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        program = get_catalog_service(db).update_program(program_id, payload.model_dump(exclude_unset=True), ctx["user"])
        db.commit()
    return ProgramOut.model_validate(program)


@router.delete("/programs/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_program(program_id: int, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        get_catalog_service(db).delete_program(program_id, ctx["user"])
        db.commit()


# ---- Year levels ----

@router.get("/years", response_model=list[YearOut])
def list_years(program_id: Optional[int] = None, ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    return [YearOut.model_validate(y) for y in get_catalog_service(db).list_years(program_id)]


@router.post("/years", response_model=YearOut, status_code=status.HTTP_201_CREATED)
def create_year(payload: YearCreate, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        year = get_catalog_service(db).create_year(payload.program_id, payload.year_level, ctx["user"])
        db.commit()
    return YearOut.model_validate(year)


@router.delete("/years/{year_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_year(year_id: int, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        get_catalog_service(db).delete_year(year_id, ctx["user"])
        db.commit()


# ---- Courses ----

@router.get("/courses", response_model=list[CourseOut])
def list_courses(
    year_id: Optional[int] = None,
    semester: Optional[int] = None,
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [CourseOut.model_validate(c) for c in get_catalog_service(db).list_courses(year_id, semester)]


@router.post("/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(payload: CourseCreate, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        course = get_catalog_service(db).create_course(payload.model_dump(), ctx["user"])
        db.commit()
    return CourseOut.model_validate(course)


@router.patch("/courses/{course_id}", response_model=CourseOut)
def update_course(course_id: int, payload: CourseUpdate, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        course = get_catalog_service(db).update_course(course_id, payload.model_dump(exclude_unset=True), ctx["user"])
        db.commit()
    return CourseOut.model_validate(course)


@router.delete("/courses/{course_id}", response_model=CourseOut)
def remove_course(course_id: int, ctx=Depends(manager), db: Session = Depends(get_db)):
    with service_errors(db):
        course = get_catalog_service(db).remove_course(course_id, ctx["user"])
        db.commit()
    return CourseOut.model_validate(course)
