# enrollment_portal/schemas/catalog.py
from pydantic import BaseModel, ConfigDict


class ProgramCreate(BaseModel):
    program_code: str
    program_name: str
    total_units: int = 0
    years_to_complete: int = 4


class ProgramUpdate(BaseModel):
    program_code: str | None = None
    program_name: str | None = None
    total_units: int | None = None
    years_to_complete: int | None = None
    status: str | None = None


class ProgramOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    program_code: str
    program_name: str
    total_units: int
    years_to_complete: int
    status: str


class YearCreate(BaseModel):
    program_id: int
    year_level: int


class YearOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    program_id: int
    year_level: int
    status: str


class CourseCreate(BaseModel):
    year_id: int
    course_code: str
    course_name: str
    units: int
    semester: int
    status: str | None = None


class CourseUpdate(BaseModel):
    year_id: int | None = None
    course_code: str | None = None
    course_name: str | None = None
    units: int | None = None
    semester: int | None = None
    status: str | None = None


class CourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    year_id: int
    course_code: str
    course_name: str
    units: int
    semester: int
    status: str


class FeeLineOut(BaseModel):
    course_id: int
    course_code: str
    course_name: str
    units: int


class FeeQuoteOut(BaseModel):
    program_id: int
    year_level: int
    semester: int
    total_units: int
    tuition: float
    miscellaneous_fee: float
    program_fee: float
    total_amount: float
    courses: list[FeeLineOut]
