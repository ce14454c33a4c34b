# enrollment_portal/services/fees.py
"""
Fee calculation for a program / year level / semester.

Tuition is the number of units of the active courses of the matching Year
times the price per unit, plus the miscellaneous fee and an optional
per-program surcharge. A program/year without a curriculum still produces the
miscellaneous fee as a billable minimum.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from enrollment_portal.core.config import settings
from enrollment_portal.models.academic import Year, Course, CourseStatus

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS)


@dataclass(frozen=True)
class FeeSchedule:
    price_per_unit: Decimal
    miscellaneous_fee: Decimal
    program_fees: Mapping[int, Decimal] = field(default_factory=dict)

    @classmethod
    def from_settings(cls) -> "FeeSchedule":
        return cls(
            price_per_unit=to_money(settings.PRICE_PER_UNIT),
            miscellaneous_fee=to_money(settings.MISCELLANEOUS_FEE),
            program_fees={int(k): to_money(v) for k, v in settings.PROGRAM_FEES.items()},
        )

    def program_fee(self, program_id: int) -> Decimal:
        return to_money(self.program_fees.get(program_id, 0))


@dataclass(frozen=True)
class CourseLine:
    course_id: int
    course_code: str
    course_name: str
    units: int


@dataclass(frozen=True)
class FeeBreakdown:
    total_amount: Decimal
    courses: list[CourseLine]
    total_units: int = 0
    tuition: Decimal = Decimal("0.00")
    miscellaneous_fee: Decimal = Decimal("0.00")
    program_fee: Decimal = Decimal("0.00")


class FeeCalculator:
    """Computes what a student owes for one semester"""

    def __init__(self, db: Session, schedule: Optional[FeeSchedule] = None):
        self.db = db
        self.schedule = schedule or FeeSchedule.from_settings()

    def miscellaneous_only(self) -> FeeBreakdown:
        misc = self.schedule.miscellaneous_fee
        return FeeBreakdown(total_amount=misc, courses=[], miscellaneous_fee=misc)

    def calculate_fees(self, program_id: int, year_level: int, semester: int) -> FeeBreakdown:
        """
        Never raises: data errors fall back to the miscellaneous-only total.
        The lookup runs in a SAVEPOINT so a failed statement leaves the
        caller's transaction usable.
        """
        # Errors from the caller's own pending writes must not be masked
        self.db.flush()
        try:
            with self.db.begin_nested():
                year = self.db.execute(
                    select(Year).where(
                        and_(Year.program_id == program_id, Year.year_level == year_level)
                    )
                ).scalar_one_or_none()

                rows = []
                if year:
                    rows = self.db.execute(
                        select(Course).where(
                            and_(
                                Course.year_id == year.id,
                                Course.semester == semester,
                                Course.status == CourseStatus.ACTIVE.value,
                            )
                        ).order_by(Course.course_code)
                    ).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Course lookup failed for program {program_id}, year {year_level}: {e}")
            return self.miscellaneous_only()

        if not year:
            logger.warning(f"No year found for program {program_id}, year level {year_level}")
            return self.miscellaneous_only()

        courses = [
            CourseLine(course_id=c.id, course_code=c.course_code, course_name=c.course_name, units=int(c.units or 0))
            for c in rows
        ]
        total_units = sum(c.units for c in courses)
        tuition = to_money(Decimal(total_units) * self.schedule.price_per_unit)
        program_fee = self.schedule.program_fee(program_id)
        misc = self.schedule.miscellaneous_fee
        total = to_money(tuition + misc + program_fee)

        logger.info(
            f"Fees for program {program_id} year {year_level} sem {semester}: "
            f"{total_units} units, tuition {tuition}, misc {misc}, program fee {program_fee}, total {total}"
        )
        return FeeBreakdown(
            total_amount=total,
            courses=courses,
            total_units=total_units,
            tuition=tuition,
            miscellaneous_fee=misc,
            program_fee=program_fee,
        )


def get_fee_calculator(db: Session, schedule: Optional[FeeSchedule] = None) -> FeeCalculator:
    return FeeCalculator(db, schedule)
