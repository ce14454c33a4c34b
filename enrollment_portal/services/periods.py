# enrollment_portal/services/periods.py
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional


@dataclass(frozen=True)
class AcademicPeriod:
    academic_year: str  # "2025-2026"
    semester: int


# Any callable mapping a date to a period can stand in for the default calendar
PeriodPolicy = Callable[[Optional[date]], AcademicPeriod]


def current_academic_period(today: Optional[date] = None) -> AcademicPeriod:
    """
    June-December is semester 1 of the academic year starting that calendar
    year; January-May is semester 2 of the year that started the previous June.
    """
    today = today or date.today()
    if today.month >= 6:
        return AcademicPeriod(f"{today.year}-{today.year + 1}", 1)
    return AcademicPeriod(f"{today.year - 1}-{today.year}", 2)


ACADEMIC_YEAR_RE = re.compile(r"^(\d{4})-(\d{4})$")


def is_valid_academic_year(value: Optional[str]) -> bool:
    """``YYYY-YYYY`` where the second year follows the first."""
    match = ACADEMIC_YEAR_RE.match(value or "")
    return bool(match) and int(match.group(2)) == int(match.group(1)) + 1
