from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..requests.model import WorkRequest


@dataclass(frozen=True)
class Holiday:
    holiday_date: date
    name: str
    country: str = "VN"
    holiday_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.holiday_id,
            "date": self.holiday_date.isoformat(),
            "name": self.name,
            "country": self.country,
        }


@dataclass(frozen=True)
class TimesheetDay:
    day: date
    is_weekend: bool
    holiday_name: Optional[str] = None
    requests: tuple[WorkRequest, ...] = ()

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "isWeekend": self.is_weekend,
            "holiday": self.holiday_name,
            "requests": [
                {"id": r.request_id, "type": r.type.value, "isHalfDay": r.is_half_day} for r in self.requests
            ],
        }


@dataclass(frozen=True)
class TimesheetStats:
    total_working_days: int
    total_off_days: float
    total_wfh_days: float
    total_public_holidays: int
    annual_leave: int
    sick_leave: int
    used_leave: float

    def to_dict(self) -> dict:
        return {
            "totalWorkingDays": self.total_working_days,
            "totalOffDays": self.total_off_days,
            "totalWfhDays": self.total_wfh_days,
            "totalPublicHolidays": self.total_public_holidays,
            "leaveBalance": {
                "annual": self.annual_leave,
                "sick": self.sick_leave,
                "used": self.used_leave,
                "remaining": self.annual_leave - self.used_leave,
            },
        }


@dataclass
class MonthTimesheet:
    user_id: int
    year: int
    month: int
    days: list[TimesheetDay] = field(default_factory=list)
    stats: Optional[TimesheetStats] = None

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "year": self.year,
            "month": self.month,
            "days": [d.to_dict() for d in self.days],
            "stats": self.stats.to_dict() if self.stats else None,
        }
