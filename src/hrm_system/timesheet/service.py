from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Mapping, Optional, Sequence

from ..common.datetime_utils import is_weekend, iter_days, month_bounds, now_local
from ..core.constants import ANNUAL_LEAVE_DAYS, SICK_LEAVE_DAYS
from ..core.enums import RequestType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..requests.model import WorkRequest
from ..requests.repository import WorkRequestRepository
from ..teams.repository import TeamRepository
from ..users.model import User
from ..users.repository import UserRepository
from .holiday_provider import HolidayProvider
from .model import Holiday, MonthTimesheet, TimesheetDay, TimesheetStats
from .repository import HolidayRepository

logger = logging.getLogger(__name__)


def _day_weight(req: WorkRequest) -> float:
    return 0.5 if req.is_half_day else 1.0


def count_days(
    requests: Sequence[WorkRequest],
    *,
    type: RequestType,
    start: date,
    end: date,
    holidays: Mapping[date, str],
) -> float:
    """Weekdays (not holidays) inside [start, end] covered by requests of one type."""
    total = 0.0
    for req in requests:
        if req.type != type:
            continue
        for d in iter_days(max(req.start_date, start), min(req.end_date, end)):
            if is_weekend(d) or d in holidays:
                continue
            total += _day_weight(req)
    return total


class TimesheetService:
    """Monthly calendar built from approved work requests and public holidays."""

    def __init__(
        self,
        requests: WorkRequestRepository,
        holidays: HolidayRepository,
        users: UserRepository,
        teams: TeamRepository,
        *,
        holiday_provider: Optional[HolidayProvider] = None,
        country: str = "VN",
        clock: Callable = now_local,
    ):
        self._requests = requests
        self._holidays = holidays
        self._users = users
        self._teams = teams
        self._provider = holiday_provider
        self._country = country
        self._clock = clock

    @staticmethod
    def _validate_period(month: int, year: int) -> None:
        if not 1 <= int(month) <= 12:
            raise ValidationError("Month must be between 1 and 12")
        if not 2000 <= int(year) <= 2100:
            raise ValidationError("Year is out of range")

    # -------- holidays --------
    def list_holidays(self, *, year: int) -> list[Holiday]:
        start, end = date(int(year), 1, 1), date(int(year), 12, 31)
        stored = list(self._holidays.list_in_range(start=start, end=end, country=self._country))
        if stored or self._provider is None:
            return stored

        fetched = self._provider.fetch(int(year), self._country)
        if fetched:
            inserted = self._holidays.insert_many(fetched)
            logger.info("stored %s public holidays for %s/%s", inserted, year, self._country)
            stored = list(self._holidays.list_in_range(start=start, end=end, country=self._country))
        return stored

    def _holiday_map(self, year: int) -> dict[date, str]:
        return {h.holiday_date: h.name for h in self.list_holidays(year=year)}

    # -------- permissions --------
    def _led_team_ids(self, user_id: int) -> set[int]:
        return {t.team_id for t in self._teams.list_led_by(int(user_id))}

    def _check_view(self, *, current_user_id: int, current_role: Role, target: User) -> None:
        if target.user_id == int(current_user_id) or current_role.is_manager:
            return
        if current_role == Role.LEADER and target.team_id in self._led_team_ids(current_user_id):
            return
        raise AuthorizationError("You can only view timesheets of your own team")

    # -------- building --------
    def _build(
        self,
        user_id: int,
        *,
        year: int,
        month: int,
        requests: Sequence[WorkRequest],
        holidays: Mapping[date, str],
    ) -> MonthTimesheet:
        start, end = month_bounds(year, month)
        in_month = [r for r in requests if r.start_date <= end and r.end_date >= start]

        sheet = MonthTimesheet(user_id=user_id, year=year, month=month)
        working_days = 0
        month_holidays = 0
        for d in iter_days(start, end):
            weekend = is_weekend(d)
            holiday = holidays.get(d)
            if holiday:
                month_holidays += 1
            elif not weekend:
                working_days += 1
            sheet.days.append(
                TimesheetDay(
                    day=d,
                    is_weekend=weekend,
                    holiday_name=holiday,
                    requests=tuple(r for r in in_month if r.covers(d)),
                )
            )

        year_start, year_end = date(year, 1, 1), date(year, 12, 31)
        sheet.stats = TimesheetStats(
            total_working_days=working_days,
            total_off_days=count_days(in_month, type=RequestType.LEAVE, start=start, end=end, holidays=holidays),
            total_wfh_days=count_days(in_month, type=RequestType.WFH, start=start, end=end, holidays=holidays),
            total_public_holidays=month_holidays,
            annual_leave=ANNUAL_LEAVE_DAYS,
            sick_leave=SICK_LEAVE_DAYS,
            used_leave=count_days(requests, type=RequestType.LEAVE, start=year_start, end=year_end, holidays=holidays),
        )
        return sheet

    def get_timesheet(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        month: int,
        year: int,
        user_id: Optional[int] = None,
    ) -> MonthTimesheet:
        self._validate_period(month, year)
        target_id = int(user_id) if user_id is not None else int(current_user_id)
        target = self._users.get_by_id(target_id)
        if not target:
            raise NotFoundError("User not found")
        self._check_view(current_user_id=current_user_id, current_role=current_role, target=target)

        year, month = int(year), int(month)
        requests = self._requests.list_approved_in_range([target_id], start=date(year, 1, 1), end=date(year, 12, 31))
        return self._build(target_id, year=year, month=month, requests=requests, holidays=self._holiday_map(year))

    def get_team_timesheet(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        month: int,
        year: int,
        team_id: Optional[int] = None,
    ) -> list[dict]:
        self._validate_period(month, year)
        if current_role.is_manager:
            members = list(self._users.list_by_team(int(team_id))) if team_id is not None else list(self._users.list_active())
        elif current_role == Role.LEADER:
            led = self._led_team_ids(current_user_id)
            if team_id is not None and int(team_id) not in led:
                raise AuthorizationError("You can only view timesheets of your own team")
            members = []
            for tid in sorted(led) if team_id is None else [int(team_id)]:
                members.extend(self._users.list_by_team(tid))
        else:
            raise AuthorizationError("Only LEADER, ADMIN or HR can view team timesheets")

        year, month = int(year), int(month)
        holidays = self._holiday_map(year)
        requests = self._requests.list_approved_in_range(
            [m.user_id for m in members], start=date(year, 1, 1), end=date(year, 12, 31)
        )
        by_user: dict[int, list[WorkRequest]] = {}
        for r in requests:
            by_user.setdefault(r.user_id, []).append(r)

        out = []
        for m in members:
            sheet = self._build(m.user_id, year=year, month=month, requests=by_user.get(m.user_id, []), holidays=holidays)
            out.append({"user": m.to_dict(), **sheet.to_dict()})
        return out
