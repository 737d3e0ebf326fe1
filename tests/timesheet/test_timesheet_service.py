from __future__ import annotations

from datetime import date

import pytest
import requests

from hrm_system.core.enums import RequestStatus, RequestType, Role
from hrm_system.core.exceptions import AuthorizationError, ValidationError
from hrm_system.requests.model import WorkRequest
from hrm_system.timesheet import holiday_provider as holiday_module
from hrm_system.timesheet.holiday_provider import NagerHolidayProvider
from hrm_system.timesheet.model import Holiday
from hrm_system.timesheet.service import TimesheetService, count_days


class FakeApprovedRequests:
    def __init__(self):
        self.rows: list[WorkRequest] = []

    def add(self, user_id, type, start, end, *, half_day=False, status=RequestStatus.APPROVED):
        self.rows.append(
            WorkRequest(
                request_id=len(self.rows) + 1,
                user_id=user_id,
                type=type,
                start_date=start,
                end_date=end,
                reason="reason for testing",
                status=status,
                is_half_day=half_day,
            )
        )

    def list_approved_in_range(self, user_ids, *, start, end):
        ids = set(user_ids)
        return [
            r
            for r in self.rows
            if r.user_id in ids and r.status == RequestStatus.APPROVED and r.start_date <= end and r.end_date >= start
        ]


class FakeHolidayRepo:
    def __init__(self):
        self.rows: list[Holiday] = []

    def list_in_range(self, *, start, end, country):
        return [h for h in self.rows if start <= h.holiday_date <= end and h.country == country]

    def insert_many(self, holidays):
        known = {(h.holiday_date, h.country) for h in self.rows}
        fresh = [h for h in holidays if (h.holiday_date, h.country) not in known]
        self.rows.extend(fresh)
        return len(fresh)


class StaticProvider:
    def __init__(self, holidays):
        self.holidays = holidays
        self.calls = 0

    def fetch(self, year, country):
        self.calls += 1
        return list(self.holidays)


@pytest.fixture
def approved():
    return FakeApprovedRequests()


@pytest.fixture
def holidays():
    repo = FakeHolidayRepo()
    repo.rows.append(Holiday(holiday_date=date(2026, 3, 10), name="Founders Day"))
    return repo


@pytest.fixture
def service(approved, holidays, users, teams):
    teams.add(1, leader_id=3)
    users.add(1, team_id=1)
    users.add(2, role=Role.HR)
    users.add(3, role=Role.LEADER, team_id=1)
    users.add(4, team_id=2)
    return TimesheetService(approved, holidays, users, teams)


def test_count_days_skips_weekends_and_holidays():
    req = WorkRequest(
        request_id=1,
        user_id=1,
        type=RequestType.LEAVE,
        start_date=date(2026, 3, 6),
        end_date=date(2026, 3, 10),
        reason="reason for testing",
        status=RequestStatus.APPROVED,
    )
    # Fri, (Sat, Sun), Mon, Tue(holiday)
    assert count_days(
        [req], type=RequestType.LEAVE, start=date(2026, 3, 1), end=date(2026, 3, 31), holidays={date(2026, 3, 10): "x"}
    ) == 2.0
    assert count_days([req], type=RequestType.WFH, start=date(2026, 3, 1), end=date(2026, 3, 31), holidays={}) == 0.0


def test_month_stats(service, approved):
    approved.add(1, RequestType.LEAVE, date(2026, 3, 9), date(2026, 3, 11))
    approved.add(1, RequestType.LEAVE, date(2026, 3, 13), date(2026, 3, 13), half_day=True)
    approved.add(1, RequestType.WFH, date(2026, 3, 6), date(2026, 3, 9))
    approved.add(1, RequestType.LEAVE, date(2026, 1, 5), date(2026, 1, 6))
    approved.add(1, RequestType.LEAVE, date(2026, 3, 20), date(2026, 3, 20), status=RequestStatus.REJECTED)

    sheet = service.get_timesheet(current_user_id=1, current_role=Role.DEV, month=3, year=2026)
    stats = sheet.to_dict()["stats"]

    assert stats["totalWorkingDays"] == 21
    assert stats["totalPublicHolidays"] == 1
    assert stats["totalOffDays"] == 2.5
    assert stats["totalWfhDays"] == 2.0
    assert stats["leaveBalance"] == {"annual": 12, "sick": 5, "used": 4.5, "remaining": 7.5}


def test_days_carry_holidays_and_requests(service, approved):
    approved.add(1, RequestType.WFH, date(2026, 3, 9), date(2026, 3, 9))

    days = service.get_timesheet(current_user_id=1, current_role=Role.DEV, month=3, year=2026).to_dict()["days"]

    assert len(days) == 31
    assert days[0]["isWeekend"] is True
    assert days[9]["holiday"] == "Founders Day"
    assert days[8]["requests"] == [{"id": 1, "type": "WFH", "isHalfDay": False}]


def test_view_permissions(service):
    assert service.get_timesheet(current_user_id=3, current_role=Role.LEADER, month=3, year=2026, user_id=1).user_id == 1
    assert service.get_timesheet(current_user_id=2, current_role=Role.HR, month=3, year=2026, user_id=4).user_id == 4
    with pytest.raises(AuthorizationError):
        service.get_timesheet(current_user_id=3, current_role=Role.LEADER, month=3, year=2026, user_id=4)
    with pytest.raises(AuthorizationError):
        service.get_timesheet(current_user_id=4, current_role=Role.DEV, month=3, year=2026, user_id=1)


def test_invalid_month(service):
    with pytest.raises(ValidationError):
        service.get_timesheet(current_user_id=1, current_role=Role.DEV, month=13, year=2026)


def test_team_timesheet_scopes(service):
    by_leader = service.get_team_timesheet(current_user_id=3, current_role=Role.LEADER, month=3, year=2026)
    assert sorted(row["userId"] for row in by_leader) == [1, 3]

    with pytest.raises(AuthorizationError):
        service.get_team_timesheet(current_user_id=3, current_role=Role.LEADER, month=3, year=2026, team_id=2)
    with pytest.raises(AuthorizationError):
        service.get_team_timesheet(current_user_id=1, current_role=Role.DEV, month=3, year=2026)

    by_hr = service.get_team_timesheet(current_user_id=2, current_role=Role.HR, month=3, year=2026, team_id=2)
    assert [row["user"]["id"] for row in by_hr] == [4]


def test_holidays_fetched_once_when_missing(approved, users, teams):
    repo = FakeHolidayRepo()
    provider = StaticProvider([Holiday(holiday_date=date(2027, 1, 1), name="New Year")])
    service = TimesheetService(approved, repo, users, teams, holiday_provider=provider)

    assert [h.name for h in service.list_holidays(year=2027)] == ["New Year"]
    assert [h.name for h in service.list_holidays(year=2027)] == ["New Year"]
    assert provider.calls == 1


class _Response:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


def test_nager_provider_parses_payload(monkeypatch):
    seen = {}

    def fake_get(url, timeout):
        seen["url"] = url
        return _Response([{"date": "2026-09-02", "localName": "Quoc khanh", "name": "National Day"}, {"bad": 1}])

    monkeypatch.setattr(holiday_module.requests, "get", fake_get)
    result = NagerHolidayProvider("https://holidays.example/api/").fetch(2026, "VN")

    assert seen["url"] == "https://holidays.example/api/2026/VN"
    assert [(h.holiday_date, h.name) for h in result] == [(date(2026, 9, 2), "Quoc khanh")]


def test_nager_provider_tolerates_outage(monkeypatch):
    def fake_get(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(holiday_module.requests, "get", fake_get)
    assert NagerHolidayProvider("https://holidays.example/api").fetch(2026, "VN") == []
