from __future__ import annotations

from flask import Flask

from ..api.auth import current_session
from ..api.payload import ok, parse_query
from ..container import Container
from .schemas import HolidayQuery, TeamTimesheetQuery, TimesheetQuery


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    @app.get("/api/timesheet", endpoint="timesheet_get")
    @guard.login_required
    def get_timesheet():
        q = parse_query(TimesheetQuery)
        s = current_session()
        sheet = container.timesheet_service.get_timesheet(
            current_user_id=s.user_id,
            current_role=s.role,
            month=q.month,
            year=q.year,
            user_id=q.userId,
        )
        return ok(sheet.to_dict())

    @app.get("/api/timesheet/team", endpoint="timesheet_team")
    @guard.login_required
    def get_team_timesheet():
        q = parse_query(TeamTimesheetQuery)
        s = current_session()
        rows = container.timesheet_service.get_team_timesheet(
            current_user_id=s.user_id,
            current_role=s.role,
            month=q.month,
            year=q.year,
            team_id=q.teamId,
        )
        return ok(rows)

    @app.get("/api/public-holidays", endpoint="public_holidays")
    @guard.login_required
    def list_holidays():
        q = parse_query(HolidayQuery)
        return ok([h.to_dict() for h in container.timesheet_service.list_holidays(year=q.year)])
