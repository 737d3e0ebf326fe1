from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest

from hrm_system.auth.model import VerificationToken
from hrm_system.core.constants import (
    TEMPLATE_ACCOUNT_ACTIVATION,
    TEMPLATE_ASSESSMENT_REMINDER,
    TEMPLATE_CYCLE_STARTED,
    TEMPLATE_RESET_PASSWORD,
    TEMPLATE_SELF_ASSESSMENT_SUBMITTED,
)
from hrm_system.core.enums import EmailStatus, Role, UserStatus
from hrm_system.emails.model import EmailLog, EmailTemplate
from hrm_system.emails.service import EmailService
from hrm_system.teams.model import Team
from hrm_system.users.model import CareerBand, Profile, User

FIXED_NOW = datetime(2026, 3, 2, 9, 0, 0)


class FakeUserRepo:
    def __init__(self):
        self._next_id = 100
        self.users: dict[int, User] = {}
        self.profiles: dict[int, Profile] = {}

    def add(
        self,
        user_id: int,
        *,
        role: Role = Role.DEV,
        status: UserStatus = UserStatus.ACTIVE,
        team_id: Optional[int] = None,
        career_band_id: Optional[int] = None,
        full_name: Optional[str] = None,
        password_hash: str = "x",
    ) -> User:
        user = User(
            user_id=user_id,
            employee_code=f"E{user_id}",
            email=f"user{user_id}@example.com",
            password_hash=password_hash,
            role=role,
            status=status,
            full_name=full_name or f"User {user_id}",
            team_id=team_id,
            career_band_id=career_band_id,
        )
        self.users[user_id] = user
        self.profiles[user_id] = Profile(user_id=user_id, full_name=user.full_name)
        return user

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email), None)

    def exists_email(self, email, *, exclude_user_id=None):
        return any(u.email == email and u.user_id != exclude_user_id for u in self.users.values())

    def exists_employee_code(self, employee_code, *, exclude_user_id=None):
        return any(u.employee_code == employee_code and u.user_id != exclude_user_id for u in self.users.values())

    def create(self, *, employee_code, email, phone, password_hash, role, status, team_id, career_band_id, full_name):
        uid = self._next_id
        self._next_id += 1
        self.users[uid] = User(
            user_id=uid,
            employee_code=employee_code,
            email=email,
            phone=phone,
            password_hash=password_hash,
            role=role,
            status=status,
            team_id=team_id,
            career_band_id=career_band_id,
            full_name=full_name,
        )
        self.profiles[uid] = Profile(user_id=uid, full_name=full_name)
        return uid

    def update(self, *, user_id, changes):
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(user, **dict(changes))
        return True

    def update_password(self, *, user_id, password_hash):
        return self.update(user_id=user_id, changes={"password_hash": password_hash})

    def soft_delete(self, *, user_id):
        return self.users.pop(int(user_id), None) is not None

    def list_users(self, *, page, limit, status=None, team_id=None, role=None, search=None):
        rows = [
            u
            for u in self.users.values()
            if (status is None or u.status == status)
            and (team_id is None or u.team_id == team_id)
            and (role is None or u.role == role)
            and (not search or search.lower() in (u.full_name + u.email).lower())
        ]
        start = (page - 1) * limit
        return rows[start : start + limit], len(rows)

    def list_active_with_band(self):
        return [u for u in self.users.values() if u.is_active and u.career_band_id is not None]

    def list_by_team(self, team_id):
        return [u for u in self.users.values() if u.team_id == int(team_id)]

    def list_active(self):
        return [u for u in self.users.values() if u.is_active]

    def get_profile(self, user_id):
        return self.profiles.get(int(user_id))

    def update_profile(self, *, user_id, changes):
        profile = self.profiles.get(int(user_id))
        if not profile:
            return False
        self.profiles[profile.user_id] = replace(profile, **dict(changes))
        if "full_name" in changes:
            self.update(user_id=user_id, changes={"full_name": changes["full_name"]})
        return True


class FakeCareerBandRepo:
    def __init__(self):
        self.bands = {
            1: CareerBand(career_band_id=1, band_name="B1", title="Junior Developer"),
            2: CareerBand(career_band_id=2, band_name="B2", title="Developer"),
        }

    def list_all(self):
        return list(self.bands.values())

    def get_by_id(self, career_band_id):
        return self.bands.get(int(career_band_id))


class FakeTeamRepo:
    def __init__(self, users: FakeUserRepo):
        self._users = users
        self._next_id = 1
        self.teams: dict[int, Team] = {}

    def add(self, team_id: int, *, leader_id: Optional[int] = None, team_name: Optional[str] = None) -> Team:
        team = Team(team_id=team_id, team_name=team_name or f"Team {team_id}", leader_id=leader_id)
        self.teams[team_id] = team
        self._next_id = max(self._next_id, team_id + 1)
        return team

    def list_all(self):
        return list(self.teams.values())

    def get_by_id(self, team_id):
        return self.teams.get(int(team_id))

    def get_by_name(self, team_name):
        return next((t for t in self.teams.values() if t.team_name == team_name), None)

    def list_led_by(self, user_id):
        return [t for t in self.teams.values() if t.leader_id == int(user_id)]

    def create(self, *, team_name, description):
        tid = self._next_id
        self._next_id += 1
        self.teams[tid] = Team(team_id=tid, team_name=team_name, description=description)
        return tid

    def update(self, *, team_id, team_name, description):
        team = self.teams.get(int(team_id))
        if not team:
            return False
        self.teams[team.team_id] = replace(team, team_name=team_name, description=description)
        return True

    def soft_delete(self, *, team_id):
        team = self.teams.pop(int(team_id), None)
        if not team:
            return 0
        members = self._users.list_by_team(team.team_id)
        for m in members:
            self._users.update(user_id=m.user_id, changes={"team_id": None})
        return len(members)

    def add_member(self, *, team_id, user_id):
        return self._users.update(user_id=user_id, changes={"team_id": int(team_id)})

    def remove_member(self, *, team_id, user_id):
        team = self.teams.get(int(team_id))
        if team and team.leader_id == int(user_id):
            self.teams[team.team_id] = replace(team, leader_id=None)
        return self._users.update(user_id=user_id, changes={"team_id": None})

    def assign_leader(self, *, team_id, leader_id, previous_leader_id):
        team = self.teams[int(team_id)]
        self.teams[team.team_id] = replace(team, leader_id=int(leader_id))
        self._users.update(user_id=leader_id, changes={"role": Role.LEADER})
        if previous_leader_id is not None and not self.list_led_by(previous_leader_id):
            self._users.update(user_id=previous_leader_id, changes={"role": Role.DEV})


SYSTEM_TEMPLATES = {
    TEMPLATE_ACCOUNT_ACTIVATION: ("Activate your account", "Hello {fullName}, activate: {link}"),
    TEMPLATE_RESET_PASSWORD: ("Reset your password", "Hello {fullName}, reset: {link}"),
    TEMPLATE_CYCLE_STARTED: ("{cycleName} has started", "Hello {fullName}, assess yourself before {endDate}: {link}"),
    TEMPLATE_ASSESSMENT_REMINDER: ("Reminder: {cycleName}", "Hello {fullName}, please finish before {endDate}: {link}"),
    TEMPLATE_SELF_ASSESSMENT_SUBMITTED: ("{employeeName} submitted", "Hello {fullName}, {employeeName} is ready: {link}"),
}


class FakeEmailTemplateRepo:
    def __init__(self):
        self._next_id = 1
        self.templates: dict[int, EmailTemplate] = {}
        for code, (subject, body) in SYSTEM_TEMPLATES.items():
            self.create(code=code, name=code.title(), subject=subject, body=body, variables=None, is_system=True)

    def list_all(self, *, search=None):
        return [t for t in self.templates.values() if not search or search.lower() in (t.code + t.name).lower()]

    def get_by_id(self, template_id):
        return self.templates.get(int(template_id))

    def get_by_code(self, code):
        return next((t for t in self.templates.values() if t.code == code), None)

    def create(self, *, code, name, subject, body, variables, is_system):
        tid = self._next_id
        self._next_id += 1
        self.templates[tid] = EmailTemplate(
            template_id=tid,
            code=code,
            name=name,
            subject=subject,
            body=body,
            variables=variables,
            is_system=is_system,
        )
        return tid

    def update(self, *, template_id, name, subject, body, variables):
        t = self.templates.get(int(template_id))
        if not t:
            return False
        self.templates[t.template_id] = replace(t, name=name, subject=subject, body=body, variables=variables)
        return True

    def soft_delete(self, *, template_id):
        return self.templates.pop(int(template_id), None) is not None


class FakeEmailLogRepo:
    def __init__(self):
        self.logs: dict[int, EmailLog] = {}

    def create(self, *, template_id, sender_id, recipient_email, subject, body, status, sent_at, error_message):
        lid = len(self.logs) + 1
        self.logs[lid] = EmailLog(
            log_id=lid,
            template_id=template_id,
            sender_id=sender_id,
            recipient_email=recipient_email,
            subject=subject,
            body=body,
            status=status,
            sent_at=sent_at,
            error_message=error_message,
        )
        return lid

    def get_by_id(self, log_id):
        return self.logs.get(int(log_id))

    def list_logs(self, *, page, limit, status=None, search=None):
        rows = [
            log
            for log in self.logs.values()
            if (status is None or log.status == status) and (not search or search in log.recipient_email)
        ]
        start = (page - 1) * limit
        return rows[start : start + limit], len(rows)

    def by_status(self, status: EmailStatus) -> list[EmailLog]:
        return [log for log in self.logs.values() if log.status == status]


class RecordingSender:
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []

    def send(self, *, to, subject, body):
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append({"to": to, "subject": subject, "body": body})

    def recipients(self) -> list[str]:
        return [m["to"] for m in self.sent]


@pytest.fixture
def users():
    return FakeUserRepo()


@pytest.fixture
def career_bands():
    return FakeCareerBandRepo()


@pytest.fixture
def teams(users):
    return FakeTeamRepo(users)


@pytest.fixture
def templates():
    return FakeEmailTemplateRepo()


@pytest.fixture
def email_logs():
    return FakeEmailLogRepo()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def email_service(templates, email_logs, sender):
    return EmailService(templates, email_logs, sender, clock=lambda: FIXED_NOW)


class FakeVerificationTokenRepo:
    def __init__(self, users: FakeUserRepo):
        self._users = users
        self.tokens: dict[int, VerificationToken] = {}

    def create(self, *, user_id, token, type, expires_at):
        tid = len(self.tokens) + 1
        self.tokens[tid] = VerificationToken(token_id=tid, user_id=user_id, token=token, type=type, expires_at=expires_at)
        return tid

    def find_active(self, *, token, type):
        return next(
            (t for t in self.tokens.values() if t.token == token and t.type == type and t.deleted_at is None), None
        )

    def invalidate_for_user(self, *, user_id, type):
        for t in list(self.tokens.values()):
            if t.user_id == user_id and t.type == type and t.deleted_at is None:
                self.tokens[t.token_id] = replace(t, deleted_at=FIXED_NOW)

    def activate_user(self, *, user_id, token_id):
        self._users.update(user_id=user_id, changes={"status": UserStatus.ACTIVE})
        self.tokens[token_id] = replace(self.tokens[token_id], deleted_at=FIXED_NOW)

    def reset_password(self, *, user_id, token_id, password_hash):
        self._users.update_password(user_id=user_id, password_hash=password_hash)
        self.tokens[token_id] = replace(self.tokens[token_id], deleted_at=FIXED_NOW)

    def latest(self, user_id: int, type) -> VerificationToken:
        return [t for t in self.tokens.values() if t.user_id == user_id and t.type == type][-1]


@pytest.fixture
def tokens(users):
    return FakeVerificationTokenRepo(users)
