from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from hrm_system.core.enums import RequestStatus, RequestType, Role
from hrm_system.core.exceptions import AuthorizationError, ConflictError, ValidationError
from hrm_system.requests.model import WorkRequest
from hrm_system.requests.service import RequestDraft, RequestService

REASON = "Family event out of town"


class FakeWorkRequestRepo:
    def __init__(self, users):
        self._users = users
        self._next_id = 1
        self.rows: dict[int, WorkRequest] = {}

    def _decorate(self, r: WorkRequest) -> WorkRequest:
        user = self._users.get_by_id(r.user_id)
        return replace(r, requester_role=user.role, team_id=user.team_id, full_name=user.full_name)

    def create(self, *, user_id, type, start_date, end_date, is_half_day, reason):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = WorkRequest(
            request_id=rid,
            user_id=int(user_id),
            type=type,
            start_date=start_date,
            end_date=end_date,
            is_half_day=is_half_day,
            reason=reason,
            status=RequestStatus.PENDING,
        )
        return rid

    def get_by_id(self, request_id):
        r = self.rows.get(int(request_id))
        return self._decorate(r) if r else None

    def update(self, *, request_id, type, start_date, end_date, is_half_day, reason):
        r = self.rows.get(int(request_id))
        if not r or r.status != RequestStatus.PENDING:
            return False
        self.rows[r.request_id] = replace(
            r, type=type, start_date=start_date, end_date=end_date, is_half_day=is_half_day, reason=reason
        )
        return True

    def soft_delete(self, *, request_id):
        r = self.rows.get(int(request_id))
        if not r or r.status != RequestStatus.PENDING:
            return False
        del self.rows[r.request_id]
        return True

    def decide(self, *, request_id, status, approver_id, rejection_reason=None):
        r = self.rows.get(int(request_id))
        if not r or r.status != RequestStatus.PENDING:
            return False
        self.rows[r.request_id] = replace(r, status=status, approver_id=approver_id, rejection_reason=rejection_reason)
        return True

    def list_by_user(self, user_id, *, status=None, type=None):
        return [
            self._decorate(r)
            for r in self.rows.values()
            if r.user_id == int(user_id) and (status is None or r.status == status) and (type is None or r.type == type)
        ]

    def list_pending(self, *, team_ids=None):
        out = [self._decorate(r) for r in self.rows.values() if r.status == RequestStatus.PENDING]
        if team_ids is not None:
            out = [r for r in out if r.team_id in set(team_ids)]
        return out

    def list_approved_in_range(self, user_ids, *, start, end):
        ids = {int(x) for x in user_ids}
        return [
            self._decorate(r)
            for r in self.rows.values()
            if r.user_id in ids and r.status == RequestStatus.APPROVED and r.start_date <= end and r.end_date >= start
        ]


@pytest.fixture
def repo(users):
    return FakeWorkRequestRepo(users)


@pytest.fixture
def service(repo, teams, users):
    # team 1 is led by user 3; user 1 is a DEV member, user 4 a second leader in team 1
    teams.add(1, leader_id=3)
    users.add(1, team_id=1)
    users.add(2, role=Role.HR)
    users.add(3, role=Role.LEADER, team_id=1)
    users.add(4, role=Role.LEADER, team_id=1)
    users.add(5, team_id=2)
    return RequestService(repo, teams)


def _draft(**overrides) -> RequestDraft:
    data = dict(type=RequestType.LEAVE, start_date=date(2026, 3, 2), end_date=date(2026, 3, 3), reason=REASON)
    data.update(overrides)
    return RequestDraft(**data)


def test_half_day_must_be_a_single_day(service):
    with pytest.raises(ValidationError):
        service.create_request(current_user_id=1, draft=_draft(is_half_day=True))

    req = service.create_request(
        current_user_id=1, draft=_draft(is_half_day=True, end_date=date(2026, 3, 2))
    )
    assert req.is_half_day is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"end_date": date(2026, 3, 1)},
        {"reason": "too short"},
        {"reason": "x" * 501},
    ],
)
def test_invalid_drafts(service, overrides):
    with pytest.raises(ValidationError):
        service.create_request(current_user_id=1, draft=_draft(**overrides))


def test_leader_approves_own_team_member(service):
    req = service.create_request(current_user_id=1, draft=_draft())
    approved = service.approve_request(current_user_id=3, current_role=Role.LEADER, request_id=req.request_id)
    assert approved.status == RequestStatus.APPROVED
    assert approved.approver_id == 3


def test_nobody_approves_their_own_request(service):
    req = service.create_request(current_user_id=2, draft=_draft())
    with pytest.raises(AuthorizationError):
        service.approve_request(current_user_id=2, current_role=Role.HR, request_id=req.request_id)


def test_leader_requests_need_admin_or_hr(service):
    req = service.create_request(current_user_id=4, draft=_draft(type=RequestType.WFH))
    with pytest.raises(AuthorizationError):
        service.approve_request(current_user_id=3, current_role=Role.LEADER, request_id=req.request_id)
    assert service.approve_request(current_user_id=2, current_role=Role.HR, request_id=req.request_id).status == (
        RequestStatus.APPROVED
    )


def test_leader_cannot_decide_other_teams_or_devs_anything(service):
    req = service.create_request(current_user_id=5, draft=_draft())
    with pytest.raises(AuthorizationError):
        service.approve_request(current_user_id=3, current_role=Role.LEADER, request_id=req.request_id)
    with pytest.raises(AuthorizationError):
        service.approve_request(current_user_id=1, current_role=Role.DEV, request_id=req.request_id)


def test_reject_needs_reason_and_decisions_are_final(service):
    req = service.create_request(current_user_id=1, draft=_draft())
    with pytest.raises(ValidationError):
        service.reject_request(current_user_id=2, current_role=Role.HR, request_id=req.request_id, rejection_reason="no")

    rejected = service.reject_request(
        current_user_id=2, current_role=Role.HR, request_id=req.request_id, rejection_reason="Team is short-staffed that week"
    )
    assert rejected.status == RequestStatus.REJECTED

    with pytest.raises(ConflictError):
        service.approve_request(current_user_id=2, current_role=Role.HR, request_id=req.request_id)
    with pytest.raises(ConflictError):
        service.update_request(current_user_id=1, request_id=req.request_id, draft=_draft())
    with pytest.raises(ConflictError):
        service.cancel_request(current_user_id=1, request_id=req.request_id)


def test_only_owner_updates_or_cancels(service, repo):
    req = service.create_request(current_user_id=1, draft=_draft())
    with pytest.raises(AuthorizationError):
        service.update_request(current_user_id=5, request_id=req.request_id, draft=_draft())

    updated = service.update_request(
        current_user_id=1, request_id=req.request_id, draft=_draft(type=RequestType.WFH, end_date=date(2026, 3, 2))
    )
    assert updated.type == RequestType.WFH

    service.cancel_request(current_user_id=1, request_id=req.request_id)
    assert repo.get_by_id(req.request_id) is None


def test_received_lists_follow_approval_rules(service):
    dev = service.create_request(current_user_id=1, draft=_draft())
    leader = service.create_request(current_user_id=4, draft=_draft())
    other_team = service.create_request(current_user_id=5, draft=_draft())
    own = service.create_request(current_user_id=3, draft=_draft())

    by_leader = service.list_received(current_user_id=3, current_role=Role.LEADER)
    assert [r.request_id for r in by_leader] == [dev.request_id]

    by_hr = service.list_received(current_user_id=2, current_role=Role.HR)
    assert {r.request_id for r in by_hr} == {dev.request_id, leader.request_id, other_team.request_id, own.request_id}

    assert service.list_received(current_user_id=1, current_role=Role.DEV) == []
    assert [r.request_id for r in service.list_sent(current_user_id=1)] == [dev.request_id]
