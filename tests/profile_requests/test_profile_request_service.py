from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from hrm_system.core.enums import RequestStatus, Role
from hrm_system.core.exceptions import AuthorizationError, ConflictError, ValidationError
from hrm_system.profile_requests.model import ProfileUpdateRequest
from hrm_system.profile_requests.service import ProfileRequestService, diff_profile
from hrm_system.users.model import Profile


class FakeProfileRequestRepo:
    def __init__(self, users):
        self._users = users
        self.rows: dict[int, ProfileUpdateRequest] = {}

    def create(self, *, user_id, data_changes, previous_data):
        rid = len(self.rows) + 1
        self.rows[rid] = ProfileUpdateRequest(
            request_id=rid,
            user_id=int(user_id),
            status=RequestStatus.PENDING,
            data_changes=dict(data_changes),
            previous_data=dict(previous_data),
        )
        return rid

    def get_by_id(self, request_id):
        return self.rows.get(int(request_id))

    def find_pending_for_user(self, user_id):
        return next(
            (r for r in self.rows.values() if r.user_id == int(user_id) and r.status == RequestStatus.PENDING), None
        )

    def list_requests(self, *, status=None, user_id=None):
        return [
            r
            for r in self.rows.values()
            if (status is None or r.status == status) and (user_id is None or r.user_id == user_id)
        ]

    def approve(self, *, request_id, reviewer_id, profile_changes):
        r = self.rows.get(int(request_id))
        if not r or r.status != RequestStatus.PENDING:
            return False
        self._users.update_profile(user_id=r.user_id, changes=profile_changes)
        self.rows[r.request_id] = replace(r, status=RequestStatus.APPROVED, reviewer_id=reviewer_id)
        return True

    def reject(self, *, request_id, reviewer_id, rejection_reason):
        r = self.rows.get(int(request_id))
        if not r or r.status != RequestStatus.PENDING:
            return False
        self.rows[r.request_id] = replace(
            r, status=RequestStatus.REJECTED, reviewer_id=reviewer_id, rejection_reason=rejection_reason
        )
        return True


@pytest.fixture
def repo(users):
    return FakeProfileRequestRepo(users)


@pytest.fixture
def service(repo, users):
    users.add(1, full_name="Nguyen Van A")
    users.add(2, role=Role.HR, full_name="Tran Thi B")
    return ProfileRequestService(repo, users)


def test_diff_keeps_only_changed_fields():
    profile = Profile(user_id=1, full_name="A", address="Old street", dob=date(1990, 1, 1))
    new, previous = diff_profile(profile, {"full_name": " A ", "address": "New street", "dob": "1990-01-01"})
    assert new == {"address": "New street"}
    assert previous == {"address": "Old street"}


@pytest.mark.parametrize("changes", [{"salary": 1}, {"dob": "01/02/1990"}, {"full_name": "  "}])
def test_diff_rejects_bad_input(changes):
    with pytest.raises(ValidationError):
        diff_profile(Profile(user_id=1, full_name="A"), changes)


def test_employee_change_waits_for_review(service, users):
    result = service.update_my_profile(current_user_id=1, current_role=Role.DEV, changes={"address": "12 Le Loi"})

    assert result["applied"] is False
    assert result["request"]["dataChanges"] == {"address": "12 Le Loi"}
    assert result["request"]["previousData"] == {"address": None}
    assert users.get_profile(1).address is None


def test_one_pending_request_per_user(service):
    service.update_my_profile(current_user_id=1, current_role=Role.DEV, changes={"address": "12 Le Loi"})
    with pytest.raises(ConflictError):
        service.update_my_profile(current_user_id=1, current_role=Role.DEV, changes={"gender": "F"})


def test_no_op_change_is_rejected(service):
    with pytest.raises(ValidationError):
        service.update_my_profile(current_user_id=1, current_role=Role.DEV, changes={"full_name": "Nguyen Van A"})


def test_managers_apply_directly(service, users, repo):
    result = service.update_my_profile(
        current_user_id=2, current_role=Role.HR, changes={"join_date": "2020-05-04", "full_name": "Tran Thi C"}
    )
    assert result["applied"] is True
    assert result["profile"]["joinDate"] == "2020-05-04"
    assert users.get_by_id(2).full_name == "Tran Thi C"
    assert repo.rows == {}


def test_approve_applies_changes(service, users):
    created = service.update_my_profile(
        current_user_id=1, current_role=Role.DEV, changes={"dob": "1995-07-30", "address": "12 Le Loi"}
    )
    request_id = created["request"]["id"]

    with pytest.raises(AuthorizationError):
        service.approve(current_user_id=1, current_role=Role.DEV, request_id=request_id)

    approved = service.approve(current_user_id=2, current_role=Role.HR, request_id=request_id)
    assert approved.status == RequestStatus.APPROVED
    assert users.get_profile(1).dob == date(1995, 7, 30)
    assert users.get_profile(1).address == "12 Le Loi"

    with pytest.raises(ConflictError):
        service.approve(current_user_id=2, current_role=Role.HR, request_id=request_id)


def test_reject_requires_reason_and_frees_the_slot(service):
    created = service.update_my_profile(current_user_id=1, current_role=Role.DEV, changes={"gender": "M"})
    request_id = created["request"]["id"]

    with pytest.raises(ValidationError):
        service.reject(current_user_id=2, current_role=Role.HR, request_id=request_id, rejection_reason="no")

    rejected = service.reject(
        current_user_id=2, current_role=Role.HR, request_id=request_id, rejection_reason="Please attach your ID card"
    )
    assert rejected.rejection_reason == "Please attach your ID card"

    again = service.update_my_profile(current_user_id=1, current_role=Role.DEV, changes={"gender": "M"})
    assert again["applied"] is False
    assert [r.status for r in service.list_my_requests(current_user_id=1)] == [
        RequestStatus.REJECTED,
        RequestStatus.PENDING,
    ]


def test_visibility(service):
    created = service.update_my_profile(current_user_id=1, current_role=Role.DEV, changes={"gender": "M"})
    request_id = created["request"]["id"]
    with pytest.raises(AuthorizationError):
        service.list_requests(current_role=Role.LEADER)
    with pytest.raises(AuthorizationError):
        service.get_request(current_user_id=3, current_role=Role.LEADER, request_id=request_id)
    assert service.get_request(current_user_id=2, current_role=Role.HR, request_id=request_id).user_id == 1
