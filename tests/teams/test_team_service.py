from __future__ import annotations

import pytest

from hrm_system.core.enums import Role
from hrm_system.core.exceptions import AuthorizationError, ConflictError, ValidationError
from hrm_system.teams.service import TeamService


@pytest.fixture
def service(teams, users):
    users.add(1)
    users.add(2)
    users.add(3)
    return TeamService(teams, users)


def test_only_managers_create_teams(service):
    with pytest.raises(AuthorizationError):
        service.create_team(current_role=Role.LEADER, team_name="Core")


def test_create_with_leader_promotes_and_joins(service, users):
    team = service.create_team(current_role=Role.HR, team_name="  Core  ", leader_id=1)

    assert team.team_name == "Core"
    assert team.leader_id == 1
    assert users.get_by_id(1).role == Role.LEADER
    assert users.get_by_id(1).team_id == team.team_id


def test_duplicate_name(service):
    service.create_team(current_role=Role.HR, team_name="Core")
    with pytest.raises(ConflictError):
        service.create_team(current_role=Role.ADMIN, team_name="Core")


def test_reassigning_leader_reverts_previous(service, users):
    team = service.create_team(current_role=Role.HR, team_name="Core", leader_id=1)
    service.add_member(current_role=Role.HR, team_id=team.team_id, user_id=2)

    updated = service.assign_leader(current_role=Role.HR, team_id=team.team_id, user_id=2)

    assert updated.leader_id == 2
    assert users.get_by_id(2).role == Role.LEADER
    assert users.get_by_id(1).role == Role.DEV


def test_leader_must_be_member(service):
    team = service.create_team(current_role=Role.HR, team_name="Core")
    with pytest.raises(ValidationError):
        service.assign_leader(current_role=Role.HR, team_id=team.team_id, user_id=3)


def test_membership_rules(service):
    core = service.create_team(current_role=Role.HR, team_name="Core", leader_id=1)
    web = service.create_team(current_role=Role.HR, team_name="Web")

    service.add_member(current_role=Role.HR, team_id=core.team_id, user_id=2)
    with pytest.raises(ConflictError):
        service.add_member(current_role=Role.HR, team_id=core.team_id, user_id=2)
    with pytest.raises(ConflictError):
        service.add_member(current_role=Role.HR, team_id=web.team_id, user_id=1)
    with pytest.raises(ValidationError):
        service.remove_member(current_role=Role.HR, team_id=web.team_id, user_id=2)


def test_delete_unassigns_members(service, users):
    team = service.create_team(current_role=Role.HR, team_name="Core", leader_id=1)
    service.add_member(current_role=Role.HR, team_id=team.team_id, user_id=2)

    assert service.delete_team(current_role=Role.ADMIN, team_id=team.team_id) == 2
    assert users.get_by_id(1).team_id is None
    assert users.get_by_id(2).team_id is None


def test_get_team_lists_members(service):
    team = service.create_team(current_role=Role.HR, team_name="Core", leader_id=1)
    detail = service.get_team(team_id=team.team_id)
    assert [m["id"] for m in detail["members"]] == [1]
    assert service.get_my_team(team_id=None) is None
