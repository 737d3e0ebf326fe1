from __future__ import annotations

import pytest

from hrm_system.assessments.model import AssessmentDetail, ScoreEntry, UserAssessment
from hrm_system.assessments.workflow import Actor, StatusTransitionController
from hrm_system.core.enums import AssessmentStatus, Role
from hrm_system.core.exceptions import AuthorizationError, IncompleteDataError, ValidationError


def _assessment(status: AssessmentStatus) -> UserAssessment:
    return UserAssessment(assessment_id=1, user_id=7, cycle_id=1, status=status)


def _details(**levels) -> list[AssessmentDetail]:
    return [
        AssessmentDetail(detail_id=1, assessment_id=1, competency_id=1, required_level=2, **levels),
        AssessmentDetail(detail_id=2, assessment_id=1, competency_id=2, required_level=3, **levels),
    ]


OWNER = Actor(user_id=7, role=Role.DEV, is_owner=True)
LEADER = Actor(user_id=3, role=Role.LEADER, is_team_leader=True)
HR = Actor(user_id=2, role=Role.HR)
OTHER_DEV = Actor(user_id=9, role=Role.DEV)


def test_self_phase_only_owner_writes_self_level():
    ctl = StatusTransitionController()
    phase = ctl.authorize_write(_assessment(AssessmentStatus.SELF_ASSESSING), OWNER)
    assert phase.level_field == "self_level"

    for actor in (LEADER, HR, OTHER_DEV):
        with pytest.raises(AuthorizationError):
            ctl.authorize_write(_assessment(AssessmentStatus.SELF_ASSESSING), actor)


def test_leader_phase_only_team_leader_writes():
    ctl = StatusTransitionController()
    phase = ctl.authorize_write(_assessment(AssessmentStatus.LEADER_ASSESSING), LEADER)
    assert phase.level_field == "leader_level"

    with pytest.raises(AuthorizationError):
        ctl.authorize_write(_assessment(AssessmentStatus.LEADER_ASSESSING), OWNER)
    with pytest.raises(AuthorizationError):
        ctl.authorize_write(_assessment(AssessmentStatus.LEADER_ASSESSING), HR)


def test_discussion_allows_leader_and_managers():
    ctl = StatusTransitionController()
    assert ctl.authorize_write(_assessment(AssessmentStatus.DISCUSSION), LEADER).level_field == "final_level"
    assert ctl.authorize_write(_assessment(AssessmentStatus.DISCUSSION), HR).level_field == "final_level"
    with pytest.raises(AuthorizationError):
        ctl.authorize_write(_assessment(AssessmentStatus.DISCUSSION), OWNER)
    with pytest.raises(AuthorizationError):
        ctl.authorize_write(_assessment(AssessmentStatus.DISCUSSION), Actor(user_id=7, role=Role.HR, is_owner=True))


def test_done_is_read_only_for_everyone():
    ctl = StatusTransitionController()
    for actor in (OWNER, LEADER, HR):
        with pytest.raises(AuthorizationError):
            ctl.authorize_write(_assessment(AssessmentStatus.DONE), actor)


def test_cannot_leave_self_assessing_with_empty_self_levels():
    ctl = StatusTransitionController()
    details = _details()
    details[0] = AssessmentDetail(detail_id=1, assessment_id=1, competency_id=1, required_level=2, self_level=3)

    with pytest.raises(IncompleteDataError) as exc:
        ctl.next_status(_assessment(AssessmentStatus.SELF_ASSESSING), details)
    assert exc.value.missing == [2]


def test_transitions_follow_fixed_order():
    ctl = StatusTransitionController()
    full = _details(self_level=3, leader_level=3, final_level=3)
    assert ctl.next_status(_assessment(AssessmentStatus.SELF_ASSESSING), full) == AssessmentStatus.LEADER_ASSESSING
    assert ctl.next_status(_assessment(AssessmentStatus.LEADER_ASSESSING), full) == AssessmentStatus.DISCUSSION
    assert ctl.next_status(_assessment(AssessmentStatus.DISCUSSION), full) == AssessmentStatus.DONE
    with pytest.raises(AuthorizationError):
        ctl.next_status(_assessment(AssessmentStatus.DONE), full)


def test_leader_phase_checks_leader_levels_not_self_levels():
    ctl = StatusTransitionController()
    with pytest.raises(IncompleteDataError) as exc:
        ctl.next_status(_assessment(AssessmentStatus.LEADER_ASSESSING), _details(self_level=4))
    assert exc.value.missing == [1, 2]


@pytest.mark.parametrize("level", [0, 6, 2.5, True, "3"])
def test_levels_must_be_integers_between_1_and_5(level):
    ctl = StatusTransitionController()
    with pytest.raises(ValidationError):
        ctl.validate_entries(_details(), [ScoreEntry(competency_id=1, level=level)])


def test_entries_must_belong_to_the_assessment_and_be_unique():
    ctl = StatusTransitionController()
    with pytest.raises(ValidationError):
        ctl.validate_entries(_details(), [ScoreEntry(competency_id=99, level=3)])
    with pytest.raises(ValidationError):
        ctl.validate_entries(_details(), [ScoreEntry(competency_id=1, level=3), ScoreEntry(competency_id=1, level=4)])


def test_blank_notes_are_dropped():
    ctl = StatusTransitionController()
    out = ctl.validate_entries(_details(), [ScoreEntry(competency_id=1, level=3, note="   ")])
    assert out == [ScoreEntry(competency_id=1, level=3, note=None)]
