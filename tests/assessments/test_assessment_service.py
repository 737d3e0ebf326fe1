from __future__ import annotations

import pytest

from hrm_system.assessments.model import ScoreEntry
from hrm_system.core.enums import AssessmentStatus, CycleStatus, Role
from hrm_system.core.exceptions import (
    AuthorizationError,
    ConflictError,
    IncompleteDataError,
    ValidationError,
)

OWNER, HR, LEADER, OUTSIDER = 1, 2, 3, 4


@pytest.fixture
def started(cycle_service, cycles, users, teams, sender):
    """Team 5 led by user 3; user 1 (band 1) has an assessment in the active cycle."""
    teams.add(5, leader_id=LEADER)
    users.add(OWNER, career_band_id=1, team_id=5, full_name="Owner")
    users.add(HR, role=Role.HR)
    users.add(LEADER, role=Role.LEADER, team_id=5, full_name="Lead")
    users.add(OUTSIDER, career_band_id=None)
    cycle = cycles.add()
    cycle_service.activate_cycle(current_role=Role.HR, cycle_id=cycle.cycle_id)
    sender.sent.clear()
    return cycle


def _assessment_id(assessments, cycle):
    return assessments.find_for_user(user_id=OWNER, cycle_id=cycle.cycle_id).assessment_id


def _scores(**levels):
    return [ScoreEntry(competency_id=1, level=levels["c1"]), ScoreEntry(competency_id=2, level=levels["c2"])]


def test_full_lifecycle_to_done(assessment_service, assessments, started, sender):
    aid = _assessment_id(assessments, started)

    view = assessment_service.save_scores(
        current_user_id=OWNER, current_role=Role.DEV, assessment_id=aid, entries=_scores(c1=3, c2=2), submit=True
    )
    assert view["status"] == AssessmentStatus.LEADER_ASSESSING.value
    assert view["selfScoreAvg"] == 2.5
    assert sender.recipients() == ["user3@example.com"]
    assert "Owner" in sender.sent[0]["subject"]

    view = assessment_service.save_scores(
        current_user_id=LEADER, current_role=Role.LEADER, assessment_id=aid, entries=_scores(c1=2, c2=2), submit=True
    )
    assert view["status"] == AssessmentStatus.DISCUSSION.value
    assert view["leaderScoreAvg"] == 2.0

    view = assessment_service.save_scores(
        current_user_id=LEADER,
        current_role=Role.LEADER,
        assessment_id=aid,
        entries=_scores(c1=3, c2=2),
        feedback="Solid quarter, keep growing design skills",
        submit=True,
    )
    assert view["status"] == AssessmentStatus.DONE.value
    assert view["finalScoreAvg"] == 2.5
    assert view["feedback"] == "Solid quarter, keep growing design skills"
    gaps = {d["competencyId"]: d["gap"] for d in view["details"]}
    assert gaps == {1: -1, 2: 1}
    assert view["permissions"]["canEdit"] is False


def test_submit_with_missing_self_levels_is_rejected(assessment_service, assessments, started):
    aid = _assessment_id(assessments, started)
    assessment_service.save_scores(
        current_user_id=OWNER,
        current_role=Role.DEV,
        assessment_id=aid,
        entries=[ScoreEntry(competency_id=1, level=4)],
    )

    with pytest.raises(IncompleteDataError) as exc:
        assessment_service.submit(current_user_id=OWNER, current_role=Role.DEV, assessment_id=aid)
    assert exc.value.missing == [2]
    assert assessments.get_by_id(aid).status == AssessmentStatus.SELF_ASSESSING


def test_saving_twice_in_a_phase_keeps_the_last_write(assessment_service, assessments, started):
    aid = _assessment_id(assessments, started)
    for level in (2, 4):
        assessment_service.save_scores(
            current_user_id=OWNER,
            current_role=Role.DEV,
            assessment_id=aid,
            entries=[ScoreEntry(competency_id=1, level=level)],
        )
    levels = {d.competency_id: d.self_level for d in assessments.list_details(aid)}
    assert levels == {1: 4, 2: None}


def test_wrong_actor_cannot_write(assessment_service, assessments, started):
    aid = _assessment_id(assessments, started)
    with pytest.raises(AuthorizationError):
        assessment_service.save_scores(
            current_user_id=LEADER, current_role=Role.LEADER, assessment_id=aid, entries=_scores(c1=3, c2=3)
        )
    with pytest.raises(AuthorizationError):
        assessment_service.save_scores(
            current_user_id=HR, current_role=Role.HR, assessment_id=aid, entries=_scores(c1=3, c2=3)
        )


def test_feedback_only_during_discussion(assessment_service, assessments, started):
    aid = _assessment_id(assessments, started)
    with pytest.raises(ValidationError):
        assessment_service.save_scores(
            current_user_id=OWNER,
            current_role=Role.DEV,
            assessment_id=aid,
            entries=_scores(c1=4, c2=4),
            feedback="too early for this",
        )
    assert [d.self_level for d in assessments.list_details(aid)] == [None, None]


def test_overlong_feedback_leaves_final_levels_untouched(assessment_service, assessments, started):
    aid = _assessment_id(assessments, started)
    _to_discussion(assessment_service, aid)

    with pytest.raises(ValidationError):
        assessment_service.save_scores(
            current_user_id=LEADER,
            current_role=Role.LEADER,
            assessment_id=aid,
            entries=_scores(c1=5, c2=5),
            feedback="x" * 2001,
        )
    assert [d.final_level for d in assessments.list_details(aid)] == [None, None]
    assert assessments.get_by_id(aid).feedback is None


def test_completed_cycle_locks_scores(assessment_service, assessments, cycles, started):
    aid = _assessment_id(assessments, started)
    cycles.set_status(cycle_id=started.cycle_id, from_status=CycleStatus.ACTIVE, to_status=CycleStatus.COMPLETED)

    with pytest.raises(ConflictError):
        assessment_service.save_scores(
            current_user_id=OWNER, current_role=Role.DEV, assessment_id=aid, entries=_scores(c1=3, c2=3)
        )


def test_detail_visibility(assessment_service, assessments, started):
    aid = _assessment_id(assessments, started)

    owner_view = assessment_service.get_assessment(current_user_id=OWNER, current_role=Role.DEV, assessment_id=aid)
    assert owner_view["permissions"] == {"canEdit": True, "editableField": "self_level", "canSubmit": True}
    assert len(owner_view["details"][0]["levels"]) == 5

    leader_view = assessment_service.get_assessment(current_user_id=LEADER, current_role=Role.LEADER, assessment_id=aid)
    assert leader_view["permissions"]["canEdit"] is False

    assessment_service.get_assessment(current_user_id=HR, current_role=Role.HR, assessment_id=aid)

    with pytest.raises(AuthorizationError):
        assessment_service.get_assessment(current_user_id=OUTSIDER, current_role=Role.DEV, assessment_id=aid)


def test_my_assessment_defaults_to_active_cycle(assessment_service, started):
    mine = assessment_service.get_my_assessment(current_user_id=OWNER, current_role=Role.DEV)
    assert mine["cycleId"] == started.cycle_id
    assert assessment_service.get_my_assessment(current_user_id=OUTSIDER, current_role=Role.DEV) is None
    assert [a.cycle_id for a in assessment_service.my_history(current_user_id=OWNER)] == [started.cycle_id]


def test_team_views_are_for_leaders(assessment_service, assessments, started):
    rows = assessment_service.team_assessments(current_user_id=LEADER)
    assert [a.user_id for a in rows] == [OWNER]

    # still in progress
    assert assessment_service.team_radar(current_user_id=LEADER) == []

    _finish(assessment_service, _assessment_id(assessments, started))
    radar = assessment_service.team_radar(current_user_id=LEADER)
    assert [g["groupName"] for g in radar] == ["Technical"]

    with pytest.raises(AuthorizationError):
        assessment_service.team_assessments(current_user_id=OWNER)


def _to_discussion(assessment_service, aid):
    assessment_service.save_scores(
        current_user_id=OWNER, current_role=Role.DEV, assessment_id=aid, entries=_scores(c1=1, c2=1), submit=True
    )
    assessment_service.save_scores(
        current_user_id=LEADER, current_role=Role.LEADER, assessment_id=aid, entries=_scores(c1=1, c2=1), submit=True
    )


def _finish(assessment_service, aid):
    _to_discussion(assessment_service, aid)
    assessment_service.save_scores(
        current_user_id=HR, current_role=Role.HR, assessment_id=aid, entries=_scores(c1=1, c2=2), submit=True
    )


def test_gap_report_scopes(assessment_service, assessments, started):
    aid = _assessment_id(assessments, started)
    _finish(assessment_service, aid)

    report = assessment_service.gap_report(current_user_id=HR, current_role=Role.HR, cycle_id=started.cycle_id)
    assert report["summary"]["totalEmployees"] == 1
    assert report["byEmployee"][0]["criticalGaps"] == []
    assert report["summary"]["meetsRequirementPercent"] == 0.0

    leader_report = assessment_service.gap_report(current_user_id=LEADER, current_role=Role.LEADER)
    assert leader_report["filters"]["teamId"] == 5

    with pytest.raises(AuthorizationError):
        assessment_service.gap_report(current_user_id=LEADER, current_role=Role.LEADER, team_id=99)
    with pytest.raises(AuthorizationError):
        assessment_service.gap_report(current_user_id=OWNER, current_role=Role.DEV)


def test_team_radar_uses_latest_finished_cycle(assessment_service, cycle_service, assessments, cycles, started):
    _finish(assessment_service, _assessment_id(assessments, started))
    cycle_service.complete_cycle(current_role=Role.HR, cycle_id=started.cycle_id)
    second = cycles.add(name="Q2-2026")
    cycle_service.activate_cycle(current_role=Role.HR, cycle_id=second.cycle_id)
    assert assessments.find_for_user(user_id=OWNER, cycle_id=second.cycle_id) is not None

    radar = assessment_service.team_radar(current_user_id=LEADER)
    assert [g["groupName"] for g in radar] == ["Technical"]
    assert assessment_service.team_radar(current_user_id=LEADER, cycle_id=second.cycle_id) == []


TEAMLESS = 6


@pytest.fixture
def unled(cycle_service, cycles, users, teams, sender):
    """The leader of team 5 and a user with no team both have assessments."""
    teams.add(5, leader_id=LEADER)
    users.add(HR, role=Role.HR)
    users.add(LEADER, role=Role.LEADER, team_id=5, career_band_id=1, full_name="Lead")
    users.add(TEAMLESS, career_band_id=1, full_name="Solo")
    users.add(OUTSIDER)
    cycle = cycles.add()
    cycle_service.activate_cycle(current_role=Role.HR, cycle_id=cycle.cycle_id)
    sender.sent.clear()
    return cycle


def test_leader_own_assessment_is_reviewed_by_hr(assessment_service, assessments, unled, sender):
    aid = assessments.find_for_user(user_id=LEADER, cycle_id=unled.cycle_id).assessment_id
    view = assessment_service.save_scores(
        current_user_id=LEADER, current_role=Role.LEADER, assessment_id=aid, entries=_scores(c1=3, c2=3), submit=True
    )
    assert view["status"] == AssessmentStatus.LEADER_ASSESSING.value
    assert view["permissions"]["canEdit"] is False
    assert sender.sent == []

    with pytest.raises(AuthorizationError):
        assessment_service.save_scores(
            current_user_id=LEADER, current_role=Role.LEADER, assessment_id=aid, entries=_scores(c1=5, c2=5)
        )
    with pytest.raises(AuthorizationError):
        assessment_service.save_scores(
            current_user_id=OUTSIDER, current_role=Role.DEV, assessment_id=aid, entries=_scores(c1=5, c2=5)
        )

    hr_view = assessment_service.get_assessment(current_user_id=HR, current_role=Role.HR, assessment_id=aid)
    assert hr_view["permissions"]["editableField"] == "leader_level"
    view = assessment_service.save_scores(
        current_user_id=HR, current_role=Role.HR, assessment_id=aid, entries=_scores(c1=2, c2=3), submit=True
    )
    assert view["status"] == AssessmentStatus.DISCUSSION.value
    assert view["leaderScoreAvg"] == 2.5

    with pytest.raises(AuthorizationError):
        assessment_service.save_scores(
            current_user_id=LEADER, current_role=Role.LEADER, assessment_id=aid, entries=_scores(c1=5, c2=5)
        )


def test_teamless_assessment_is_reviewed_by_hr(assessment_service, assessments, unled, sender):
    aid = assessments.find_for_user(user_id=TEAMLESS, cycle_id=unled.cycle_id).assessment_id
    assessment_service.save_scores(
        current_user_id=TEAMLESS, current_role=Role.DEV, assessment_id=aid, entries=_scores(c1=2, c2=2), submit=True
    )
    assert sender.sent == []

    view = assessment_service.save_scores(
        current_user_id=HR, current_role=Role.HR, assessment_id=aid, entries=_scores(c1=2, c2=2), submit=True
    )
    assert view["status"] == AssessmentStatus.DISCUSSION.value
