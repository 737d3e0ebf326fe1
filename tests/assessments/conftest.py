from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from hrm_system.assessments.cycle_service import CycleService
from hrm_system.assessments.model import AssessmentCycle, AssessmentDetail, UserAssessment
from hrm_system.assessments.service import AssessmentService
from hrm_system.competencies.model import Competency, CompetencyLevel, Requirement
from hrm_system.core.enums import AssessmentStatus, CycleStatus

# competency_id -> (name, group_id, group_name)
CATALOGUE = {
    1: ("Code quality", 10, "Technical"),
    2: ("System design", 10, "Technical"),
    3: ("Communication", 20, "Collaboration"),
}


class FakeCycleRepo:
    def __init__(self):
        self._next_id = 1
        self.cycles: dict[int, AssessmentCycle] = {}

    def add(self, *, name="Q1-2026", status=CycleStatus.DRAFT, start=date(2026, 1, 1), end=date(2026, 3, 31)):
        cid = self.create(name=name, start_date=start, end_date=end)
        self.cycles[cid] = replace(self.cycles[cid], status=status)
        return self.cycles[cid]

    def create(self, *, name, start_date, end_date):
        cid = self._next_id
        self._next_id += 1
        self.cycles[cid] = AssessmentCycle(
            cycle_id=cid, name=name, start_date=start_date, end_date=end_date, status=CycleStatus.DRAFT
        )
        return cid

    def get_by_id(self, cycle_id):
        return self.cycles.get(int(cycle_id))

    def list_cycles(self, *, status=None):
        return [c for c in self.cycles.values() if status is None or c.status == status]

    def get_active(self):
        return next((c for c in self.cycles.values() if c.status == CycleStatus.ACTIVE), None)

    def update(self, *, cycle_id, name, start_date, end_date):
        c = self.cycles[int(cycle_id)]
        self.cycles[c.cycle_id] = replace(c, name=name, start_date=start_date, end_date=end_date)
        return True

    def set_status(self, *, cycle_id, from_status, to_status):
        c = self.cycles.get(int(cycle_id))
        if not c or c.status != from_status:
            return False
        if to_status == CycleStatus.ACTIVE and self.get_active():
            return False
        self.cycles[c.cycle_id] = replace(c, status=to_status)
        return True

    def delete(self, *, cycle_id):
        return self.cycles.pop(int(cycle_id), None) is not None


class FakeAssessmentRepo:
    def __init__(self, users, cycles):
        self._users = users
        self._cycles = cycles
        self._next_id = 1
        self._next_detail = 1
        self.assessments: dict[int, UserAssessment] = {}
        self.details: dict[int, list[AssessmentDetail]] = {}

    def _decorate(self, a: UserAssessment) -> UserAssessment:
        user = self._users.get_by_id(a.user_id)
        cycle = self._cycles.get_by_id(a.cycle_id)
        return replace(a, full_name=user.full_name if user else None, cycle_name=cycle.name if cycle else None)

    def create_with_details(self, *, user_id, cycle_id, requirements):
        if self.find_for_user(user_id=user_id, cycle_id=cycle_id):
            return None
        aid = self._next_id
        self._next_id += 1
        self.assessments[aid] = UserAssessment(
            assessment_id=aid, user_id=int(user_id), cycle_id=int(cycle_id), status=AssessmentStatus.SELF_ASSESSING
        )
        rows = []
        for competency_id, level in sorted(requirements.items()):
            name, group_id, group_name = CATALOGUE.get(competency_id, (f"C{competency_id}", None, None))
            rows.append(
                AssessmentDetail(
                    detail_id=self._next_detail,
                    assessment_id=aid,
                    competency_id=competency_id,
                    required_level=level,
                    competency_name=name,
                    group_id=group_id,
                    group_name=group_name,
                )
            )
            self._next_detail += 1
        self.details[aid] = rows
        return aid

    def get_by_id(self, assessment_id):
        a = self.assessments.get(int(assessment_id))
        return self._decorate(a) if a else None

    def find_for_user(self, *, user_id, cycle_id):
        for a in self.assessments.values():
            if a.user_id == int(user_id) and a.cycle_id == int(cycle_id):
                return self._decorate(a)
        return None

    def list_details(self, assessment_id):
        return list(self.details.get(int(assessment_id), []))

    def list_details_for(self, assessment_ids):
        return {int(i): self.list_details(i) for i in assessment_ids}

    def save_levels(self, *, assessment_id, expected_status, level_field, entries):
        a = self.assessments.get(int(assessment_id))
        if not a or a.status != expected_status:
            return False
        by_comp = {e.competency_id: e for e in entries}
        rows = []
        for d in self.details[a.assessment_id]:
            e = by_comp.get(d.competency_id)
            if e:
                d = replace(d, **{level_field: e.level}, note=e.note if e.note is not None else d.note)
            rows.append(d)
        self.details[a.assessment_id] = rows
        return True

    def set_feedback(self, *, assessment_id, expected_status, feedback):
        a = self.assessments.get(int(assessment_id))
        if not a or a.status != expected_status:
            return False
        self.assessments[a.assessment_id] = replace(a, feedback=feedback)
        return True

    def advance_status(self, *, assessment_id, from_status, to_status, self_score_avg, leader_score_avg, final_score_avg):
        a = self.assessments.get(int(assessment_id))
        if not a or a.status != from_status:
            return False
        self.assessments[a.assessment_id] = replace(
            a,
            status=to_status,
            self_score_avg=self_score_avg,
            leader_score_avg=leader_score_avg,
            final_score_avg=final_score_avg,
        )
        return True

    def list_by_cycle(self, cycle_id):
        return [self._decorate(a) for a in self.assessments.values() if a.cycle_id == int(cycle_id)]

    def list_by_user(self, user_id):
        return [self._decorate(a) for a in self.assessments.values() if a.user_id == int(user_id)]

    def list_by_users(self, user_ids, *, cycle_id=None):
        ids = {int(x) for x in user_ids}
        return [
            self._decorate(a)
            for a in self.assessments.values()
            if a.user_id in ids and (cycle_id is None or a.cycle_id == int(cycle_id))
        ]

    def list_for_report(self, *, status, cycle_id=None, team_id=None):
        out = []
        for a in self.assessments.values():
            if a.status != status or (cycle_id is not None and a.cycle_id != int(cycle_id)):
                continue
            user = self._users.get_by_id(a.user_id)
            if team_id is not None and (not user or user.team_id != int(team_id)):
                continue
            out.append(self._decorate(a))
        return out

    def count_by_status(self, cycle_id):
        counts: dict[str, int] = {}
        for a in self.assessments.values():
            if a.cycle_id == int(cycle_id):
                counts[a.status.value] = counts.get(a.status.value, 0) + 1
        return counts

    def count_for_cycle(self, cycle_id):
        return sum(1 for a in self.assessments.values() if a.cycle_id == int(cycle_id))


class FakeRequirementRepo:
    def __init__(self, cells=()):
        self.cells = [Requirement(career_band_id=b, competency_id=c, required_level=lv) for b, c, lv in cells]

    def list_all(self):
        return list(self.cells)

    def list_for_band(self, career_band_id):
        return [r for r in self.cells if r.career_band_id == int(career_band_id)]


class FakeCompetencyRepo:
    def list_competencies(self, *, group_id=None):
        levels = tuple(CompetencyLevel(level_number=n, behavioral_indicator=f"level {n}") for n in range(1, 6))
        return [
            Competency(competency_id=cid, group_id=gid, name=name, group_name=gname, levels=levels)
            for cid, (name, gid, gname) in CATALOGUE.items()
            if group_id is None or gid == group_id
        ]


@pytest.fixture
def cycles():
    return FakeCycleRepo()


@pytest.fixture
def assessments(users, cycles):
    return FakeAssessmentRepo(users, cycles)


@pytest.fixture
def requirements():
    # band 1 (DEV): Code quality -> 2, System design -> 3
    return FakeRequirementRepo([(1, 1, 2), (1, 2, 3), (2, 1, 3), (2, 2, 4), (2, 3, 3)])


@pytest.fixture
def cycle_service(cycles, assessments, users, requirements, email_service):
    return CycleService(cycles, assessments, users, requirements, email_service, app_url="http://hrm.test")


@pytest.fixture
def assessment_service(assessments, cycles, users, teams, email_service):
    return AssessmentService(
        assessments,
        cycles,
        users,
        teams,
        FakeCompetencyRepo(),
        email_service,
        app_url="http://hrm.test",
    )
