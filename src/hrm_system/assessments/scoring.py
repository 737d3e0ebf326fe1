"""Score Aggregator: averages, per-group subscores and gap analysis.

Gap = required level - achieved level (final once reconciled, self before).
Positive means below requirement. The detail view reports it as-is; the
underqualified aggregates clamp it at 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..core.constants import CRITICAL_GAP
from .model import AssessmentDetail, UserAssessment


def mean(values: Iterable[Optional[float]], *, ndigits: int = 2) -> Optional[float]:
    vals = [float(v) for v in values if v is not None]
    if not vals:
        return None
    return round(sum(vals) / len(vals), ndigits)


@dataclass(frozen=True)
class ScoreSummary:
    self_avg: Optional[float]
    leader_avg: Optional[float]
    final_avg: Optional[float]
    avg_gap: Optional[float]

    def to_dict(self) -> dict:
        return {
            "avgSelf": self.self_avg,
            "avgLeader": self.leader_avg,
            "avgFinal": self.final_avg,
            "avgGap": self.avg_gap,
        }


@dataclass(frozen=True)
class GroupScore:
    group_id: Optional[int]
    group_name: str
    required_avg: Optional[float]
    self_avg: Optional[float]
    leader_avg: Optional[float]
    final_avg: Optional[float]

    def to_dict(self) -> dict:
        return {
            "groupId": self.group_id,
            "groupName": self.group_name,
            "required": self.required_avg,
            "self": self.self_avg,
            "leader": self.leader_avg,
            "final": self.final_avg,
        }


class ScoreAggregator:
    """Pure computations over detail rows; recomputing is idempotent."""

    @staticmethod
    def gap(detail: AssessmentDetail) -> Optional[int]:
        achieved = detail.achieved_level
        if achieved is None:
            return None
        return int(detail.required_level) - int(achieved)

    def underqualified_gap(self, detail: AssessmentDetail) -> Optional[int]:
        g = self.gap(detail)
        if g is None:
            return None
        return max(g, 0)

    def summarize(self, details: Sequence[AssessmentDetail]) -> ScoreSummary:
        return ScoreSummary(
            self_avg=mean(d.self_level for d in details),
            leader_avg=mean(d.leader_level for d in details),
            final_avg=mean(d.final_level for d in details),
            avg_gap=mean(self.gap(d) for d in details),
        )

    def group_scores(self, details: Sequence[AssessmentDetail]) -> list[GroupScore]:
        """Radar chart data: one axis per competency group."""
        groups: dict[Optional[int], list[AssessmentDetail]] = {}
        names: dict[Optional[int], str] = {}
        for d in details:
            groups.setdefault(d.group_id, []).append(d)
            names[d.group_id] = d.group_name or "Other"

        out = []
        for group_id, rows in groups.items():
            out.append(
                GroupScore(
                    group_id=group_id,
                    group_name=names[group_id],
                    required_avg=mean(d.required_level for d in rows),
                    self_avg=mean(d.self_level for d in rows),
                    leader_avg=mean(d.leader_level for d in rows),
                    final_avg=mean(d.final_level for d in rows),
                )
            )
        return sorted(out, key=lambda g: (g.group_id is None, g.group_id or 0))

    def team_group_scores(self, per_member: Sequence[Sequence[AssessmentDetail]]) -> list[dict]:
        """Average each group's subscores across team members."""
        buckets: dict[Optional[int], list[GroupScore]] = {}
        for details in per_member:
            for g in self.group_scores(details):
                buckets.setdefault(g.group_id, []).append(g)

        out = []
        for group_id, scores in buckets.items():
            out.append(
                {
                    "groupId": group_id,
                    "groupName": scores[0].group_name,
                    "required": mean(s.required_avg for s in scores),
                    "self": mean(s.self_avg for s in scores),
                    "leader": mean(s.leader_avg for s in scores),
                    "final": mean(s.final_avg for s in scores),
                    "members": len(scores),
                }
            )
        return sorted(out, key=lambda g: (g["groupId"] is None, g["groupId"] or 0))

    def gap_report(self, rows: Sequence[tuple[UserAssessment, Sequence[AssessmentDetail]]]) -> dict:
        all_gaps: list[int] = []
        by_competency: dict[int, dict] = {}
        by_employee: list[dict] = []

        for assessment, details in rows:
            employee_gaps: list[int] = []
            critical: list[dict] = []
            for d in details:
                g = self.gap(d)
                if g is None:
                    continue
                all_gaps.append(g)
                employee_gaps.append(max(g, 0))

                item = by_competency.setdefault(
                    d.competency_id,
                    {"competencyId": d.competency_id, "competencyName": d.competency_name, "gaps": [], "employeesBelow": 0},
                )
                item["gaps"].append(max(g, 0))
                if g > 0:
                    item["employeesBelow"] += 1
                if g >= CRITICAL_GAP:
                    critical.append({"competencyId": d.competency_id, "competencyName": d.competency_name, "gap": g})

            by_employee.append(
                {
                    "userId": assessment.user_id,
                    "fullName": assessment.full_name,
                    "assessmentId": assessment.assessment_id,
                    "avgGap": mean(employee_gaps) or 0.0,
                    "criticalGaps": critical,
                    "totalCompetencies": len(employee_gaps),
                }
            )

        meets = len([g for g in all_gaps if g <= 0])
        meets_pct = round(meets * 100.0 / len(all_gaps), 1) if all_gaps else 0.0
        competencies = [
            {
                "competencyId": item["competencyId"],
                "competencyName": item["competencyName"],
                "avgGap": mean(item["gaps"]) or 0.0,
                "employeesBelow": item["employeesBelow"],
                "totalAssessed": len(item["gaps"]),
            }
            for item in by_competency.values()
        ]

        return {
            "summary": {
                "totalEmployees": len(rows),
                "avgGap": mean(max(g, 0) for g in all_gaps) or 0.0,
                "meetsRequirementPercent": meets_pct,
                "needsDevelopmentPercent": round(100.0 - meets_pct, 1) if all_gaps else 0.0,
            },
            "byCompetency": sorted(competencies, key=lambda c: c["avgGap"], reverse=True),
            "byEmployee": sorted(by_employee, key=lambda e: e["avgGap"], reverse=True),
        }
