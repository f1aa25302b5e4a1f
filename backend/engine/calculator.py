"""
calculator.py — Student result computation.

Single entry point used by every screen that shows a student's result
(grade sheet, report card, counselor view, exports):

    calculate_student_result(raw_grades, stage, policy, class_overrides)
        -> (per-subject CalculatedGrade, StudentResult)

Pipeline, one pass per call:
  stage profile → term averages → annual pursuit → exemption
  → first final grade → decision points → status → makeup round

The function is pure: inputs are never mutated and nothing is cached, so
recomputing a row always gives the same answer.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from engine.decisions import allocate_decision_points, total_points
from engine.grades import GradeValue, SubjectGradeRecord, grade_to_wire
from engine.makeup import resolve_makeup, status_after_makeup
from engine.policy import PolicyOverride, SchoolPolicy, effective_policy
from engine.pursuit import annual_pursuit, first_final_grade, is_exempt
from engine.stages import Profile, StageConfig, profile_fields, resolve_profile
from engine.status import StatusLabel, build_message, classify, failing_subjects, pending_subjects
from engine.terms import aggregate_terms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculatedGrade:
    first_term: GradeValue = None
    second_term: GradeValue = None
    annual_pursuit: Optional[int] = None
    final_grade_1st: GradeValue = None
    final_grade_with_decision: GradeValue = None
    decision_points_applied: int = 0
    final_grade_2nd: GradeValue = None
    is_exempt: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "first_term": grade_to_wire(self.first_term),
            "second_term": grade_to_wire(self.second_term),
            "annual_pursuit": self.annual_pursuit,
            "final_grade_1st": grade_to_wire(self.final_grade_1st),
            "final_grade_with_decision": grade_to_wire(self.final_grade_with_decision),
            "decision_points_applied": self.decision_points_applied,
            "final_grade_2nd": grade_to_wire(self.final_grade_2nd),
            "is_exempt": self.is_exempt,
        }


@dataclass(frozen=True)
class StudentResult:
    status: StatusLabel
    failing_subjects: Tuple[str, ...] = ()
    message: str = ""
    decision_subjects: Dict[str, int] = field(default_factory=dict)
    status_after_makeup: Optional[StatusLabel] = None
    pending_subjects: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "status_code": self.status.name,
            "failing_subjects": list(self.failing_subjects),
            "message": self.message,
            "decision_subjects": [{"name": k, "points": v} for k, v in self.decision_subjects.items()],
            "status_after_makeup": self.status_after_makeup.value if self.status_after_makeup else None,
            "pending_subjects": list(self.pending_subjects),
        }


def _records(
    raw_grades: Optional[Mapping[str, Any]],
    subjects: Optional[Sequence[str]],
) -> Dict[str, SubjectGradeRecord]:
    raw_grades = raw_grades or {}
    order = list(subjects) if subjects is not None else list(raw_grades)
    return {s: SubjectGradeRecord.from_raw(raw_grades.get(s)) for s in order}


def _has_grades(records: Mapping[str, SubjectGradeRecord], profile: Profile) -> bool:
    fields = profile_fields(profile)
    return any(getattr(r, f) is not None for r in records.values() for f in fields)


def calculate_student_result(
    raw_grades: Optional[Mapping[str, Any]],
    stage: Optional[str],
    policy: Optional[SchoolPolicy] = None,
    class_overrides: Optional[PolicyOverride] = None,
    subjects: Optional[Sequence[str]] = None,
    stage_config: Optional[StageConfig] = None,
) -> Tuple[Dict[str, CalculatedGrade], StudentResult]:
    """
    Compute every derived grade and the overall result for one student.

    raw_grades maps subject name → raw grade fields (snake_case or the
    datastore's camelCase keys; -1/-2 and absent/waived tokens become
    sentinels). `subjects` fixes the declared subject order, which is also
    the tie-break order for decision points; it defaults to the mapping's
    own order.
    """
    profile = resolve_profile(stage, stage_config)
    policy = effective_policy(policy, class_overrides, profile)
    records = _records(raw_grades, subjects)

    if profile is Profile.PRIMARY_1_TO_4:
        calculated = {s: CalculatedGrade() for s in records}
        return calculated, StudentResult(status=StatusLabel.NOT_APPLICABLE)

    terms: Dict[str, Tuple[GradeValue, GradeValue]] = {}
    pursuits: Dict[str, Optional[int]] = {}
    exempt: List[str] = []
    first_grades: Dict[str, GradeValue] = {}

    for subject, record in records.items():
        first_term, second_term = aggregate_terms(record, profile)
        pursuit = annual_pursuit(first_term, record.mid_year, second_term, profile)
        exempt_here = is_exempt(pursuit, profile, policy)
        terms[subject] = (first_term, second_term)
        pursuits[subject] = pursuit
        if exempt_here:
            exempt.append(subject)
        first_grades[subject] = first_final_grade(pursuit, record.final_exam_1st, profile, exempt_here)

    allocations = allocate_decision_points(
        first_grades,
        policy.decision_point_budget,
        pass_mark=policy.pass_mark,
        near_miss_cap=policy.near_miss_cap,
        exempt=exempt,
    )
    with_decision = {s: a.grade_with_decision for s, a in allocations.items()}
    decision_subjects = {s: a.points for s, a in allocations.items() if a.funded}

    failing = failing_subjects(with_decision, exempt, policy.pass_mark)
    pending = pending_subjects(with_decision, exempt)
    status = classify(
        profile,
        failing,
        total_points(allocations),
        policy.supplementary_allowance,
        has_grades=_has_grades(records, profile),
        pending=pending,
    )
    if status is StatusLabel.INCOMPLETE:
        failing, pending = (), ()

    second_grades = resolve_makeup(
        pursuits,
        {s: r.final_exam_2nd for s, r in records.items()},
        failing,
        status,
    )

    calculated = {
        subject: CalculatedGrade(
            first_term=terms[subject][0],
            second_term=terms[subject][1],
            annual_pursuit=pursuits[subject],
            final_grade_1st=first_grades[subject],
            final_grade_with_decision=with_decision[subject],
            decision_points_applied=allocations[subject].points,
            final_grade_2nd=second_grades.get(subject),
            is_exempt=subject in exempt,
        )
        for subject in records
    }

    result = StudentResult(
        status=status,
        failing_subjects=failing,
        message=build_message(status, failing, decision_subjects, pending),
        decision_subjects=decision_subjects,
        status_after_makeup=status_after_makeup(second_grades, policy.pass_mark),
        pending_subjects=pending,
    )
    logger.debug(
        "Result for stage %r (%s): %s, failing=%s, decisions=%s",
        stage, profile.value, status.name, list(failing), decision_subjects,
    )
    return calculated, result
