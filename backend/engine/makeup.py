"""
makeup.py — Second round (الاكمال).

A Supplementary student re-sits each subject still failing after decision
points. The second-round grade is

    final grade (2nd) = round(mean(annual pursuit, makeup exam))

Decision points are not spent again in this round.
"""

from typing import Dict, Iterable, Mapping, Optional

from engine.grades import GradeValue, Sentinel, is_real, mean_of_present
from engine.status import StatusLabel, is_passing


def second_final_grade(pursuit: Optional[int], makeup_exam: GradeValue) -> GradeValue:
    if makeup_exam is Sentinel.ABSENT:
        return Sentinel.ABSENT
    if not is_real(makeup_exam):
        return None
    return mean_of_present((pursuit, makeup_exam))


def resolve_makeup(
    pursuits: Mapping[str, Optional[int]],
    makeup_exams: Mapping[str, GradeValue],
    failing: Iterable[str],
    status: StatusLabel,
) -> Dict[str, GradeValue]:
    """Second-round grades for the failing subjects of a Supplementary student."""
    if status is not StatusLabel.SUPPLEMENTARY:
        return {}
    return {
        subject: second_final_grade(pursuits.get(subject), makeup_exams.get(subject))
        for subject in failing
    }


def status_after_makeup(
    second_grades: Mapping[str, GradeValue],
    pass_mark: int = 50,
) -> Optional[StatusLabel]:
    """
    Pass once every re-sat subject reaches the pass mark, Fail otherwise.

    None while any makeup result is still pending.
    """
    if not second_grades:
        return None
    if any(g is None for g in second_grades.values()):
        return None
    if all(is_passing(g, pass_mark) for g in second_grades.values()):
        return StatusLabel.PASS
    return StatusLabel.FAIL
