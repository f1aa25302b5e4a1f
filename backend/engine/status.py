"""
status.py — Overall result classification.

Two vocabularies, picked by the stage profile:

  end-of-year result   ناجح (Pass) · مكمل (Supplementary) · راسب (Fail)
  ministerial result   مؤهل (Qualified) · مؤهل بقرار (QualifiedByDecision)
                       · غير مؤهل (NotQualified)

Primary 1-4 has no computed result. A student with no grades entered at
all is reported as incomplete rather than failing, and one still waiting
for a final grade as pending.
"""

from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from engine.grades import GradeValue, is_real
from engine.stages import Profile


class StatusLabel(Enum):
    PASS = "ناجح"
    SUPPLEMENTARY = "مكمل"
    FAIL = "راسب"
    QUALIFIED = "مؤهل"
    QUALIFIED_BY_DECISION = "مؤهل بقرار"
    NOT_QUALIFIED = "غير مؤهل"
    NOT_APPLICABLE = "-"
    INCOMPLETE = "غير مكتمل"
    PENDING = "قيد الانتظار"


RESULT_VOCABULARY = (StatusLabel.FAIL, StatusLabel.SUPPLEMENTARY, StatusLabel.PASS)
MINISTERIAL_VOCABULARY = (
    StatusLabel.NOT_QUALIFIED,
    StatusLabel.QUALIFIED_BY_DECISION,
    StatusLabel.QUALIFIED,
)


def status_rank(label: StatusLabel) -> Optional[int]:
    """Position of a label within its vocabulary, worst first. None for markers."""
    for vocabulary in (RESULT_VOCABULARY, MINISTERIAL_VOCABULARY):
        if label in vocabulary:
            return vocabulary.index(label)
    return None


def is_passing(grade: GradeValue, pass_mark: int = 50) -> bool:
    return is_real(grade) and grade >= pass_mark


def failing_subjects(
    grades: Mapping[str, GradeValue],
    exempt: Iterable[str] = (),
    pass_mark: int = 50,
) -> Tuple[str, ...]:
    """Subjects below the pass mark, in declared order. Absent and waived count as failing."""
    exempt = set(exempt)
    return tuple(
        s for s, g in grades.items()
        if s not in exempt and g is not None and not is_passing(g, pass_mark)
    )


def pending_subjects(grades: Mapping[str, GradeValue], exempt: Iterable[str] = ()) -> Tuple[str, ...]:
    """Subjects whose final grade is not computed yet."""
    exempt = set(exempt)
    return tuple(s for s, g in grades.items() if s not in exempt and g is None)


def classify_result(failing_count: int, supplementary_allowance: int) -> StatusLabel:
    if failing_count == 0:
        return StatusLabel.PASS
    if failing_count <= supplementary_allowance:
        return StatusLabel.SUPPLEMENTARY
    return StatusLabel.FAIL


def classify_ministerial(failing_count: int, decision_points_spent: int) -> StatusLabel:
    if failing_count > 0:
        return StatusLabel.NOT_QUALIFIED
    if decision_points_spent > 0:
        return StatusLabel.QUALIFIED_BY_DECISION
    return StatusLabel.QUALIFIED


def classify(
    profile: Profile,
    failing: Tuple[str, ...],
    decision_points_spent: int,
    supplementary_allowance: int,
    has_grades: bool = True,
    pending: Tuple[str, ...] = (),
) -> StatusLabel:
    """
    Overall status for one student.

    A subject still waiting for its final grade leaves the result pending,
    unless the failing subjects already settle it: more failures than the
    supplementary allowance is a fail, and any ministerial failure is
    final, whatever the pending subjects turn out to be.
    """
    if profile is Profile.PRIMARY_1_TO_4:
        return StatusLabel.NOT_APPLICABLE
    if not has_grades:
        return StatusLabel.INCOMPLETE
    if profile is Profile.MINISTERIAL:
        status = classify_ministerial(len(failing), decision_points_spent)
        decided = status is StatusLabel.NOT_QUALIFIED
    else:
        status = classify_result(len(failing), supplementary_allowance)
        decided = status is StatusLabel.FAIL
    if pending and not decided:
        return StatusLabel.PENDING
    return status


def build_message(
    status: StatusLabel,
    failing: Iterable[str],
    decision_subjects: Dict[str, int],
    pending: Iterable[str] = (),
) -> str:
    """Status line shown under the result on the grade sheet and report card."""
    failing = list(failing)
    if status is StatusLabel.PENDING:
        return "بانتظار درجات: " + _join(pending)
    if status is StatusLabel.PASS:
        return "ناجح في جميع المواد"
    if status is StatusLabel.QUALIFIED:
        return "مؤهل لأداء الامتحان الوزاري"
    if status is StatusLabel.QUALIFIED_BY_DECISION:
        return "مؤهل بقرار في: " + _join(decision_subjects)
    if status is StatusLabel.SUPPLEMENTARY:
        return "مكمل في: " + _join(failing)
    if status is StatusLabel.FAIL:
        return f"راسب في {len(failing)} مواد: " + _join(failing)
    if status is StatusLabel.NOT_QUALIFIED:
        return "غير مؤهل في: " + _join(failing)
    if status is StatusLabel.INCOMPLETE:
        return "لم تدخل الدرجات بعد"
    return ""


def _join(subjects: Iterable[str]) -> str:
    items: List[str] = list(subjects)
    return "، ".join(items)
