"""
decisions.py — Decision-point allocation (درجة القرار).

The school grants each student a small budget of decision points. A point
lifts a near-miss subject one mark towards the pass line; a subject is
saved only when it reaches the pass mark exactly.

Every saved subject is worth the same, so the number of subjects saved
under a budget is maximized by funding the cheapest subjects first:

    cost_i = pass_mark - grade_i      (eligible when 0 < cost_i <= cap)

Sort eligible subjects by cost (ties keep the declared subject order) and
fund each while the remaining budget covers it. Swapping a funded subject
for a cheaper unfunded one never lowers the count or raises the spend, so
no other selection saves more subjects.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from engine.grades import GradeValue, is_real

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allocation:
    """Outcome for one subject."""

    grade_with_decision: GradeValue
    points: int = 0

    @property
    def funded(self) -> bool:
        return self.points > 0


def decision_cost(grade: GradeValue, pass_mark: int = 50, near_miss_cap: Optional[int] = None) -> Optional[int]:
    """Points needed to lift `grade` to the pass mark, or None when not eligible."""
    if not is_real(grade):
        return None
    cost = pass_mark - grade
    if cost <= 0:
        return None
    if near_miss_cap is not None and cost > near_miss_cap:
        return None
    return cost


def allocate_decision_points(
    grades: Mapping[str, GradeValue],
    budget: int,
    pass_mark: int = 50,
    near_miss_cap: Optional[int] = 10,
    exempt: Iterable[str] = (),
) -> Dict[str, Allocation]:
    """
    Spend `budget` over the subjects in `grades` (declared order preserved).

    Subjects already passing, exempt subjects, sentinel or missing grades and
    subjects further below the pass mark than `near_miss_cap` are never
    funded. Returns an Allocation per subject; total points never exceed
    the budget.
    """
    exempt = set(exempt)
    order = list(grades)
    result: Dict[str, Allocation] = {
        subject: Allocation(grade_with_decision=grades[subject]) for subject in order
    }

    remaining = max(int(budget or 0), 0)
    if remaining == 0:
        return result

    candidates: List[tuple] = []
    for position, subject in enumerate(order):
        if subject in exempt:
            continue
        cost = decision_cost(grades[subject], pass_mark, near_miss_cap)
        if cost is not None:
            candidates.append((cost, position, subject))

    # Stable: equal costs stay in declared order.
    candidates.sort()

    for cost, _, subject in candidates:
        if cost > remaining:
            # Sorted ascending, nothing further fits either.
            break
        remaining -= cost
        result[subject] = Allocation(grade_with_decision=pass_mark, points=cost)
        logger.debug("Decision: %s lifted by %d (remaining %d)", subject, cost, remaining)

    return result


def total_points(allocations: Mapping[str, Allocation]) -> int:
    return sum(a.points for a in allocations.values())
