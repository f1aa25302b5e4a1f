"""
grades.py — Grade values, sentinel markers and averaging helpers.

A raw grade is one of:
  - a real integer score (0-100, or 0-10 for the lower primary stages)
  - Sentinel.ABSENT  (student missed the exam)
  - Sentinel.WAIVED  (medical / administrative leave)
  - None             (not entered yet)

Sentinels are markers, never numbers: every average in the engine goes
through `mean_of_present`, which skips them along with unset values.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


class Sentinel(Enum):
    ABSENT = "absent"
    WAIVED = "waived"


GradeValue = Union[int, Sentinel, None]

# Wire codes written by the grade-entry widgets and the datastore.
SENTINEL_CODES = {
    -1: Sentinel.ABSENT,
    -2: Sentinel.WAIVED,
}

# Quick-entry tokens, translated before the engine sees them.
SENTINEL_TOKENS = {
    "absent": Sentinel.ABSENT,
    "غائب": Sentinel.ABSENT,
    "غائبة": Sentinel.ABSENT,
    "waived": Sentinel.WAIVED,
    "مجاز": Sentinel.WAIVED,
    "مجازة": Sentinel.WAIVED,
}


def parse_grade(value: Any) -> GradeValue:
    """Translate a stored grade (number, wire code or token) into a GradeValue."""
    if value is None or isinstance(value, Sentinel):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        token = value.strip().lower()
        if not token:
            return None
        if token in SENTINEL_TOKENS:
            return SENTINEL_TOKENS[token]
        try:
            value = float(token)
        except ValueError:
            logger.debug("Ignoring unparseable grade token %r", value)
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric grade %r", value)
        return None
    if math.isnan(number) or math.isinf(number):  # NaN from pandas frames
        return None
    as_int = int(number)
    if as_int in SENTINEL_CODES and number == as_int:
        return SENTINEL_CODES[as_int]
    return round_half_up(number)


def is_real(value: GradeValue) -> bool:
    """True for an actual numeric score (not a sentinel, not unset)."""
    return isinstance(value, int) and not isinstance(value, bool)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (Python's round() is banker's)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def present_values(values: Iterable[GradeValue]) -> List[int]:
    return [v for v in values if is_real(v)]


def mean_of_present(values: Iterable[GradeValue]) -> Optional[int]:
    """
    Rounded mean of the real scores in `values`.

    Sentinels and unset entries are excluded, not coerced to zero. Returns
    None when nothing is present so that "no data yet" never reads as 0.
    """
    valid = present_values(values)
    if not valid:
        return None
    return round_half_up(sum(valid) / len(valid))


def grade_to_wire(value: GradeValue) -> Optional[Union[int, str]]:
    """JSON-friendly form of a grade value: int, sentinel name or None."""
    if isinstance(value, Sentinel):
        return value.value
    return value


# ── Raw subject record ──────────────────────────────────────────────

RECORD_FIELDS = (
    "first_term", "mid_year", "second_term", "final_exam_1st", "final_exam_2nd",
    "october", "november", "december", "january", "february", "march", "april",
)

# Keys used by the grade sheet documents in the datastore.
CAMEL_KEYS = {
    "firstTerm": "first_term",
    "midYear": "mid_year",
    "secondTerm": "second_term",
    "finalExam1st": "final_exam_1st",
    "finalExam2nd": "final_exam_2nd",
}


@dataclass(frozen=True)
class SubjectGradeRecord:
    """Raw grades for one student in one subject. Unused fields stay None."""

    first_term: GradeValue = None
    mid_year: GradeValue = None
    second_term: GradeValue = None
    final_exam_1st: GradeValue = None
    final_exam_2nd: GradeValue = None
    october: GradeValue = None
    november: GradeValue = None
    december: GradeValue = None
    january: GradeValue = None
    february: GradeValue = None
    march: GradeValue = None
    april: GradeValue = None

    @classmethod
    def from_raw(cls, raw: Any) -> "SubjectGradeRecord":
        if isinstance(raw, cls):
            return raw
        if raw is not None and not isinstance(raw, dict):
            logger.debug("Ignoring subject grades of type %s", type(raw).__name__)
            raw = None
        values: Dict[str, GradeValue] = {}
        for key, value in (raw or {}).items():
            name = CAMEL_KEYS.get(key, key)
            if name in RECORD_FIELDS:
                values[name] = parse_grade(value)
        return cls(**values)
