"""
terms.py — Monthly → term aggregation.

Primary 5 and 6 record a grade per month; the term grade is the rounded
mean of the months that have a real score:

  first term  = Oct, Nov, Dec, Jan
  second term = Feb, Mar, Apr

Other profiles enter term grades directly and pass through untouched.
"""

from typing import Tuple

from engine.grades import GradeValue, SubjectGradeRecord, mean_of_present
from engine.stages import MONTHLY_FIELDS_TERM1, MONTHLY_FIELDS_TERM2, Profile, uses_monthly_grades


def term_average(record: SubjectGradeRecord, months: Tuple[str, ...]) -> GradeValue:
    return mean_of_present(getattr(record, m) for m in months)


def aggregate_terms(record: SubjectGradeRecord, profile: Profile) -> Tuple[GradeValue, GradeValue]:
    """Return (first_term, second_term) for the profile."""
    if uses_monthly_grades(profile):
        return (
            term_average(record, MONTHLY_FIELDS_TERM1),
            term_average(record, MONTHLY_FIELDS_TERM2),
        )
    if profile is Profile.PRIMARY_1_TO_4:
        return None, None
    return record.first_term, record.second_term
