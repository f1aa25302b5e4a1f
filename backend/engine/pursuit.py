"""
pursuit.py — Annual pursuit (السعي السنوي), exemption and first-round final grade.

  annual pursuit   = round(mean(first term, mid-year, second term))
  final grade (1st) = round(mean(annual pursuit, final exam))

Only the components that carry a real score take part in a mean. A subject
with nothing entered has no pursuit at all (None), which keeps "no data
yet" apart from a failing score.
"""

from typing import Optional

from engine.grades import GradeValue, Sentinel, is_real, mean_of_present
from engine.policy import SchoolPolicy
from engine.stages import Profile


def annual_pursuit(
    first_term: GradeValue,
    mid_year: GradeValue,
    second_term: GradeValue,
    profile: Profile = Profile.STANDARD,
) -> Optional[int]:
    if profile is Profile.PRIMARY_1_TO_4:
        return None
    return mean_of_present((first_term, mid_year, second_term))


def is_exempt(pursuit: Optional[int], profile: Profile, policy: SchoolPolicy) -> bool:
    """A standard-stage student whose pursuit clears the threshold skips the final exam."""
    if profile is not Profile.STANDARD or pursuit is None:
        return False
    return pursuit >= policy.exemption_threshold


def first_final_grade(
    pursuit: Optional[int],
    final_exam: GradeValue,
    profile: Profile,
    exempt: bool = False,
) -> GradeValue:
    """
    First-round final grade.

    Exempt subjects and ministerial stages use the pursuit alone. An absent
    or waived final exam carries over to the final grade: it counts as
    failing and is never lifted by decision points. A final exam that is
    not entered yet leaves the final grade unset (pending).
    """
    if profile is Profile.PRIMARY_1_TO_4 or pursuit is None:
        return None
    if exempt or profile is Profile.MINISTERIAL:
        return pursuit
    if isinstance(final_exam, Sentinel):
        return final_exam
    if not is_real(final_exam):
        # Not entered yet: the final grade is pending.
        return None
    return mean_of_present((pursuit, final_exam))
