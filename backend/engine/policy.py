"""
policy.py — School-wide result policy.

Two scarce resources govern the end-of-year result:
- the decision-point budget (درجة القرار) used to lift near-miss subjects
- the supplementary allowance (عدد مواد الإكمال): how many failed subjects
  still send a student to the makeup round instead of failing the year

Ministerial classes may carry their own pair of values on the class record.
"""

import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional

from engine.stages import Profile

DEFAULT_DECISION_POINTS = 5
DEFAULT_SUPPLEMENTARY_SUBJECTS = 2
DEFAULT_EXEMPTION_THRESHOLD = 85
DEFAULT_NEAR_MISS_CAP = 10
DEFAULT_PASS_MARK = 50


@dataclass(frozen=True)
class SchoolPolicy:
    decision_point_budget: int = DEFAULT_DECISION_POINTS
    supplementary_allowance: int = DEFAULT_SUPPLEMENTARY_SUBJECTS
    exemption_threshold: int = DEFAULT_EXEMPTION_THRESHOLD
    near_miss_cap: int = DEFAULT_NEAR_MISS_CAP
    pass_mark: int = DEFAULT_PASS_MARK

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class PolicyOverride:
    ministerial_decision_points: Optional[int] = None
    ministerial_supplementary_subjects: Optional[int] = None


def _non_negative_int(value: Any, default: int) -> int:
    """Coerce a settings value to a non-negative int, else the default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return default
    return number if number >= 0 else default


def _pick(settings: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in settings and settings[key] not in (None, ""):
            return settings[key]
    return None


def default_policy() -> SchoolPolicy:
    """Policy from environment variables, falling back to the built-in defaults."""
    return SchoolPolicy(
        decision_point_budget=_non_negative_int(os.getenv("DECISION_POINTS"), DEFAULT_DECISION_POINTS),
        supplementary_allowance=_non_negative_int(
            os.getenv("SUPPLEMENTARY_SUBJECTS"), DEFAULT_SUPPLEMENTARY_SUBJECTS
        ),
        exemption_threshold=_non_negative_int(os.getenv("EXEMPTION_THRESHOLD"), DEFAULT_EXEMPTION_THRESHOLD),
        near_miss_cap=_non_negative_int(os.getenv("NEAR_MISS_CAP"), DEFAULT_NEAR_MISS_CAP),
        pass_mark=_non_negative_int(os.getenv("PASS_MARK"), DEFAULT_PASS_MARK),
    )


def policy_from_settings(settings: Optional[Dict[str, Any]], base: Optional[SchoolPolicy] = None) -> SchoolPolicy:
    """
    Build a policy from a school settings document.

    Accepts the datastore keys (decisionPoints, supplementarySubjectsCount)
    as well as snake_case names. Missing or malformed values keep the
    value from `base`.
    """
    base = base or SchoolPolicy()
    settings = settings or {}
    return SchoolPolicy(
        decision_point_budget=_non_negative_int(
            _pick(settings, "decisionPoints", "decision_points", "decision_point_budget"),
            base.decision_point_budget,
        ),
        supplementary_allowance=_non_negative_int(
            _pick(settings, "supplementarySubjectsCount", "supplementary_subjects", "supplementary_allowance"),
            base.supplementary_allowance,
        ),
        exemption_threshold=_non_negative_int(
            _pick(settings, "exemptionThreshold", "exemption_threshold"), base.exemption_threshold
        ),
        near_miss_cap=_non_negative_int(_pick(settings, "nearMissCap", "near_miss_cap"), base.near_miss_cap),
        pass_mark=_non_negative_int(_pick(settings, "passMark", "pass_mark"), base.pass_mark),
    )


def override_from_class(class_data: Optional[Dict[str, Any]]) -> Optional[PolicyOverride]:
    """Read the ministerial override pair from a class record, if any."""
    if not class_data:
        return None
    points = _pick(class_data, "ministerialDecisionPoints", "ministerial_decision_points")
    subjects = _pick(class_data, "ministerialSupplementarySubjects", "ministerial_supplementary_subjects")
    if points is None and subjects is None:
        return None
    return PolicyOverride(
        ministerial_decision_points=_non_negative_int(points, DEFAULT_DECISION_POINTS) if points is not None else None,
        ministerial_supplementary_subjects=(
            _non_negative_int(subjects, DEFAULT_SUPPLEMENTARY_SUBJECTS) if subjects is not None else None
        ),
    )


def effective_policy(
    policy: Optional[SchoolPolicy],
    override: Optional[PolicyOverride],
    profile: Profile,
) -> SchoolPolicy:
    """Apply the class override; it only counts for ministerial classes."""
    policy = policy or SchoolPolicy()
    if override is None or profile is not Profile.MINISTERIAL:
        return policy

    changes: Dict[str, int] = {}
    if override.ministerial_decision_points is not None:
        changes["decision_point_budget"] = override.ministerial_decision_points
    if override.ministerial_supplementary_subjects is not None:
        changes["supplementary_allowance"] = override.ministerial_supplementary_subjects
    return replace(policy, **changes) if changes else policy
