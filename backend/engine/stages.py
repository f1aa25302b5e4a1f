"""
stages.py — Stage profile resolution.

Every class belongs to a stage (e.g. "الخامس ابتدائي"). The stage decides
which raw grade fields exist and how they combine:

  Primary1to4  — mid-year / final / makeup on a 0-10 scale, no computed result
  Primary5     — monthly grades averaged into terms, final + makeup exams
  Primary6     — monthly grades averaged into terms, final + makeup exams
  Ministerial  — term grades only; the final exam is set by the ministry
  Standard     — term grades, final exam (with exemption) and makeup

Stage-name membership lives in a single StageConfig so that every caller
resolves profiles from one list.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Profile(Enum):
    PRIMARY_1_TO_4 = "primary1_4"
    PRIMARY_5 = "primary5"
    PRIMARY_6 = "primary6"
    MINISTERIAL = "ministerial"
    STANDARD = "standard"


class StageConfigError(ValueError):
    """Raised when a stage configuration file cannot be used."""


@dataclass(frozen=True)
class StageConfig:
    primary_1_to_4: Tuple[str, ...] = (
        "الاول ابتدائي",
        "الثاني ابتدائي",
        "الثالث ابتدائي",
        "الرابع ابتدائي",
    )
    primary_5: Tuple[str, ...] = ("الخامس ابتدائي",)
    primary_6: Tuple[str, ...] = ("السادس ابتدائي",)
    # The class-settings screen and the grade sheet disagree on whether
    # 6th primary is ministerial; Primary6 is matched first below so it
    # keeps its monthly profile either way.
    ministerial: Tuple[str, ...] = (
        "الثالث متوسط",
        "السادس العلمي",
        "السادس الادبي",
    )

    def to_dict(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in asdict(self).items()}


DEFAULT_STAGE_CONFIG = StageConfig()

MONTHLY_FIELDS_TERM1 = ("october", "november", "december", "january")
MONTHLY_FIELDS_TERM2 = ("february", "march", "april")

PROFILE_FIELDS: Dict[Profile, Tuple[str, ...]] = {
    Profile.PRIMARY_1_TO_4: ("mid_year", "final_exam_1st", "final_exam_2nd"),
    Profile.PRIMARY_5: MONTHLY_FIELDS_TERM1 + ("mid_year",) + MONTHLY_FIELDS_TERM2
    + ("final_exam_1st", "final_exam_2nd"),
    Profile.PRIMARY_6: MONTHLY_FIELDS_TERM1 + ("mid_year",) + MONTHLY_FIELDS_TERM2
    + ("final_exam_1st", "final_exam_2nd"),
    Profile.MINISTERIAL: ("first_term", "mid_year", "second_term"),
    Profile.STANDARD: ("first_term", "mid_year", "second_term", "final_exam_1st", "final_exam_2nd"),
}


def _normalize(stage: Optional[str]) -> str:
    return " ".join(str(stage or "").split())


def resolve_profile(stage: Optional[str], config: Optional[StageConfig] = None) -> Profile:
    """Map a stage name to its profile. Unknown stages are Standard."""
    cfg = config or DEFAULT_STAGE_CONFIG
    name = _normalize(stage)

    if name in cfg.primary_1_to_4:
        return Profile.PRIMARY_1_TO_4
    if name in cfg.primary_5:
        return Profile.PRIMARY_5
    if name in cfg.primary_6:
        return Profile.PRIMARY_6
    if name in cfg.ministerial:
        return Profile.MINISTERIAL

    if name:
        logger.debug("Stage %r not configured; using standard profile", name)
    return Profile.STANDARD


def max_grade(profile: Profile) -> int:
    """Upper bound of the raw grade scale for a profile."""
    return 10 if profile is Profile.PRIMARY_1_TO_4 else 100


def profile_fields(profile: Profile) -> Tuple[str, ...]:
    return PROFILE_FIELDS[profile]


def uses_monthly_grades(profile: Profile) -> bool:
    return profile in (Profile.PRIMARY_5, Profile.PRIMARY_6)


def stage_config_from_dict(data: Dict[str, Any]) -> StageConfig:
    """Build a StageConfig from a mapping of profile key -> list of stage names."""
    if not isinstance(data, dict):
        raise StageConfigError("Stage configuration must be a JSON object.")

    kwargs = {}
    for key in ("primary_1_to_4", "primary_5", "primary_6", "ministerial"):
        if key not in data:
            continue
        names = data[key]
        if isinstance(names, str):
            names = [names]
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise StageConfigError(f"'{key}' must be a list of stage names.")
        kwargs[key] = tuple(_normalize(n) for n in names if n.strip())

    return StageConfig(**kwargs)


def load_stage_config(path: Optional[str] = None) -> StageConfig:
    """
    Load stage membership from a JSON file.

    Falls back to the built-in lists when no path is given and
    STAGE_CONFIG_PATH is unset.
    """
    path = path or os.getenv("STAGE_CONFIG_PATH")
    if not path:
        return DEFAULT_STAGE_CONFIG

    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as exc:
        raise StageConfigError(f"Cannot read stage configuration '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise StageConfigError(f"Invalid JSON in stage configuration '{path}': {exc}") from exc

    config = stage_config_from_dict(data)
    logger.info("Loaded stage configuration from %s", path)
    return config
