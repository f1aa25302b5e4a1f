"""
Results routes — student and class result computation endpoints.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from engine.calculator import calculate_student_result
from engine.class_results import compute_class_report
from engine.policy import default_policy, override_from_class, policy_from_settings
from engine.stages import (
    Profile,
    StageConfig,
    StageConfigError,
    load_stage_config,
    max_grade,
    profile_fields,
    resolve_profile,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _stage_config() -> StageConfig:
    try:
        return load_stage_config()
    except StageConfigError as e:
        logger.error("Stage configuration unusable: %s", e)
        raise HTTPException(500, str(e))


def _object_from_payload(payload: dict, key: str) -> Dict[str, Any]:
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise HTTPException(400, f"Invalid {key} data.")
    return value


def _class_from_payload(payload: dict) -> Dict[str, Any]:
    return _object_from_payload(payload, "class")


def _stage_from_payload(payload: dict) -> str:
    stage = payload.get("stage") or _class_from_payload(payload).get("stage")
    if not stage:
        raise HTTPException(400, "No stage provided.")
    return stage


def _subjects_from_payload(payload: dict) -> List[str]:
    subjects = payload.get("subjects") or _class_from_payload(payload).get("subjects")
    if not subjects or not isinstance(subjects, list):
        raise HTTPException(400, "No subjects provided.")
    return [str(s) for s in subjects]


@router.post("/student")
async def student_result(payload: dict):
    """
    Calculated grades and overall result for one student.
    Expects: { "stage": "...", "grades": {subject: {...}}, "subjects"?: [...],
               "settings"?: {...}, "class"?: {...} }
    """
    grades = payload.get("grades")
    if not grades or not isinstance(grades, dict):
        raise HTTPException(400, "No grades provided.")
    stage = _stage_from_payload(payload)

    subjects = payload.get("subjects")
    policy = policy_from_settings(_object_from_payload(payload, "settings"), base=default_policy())
    override = override_from_class(_class_from_payload(payload))
    stage_config = _stage_config()

    calculated, result = calculate_student_result(
        grades,
        stage,
        policy=policy,
        class_overrides=override,
        subjects=subjects if isinstance(subjects, list) else None,
        stage_config=stage_config,
    )
    return {
        "profile": resolve_profile(stage, stage_config).value,
        "grades": {s: c.to_dict() for s, c in calculated.items()},
        "result": result.to_dict(),
    }


@router.post("/class")
async def class_results(payload: dict):
    """
    Results for every student of a class plus success statistics and decision log.
    Expects: { "stage": "...", "subjects": [...], "students": [{id, name, grades}],
               "settings"?: {...}, "class"?: {...} }
    """
    students = payload.get("students")
    if not students or not isinstance(students, list):
        raise HTTPException(400, "No students provided.")
    if not all(isinstance(s, dict) for s in students):
        raise HTTPException(400, "Invalid student data.")
    stage = _stage_from_payload(payload)
    subjects = _subjects_from_payload(payload)

    policy = policy_from_settings(_object_from_payload(payload, "settings"), base=default_policy())
    override = override_from_class(_class_from_payload(payload))
    stage_config = _stage_config()

    report = compute_class_report(students, subjects, stage, policy, override, stage_config)
    logger.info("Computed results for %d students (stage %r)", len(report["rows"]), stage)
    return report


@router.get("/stages")
async def stages():
    """Active stage configuration and the fields each profile uses."""
    config = _stage_config()
    profiles: List[Dict[str, Any]] = [
        {
            "id": profile.value,
            "fields": list(profile_fields(profile)),
            "max_grade": max_grade(profile),
        }
        for profile in Profile
    ]
    return {"stages": config.to_dict(), "profiles": profiles}
