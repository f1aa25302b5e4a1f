"""
class_results.py — Class-level views built on the per-student engine.

Computes:
- One result row per student (status, failing count, message)
- Status counts and percentages (success statistics)
- Per-subject pass/fail totals on the final grade after decision points
- The decision log: students lifted by decision points, per subject

Students are plain dicts as stored in the datastore:
    {"id": ..., "name": ..., "grades": {subject: {raw fields}},
     "enrollmentStatus"?: "active" | "transferred" | ...}

Students whose enrollment status is set to anything but "active" keep a
row, flagged inactive, but stay out of the summary, the subject success
totals and the decision log.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from engine.calculator import CalculatedGrade, StudentResult, calculate_student_result
from engine.grades import is_real
from engine.policy import PolicyOverride, SchoolPolicy
from engine.stages import StageConfig
from engine.status import StatusLabel

# Markers that are not a result and stay out of pass/fail totals.
NON_RESULT_LABELS = {
    StatusLabel.NOT_APPLICABLE.value,
    StatusLabel.INCOMPLETE.value,
    StatusLabel.PENDING.value,
}

ROW_COLUMNS = [
    "student_id", "name", "enrollment_status", "active", "status", "status_code",
    "failing_count", "failing_subjects", "decision_points", "subject_verdicts",
    "message", "status_after_makeup",
]

# One computed student: (student dict, per-subject CalculatedGrade, StudentResult)
Outcome = Tuple[Dict[str, Any], Dict[str, CalculatedGrade], StudentResult]


# ── Helpers ─────────────────────────────────────────────────────────

def _safe_float(val) -> Optional[float]:
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else round(v, 2)
    except (TypeError, ValueError):
        return None


def _sanitize(obj):
    """Recursively coerce numpy/pandas scalars to JSON-safe Python types."""
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        v = float(obj)
        return None if (np.isnan(v) or np.isinf(v)) else v
    return obj


def subject_verdict(grade, pass_mark: int = 50) -> str:
    """Per-subject label for the teacher log: ناجح / راسب, empty when not computed."""
    if not is_real(grade):
        return ""
    return StatusLabel.PASS.value if grade >= pass_mark else StatusLabel.FAIL.value


def enrollment_status(student: Dict[str, Any]) -> str:
    return str(student.get("enrollmentStatus") or "active")


def is_active(student: Dict[str, Any]) -> bool:
    """Unset enrollment status means active, as in older student records."""
    return enrollment_status(student) == "active"


def _pass_mark(policy: Optional[SchoolPolicy]) -> int:
    return (policy or SchoolPolicy()).pass_mark


def calculate_class(
    students: List[Dict[str, Any]],
    subjects: Sequence[str],
    stage: str,
    policy: Optional[SchoolPolicy] = None,
    override: Optional[PolicyOverride] = None,
    stage_config: Optional[StageConfig] = None,
) -> List[Outcome]:
    """Run the engine once per student. Every class view is built from this list."""
    outcomes = []
    for student in students:
        calculated, result = calculate_student_result(
            student.get("grades") or {},
            stage,
            policy=policy,
            class_overrides=override,
            subjects=subjects,
            stage_config=stage_config,
        )
        outcomes.append((student, calculated, result))
    return outcomes


# ── Student rows ────────────────────────────────────────────────────

def result_rows(outcomes: List[Outcome], pass_mark: int = 50) -> pd.DataFrame:
    rows = []
    for student, calculated, result in outcomes:
        rows.append({
            "student_id": str(student.get("id", "")),
            "name": student.get("name", ""),
            "enrollment_status": enrollment_status(student),
            "active": is_active(student),
            "status": result.status.value,
            "status_code": result.status.name,
            "failing_count": len(result.failing_subjects),
            "failing_subjects": list(result.failing_subjects),
            "decision_points": sum(result.decision_subjects.values()),
            "subject_verdicts": {
                s: subject_verdict(c.final_grade_with_decision, pass_mark) for s, c in calculated.items()
            },
            "message": result.message,
            "status_after_makeup": result.status_after_makeup.value if result.status_after_makeup else None,
        })
    return pd.DataFrame(rows, columns=ROW_COLUMNS)


def compute_class_results(
    students: List[Dict[str, Any]],
    subjects: Sequence[str],
    stage: str,
    policy: Optional[SchoolPolicy] = None,
    override: Optional[PolicyOverride] = None,
    stage_config: Optional[StageConfig] = None,
) -> pd.DataFrame:
    """One row per student, in the order given."""
    outcomes = calculate_class(students, subjects, stage, policy, override, stage_config)
    return result_rows(outcomes, _pass_mark(policy))


def summarize_statuses(df: pd.DataFrame) -> Dict[str, Any]:
    """Status counts and percentages over the active students that have a result."""
    if df.empty:
        return {"total": 0, "not_computed": 0, "inactive": 0, "counts": {}, "percentages": {}, "pass_rate": None}

    active = df[df["active"].astype(bool)]
    graded = active[~active["status"].isin(NON_RESULT_LABELS)]
    total = len(graded)
    counts = graded["status"].value_counts()

    passed_labels = {StatusLabel.PASS.value, StatusLabel.QUALIFIED.value, StatusLabel.QUALIFIED_BY_DECISION.value}
    passed = int(graded["status"].isin(passed_labels).sum())

    return _sanitize({
        "total": total,
        "not_computed": int(len(active) - total),
        "inactive": int(len(df) - len(active)),
        "counts": {str(k): int(v) for k, v in counts.items()},
        "percentages": {str(k): _safe_float(v / total * 100) for k, v in counts.items()} if total else {},
        "pass_rate": _safe_float(passed / total * 100) if total else None,
    })


# ── Subject success ─────────────────────────────────────────────────

def subject_success(outcomes: List[Outcome], subjects: Sequence[str], pass_mark: int = 50) -> List[Dict[str, Any]]:
    records = []
    for student, calculated, _ in outcomes:
        if not is_active(student):
            continue
        for subject in subjects:
            grade = calculated[subject].final_grade_with_decision
            if is_real(grade):
                records.append({"subject": subject, "passed": grade >= pass_mark})

    if not records:
        return [
            {"subject": s, "total": 0, "passed": 0, "failed": 0, "rate": None}
            for s in subjects
        ]

    df = pd.DataFrame(records)
    grouped = df.groupby("subject")["passed"].agg(["count", "sum"])

    out = []
    for subject in subjects:
        if subject in grouped.index:
            total = int(grouped.loc[subject, "count"])
            passed = int(grouped.loc[subject, "sum"])
        else:
            total, passed = 0, 0
        out.append({
            "subject": subject,
            "total": total,
            "passed": passed,
            "failed": total - passed,
            "rate": _safe_float(passed / total * 100) if total else None,
        })
    return _sanitize(out)


def compute_subject_success(
    students: List[Dict[str, Any]],
    subjects: Sequence[str],
    stage: str,
    policy: Optional[SchoolPolicy] = None,
    override: Optional[PolicyOverride] = None,
    stage_config: Optional[StageConfig] = None,
) -> List[Dict[str, Any]]:
    """Per subject: active students with a final grade, passed, failed, pass rate."""
    outcomes = calculate_class(students, subjects, stage, policy, override, stage_config)
    return subject_success(outcomes, subjects, _pass_mark(policy))


# ── Decision log ────────────────────────────────────────────────────

def decision_log(outcomes: List[Outcome]) -> List[Dict[str, Any]]:
    log = []
    for student, _, result in outcomes:
        if not result.decision_subjects or not is_active(student):
            continue
        log.append({
            "student_id": str(student.get("id", "")),
            "name": student.get("name", ""),
            "status": result.status.value,
            "decision_subjects": [
                {"name": name, "points": points} for name, points in result.decision_subjects.items()
            ],
            "total_points": sum(result.decision_subjects.values()),
        })
    return log


def build_decision_log(
    students: List[Dict[str, Any]],
    subjects: Sequence[str],
    stage: str,
    policy: Optional[SchoolPolicy] = None,
    override: Optional[PolicyOverride] = None,
    stage_config: Optional[StageConfig] = None,
) -> List[Dict[str, Any]]:
    """Active students who received decision points, with the points per subject."""
    outcomes = calculate_class(students, subjects, stage, policy, override, stage_config)
    return decision_log(outcomes)


# ── Full class report ───────────────────────────────────────────────

def compute_class_report(
    students: List[Dict[str, Any]],
    subjects: Sequence[str],
    stage: str,
    policy: Optional[SchoolPolicy] = None,
    override: Optional[PolicyOverride] = None,
    stage_config: Optional[StageConfig] = None,
) -> Dict[str, Any]:
    """Rows, summary, subject success and decision log from a single engine pass."""
    outcomes = calculate_class(students, subjects, stage, policy, override, stage_config)
    pass_mark = _pass_mark(policy)
    df = result_rows(outcomes, pass_mark)
    return {
        "rows": rows_to_records(df),
        "summary": summarize_statuses(df),
        "subjects": subject_success(outcomes, subjects, pass_mark),
        "decision_log": decision_log(outcomes),
    }


def rows_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """JSON-safe records for a compute_class_results frame."""
    return _sanitize(df.to_dict(orient="records"))
