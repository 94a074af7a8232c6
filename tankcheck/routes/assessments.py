# tankcheck/routes/assessments.py
from __future__ import annotations

from fastapi import APIRouter

from .. import schemas
from ..engine import (
    compute_metrics,
    compute_verdict,
    detect_issues,
    eligible_repairs,
    project_health,
)
from ..logging_config import log_event
from ..settings import get_settings

router = APIRouter(prefix="/assessments", tags=["assessments"])
settings = get_settings()


@router.post("", response_model=schemas.AssessmentOut)
def create_assessment(record: schemas.InspectionRecord):
    metrics = compute_metrics(record)
    verdict = compute_verdict(record, metrics)
    issues = detect_issues(record, metrics)
    repairs = eligible_repairs(record, metrics, verdict)
    projection = project_health(record, metrics)

    log_event(
        "ASSESSMENT",
        "Inspection assessed",
        {
            "fuel_type": record.fuel_type.value,
            "action": verdict.action.value,
            "badge": verdict.badge.value,
            "fail_prob": metrics.fail_prob,
            "health_score": metrics.health_score,
            "issue_ids": [i.id.value for i in issues],
            "ruleset_version": settings.RULESET_VERSION,
        },
    )

    return schemas.AssessmentOut(
        metrics=schemas.MetricsOut.model_validate(metrics),
        verdict=schemas.VerdictOut.model_validate(verdict),
        issues=[schemas.IssueOut.model_validate(i) for i in issues],
        repairs=[schemas.RepairOut.model_validate(r) for r in repairs],
        projection=[schemas.ProjectionOut.model_validate(p) for p in projection],
        ruleset_version=settings.RULESET_VERSION,
    )
