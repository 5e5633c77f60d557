"""Domain models for deals, diagnoses and recommended actions."""
from deal_doctor.models.action import ActionImpact, ActionStatus, RecommendedAction
from deal_doctor.models.deal import (
    STAGE_LABELS,
    Deal,
    DealStage,
    Stakeholder,
    StakeholderRole,
)
from deal_doctor.models.diagnosis import (
    DIAGNOSIS_LABELS,
    DealSignals,
    Diagnosis,
    DiagnosisCode,
    RuleMatch,
    Severity,
)

__all__ = [
    "ActionImpact",
    "ActionStatus",
    "RecommendedAction",
    "STAGE_LABELS",
    "Deal",
    "DealStage",
    "Stakeholder",
    "StakeholderRole",
    "DIAGNOSIS_LABELS",
    "DealSignals",
    "Diagnosis",
    "DiagnosisCode",
    "RuleMatch",
    "Severity",
]
