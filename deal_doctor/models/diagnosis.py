from enum import StrEnum
from typing import Annotated, List
from pydantic import BaseModel, ConfigDict, Field


class DiagnosisCode(StrEnum):
    SINGLE_THREADED = "SINGLE_THREADED"
    NO_ECONOMIC_BUYER = "NO_ECONOMIC_BUYER"
    NO_BUSINESS_IMPACT = "NO_BUSINESS_IMPACT"
    NO_NEW_VALUE = "NO_NEW_VALUE"
    WEAK_URGENCY = "WEAK_URGENCY"
    SALES_PROCESS_GAPS = "SALES_PROCESS_GAPS"


DIAGNOSIS_LABELS: dict[DiagnosisCode, str] = {
    DiagnosisCode.SINGLE_THREADED: "Single-Threaded Deal",
    DiagnosisCode.NO_ECONOMIC_BUYER: "No Economic Buyer",
    DiagnosisCode.NO_BUSINESS_IMPACT: "No Clear Business Impact",
    DiagnosisCode.NO_NEW_VALUE: "No New Value Introduced",
    DiagnosisCode.WEAK_URGENCY: "Weak Urgency / Priority",
    DiagnosisCode.SALES_PROCESS_GAPS: "Sales Process Gaps",
}


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DealSignals(BaseModel):
    """
    Normalized facts derived from a Deal before any rule runs.
    Recomputed on every diagnosis pass, never stored.
    """
    model_config = ConfigDict(frozen=True)

    contact_count: int
    decision_maker_present: bool
    cross_functional_contact_present: bool
    days_since_last_activity: int
    days_in_stage: int
    next_step_scheduled: bool
    budget_discussed: bool
    metrics_mentioned: bool
    new_value_sent_post_demo: bool
    timeline_defined: bool
    consequence_of_inaction_defined: bool
    discovery_summary_present: bool


class RuleMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_id: str
    severity: Severity


class Diagnosis(BaseModel):
    """The ranked outcome for one diagnosis code. Built fresh on every run."""
    model_config = ConfigDict(frozen=True)

    code: DiagnosisCode
    severity: Severity
    confidence: Annotated[float, Field(ge=0, le=1.0)]
    evidence: List[str] = Field(default_factory=list)
    explanation: str
    matched_rules: List[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return DIAGNOSIS_LABELS[self.code]
