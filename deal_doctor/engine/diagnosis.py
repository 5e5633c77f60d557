"""
Diagnosis Aggregator

Deal -> signals -> rule matches -> ranked Diagnosis records.
Pure and synchronous: the same deal snapshot always produces the same
diagnoses, and the deal itself is never touched.
"""
from typing import Optional

from deal_doctor.engine.rules import (
    DIAGNOSIS_EXECUTION_ORDER,
    calculate_confidence,
    collect_evidence,
    evaluate_rules,
    execution_index,
    get_highest_severity,
    severity_rank,
)
from deal_doctor.engine.signals import compute_signals
from deal_doctor.models.deal import Deal
from deal_doctor.models.diagnosis import Diagnosis, DiagnosisCode
from deal_doctor.utils.observability import log_diagnosis_run

# One primary plus up to two secondary diagnoses
MAX_DIAGNOSES = 3

EXPLANATION_TEMPLATES: dict[DiagnosisCode, str] = {
    DiagnosisCode.SINGLE_THREADED: (
        "This deal at {company} is stuck because it depends on only one stakeholder. "
        "If they go dark, change roles, or lose internal influence, the deal dies. "
        "Multi-threading reduces single-point-of-failure risk."
    ),
    DiagnosisCode.NO_ECONOMIC_BUYER: (
        "No one with budget authority is engaged in the {company} deal. "
        "Without an economic buyer, you're building consensus without the person who signs the check."
    ),
    DiagnosisCode.NO_BUSINESS_IMPACT: (
        "The value of your solution hasn't been quantified for {company}. "
        "Without clear ROI or business impact, this becomes a \"nice to have\" rather than a must-have."
    ),
    DiagnosisCode.NO_NEW_VALUE: (
        "The {company} deal has stalled post-demo. You need to introduce fresh value, "
        "a new angle, customer proof point, or insight, to reignite momentum."
    ),
    DiagnosisCode.WEAK_URGENCY: (
        "There's no compelling event or deadline pushing {company} to act. "
        "Without urgency, deals slip quarter after quarter."
    ),
    DiagnosisCode.SALES_PROCESS_GAPS: (
        "Key sales process steps are missing in the {company} deal. "
        "Before any outreach, ensure discovery is documented and next steps are clear."
    ),
}


def build_explanation(code: DiagnosisCode, deal: Deal) -> str:
    """Narrative explanation for a diagnosis code, naming the deal's company."""
    template = EXPLANATION_TEMPLATES.get(code)
    if template is None:
        return f"The {deal.company_name} deal shows signs of stalling."
    return template.format(company=deal.company_name)


def _sort_key(diagnosis: Diagnosis) -> tuple[int, int, float]:
    return (
        severity_rank(diagnosis.severity),
        execution_index(diagnosis.code),
        -diagnosis.confidence,
    )


def _rank_diagnoses(deal: Deal) -> list[Diagnosis]:
    signals = compute_signals(deal)
    matches_by_code = evaluate_rules(signals)

    diagnoses = []
    for code in DIAGNOSIS_EXECUTION_ORDER:
        matches = matches_by_code.get(code)
        if not matches:
            continue

        diagnoses.append(Diagnosis(
            code=code,
            severity=get_highest_severity(matches),
            confidence=calculate_confidence(code, matches),
            evidence=collect_evidence(matches),
            explanation=build_explanation(code, deal),
            matched_rules=[m.rule_id for m in matches],
        ))

    diagnoses.sort(key=_sort_key)

    log_diagnosis_run(
        deal_id=deal.id,
        company_name=deal.company_name,
        matched_codes=[d.code.value for d in diagnoses],
        primary_code=diagnoses[0].code.value if diagnoses else None,
        stage=deal.stage.value,
        days_inactive=deal.days_inactive,
    )
    return diagnoses


def diagnose_all(deal: Deal) -> list[Diagnosis]:
    """
    Ranked diagnoses for a deal: the primary first, then up to two secondaries.

    Sorted by severity (most urgent first), then execution order, then
    confidence (highest first). The cap is a hard truncation of that order.

    Returns:
        Between 0 and 3 diagnoses. Empty means no rule matched.
    """
    return _rank_diagnoses(deal)[:MAX_DIAGNOSES]


def diagnose(deal: Deal) -> Optional[Diagnosis]:
    """The primary diagnosis for a deal, or None when no rule matched."""
    ranked = _rank_diagnoses(deal)
    return ranked[0] if ranked else None
