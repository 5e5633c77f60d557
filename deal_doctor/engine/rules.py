"""
Diagnosis Rule Catalog & Evaluator

The catalog is a fixed, ordered table of predicate -> diagnosis code -> severity
records, plus the static tables the aggregator reads (execution order, base
confidence, rule bonuses, evidence text). Everything here is built once at
import and is read-only afterwards.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from deal_doctor.models.diagnosis import DealSignals, DiagnosisCode, RuleMatch, Severity


@dataclass(frozen=True)
class DiagnosisRule:
    id: str
    code: DiagnosisCode
    condition: Callable[[DealSignals], bool]
    severity: Severity


# ============================================
# RULE CATALOG (canonical order, 3 rules per code)
# ============================================

DIAGNOSIS_RULES: tuple[DiagnosisRule, ...] = (
    # ---- Sales Process Gaps (PG) ----
    DiagnosisRule(
        "PG-1", DiagnosisCode.SALES_PROCESS_GAPS,
        lambda s: not s.discovery_summary_present,
        Severity.MEDIUM,
    ),
    DiagnosisRule(
        "PG-2", DiagnosisCode.SALES_PROCESS_GAPS,
        lambda s: not s.next_step_scheduled,
        Severity.HIGH,
    ),
    DiagnosisRule(
        "PG-3", DiagnosisCode.SALES_PROCESS_GAPS,
        lambda s: not s.discovery_summary_present and not s.next_step_scheduled,
        Severity.HIGH,
    ),

    # ---- Single-Threaded Deal (ST) ----
    DiagnosisRule(
        "ST-1", DiagnosisCode.SINGLE_THREADED,
        lambda s: s.contact_count == 1,
        Severity.MEDIUM,
    ),
    DiagnosisRule(
        "ST-2", DiagnosisCode.SINGLE_THREADED,
        lambda s: s.contact_count == 1 and s.days_in_stage > 14,
        Severity.HIGH,
    ),
    DiagnosisRule(
        "ST-3", DiagnosisCode.SINGLE_THREADED,
        lambda s: s.contact_count <= 2 and not s.cross_functional_contact_present,
        Severity.MEDIUM,
    ),

    # ---- No Economic Buyer (EB) ----
    DiagnosisRule(
        "EB-1", DiagnosisCode.NO_ECONOMIC_BUYER,
        lambda s: not s.decision_maker_present,
        Severity.HIGH,
    ),
    DiagnosisRule(
        "EB-2", DiagnosisCode.NO_ECONOMIC_BUYER,
        lambda s: not s.decision_maker_present and s.days_in_stage > 21,
        Severity.HIGH,
    ),
    DiagnosisRule(
        "EB-3", DiagnosisCode.NO_ECONOMIC_BUYER,
        lambda s: not s.budget_discussed and s.days_in_stage > 14,
        Severity.MEDIUM,
    ),

    # ---- No Clear Business Impact (BI) ----
    DiagnosisRule(
        "BI-1", DiagnosisCode.NO_BUSINESS_IMPACT,
        lambda s: not s.metrics_mentioned,
        Severity.MEDIUM,
    ),
    DiagnosisRule(
        "BI-2", DiagnosisCode.NO_BUSINESS_IMPACT,
        lambda s: not s.metrics_mentioned and s.days_in_stage > 21,
        Severity.HIGH,
    ),
    DiagnosisRule(
        "BI-3", DiagnosisCode.NO_BUSINESS_IMPACT,
        lambda s: not s.budget_discussed and not s.metrics_mentioned,
        Severity.HIGH,
    ),

    # ---- Weak Urgency (UR) ----
    DiagnosisRule(
        "UR-1", DiagnosisCode.WEAK_URGENCY,
        lambda s: not s.timeline_defined,
        Severity.MEDIUM,
    ),
    DiagnosisRule(
        "UR-2", DiagnosisCode.WEAK_URGENCY,
        lambda s: not s.timeline_defined and not s.consequence_of_inaction_defined,
        Severity.HIGH,
    ),
    DiagnosisRule(
        "UR-3", DiagnosisCode.WEAK_URGENCY,
        lambda s: s.days_in_stage > 21 and not s.timeline_defined,
        Severity.HIGH,
    ),

    # ---- No New Value Introduced (NV) ----
    DiagnosisRule(
        "NV-1", DiagnosisCode.NO_NEW_VALUE,
        lambda s: not s.new_value_sent_post_demo,
        Severity.MEDIUM,
    ),
    DiagnosisRule(
        "NV-2", DiagnosisCode.NO_NEW_VALUE,
        lambda s: not s.new_value_sent_post_demo and s.days_since_last_activity > 10,
        Severity.HIGH,
    ),
    DiagnosisRule(
        "NV-3", DiagnosisCode.NO_NEW_VALUE,
        lambda s: not s.new_value_sent_post_demo and s.days_in_stage > 14,
        Severity.HIGH,
    ),
)

# Hygiene first (it distorts every other signal), structural blockers next, messaging last.
DIAGNOSIS_EXECUTION_ORDER: tuple[DiagnosisCode, ...] = (
    DiagnosisCode.SALES_PROCESS_GAPS,
    DiagnosisCode.SINGLE_THREADED,
    DiagnosisCode.NO_ECONOMIC_BUYER,
    DiagnosisCode.NO_BUSINESS_IMPACT,
    DiagnosisCode.WEAK_URGENCY,
    DiagnosisCode.NO_NEW_VALUE,
)

BASE_CONFIDENCE: Mapping[DiagnosisCode, float] = MappingProxyType({
    DiagnosisCode.SINGLE_THREADED: 0.6,
    DiagnosisCode.NO_ECONOMIC_BUYER: 0.7,
    DiagnosisCode.NO_BUSINESS_IMPACT: 0.65,
    DiagnosisCode.NO_NEW_VALUE: 0.6,
    DiagnosisCode.WEAK_URGENCY: 0.65,
    DiagnosisCode.SALES_PROCESS_GAPS: 0.7,
})

# Only these two codes earn +0.1 for every matched rule after the first
PER_MATCH_BONUS_CODES = frozenset({DiagnosisCode.SINGLE_THREADED, DiagnosisCode.NO_BUSINESS_IMPACT})
PER_MATCH_BONUS = 0.1

CONFIDENCE_BONUSES: Mapping[str, float] = MappingProxyType({
    "EB-2": 0.1,
    "NV-2": 0.15,
    "PG-3": 0.1,
})

RULE_EVIDENCE: Mapping[str, str] = MappingProxyType({
    "ST-1": "Only 1 contact associated",
    "ST-2": "Only 1 contact and deal stalled for 14+ days",
    "ST-3": "No cross-functional stakeholders identified",
    "EB-1": "No economic buyer identified",
    "EB-2": "No economic buyer and stalled for 21+ days",
    "EB-3": "Budget discussion missing",
    "BI-1": "No quantified impact found in notes",
    "BI-2": "No metrics discussed for 21+ days",
    "BI-3": "ROI or metrics not discussed",
    "NV-1": "No new insights shared post-demo",
    "NV-2": "No new value for 10+ days",
    "NV-3": "Repeated follow-ups without new content",
    "UR-1": "No decision timeline defined",
    "UR-2": "No consequence of delay discussed",
    "UR-3": "Stalled 21+ days without timeline",
    "PG-1": "No discovery summary recorded",
    "PG-2": "No next step scheduled",
    "PG-3": "Missing both discovery and next step",
})

# Lower ranks first. Critical outranks high even though no rule emits it yet.
SEVERITY_RANK: Mapping[str, int] = MappingProxyType({
    Severity.CRITICAL: -1,
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
})


def severity_rank(severity: str) -> int:
    """Sort rank for a severity; anything unrecognized ranks as medium."""
    return SEVERITY_RANK.get(severity, SEVERITY_RANK[Severity.MEDIUM])


def execution_index(code: DiagnosisCode) -> int:
    """Position of a code in the fixed execution order; unknown codes sort last."""
    try:
        return DIAGNOSIS_EXECUTION_ORDER.index(code)
    except ValueError:
        return len(DIAGNOSIS_EXECUTION_ORDER)


def evaluate_rules(signals: DealSignals) -> dict[DiagnosisCode, list[RuleMatch]]:
    """
    Run every catalog rule against a signal set.

    Returns:
        Matches grouped by diagnosis code, in catalog order. A code that is
        missing from the result had no matching rule.
    """
    results: dict[DiagnosisCode, list[RuleMatch]] = {}

    for rule in DIAGNOSIS_RULES:
        if rule.condition(signals):
            results.setdefault(rule.code, []).append(
                RuleMatch(rule_id=rule.id, severity=rule.severity)
            )

    return results


def calculate_confidence(code: DiagnosisCode, matched_rules: list[RuleMatch]) -> float:
    """
    Confidence for one diagnosis code, capped at 1.0.

    base(code)
      + 0.1 per extra matched rule (SINGLE_THREADED and NO_BUSINESS_IMPACT only)
      + each matched rule's specific bonus
    """
    confidence = BASE_CONFIDENCE.get(code, 0.0)

    if code in PER_MATCH_BONUS_CODES and matched_rules:
        confidence += PER_MATCH_BONUS * (len(matched_rules) - 1)

    for match in matched_rules:
        confidence += CONFIDENCE_BONUSES.get(match.rule_id, 0.0)

    # Rounding strips float noise such as 0.8000000000000002
    return round(min(confidence, 1.0), 4)


def get_highest_severity(matched_rules: Iterable[RuleMatch]) -> Severity:
    """Most urgent severity among the matches; medium when there are none."""
    highest = None
    for match in matched_rules:
        if highest is None or severity_rank(match.severity) < severity_rank(highest):
            highest = match.severity

    if highest is None or highest not in SEVERITY_RANK:
        return Severity.MEDIUM
    return Severity(highest)


def collect_evidence(matched_rules: Iterable[RuleMatch]) -> list[str]:
    """Evidence strings in match order; repeats of an earlier string are skipped."""
    evidence: list[str] = []
    seen: set[str] = set()

    for match in matched_rules:
        msg = RULE_EVIDENCE.get(match.rule_id)
        if msg and msg not in seen:
            evidence.append(msg)
            seen.add(msg)

    return evidence
