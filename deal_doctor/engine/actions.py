"""
Action Generator
Maps a diagnosis to a short, ordered list of recommended next steps.
"""
from deal_doctor.models.action import ActionImpact, RecommendedAction
from deal_doctor.models.deal import Deal
from deal_doctor.models.diagnosis import Diagnosis, DiagnosisCode

MAX_ACTIONS = 3


def _multi_thread_actions() -> list[RecommendedAction]:
    return [
        RecommendedAction(
            action="Multi-thread the deal",
            playbook="Multi-Thread",
            reason="Find Finance, Ops, or VP-level contacts to reduce single-point failure risk",
            expected_impact=ActionImpact.HIGH,
            time_to_execute="2-3 days",
        ),
        RecommendedAction(
            action="Request warm intro from existing contact",
            playbook="Multi-Thread",
            reason="Leverage your champion to reach the economic buyer",
            expected_impact=ActionImpact.HIGH,
            time_to_execute="1 day",
        ),
    ]


def _business_impact_actions() -> list[RecommendedAction]:
    return [
        RecommendedAction(
            action="Re-anchor on business impact",
            playbook="Business Impact",
            reason="Generate industry benchmarks and cost-of-inaction framing",
            expected_impact=ActionImpact.HIGH,
            time_to_execute="1-2 days",
        ),
        RecommendedAction(
            action="Create urgency with deadline",
            playbook="Create Urgency",
            reason="Reframe around upcoming deadline or competitive pressure",
            expected_impact=ActionImpact.MEDIUM,
            time_to_execute="1 day",
        ),
    ]


def _new_value_actions() -> list[RecommendedAction]:
    return [
        RecommendedAction(
            action="Share new customer example or insight",
            playbook="New Value",
            reason="Introduce fresh perspective to restart momentum",
            expected_impact=ActionImpact.MEDIUM,
            time_to_execute="1 day",
        ),
        RecommendedAction(
            action="Expand use case discussion",
            playbook="New Value",
            reason="Explore adjacent problems your solution solves",
            expected_impact=ActionImpact.MEDIUM,
            time_to_execute="2 days",
        ),
    ]


def _sales_hygiene_actions() -> list[RecommendedAction]:
    return [
        RecommendedAction(
            action="Complete sales hygiene checklist",
            playbook="Sales Hygiene",
            reason="Document discovery summary and decision process before outreach",
            expected_impact=ActionImpact.HIGH,
            time_to_execute="30 min",
        ),
    ]


def _follow_up_reminder() -> RecommendedAction:
    return RecommendedAction(
        action="Set follow-up reminder",
        playbook="Follow-up",
        reason="Ensure consistent touchpoint to prevent deal from going cold",
        expected_impact=ActionImpact.LOW,
        time_to_execute="1 min",
    )


ACTION_BUILDERS = {
    DiagnosisCode.SINGLE_THREADED: _multi_thread_actions,
    DiagnosisCode.NO_ECONOMIC_BUYER: _multi_thread_actions,
    DiagnosisCode.NO_BUSINESS_IMPACT: _business_impact_actions,
    DiagnosisCode.WEAK_URGENCY: _business_impact_actions,
    DiagnosisCode.NO_NEW_VALUE: _new_value_actions,
    DiagnosisCode.SALES_PROCESS_GAPS: _sales_hygiene_actions,
}


def generate_actions(diagnosis: Diagnosis, deal: Deal) -> list[RecommendedAction]:
    """
    Recommended actions for a diagnosis, between 1 and 3 entries.

    The code-specific actions come first, then the generic follow-up reminder,
    then the list is cut to MAX_ACTIONS. Two-action codes therefore lose the
    reminder; single-action and unknown codes keep it. Every call builds new
    actions with fresh ids and pending status.
    """
    builder = ACTION_BUILDERS.get(diagnosis.code)
    actions = builder() if builder else []

    actions.append(_follow_up_reminder())

    return actions[:MAX_ACTIONS]
