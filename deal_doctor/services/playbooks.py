"""
LLM-Safe Playbook Templates

The LLM never decides what to do. It only helps execute a pre-approved
playbook, so every prompt is scoped to exactly one playbook and receives the
diagnosis read-only.
"""
import re
from typing import Optional

from deal_doctor.models.deal import Deal
from deal_doctor.models.diagnosis import Diagnosis, DiagnosisCode
from deal_doctor.models.playbook import (
    ChannelPreference,
    DealContext,
    DiagnosisSummary,
    Playbook,
    PlaybookId,
    PlaybookInput,
    PlaybookSummary,
    QualityBar,
    SellerPreferences,
    StakeholderSummary,
    TonePreference,
)

LLM_SYSTEM_MESSAGE = """You are a B2B sales execution assistant.

You do NOT diagnose deals or change strategy.

You ONLY help execute the given playbook using the provided context.

You must:
- Stay consistent with the diagnosis and evidence
- Avoid generic advice
- Produce concise, professional output
- Never invent facts, metrics, or stakeholders

HARD BANS:
- No invented metrics
- No invented stakeholders
- No changing diagnosis
- No claiming deal risk level

SOFT CONTROLS:
- Limit to ONE core message per draft
- Short paragraphs
- Buyer-centric framing"""

PLAYBOOKS: dict[PlaybookId, Playbook] = {
    PlaybookId.MULTI_THREAD: Playbook(
        id=PlaybookId.MULTI_THREAD,
        name="Multi-Thread the Deal",
        objective="Expand stakeholder coverage and reduce single-point-of-failure risk",
        allowed_actions=["draft outreach to additional stakeholder", "warm-intro request"],
        mapped_diagnoses=[DiagnosisCode.SINGLE_THREADED, DiagnosisCode.NO_ECONOMIC_BUYER],
    ),
    PlaybookId.BUSINESS_IMPACT: Playbook(
        id=PlaybookId.BUSINESS_IMPACT,
        name="Re-Anchor on Business Impact",
        objective="Quantify value and cost of inaction",
        allowed_actions=["frame cost of inaction", "clarifying questions for impact"],
        mapped_diagnoses=[DiagnosisCode.NO_BUSINESS_IMPACT],
    ),
    PlaybookId.INTRODUCE_NEW_VALUE: Playbook(
        id=PlaybookId.INTRODUCE_NEW_VALUE,
        name="Introduce New Value",
        objective="Re-engage buyer with fresh insight",
        allowed_actions=["new perspective angle", "customer proof point", "adjacent use case"],
        mapped_diagnoses=[DiagnosisCode.NO_NEW_VALUE],
    ),
    PlaybookId.SALES_HYGIENE: Playbook(
        id=PlaybookId.SALES_HYGIENE,
        name="Sales Hygiene Fix",
        objective="Repair foundational sales process gaps",
        allowed_actions=["internal checklist", "pre-call preparation"],
        mapped_diagnoses=[DiagnosisCode.SALES_PROCESS_GAPS],
    ),
    PlaybookId.CREATE_URGENCY: Playbook(
        id=PlaybookId.CREATE_URGENCY,
        name="Create Urgency",
        objective="Surface timeline and priority without pressure",
        allowed_actions=["timeline clarification", "close-ended question"],
        mapped_diagnoses=[DiagnosisCode.WEAK_URGENCY],
    ),
}

# {{evidence}}, {{dealContext}}, {{tone}} and {{channel}} are filled in by build_prompt
PLAYBOOK_PROMPTS: dict[PlaybookId, str] = {
    PlaybookId.MULTI_THREAD: """The deal is single-threaded.

Diagnosis evidence:
{{evidence}}

Deal context:
{{dealContext}}

Your task:
- Draft outreach to ONE additional stakeholder
- Suggest a warm-intro request to the existing contact
- Do NOT invent job titles or names
- Keep tone aligned with seller preference: {{tone}}
- Channel: {{channel}}

Avoid:
- Pressure tactics
- Claims of urgency unless stated

Output format:
1. Warm intro request (to existing contact)
2. Cold outreach draft (if target identified)""",

    PlaybookId.BUSINESS_IMPACT: """The deal lacks quantified business impact.

Diagnosis evidence:
{{evidence}}

Deal context:
{{dealContext}}

Your task:
- Frame the cost of inaction without using numbers
- Ask 1-2 clarifying questions to confirm impact
- Avoid inventing ROI or benchmarks
- Keep language neutral and consultative
- Tone: {{tone}}
- Channel: {{channel}}

Output format:
1. Cost of inaction framing
2. Clarifying questions (max 2)""",

    PlaybookId.INTRODUCE_NEW_VALUE: """The deal is stalled after demo or proposal.

Diagnosis evidence:
{{evidence}}

Deal context:
{{dealContext}}

Your task:
- Introduce ONE new perspective or angle
- Avoid restating features already discussed
- Position as helpful insight, not a follow-up ping
- Tone: {{tone}}
- Channel: {{channel}}

Output format:
1. New value angle
2. Draft message""",

    PlaybookId.SALES_HYGIENE: """The deal shows sales process gaps.

Diagnosis evidence:
{{evidence}}

Deal context:
{{dealContext}}

Your task:
- Generate an INTERNAL checklist for the seller
- Do NOT draft buyer-facing messages
- Focus on preparation before re-engaging

Output format:
INTERNAL CHECKLIST (not for buyer):
[ ] Item 1
[ ] Item 2
...""",

    PlaybookId.CREATE_URGENCY: """The deal lacks urgency or a clear timeline.

Diagnosis evidence:
{{evidence}}

Deal context:
{{dealContext}}

Your task:
- Draft a message that asks for timeline clarity
- Use a close-ended question
- Avoid artificial deadlines or pressure
- Tone: {{tone}}
- Channel: {{channel}}

Output format:
1. Timeline clarification message
2. Close-ended question""",
}

QUALITY_BARS: dict[PlaybookId, QualityBar] = {
    PlaybookId.MULTI_THREAD: QualityBar(
        good=["Contextual", "Polite", "Non-assumptive"],
        bad=["'Looping you in' spam"],
    ),
    PlaybookId.BUSINESS_IMPACT: QualityBar(
        good=["Buyer-centric", "Question-led"],
        bad=["Fake numbers", "'Industry average' claims"],
    ),
    PlaybookId.INTRODUCE_NEW_VALUE: QualityBar(
        good=["Fresh", "Insightful"],
        bad=["'Just checking in'", "Feature dump"],
    ),
    PlaybookId.SALES_HYGIENE: QualityBar(
        good=["Internal-only", "Clear steps"],
        bad=["Buyer emails", "Strategy commentary"],
    ),
    PlaybookId.CREATE_URGENCY: QualityBar(
        good=["Respectful", "Clear ask"],
        bad=["Fake deadlines", "Ultimatums"],
    ),
}

BAD_PATTERNS: dict[str, str] = {
    "looping you in": "Avoid 'looping you in' spam",
    "industry average": "Remove 'industry average' claims - no invented benchmarks",
    "just checking in": "Replace 'just checking in' with value-adding content",
    "as promised": "Avoid assumptive language",
    "circle back": "Avoid generic follow-up language",
}

# Two-plus digit percentages and dollar figures
SUSPICIOUS_NUMBER = re.compile(r"\d{2,}%|\$\d{1,3}(,\d{3})*[KMB]?")


def get_playbook_for_diagnosis(code: DiagnosisCode) -> Optional[PlaybookId]:
    """First playbook mapped to a diagnosis code, or None."""
    for playbook_id, playbook in PLAYBOOKS.items():
        if code in playbook.mapped_diagnoses:
            return playbook_id
    return None


def build_playbook_input(
    playbook_id: PlaybookId,
    deal: Deal,
    diagnosis: Diagnosis,
    tone: TonePreference = TonePreference.DIRECT,
    channel: ChannelPreference = ChannelPreference.EMAIL,
) -> PlaybookInput:
    """Assemble the structured LLM input for one playbook execution."""
    playbook = PLAYBOOKS[playbook_id]

    return PlaybookInput(
        playbook=PlaybookSummary(
            name=playbook.name,
            objective=playbook.objective,
            allowed_actions=list(playbook.allowed_actions),
        ),
        diagnosis=DiagnosisSummary(
            code=diagnosis.code,
            severity=diagnosis.severity.value,
            evidence=list(diagnosis.evidence),
        ),
        deal_context=DealContext(
            company_name=deal.company_name,
            stage=deal.stage.value,
            deal_value=deal.deal_value,
            stakeholders=[
                StakeholderSummary(name=s.name, title=s.title, role=s.role.value)
                for s in deal.stakeholders
            ],
            notes=deal.notes,
            days_inactive=deal.days_inactive,
        ),
        seller_preferences=SellerPreferences(tone=tone, channel=channel),
    )


def format_deal_context(context: DealContext) -> str:
    stakeholders = "; ".join(f"{s.name} ({s.title}, {s.role})" for s in context.stakeholders)
    return "\n".join([
        f"Company: {context.company_name}",
        f"Stage: {context.stage}",
        f"Value: ${context.deal_value:,.0f}",
        f"Days Inactive: {context.days_inactive}",
        f"Stakeholders: {stakeholders or 'None listed'}",
        f"Notes: {context.notes or 'None'}",
    ])


def build_prompt(playbook_id: PlaybookId, playbook_input: PlaybookInput) -> str:
    """Fill the playbook's prompt template from a PlaybookInput."""
    evidence = "\n".join(f"- {e}" for e in playbook_input.diagnosis.evidence)

    prompt = PLAYBOOK_PROMPTS[playbook_id]
    prompt = prompt.replace("{{evidence}}", evidence)
    prompt = prompt.replace("{{dealContext}}", format_deal_context(playbook_input.deal_context))
    prompt = prompt.replace("{{tone}}", playbook_input.seller_preferences.tone.value)
    prompt = prompt.replace("{{channel}}", playbook_input.seller_preferences.channel.value)
    return prompt


def validate_output(playbook_id: PlaybookId, output: str) -> list[str]:
    """
    Check generated text against the quality bars.

    Returns:
        Warnings for every banned phrase found, plus one for suspicious
        numbers in business-impact drafts. Empty when the draft is clean.
    """
    warnings = []
    lowered = output.lower()

    for pattern, warning in BAD_PATTERNS.items():
        if pattern in lowered:
            warnings.append(warning)

    if playbook_id == PlaybookId.BUSINESS_IMPACT and SUSPICIOUS_NUMBER.search(output):
        warnings.append("Possible invented metrics detected - review numbers carefully")

    return warnings
