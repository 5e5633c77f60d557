"""
Signal Extraction
Turns a raw Deal into the normalized facts the rule catalog reads.

Signals come from CRM fields plus fixed keyword detection over the notes.
No LLM is involved here; the same deal always yields the same signals.
"""
import re

from deal_doctor.models.deal import Deal, DealStage, StakeholderRole
from deal_doctor.models.diagnosis import DealSignals

# Word boundaries are ASCII-only: accented letters never extend a keyword.

# Stakeholder title patterns
DECISION_MAKER_TITLE = re.compile(
    r"\b(cfo|ceo|vp|director|founder|head of|chief|owner|president)\b", re.IGNORECASE | re.ASCII
)
CROSS_FUNCTIONAL_TITLE = re.compile(
    r"\b(finance|operations|ops|it|legal|procurement|purchasing)\b", re.IGNORECASE | re.ASCII
)

# Notes patterns
NEXT_STEP = re.compile(
    r"\b(scheduled|booked|confirmed|meeting on|call on|next step|follow.?up)\b", re.IGNORECASE | re.ASCII
)
BUDGET = re.compile(
    r"\b(budget|pricing|cost|investment|spend|dollars|\$|contract value)\b", re.IGNORECASE | re.ASCII
)
METRICS = re.compile(
    r"\b(roi|revenue|cost|savings|efficiency|impact|metrics|%|million|thousand|\$|kpi|benchmark)\b",
    re.IGNORECASE | re.ASCII,
)
NEW_VALUE = re.compile(
    r"\b(case study|example|insight|benchmark|update|new|whitepaper|report|data)\b", re.IGNORECASE | re.ASCII
)
TIMELINE = re.compile(
    r"\b(deadline|timeline|by (q[1-4]|jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)"
    r"|this (quarter|month|week)|target date|go.?live)\b",
    re.IGNORECASE | re.ASCII,
)
CONSEQUENCE = re.compile(
    r"\b(risk|consequence|if we don't|cost of delay|miss|lose|fall behind|competitor)\b", re.IGNORECASE | re.ASCII
)
DISCOVERY = re.compile(
    r"\b(discovery|use case|pain point|challenge|problem|requirement|need)\b", re.IGNORECASE | re.ASCII
)

POST_DEMO_STAGES = frozenset({DealStage.DEMO, DealStage.PROPOSAL, DealStage.NEGOTIATION})


def compute_signals(deal: Deal) -> DealSignals:
    """
    Derive the 12 diagnosis signals from a deal snapshot.

    Total over well-formed deals. Each text signal is matched independently,
    so one sentence in the notes can set several of them at once.

    Args:
        deal: Read-only deal snapshot

    Returns:
        Fresh DealSignals for this deal
    """
    notes = deal.notes or ""

    decision_maker_present = any(
        s.role == StakeholderRole.ECONOMIC_BUYER or DECISION_MAKER_TITLE.search(s.title)
        for s in deal.stakeholders
    )
    cross_functional_contact_present = any(
        CROSS_FUNCTIONAL_TITLE.search(s.title) for s in deal.stakeholders
    )

    next_step_scheduled = bool(NEXT_STEP.search(notes)) or deal.reminder_date is not None

    new_value_sent_post_demo = deal.stage in POST_DEMO_STAGES and bool(NEW_VALUE.search(notes))

    return DealSignals(
        contact_count=len(deal.stakeholders),
        decision_maker_present=decision_maker_present,
        cross_functional_contact_present=cross_functional_contact_present,
        days_since_last_activity=deal.days_inactive,
        # Stage entry is not tracked separately; both clocks read days_inactive.
        days_in_stage=deal.days_inactive,
        next_step_scheduled=next_step_scheduled,
        budget_discussed=bool(BUDGET.search(notes)),
        metrics_mentioned=bool(METRICS.search(notes)),
        new_value_sent_post_demo=new_value_sent_post_demo,
        timeline_defined=bool(TIMELINE.search(notes)),
        consequence_of_inaction_defined=bool(CONSEQUENCE.search(notes)),
        discovery_summary_present=bool(DISCOVERY.search(notes)),
    )
