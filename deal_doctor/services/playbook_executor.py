"""
Playbook Executor

Runs one pre-approved playbook for a diagnosed deal: builds the scoped
prompt, asks a draft generator for content, and checks the result against
the playbook's quality bar. The diagnosis is input only; nothing here can
change it.

When the LLM is unavailable the executor degrades to deterministic template
drafts so the seller still gets something editable.
"""
import time
from typing import Optional, Protocol

from pydantic_ai import Agent

from deal_doctor.config import get_settings
from deal_doctor.models.deal import Deal
from deal_doctor.models.diagnosis import Diagnosis
from deal_doctor.models.playbook import (
    ChannelPreference,
    PlaybookId,
    PlaybookInput,
    PlaybookOutput,
    TonePreference,
)
from deal_doctor.services.playbooks import (
    LLM_SYSTEM_MESSAGE,
    build_playbook_input,
    build_prompt,
    get_playbook_for_diagnosis,
    validate_output,
)
from deal_doctor.utils.llm_client import LLMCriticalError, LLMError, run_agent_with_retry
from deal_doctor.utils.observability import log_llm_call, logger

OUTPUT_TYPES = {
    PlaybookId.SALES_HYGIENE: "checklist",
    PlaybookId.BUSINESS_IMPACT: "questions",
}

FALLBACK_WARNING = "AI assist unavailable - showing a template draft to edit"


class PlaybookNotFoundError(Exception):
    """No playbook is mapped to the diagnosis and none was requested."""
    pass


class DraftGenerator(Protocol):
    """
    Protocol for playbook content generators.

    Implementations raise LLMError / LLMCriticalError when they cannot
    produce content.
    """

    name: str

    async def generate(self, playbook_id: PlaybookId, prompt: str, playbook_input: PlaybookInput) -> str:
        ...


class PydanticAIDraftGenerator:
    """Generates drafts with a PydanticAI agent bound to the static system message."""

    name = "llm"

    def __init__(self, model: Optional[str] = None):
        settings = get_settings()
        self._model = model or settings.playbook_model
        self._agent: Optional[Agent] = None

    def _get_agent(self) -> Agent:
        if self._agent is None:
            if not get_settings().openai_api_key:
                raise LLMCriticalError("OpenAI API key not configured")
            self._agent = Agent(self._model, output_type=str, system_prompt=LLM_SYSTEM_MESSAGE)
        return self._agent

    async def generate(self, playbook_id: PlaybookId, prompt: str, playbook_input: PlaybookInput) -> str:
        agent = self._get_agent()
        start = time.perf_counter()
        try:
            output = await run_agent_with_retry(agent, prompt)
        except (LLMError, LLMCriticalError) as e:
            log_llm_call(playbook_id.value, self._model, (time.perf_counter() - start) * 1000,
                         success=False, error=str(e))
            raise
        log_llm_call(playbook_id.value, self._model, (time.perf_counter() - start) * 1000)
        return output


class TemplateDraftGenerator:
    """Deterministic drafts with placeholders for the seller to fill in."""

    name = "template"

    async def generate(self, playbook_id: PlaybookId, prompt: str, playbook_input: PlaybookInput) -> str:
        return render_template_draft(playbook_id, playbook_input)


def render_template_draft(playbook_id: PlaybookId, playbook_input: PlaybookInput) -> str:
    ctx = playbook_input.deal_context
    tone = playbook_input.seller_preferences.tone
    contact = ctx.stakeholders[0].name if ctx.stakeholders else "[Contact Name]"
    roles = {s.role for s in ctx.stakeholders}

    if playbook_id == PlaybookId.MULTI_THREAD:
        opener = {
            TonePreference.EXECUTIVE: "I wanted to connect",
            TonePreference.DIRECT: "Quick ask: connect me",
        }.get(tone, "Hope you're doing well. Could you connect me")
        topic = ctx.notes[:50] or "your initiative"
        return (
            "WARM INTRO REQUEST\n---\n"
            f"Hi {contact},\n\n"
            f"{opener} with someone on your team who handles [specific area based on their role].\n\n"
            f"Given our conversation about {topic}..., I think it would be valuable to include "
            "their perspective early.\n\n"
            "Would you be open to making an introduction?\n\n"
            "---\nCOLD OUTREACH (if target identified)\n---\n"
            f"Subject: {ctx.company_name} - [Specific Area] perspective\n\n"
            "Hi [New Contact Name],\n\n"
            f"{contact} and I have been discussing [initiative]. Given your role in [their department], "
            "your input would be valuable.\n\n"
            "Would you have 15 minutes this week?"
        )

    if playbook_id == PlaybookId.BUSINESS_IMPACT:
        return (
            "COST OF INACTION FRAMING\n---\n"
            "Consider what happens if this initiative doesn't move forward:\n\n"
            "- The challenge you described around [reference from notes] continues\n"
            "- Your team keeps spending time on [current manual process]\n"
            "- The gap between where you are and where you want to be widens\n\n"
            "---\nCLARIFYING QUESTIONS\n---\n"
            "1. How is [the current challenge] affecting your team's day-to-day?\n"
            "2. What happens to your [specific goal] if this isn't addressed this quarter?"
        )

    if playbook_id == PlaybookId.INTRODUCE_NEW_VALUE:
        return (
            "NEW VALUE ANGLE\n---\n"
            f"Since our last conversation, I've been thinking about {ctx.company_name}'s situation...\n\n"
            "Rather than rehash what we covered in the demo, I wanted to share a different angle:\n\n"
            "[One specific insight relevant to their industry/situation]\n\n"
            "---\nDRAFT MESSAGE\n---\n"
            f"Subject: A different angle for {ctx.company_name}\n\n"
            f"Hi {contact},\n\n"
            "I came across something that made me think of our conversation.\n\n"
            "[Share the new insight or perspective: not a feature, but a way of thinking about their problem]\n\n"
            "Thought it might be useful as you evaluate next steps.\n\n"
            "Happy to discuss if helpful."
        )

    if playbook_id == PlaybookId.SALES_HYGIENE:
        return (
            "INTERNAL CHECKLIST (not for buyer)\n---\n"
            f"Before re-engaging {ctx.company_name}:\n\n"
            "[ ] Review discovery notes. Do I have documented answers to:\n"
            "    - Business problem/pain?\n"
            "    - Impact of not solving?\n"
            "    - Decision timeline?\n"
            "    - Budget holder identified?\n\n"
            "[ ] Confirm next steps are clear:\n"
            "    - What did we agree to do next?\n"
            "    - Who is responsible for what?\n"
            "    - When was this supposed to happen?\n\n"
            "[ ] Check stakeholder coverage:\n"
            f"    - Economic buyer engaged? {'Yes' if 'economic_buyer' in roles else 'No'}\n"
            f"    - Champion identified? {'Yes' if 'champion' in roles else 'No'}\n"
            f"    - Any blockers known? {'Yes' if 'blocker' in roles else 'Unknown'}\n\n"
            "[ ] Prepare value summary before outreach\n"
            "[ ] Have a specific reason for reaching out (not a status ping)"
        )

    topic = ctx.notes[:30] or "your initiative"
    return (
        "TIMELINE CLARIFICATION MESSAGE\n---\n"
        f"Hi {contact},\n\n"
        f"I wanted to follow up on our conversation about {topic}...\n\n"
        "To make sure I'm aligned with your timeline: are you looking to have a solution in place "
        "by a specific date, or is this more exploratory at this stage?\n\n"
        "---\nCLOSE-ENDED QUESTION\n---\n"
        "\"Are you targeting Q1 or Q2 for implementation?\"\n\n"
        "(Adjust based on current quarter: gives them two options without pressure)"
    )


class PlaybookExecutor:
    """
    Executes playbooks for diagnosed deals.

    Args:
        generator: Primary draft generator (defaults to the PydanticAI one)
        fallback: Used when the primary generator fails (defaults to templates)
    """

    def __init__(
        self,
        generator: Optional[DraftGenerator] = None,
        fallback: Optional[DraftGenerator] = None,
    ):
        self._generator = generator or PydanticAIDraftGenerator()
        self._fallback = fallback or TemplateDraftGenerator()

    async def execute(
        self,
        deal: Deal,
        diagnosis: Diagnosis,
        playbook_id: Optional[PlaybookId] = None,
        tone: Optional[TonePreference] = None,
        channel: Optional[ChannelPreference] = None,
    ) -> PlaybookOutput:
        """
        Run a playbook for a deal.

        Args:
            deal: Deal snapshot
            diagnosis: Diagnosis the playbook responds to
            playbook_id: Explicit choice; defaults to the one mapped to the diagnosis
            tone: Seller tone preference (settings default when omitted)
            channel: Outreach channel (settings default when omitted)

        Returns:
            PlaybookOutput with content and quality-bar warnings

        Raises:
            PlaybookNotFoundError: No playbook requested or mapped
        """
        settings = get_settings()
        playbook_id = playbook_id or get_playbook_for_diagnosis(diagnosis.code)
        if playbook_id is None:
            raise PlaybookNotFoundError(f"No playbook mapped to diagnosis {diagnosis.code}")

        playbook_input = build_playbook_input(
            playbook_id,
            deal,
            diagnosis,
            tone=TonePreference(tone or settings.default_tone),
            channel=ChannelPreference(channel or settings.default_channel),
        )
        prompt = build_prompt(playbook_id, playbook_input)

        warnings: list[str] = []
        generator = self._generator
        try:
            content = await generator.generate(playbook_id, prompt, playbook_input)
        except (LLMError, LLMCriticalError) as e:
            logger.warning(f"Playbook {playbook_id} falling back to templates: {e}")
            generator = self._fallback
            content = await generator.generate(playbook_id, prompt, playbook_input)
            warnings.append(FALLBACK_WARNING)

        warnings.extend(validate_output(playbook_id, content))

        return PlaybookOutput(
            playbook=playbook_id,
            output_type=OUTPUT_TYPES.get(playbook_id, "draft"),
            content=content,
            warnings=warnings,
            generated_by=generator.name,
        )
