"""
Structured Logging & Observability
Console logs for people, JSON lines for machines, both through loguru.
"""
import sys
from loguru import logger
from typing import Any, Dict, Iterable, TextIO
from deal_doctor.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> <level>{level: <8}</level> "
    "<cyan>{name}:{line}</cyan> {message}"
)


def configure_logging(sink: TextIO = sys.stderr) -> int:
    """
    Replace loguru's default handler with one driven by settings.

    ENABLE_STRUCTURED_LOGGING switches between the colour console format
    and serialized JSON records (bound extras included). Outside development,
    tracebacks do not render local variables, since those can hold deal notes.

    Returns:
        The loguru handler id
    """
    settings = get_settings()
    structured = settings.enable_structured_logging

    logger.remove()
    handler_id = logger.add(
        sink,
        level=settings.log_level,
        format="{message}" if structured else CONSOLE_FORMAT,
        serialize=structured,
        colorize=not structured and sink is sys.stderr,
        diagnose=settings.environment == "development",
    )

    logger.debug(f"Logging ready: level={settings.log_level} structured={structured}")
    return handler_id


def log_diagnosis_run(
    deal_id: str,
    company_name: str,
    matched_codes: Iterable[str],
    primary_code: str | None,
    **context
):
    """
    Structured logging for a single pass of the diagnosis engine.

    Args:
        deal_id: The deal being diagnosed
        company_name: Company name, for readable log lines
        matched_codes: Every diagnosis code with at least one matched rule
        primary_code: The winning code, or None when nothing matched
        **context: Additional context (stage, days_inactive, ...)
    """
    log_data = {
        "event_type": "diagnosis_run",
        "deal_id": deal_id,
        "matched_codes": list(matched_codes),
        "primary_code": primary_code,
    }
    log_data.update(context)

    logger.bind(**log_data).debug(f"Diagnosis | {company_name} -> {primary_code or 'healthy'}")


def log_llm_call(
    playbook: str,
    model: str,
    duration_ms: float,
    success: bool = True,
    error: str | None = None
):
    """
    Structured logging for playbook LLM calls.

    Args:
        playbook: Playbook being executed
        model: Model used (e.g., "openai:gpt-4o-mini")
        duration_ms: API latency in milliseconds
        success: Whether the call succeeded
        error: Error message if failed
    """
    log_data = {
        "event_type": "llm_call",
        "playbook": playbook,
        "model": model,
        "duration_ms": round(duration_ms, 2),
        "success": success
    }

    if error:
        log_data["error"] = error

    level = "info" if success else "error"
    logger.bind(**log_data).log(
        level.upper(),
        f"LLM Call: {model} | {playbook} | {duration_ms:.0f}ms"
    )


def log_business_event(
    event_type: str,
    deal_id: str,
    **details: Dict[str, Any]
):
    """
    Log business-relevant events for analytics.

    Examples:
        - Deal created and diagnosed
        - Action marked completed
        - Reminder set

    Args:
        event_type: Type of event (e.g., "deal_created", "action_status_changed")
        deal_id: The deal involved
        **details: Event-specific data
    """
    log_data = {
        "event_type": event_type,
        "deal_id": deal_id,
        **details
    }

    logger.bind(**log_data).success(f"Business Event: {event_type}")
