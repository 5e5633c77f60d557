"""Services package."""
from deal_doctor.services.deal_store import InMemoryDealStore, get_deal_store, sample_deals
from deal_doctor.services.playbook_executor import (
    DraftGenerator,
    PlaybookExecutor,
    PlaybookNotFoundError,
    PydanticAIDraftGenerator,
    TemplateDraftGenerator,
)

__all__ = [
    "InMemoryDealStore",
    "get_deal_store",
    "sample_deals",
    "DraftGenerator",
    "PlaybookExecutor",
    "PlaybookNotFoundError",
    "PydanticAIDraftGenerator",
    "TemplateDraftGenerator",
]
