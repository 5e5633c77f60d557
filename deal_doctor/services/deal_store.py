"""
In-Memory Deal Store

Keyed collection of deals for the dashboard and CLI. Diagnoses a deal when it
is added and on every explicit re-run; results always replace the previous
diagnosis and action list wholesale.

Every write stores a deep copy, so callers never share mutable state with a
stored deal. Data is lost on restart. Suitable for demos, tests and
single-user sessions.
"""
import copy
import datetime as dt
from functools import lru_cache
from typing import Optional

from deal_doctor.config import get_settings
from deal_doctor.engine import diagnose, generate_actions
from deal_doctor.models.action import ActionStatus
from deal_doctor.models.base import new_id, utc_now
from deal_doctor.models.deal import Deal, DealStage, Stakeholder, StakeholderRole
from deal_doctor.utils.observability import log_business_event, logger

# Fields the engine writes; updates through update_deal may not touch them.
_DIAGNOSIS_FIELDS = frozenset({"id", "created_at", "diagnosis", "recommended_actions"})


class InMemoryDealStore:
    """
    Dict-backed deal store.

    Missing deal ids are not errors: lookups return None and mutations
    return None / False after logging a warning.
    """

    def __init__(self, deals: Optional[list[Deal]] = None):
        self._deals: dict[str, Deal] = {}
        if deals:
            self.seed(deals)

    def seed(self, deals: list[Deal]) -> None:
        """Load deals under their existing ids, diagnosing each one."""
        for deal in deals:
            self._deals[deal.id] = self._with_fresh_diagnosis(deal)
        logger.info(f"Seeded deal store with {len(deals)} deals")

    def __len__(self) -> int:
        return len(self._deals)

    def get(self, deal_id: str) -> Optional[Deal]:
        return self._deals.get(deal_id)

    def list_deals(self) -> list[Deal]:
        """All deals in insertion order."""
        return list(self._deals.values())

    def add_deal(self, deal: Deal) -> Deal:
        """
        Store a new deal and diagnose it immediately.

        A fresh id and creation time are assigned; any diagnosis or actions
        on the incoming record are discarded.

        Args:
            deal: Deal data from the caller

        Returns:
            The stored, diagnosed deal
        """
        new_deal = deal.model_copy(update={
            "id": new_id(),
            "created_at": utc_now(),
            "diagnosis": None,
            "recommended_actions": [],
        })
        new_deal = self._with_fresh_diagnosis(new_deal)
        self._deals[new_deal.id] = new_deal

        log_business_event(
            "deal_created",
            new_deal.id,
            company_name=new_deal.company_name,
            diagnosis=new_deal.diagnosis.code.value if new_deal.diagnosis else None,
        )
        return new_deal

    def update_deal(self, deal_id: str, **updates) -> Optional[Deal]:
        """
        Apply field updates to a stored deal.

        Does not re-diagnose; call run_diagnosis when the seller asks for it.

        Returns:
            Updated deal, or None if not found
        """
        deal = self._deals.get(deal_id)
        if deal is None:
            logger.warning(f"update_deal: deal not found: {deal_id}")
            return None

        blocked = _DIAGNOSIS_FIELDS.intersection(updates)
        if blocked:
            raise ValueError(f"Fields managed by the store cannot be updated: {sorted(blocked)}")

        updated = deal.model_copy(deep=True)
        for field, value in updates.items():
            setattr(updated, field, copy.deepcopy(value))
        self._deals[deal_id] = updated
        return updated

    def delete_deal(self, deal_id: str) -> bool:
        """
        Returns:
            True if deleted, False if not found
        """
        if self._deals.pop(deal_id, None) is None:
            logger.warning(f"delete_deal: deal not found: {deal_id}")
            return False

        log_business_event("deal_deleted", deal_id)
        return True

    def run_diagnosis(self, deal_id: str) -> Optional[Deal]:
        """
        Re-diagnose a stored deal.

        Safe to call repeatedly: each run replaces the diagnosis and the
        action list, never appends to them.

        Returns:
            The re-diagnosed deal, or None if not found
        """
        deal = self._deals.get(deal_id)
        if deal is None:
            logger.warning(f"run_diagnosis: deal not found: {deal_id}")
            return None

        rediagnosed = self._with_fresh_diagnosis(deal)
        self._deals[deal_id] = rediagnosed
        return rediagnosed

    def update_action_status(self, deal_id: str, action_id: str, status: ActionStatus) -> bool:
        """
        Move a recommended action through pending -> in_progress -> completed.

        Returns:
            True if the action was found and updated
        """
        deal = self._deals.get(deal_id)
        if deal is None:
            logger.warning(f"update_action_status: deal not found: {deal_id}")
            return False

        updated = deal.model_copy(deep=True)
        for action in updated.recommended_actions:
            if action.id == action_id:
                action.status = ActionStatus(status)
                self._deals[deal_id] = updated
                log_business_event(
                    "action_status_changed",
                    deal_id,
                    action_id=action_id,
                    action=action.action,
                    status=action.status.value,
                )
                return True

        logger.warning(f"update_action_status: action {action_id} not found on deal {deal_id}")
        return False

    def set_reminder(self, deal_id: str, reminder_date: Optional[dt.datetime]) -> Optional[Deal]:
        """
        Set or clear the follow-up reminder.

        A reminder counts as a scheduled next step on the next diagnosis run.

        Returns:
            Updated deal, or None if not found
        """
        deal = self._deals.get(deal_id)
        if deal is None:
            logger.warning(f"set_reminder: deal not found: {deal_id}")
            return None

        updated = deal.model_copy(deep=True)
        updated.reminder_date = reminder_date
        self._deals[deal_id] = updated
        log_business_event(
            "reminder_set" if reminder_date else "reminder_cleared",
            deal_id,
            reminder_date=reminder_date.isoformat() if reminder_date else None,
        )
        return updated

    @staticmethod
    def _with_fresh_diagnosis(deal: Deal) -> Deal:
        diagnosis = diagnose(deal)
        actions = generate_actions(diagnosis, deal) if diagnosis else []
        return deal.model_copy(update={"diagnosis": diagnosis, "recommended_actions": actions}, deep=True)


def sample_deals() -> list[Deal]:
    """Three demo deals covering a stalled proposal, a healthy negotiation and a cold demo."""
    return [
        Deal(
            id="1",
            company_name="Acme Corp",
            deal_value=75000,
            stage=DealStage.PROPOSAL,
            days_inactive=18,
            stakeholders=[
                Stakeholder(id="1", name="Sarah Chen", title="Product Manager",
                            email="sarah@acme.com", role=StakeholderRole.CHAMPION),
            ],
            notes="Had a great demo. Sarah loved the integration features. Waiting for internal discussion.",
            created_at=dt.datetime(2025, 12, 1, tzinfo=dt.UTC),
            last_activity_at=dt.datetime(2025, 12, 31, tzinfo=dt.UTC),
        ),
        Deal(
            id="2",
            company_name="TechStart Inc",
            deal_value=120000,
            stage=DealStage.NEGOTIATION,
            days_inactive=5,
            stakeholders=[
                Stakeholder(id="2", name="Mike Johnson", title="CTO",
                            email="mike@techstart.io", role=StakeholderRole.TECHNICAL_BUYER),
                Stakeholder(id="3", name="Lisa Park", title="CFO",
                            email="lisa@techstart.io", role=StakeholderRole.ECONOMIC_BUYER),
            ],
            notes=(
                "ROI discussion went well. They're looking at 40% cost reduction. "
                "Timeline is end of Q1. Next step: security review."
            ),
            created_at=dt.datetime(2025, 11, 15, tzinfo=dt.UTC),
            last_activity_at=dt.datetime(2026, 1, 13, tzinfo=dt.UTC),
        ),
        Deal(
            id="3",
            company_name="GlobalRetail",
            deal_value=250000,
            stage=DealStage.DEMO,
            days_inactive=32,
            stakeholders=[
                Stakeholder(id="4", name="James Wilson", title="IT Manager",
                            email="james@globalretail.com", role=StakeholderRole.INFLUENCER),
            ],
            notes="Demo completed. They said they'll revisit next quarter. No budget discussion yet.",
            created_at=dt.datetime(2025, 10, 20, tzinfo=dt.UTC),
            last_activity_at=dt.datetime(2025, 12, 17, tzinfo=dt.UTC),
        ),
    ]


@lru_cache()
def get_deal_store() -> InMemoryDealStore:
    """Process-wide store, seeded with the sample deals unless disabled in settings."""
    store = InMemoryDealStore()
    if get_settings().seed_sample_deals:
        store.seed(sample_deals())
    return store
