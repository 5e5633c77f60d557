import datetime as dt
from enum import StrEnum
from typing import List, Optional
from pydantic import Field, field_serializer
from deal_doctor.models.base import DealDoctorModel, TimestampedModel, new_id, utc_now
from deal_doctor.models.action import RecommendedAction
from deal_doctor.models.diagnosis import Diagnosis


class DealStage(StrEnum):
    DISCOVERY = "discovery"
    DEMO = "demo"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


STAGE_LABELS: dict[DealStage, str] = {
    DealStage.DISCOVERY: "Discovery",
    DealStage.DEMO: "Demo",
    DealStage.PROPOSAL: "Proposal",
    DealStage.NEGOTIATION: "Negotiation",
    DealStage.CLOSED_WON: "Closed Won",
    DealStage.CLOSED_LOST: "Closed Lost",
}


class StakeholderRole(StrEnum):
    CHAMPION = "champion"
    ECONOMIC_BUYER = "economic_buyer"
    TECHNICAL_BUYER = "technical_buyer"
    INFLUENCER = "influencer"
    BLOCKER = "blocker"


class Stakeholder(DealDoctorModel):
    id: str = Field(default_factory=new_id)
    name: str
    title: str = ""
    email: str = ""
    role: StakeholderRole = StakeholderRole.INFLUENCER


class Deal(TimestampedModel):
    """
    The unit of diagnosis.
    Owned by the deal store; the engine only ever reads it.
    """
    company_name: str
    deal_value: float = 0.0
    stage: DealStage = DealStage.DISCOVERY

    # Staleness is computed upstream; the engine does no date arithmetic.
    days_inactive: int = 0

    stakeholders: List[Stakeholder] = Field(default_factory=list)
    notes: str = ""

    # Replaced wholesale on every diagnosis run
    diagnosis: Optional[Diagnosis] = None
    recommended_actions: List[RecommendedAction] = Field(default_factory=list)

    last_activity_at: dt.datetime = Field(default_factory=utc_now)
    reminder_date: Optional[dt.datetime] = None

    @field_serializer("last_activity_at", "reminder_date")
    def serialize_activity_dt(self, value: Optional[dt.datetime]):
        return value.isoformat() if value else None

    @property
    def stage_label(self) -> str:
        return STAGE_LABELS[self.stage]
