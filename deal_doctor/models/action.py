from enum import StrEnum
from pydantic import Field
from deal_doctor.models.base import DealDoctorModel, new_id


class ActionImpact(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class RecommendedAction(DealDoctorModel):
    """
    A next step suggested for a diagnosed deal.
    Status is the only field the seller changes after generation.
    """
    id: str = Field(default_factory=new_id)
    action: str
    playbook: str = Field(..., description="Display label of the playbook this action belongs to.")
    reason: str
    expected_impact: ActionImpact
    time_to_execute: str = Field(..., description="Human estimate, e.g. '1-2 days' or '30 min'.")
    status: ActionStatus = ActionStatus.PENDING
