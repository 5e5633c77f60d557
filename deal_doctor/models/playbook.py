from enum import StrEnum
from typing import List, Literal
from pydantic import BaseModel, ConfigDict, Field
from deal_doctor.models.diagnosis import DiagnosisCode


class PlaybookId(StrEnum):
    MULTI_THREAD = "multi_thread"
    BUSINESS_IMPACT = "business_impact"
    INTRODUCE_NEW_VALUE = "introduce_new_value"
    SALES_HYGIENE = "sales_hygiene"
    CREATE_URGENCY = "create_urgency"


class TonePreference(StrEnum):
    DIRECT = "direct"
    SUPPORTIVE = "supportive"
    EXECUTIVE = "executive"


class ChannelPreference(StrEnum):
    EMAIL = "email"
    CALL = "call"
    LINKEDIN = "linkedin"


class Playbook(BaseModel):
    """A pre-approved play. The LLM may only help execute one, never pick it."""
    model_config = ConfigDict(frozen=True)

    id: PlaybookId
    name: str
    objective: str
    allowed_actions: List[str]
    mapped_diagnoses: List[DiagnosisCode]


class QualityBar(BaseModel):
    model_config = ConfigDict(frozen=True)

    good: List[str]
    bad: List[str]


# --- LLM input contract ---

class PlaybookSummary(BaseModel):
    name: str
    objective: str
    allowed_actions: List[str]


class DiagnosisSummary(BaseModel):
    """The only diagnosis fields that cross into prompt construction."""
    code: DiagnosisCode
    severity: str
    evidence: List[str]


class StakeholderSummary(BaseModel):
    name: str
    title: str
    role: str


class DealContext(BaseModel):
    company_name: str
    stage: str
    deal_value: float
    stakeholders: List[StakeholderSummary] = Field(default_factory=list)
    notes: str
    days_inactive: int


class SellerPreferences(BaseModel):
    tone: TonePreference = TonePreference.DIRECT
    channel: ChannelPreference = ChannelPreference.EMAIL


class PlaybookInput(BaseModel):
    playbook: PlaybookSummary
    diagnosis: DiagnosisSummary
    deal_context: DealContext
    seller_preferences: SellerPreferences


class PlaybookOutput(BaseModel):
    playbook: PlaybookId
    output_type: Literal["draft", "checklist", "questions"]
    content: str
    warnings: List[str] = Field(default_factory=list)
    is_editable: bool = True
    generated_by: str = Field(..., description="Generator that produced the content, e.g. 'llm' or 'template'.")
