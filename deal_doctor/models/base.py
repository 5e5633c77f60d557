import datetime as dt
import uuid
from pydantic import BaseModel, Field, ConfigDict, field_serializer


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class DealDoctorModel(BaseModel):
    """Shared config for every persisted record: strict fields, assignment validation."""
    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra='forbid'
    )


class TimestampedModel(DealDoctorModel):
    id: str = Field(default_factory=new_id)
    created_at: dt.datetime = Field(default_factory=utc_now)

    @field_serializer("created_at")
    def serialize_dt(self, value: dt.datetime):
        return value.isoformat()
