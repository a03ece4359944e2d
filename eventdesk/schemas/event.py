import datetime as dt
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.event import Event as EventModel
from .common import UTCDateTime


class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=50)
    date: dt.date
    time: dt.time
    location: str = Field(..., min_length=1, max_length=200)
    capacity: int = Field(..., ge=1, description="Capacity must be at least 1.")


class EventCreate(EventBase):
    model_config = ConfigDict(str_strip_whitespace=True)


class EventUpdate(BaseModel):
    """Partial update; absent or blank fields keep their stored value.

    ``description`` is the exception: an explicit empty string clears it.
    """

    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=50)
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    location: Optional[str] = Field(None, max_length=200)
    capacity: Optional[int] = Field(None, ge=1, description="Capacity must be at least 1.")

    @field_validator("title", "category", "date", "time", "location", mode="before")
    @classmethod
    def blank_means_unchanged(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class Event(EventBase):
    id: int
    description: Optional[str] = ""
    created_by: Optional[int] = None
    created_at: Optional[UTCDateTime] = None
    registered_count: int = 0
    remaining_spots: int = 0

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def with_occupancy(cls, event: EventModel, registered_count: int) -> "Event":
        return cls.model_validate(event).model_copy(
            update={
                "registered_count": registered_count,
                "remaining_spots": event.capacity - registered_count,
            }
        )


class EventResponse(BaseModel):
    event: Event


class EventMutationResponse(EventResponse):
    message: str


class EventList(BaseModel):
    events: List[Event]
