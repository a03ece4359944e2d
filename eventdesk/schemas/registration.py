from typing import List

from pydantic import BaseModel, ConfigDict

from .common import UTCDateTime
from .event import Event


class MyEvent(Event):
    registered_at: UTCDateTime


class MyEventList(BaseModel):
    events: List[MyEvent]


class EventRegistrant(BaseModel):
    id: int
    registered_at: UTCDateTime
    user_id: int
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class EventRegistrations(BaseModel):
    event: Event
    registrations: List[EventRegistrant]
