from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...crud import registration as registration_crud
from ...schemas.common import Message
from ...schemas.event import Event
from ...schemas.registration import (
    EventRegistrant,
    EventRegistrations,
    MyEvent,
    MyEventList,
)
from ...schemas.user import TokenPayload
from .. import deps

router = APIRouter()


@router.get("/my-events", response_model=MyEventList)
async def read_my_events(
    db: AsyncSession = Depends(deps.get_db),
    claims: TokenPayload = Depends(deps.get_token_payload),
) -> Any:
    """
    Events the caller holds a seat for, soonest first.
    """
    rows = await registration_crud.list_for_user(db, claims.sub)
    events = [
        MyEvent(
            **Event.with_occupancy(event, count).model_dump(),
            registered_at=registered_at,
        )
        for event, registered_at, count in rows
    ]
    return {"events": events}


@router.post(
    "/{event_id}", response_model=Message, status_code=status.HTTP_201_CREATED
)
async def register_for_event(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    claims: TokenPayload = Depends(deps.get_token_payload),
) -> Any:
    """
    Take a seat. Fails with 404 for an unknown event and 400 when the caller
    is already registered or the event is full.
    """
    await registration_crud.register(db, user_id=claims.sub, event_id=event_id)
    return {"message": "Successfully registered for event"}


@router.delete("/{event_id}", response_model=Message)
async def cancel_registration(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    claims: TokenPayload = Depends(deps.get_token_payload),
) -> Any:
    """
    Give a seat back. Registrations for events that already started cannot
    be cancelled.
    """
    await registration_crud.cancel(db, user_id=claims.sub, event_id=event_id)
    return {"message": "Registration cancelled successfully"}


@router.get("/event/{event_id}", response_model=EventRegistrations)
async def read_event_registrations(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
) -> Any:
    """
    Registrant list for one event, newest first (Admin Only).
    """
    event, rows = await registration_crud.list_for_event(db, event_id)
    registrations = [
        EventRegistrant(
            id=registration.id,
            registered_at=registration.registered_at,
            user_id=user.id,
            username=user.username,
            email=user.email,
        )
        for registration, user in rows
    ]
    return {
        "event": Event.with_occupancy(event, len(registrations)),
        "registrations": registrations,
    }
