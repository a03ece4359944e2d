from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...schemas.common import Message
from ...schemas.event import (
    EventCreate,
    EventList,
    EventMutationResponse,
    EventResponse,
    EventUpdate,
)
from ...schemas.user import TokenPayload
from ...services import event_service
from .. import deps

router = APIRouter()


@router.get("", response_model=EventList, summary="List Events")
async def read_events(
    db: AsyncSession = Depends(deps.get_db),
    category: Optional[str] = Query(None, description="Filter by category"),
) -> Any:
    """
    **Retrieve Events**

    Events are ordered by date, then time. Each event carries
    `registered_count` and `remaining_spots`, counted at read time.

    **Example Requests:**
    ```bash
    GET /api/events
    GET /api/events?category=workshop
    ```
    """
    events = await event_service.list_events(db, category=category)
    return {"events": events}


@router.get(
    "/category/{category}", response_model=EventList, summary="List Events by Category"
)
async def read_events_by_category(
    category: str,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    events = await event_service.list_events(db, category=category)
    return {"events": events}


@router.get("/{event_id}", response_model=EventResponse, summary="Get Event Details")
async def read_event(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    **Get Event by ID**

    **Errors:**
    - `404`: Event not found
    """
    event = await event_service.get_event_detail(db, event_id)
    return {"event": event}


@router.post(
    "",
    response_model=EventMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create New Event",
)
async def create_event(
    event_in: EventCreate,
    db: AsyncSession = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
) -> Any:
    """
    **Create New Event** (Admin Only)

    **Request Body:**
    - `title` (string)
    - `description` (string, optional)
    - `category` (string): e.g. conference, seminar, workshop
    - `date` (string): `YYYY-MM-DD`
    - `time` (string): `HH:MM`
    - `location` (string)
    - `capacity` (integer): at least 1

    **Example Request:**
    ```json
    {
        "title": "Async Python Workshop",
        "description": "Hands-on asyncio session",
        "category": "workshop",
        "date": "2026-03-14",
        "time": "18:30",
        "location": "Room 101",
        "capacity": 30
    }
    ```

    **Errors:**
    - `400`: Missing field or capacity below 1
    - `401`: Authentication required
    - `403`: Not an admin
    """
    event = await event_service.create_event(db, event_in, created_by=admin.sub)
    return {"message": "Event created successfully", "event": event}


@router.put("/{event_id}", response_model=EventMutationResponse, summary="Update Event")
async def update_event(
    event_id: int,
    event_in: EventUpdate,
    db: AsyncSession = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
) -> Any:
    """
    **Update Event Details** (Admin Only)

    Partial update: omitted or blank fields keep their current value, except
    `description`, which an explicit empty string clears.

    **Errors:**
    - `400`: Invalid value, or capacity below the number of registrations
    - `401`: Authentication required
    - `403`: Not an admin
    - `404`: Event not found
    """
    event = await event_service.update_event(db, event_id, event_in)
    return {"message": "Event updated successfully", "event": event}


@router.delete("/{event_id}", response_model=Message, summary="Delete Event")
async def delete_event(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
) -> Any:
    """
    **Delete Event** (Admin Only)

    Removes the event and every registration for it in one transaction.
    This action cannot be undone.
    """
    await event_service.delete_event(db, event_id)
    return {"message": "Event deleted successfully"}
