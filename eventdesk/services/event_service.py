from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFound
from ..crud import event as event_crud
from ..schemas.event import Event, EventCreate, EventUpdate


async def get_event_detail(db: AsyncSession, event_id: int) -> Event:
    """
    Reads an event with its seat counts, raising NotFound when absent.
    """
    row = await event_crud.get_event_with_count(db, event_id)
    if row is None:
        raise NotFound("Event not found")
    event_obj, count = row
    return Event.with_occupancy(event_obj, count)


async def list_events(db: AsyncSession, category: Optional[str] = None) -> List[Event]:
    """
    Lists events ordered by date and time, optionally within one category.
    """
    if category:
        rows = await event_crud.list_events_by_category(db, category)
    else:
        rows = await event_crud.list_events(db)
    return [Event.with_occupancy(event_obj, count) for event_obj, count in rows]


async def create_event(
    db: AsyncSession, event_data: EventCreate, created_by: Optional[int]
) -> Event:
    event_obj = await event_crud.create_event(
        db, event=event_data, created_by=created_by
    )
    return Event.with_occupancy(event_obj, 0)


async def update_event(
    db: AsyncSession, event_id: int, event_data: EventUpdate
) -> Event:
    event_obj, count = await event_crud.update_event(
        db, event_id=event_id, event=event_data
    )
    return Event.with_occupancy(event_obj, count)


async def delete_event(db: AsyncSession, event_id: int) -> None:
    await event_crud.delete_event(db, event_id=event_id)
