import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.selectable import Subquery

from ..core.db_utils import db_transaction
from ..core.exceptions import InvalidInput, NotFound
from ..models.event import Event
from ..models.registration import Registration
from ..schemas.event import EventCreate, EventUpdate

logger = logging.getLogger(__name__)


def registration_counts() -> Subquery:
    """Per-event seat counts, computed at query time."""
    return (
        select(
            Registration.event_id.label("event_id"),
            func.count(Registration.id).label("registered_count"),
        )
        .group_by(Registration.event_id)
        .subquery()
    )


async def get_event(
    db: AsyncSession, event_id: int, *, for_update: bool = False
) -> Optional[Event]:
    query = select(Event).filter(Event.id == event_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    first: Optional[Event] = result.scalars().first()
    return first


async def registered_count(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        select(func.count(Registration.id)).filter(Registration.event_id == event_id)
    )
    return int(result.scalar_one())


async def get_event_with_count(
    db: AsyncSession, event_id: int
) -> Optional[Tuple[Event, int]]:
    event = await get_event(db, event_id)
    if event is None:
        return None
    return event, await registered_count(db, event_id)


async def list_events(
    db: AsyncSession, category: Optional[str] = None
) -> List[Tuple[Event, int]]:
    counts = registration_counts()
    query = select(Event, func.coalesce(counts.c.registered_count, 0)).outerjoin(
        counts, counts.c.event_id == Event.id
    )
    if category:
        query = query.filter(Event.category == category)
    query = query.order_by(Event.date, Event.time, Event.id)

    result = await db.execute(query)
    return [(event, int(count)) for event, count in result.all()]


async def list_events_by_category(
    db: AsyncSession, category: str
) -> List[Tuple[Event, int]]:
    return await list_events(db, category=category)


async def create_event(
    db: AsyncSession, event: EventCreate, created_by: Optional[int]
) -> Event:
    data = event.model_dump()
    if data.get("description") is None:
        data["description"] = ""

    async with db_transaction(db):
        db_event = Event(**data, created_by=created_by)
        db.add(db_event)
        await db.flush()

    logger.info("Event %s created by user %s", db_event.id, created_by)
    return db_event


async def update_event(
    db: AsyncSession, event_id: int, event: EventUpdate
) -> Tuple[Event, int]:
    """Apply a partial update and return the event with its seat count.

    The capacity floor check runs under the event row lock, the same lock
    registration takes, so no seat can be taken between check and write.
    """
    async with db_transaction(db):
        db_event = await get_event(db, event_id, for_update=True)
        if db_event is None:
            raise NotFound("Event not found")

        count = await registered_count(db, event_id)
        update_data = event.model_dump(exclude_none=True)

        new_capacity = update_data.get("capacity")
        if new_capacity is not None and new_capacity < count:
            raise InvalidInput(
                f"Capacity cannot be lower than the current number of "
                f"registrations ({count})"
            )

        for field, value in update_data.items():
            setattr(db_event, field, value)
        await db.flush()

    logger.info("Event %s updated: %s", event_id, sorted(update_data))
    return db_event, count


async def delete_event(db: AsyncSession, event_id: int) -> None:
    async with db_transaction(db):
        db_event = await get_event(db, event_id, for_update=True)
        if db_event is None:
            raise NotFound("Event not found")

        # Registrations first, then the event, in the same transaction
        result = await db.execute(
            delete(Registration).where(Registration.event_id == event_id)
        )
        await db.execute(delete(Event).where(Event.id == event_id))

    logger.info(
        "Event %s deleted along with %s registrations", event_id, result.rowcount
    )
