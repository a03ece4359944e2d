"""
Registration ledger: the only writer of the registrations table.

``register`` serializes its check-then-insert per event. On PostgreSQL the
event row is locked with ``SELECT ... FOR UPDATE``; on SQLite the whole
transaction runs under ``BEGIN IMMEDIATE`` (see DatabaseManager). The unique
constraint on (user_id, event_id) backs the duplicate check, so a second
writer for the same pair fails cleanly instead of adding a row.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.db_utils import db_transaction
from ..core.exceptions import AlreadyRegistered, CapacityExceeded, NotFound, PastEvent
from ..models.event import Event
from ..models.registration import Registration
from ..models.user import User
from . import event as event_crud

logger = logging.getLogger(__name__)


async def get_registration(
    db: AsyncSession, *, user_id: int, event_id: int
) -> Optional[Registration]:
    result = await db.execute(
        select(Registration).filter(
            Registration.user_id == user_id, Registration.event_id == event_id
        )
    )
    first: Optional[Registration] = result.scalars().first()
    return first


def _is_duplicate_registration(exc: IntegrityError) -> bool:
    # SQLite names the columns, PostgreSQL names the constraint
    detail = str(exc.orig)
    return (
        "uq_registration_user_event" in detail
        or "registrations.user_id, registrations.event_id" in detail
    )


async def register(db: AsyncSession, *, user_id: int, event_id: int) -> Registration:
    try:
        async with db_transaction(db):
            event = await event_crud.get_event(db, event_id, for_update=True)
            if event is None:
                raise NotFound("Event not found")

            # A signed token can outlive its user row
            if await db.get(User, user_id) is None:
                raise NotFound("User not found")

            if await get_registration(db, user_id=user_id, event_id=event_id):
                raise AlreadyRegistered()

            count = await event_crud.registered_count(db, event_id)
            if count >= event.capacity:
                raise CapacityExceeded()

            registration = Registration(user_id=user_id, event_id=event_id)
            db.add(registration)
            await db.flush()
    except IntegrityError as exc:
        if not _is_duplicate_registration(exc):
            raise
        logger.info(
            "Duplicate registration rejected by constraint: user %s event %s",
            user_id,
            event_id,
        )
        raise AlreadyRegistered()

    logger.info(
        "User %s registered for event %s (%s/%s)",
        user_id,
        event_id,
        count + 1,
        event.capacity,
    )
    return registration


async def cancel(
    db: AsyncSession,
    *,
    user_id: int,
    event_id: int,
    now: Optional[datetime] = None,
) -> None:
    """Release a held seat unless the event has already started.

    Event dates and times are naive and read as server local time.
    """
    current_time = now or datetime.now()

    async with db_transaction(db):
        registration = await get_registration(db, user_id=user_id, event_id=event_id)
        if registration is None:
            raise NotFound("Registration not found")

        event = await event_crud.get_event(db, event_id)
        if event is not None and event.starts_at < current_time:
            raise PastEvent()

        await db.execute(delete(Registration).where(Registration.id == registration.id))

    logger.info("User %s cancelled registration for event %s", user_id, event_id)


async def list_for_user(
    db: AsyncSession, user_id: int
) -> List[Tuple[Event, datetime, int]]:
    counts = event_crud.registration_counts()
    result = await db.execute(
        select(
            Event,
            Registration.registered_at,
            func.coalesce(counts.c.registered_count, 0),
        )
        .join(Registration, Registration.event_id == Event.id)
        .outerjoin(counts, counts.c.event_id == Event.id)
        .filter(Registration.user_id == user_id)
        .order_by(Event.date, Event.time, Event.id)
    )
    return [
        (event, registered_at, int(count))
        for event, registered_at, count in result.all()
    ]


async def list_for_event(
    db: AsyncSession, event_id: int
) -> Tuple[Event, List[Tuple[Registration, User]]]:
    event = await event_crud.get_event(db, event_id)
    if event is None:
        raise NotFound("Event not found")

    result = await db.execute(
        select(Registration, User)
        .join(User, User.id == Registration.user_id)
        .filter(Registration.event_id == event_id)
        .order_by(Registration.registered_at.desc(), Registration.id.desc())
    )
    rows = [(registration, user) for registration, user in result.all()]
    return event, rows
