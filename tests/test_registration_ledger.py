"""Ledger behaviour below the HTTP layer, including concurrent seat taking."""

import asyncio
from datetime import date, datetime, time, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from eventdesk.core.exceptions import (
    AlreadyRegistered,
    CapacityExceeded,
    NotFound,
    PastEvent,
)
from eventdesk.crud import event as event_crud
from eventdesk.crud import registration as registration_crud
from eventdesk.crud import user as user_crud
from eventdesk.schemas.event import EventCreate


async def _create_users(manager, count):
    user_ids = []
    for i in range(count):
        async with manager.get_session() as session:
            user = await user_crud.create_user(
                session,
                username=f"user{i}",
                email=f"user{i}@example.com",
                password="secret123",
            )
            user_ids.append(user.id)
    return user_ids


async def _create_event(manager, capacity, when=None):
    when = when or datetime.combine(date.today() + timedelta(days=7), time(18, 0))
    async with manager.get_session() as session:
        event = await event_crud.create_event(
            session,
            event=EventCreate(
                title="Ledger test",
                category="test",
                date=when.date(),
                time=when.time(),
                location="Hall",
                capacity=capacity,
            ),
            created_by=None,
        )
        return event.id


async def _register(manager, user_id, event_id):
    async with manager.get_session() as session:
        return await registration_crud.register(
            session, user_id=user_id, event_id=event_id
        )


async def test_concurrent_registrations_never_exceed_capacity(manager):
    attempts, capacity = 8, 3
    user_ids = await _create_users(manager, attempts)
    event_id = await _create_event(manager, capacity)

    results = await asyncio.gather(
        *(_register(manager, user_id, event_id) for user_id in user_ids),
        return_exceptions=True,
    )

    succeeded = [r for r in results if not isinstance(r, BaseException)]
    rejected = [r for r in results if isinstance(r, CapacityExceeded)]
    assert len(succeeded) == capacity
    assert len(rejected) == attempts - capacity

    async with manager.get_session() as session:
        assert await event_crud.registered_count(session, event_id) == capacity


async def test_concurrent_duplicate_registration_creates_one_row(manager):
    (user_id,) = await _create_users(manager, 1)
    event_id = await _create_event(manager, 10)

    results = await asyncio.gather(
        *(_register(manager, user_id, event_id) for _ in range(4)),
        return_exceptions=True,
    )

    assert sum(not isinstance(r, BaseException) for r in results) == 1
    assert all(
        isinstance(r, AlreadyRegistered)
        for r in results
        if isinstance(r, BaseException)
    )
    async with manager.get_session() as session:
        assert await event_crud.registered_count(session, event_id) == 1


async def test_register_unknown_event(manager):
    (user_id,) = await _create_users(manager, 1)

    with pytest.raises(NotFound):
        await _register(manager, user_id, 12345)


async def test_cancel_uses_event_start_instant(manager):
    (user_id,) = await _create_users(manager, 1)
    starts_at = datetime.combine(date.today() + timedelta(days=1), time(9, 0))
    event_id = await _create_event(manager, 2, when=starts_at)
    await _register(manager, user_id, event_id)

    with pytest.raises(PastEvent):
        async with manager.get_session() as session:
            await registration_crud.cancel(
                session,
                user_id=user_id,
                event_id=event_id,
                now=starts_at + timedelta(minutes=1),
            )

    async with manager.get_session() as session:
        await registration_crud.cancel(
            session,
            user_id=user_id,
            event_id=event_id,
            now=starts_at - timedelta(minutes=1),
        )
        assert (
            await registration_crud.get_registration(
                session, user_id=user_id, event_id=event_id
            )
            is None
        )


async def test_list_for_user_reports_counts(manager):
    user_ids = await _create_users(manager, 2)
    event_id = await _create_event(manager, 5)
    for user_id in user_ids:
        await _register(manager, user_id, event_id)

    async with manager.get_session() as session:
        rows = await registration_crud.list_for_user(session, user_ids[0])

    assert len(rows) == 1
    event, registered_at, count = rows[0]
    assert event.id == event_id
    assert registered_at is not None
    assert count == 2


def test_only_the_pair_constraint_counts_as_duplicate():
    duplicate = IntegrityError(
        "INSERT INTO registrations ...",
        {},
        Exception(
            "UNIQUE constraint failed: registrations.user_id, registrations.event_id"
        ),
    )
    missing_user = IntegrityError(
        "INSERT INTO registrations ...",
        {},
        Exception("FOREIGN KEY constraint failed"),
    )

    assert registration_crud._is_duplicate_registration(duplicate)
    assert not registration_crud._is_duplicate_registration(missing_user)


async def test_register_for_deleted_user_is_not_a_duplicate(manager):
    event_id = await _create_event(manager, 5)

    with pytest.raises(NotFound, match="User not found"):
        await _register(manager, 999, event_id)

    async with manager.get_session() as session:
        assert await event_crud.registered_count(session, event_id) == 0
