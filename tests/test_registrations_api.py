from datetime import date, timedelta

from conftest import auth_headers
from eventdesk.core import security
from eventdesk.models.user import UserRole


async def test_capacity_one_scenario(client, make_user, make_event):
    event = await make_event(capacity=1)
    alice, _ = await make_user("alice")
    bob, _ = await make_user("bob")
    url = f"/api/registrations/{event['id']}"

    first = await client.post(url, headers=alice)
    assert first.status_code == 201
    assert first.json() == {"message": "Successfully registered for event"}

    full = await client.post(url, headers=bob)
    assert full.status_code == 400
    assert full.json() == {"error": "Event is at full capacity"}

    cancelled = await client.delete(url, headers=alice)
    assert cancelled.status_code == 200
    assert cancelled.json() == {"message": "Registration cancelled successfully"}

    second = await client.post(url, headers=bob)
    assert second.status_code == 201

    detail = await client.get(f"/api/events/{event['id']}")
    assert detail.json()["event"]["registered_count"] == 1
    assert detail.json()["event"]["remaining_spots"] == 0


async def test_double_registration_is_rejected(client, make_user, make_event):
    event = await make_event(capacity=5)
    alice, _ = await make_user("alice")
    url = f"/api/registrations/{event['id']}"

    assert (await client.post(url, headers=alice)).status_code == 201
    again = await client.post(url, headers=alice)

    assert again.status_code == 400
    assert again.json() == {"error": "Already registered for this event"}
    detail = await client.get(f"/api/events/{event['id']}")
    assert detail.json()["event"]["registered_count"] == 1


async def test_register_for_missing_event(client, make_user):
    alice, _ = await make_user("alice")

    response = await client.post("/api/registrations/9999", headers=alice)

    assert response.status_code == 404
    assert response.json() == {"error": "Event not found"}


async def test_register_requires_token(client, make_event):
    event = await make_event()

    response = await client.post(f"/api/registrations/{event['id']}")

    assert response.status_code == 401


async def test_cancel_without_registration(client, make_user, make_event):
    event = await make_event()
    alice, _ = await make_user("alice")

    response = await client.delete(f"/api/registrations/{event['id']}", headers=alice)

    assert response.status_code == 404
    assert response.json() == {"error": "Registration not found"}


async def test_cannot_cancel_past_event(client, make_user, make_event):
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    event = await make_event(date=yesterday)
    alice, _ = await make_user("alice")
    url = f"/api/registrations/{event['id']}"
    assert (await client.post(url, headers=alice)).status_code == 201

    response = await client.delete(url, headers=alice)

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot cancel registration for past events"}
    my_events = await client.get("/api/registrations/my-events", headers=alice)
    assert [e["id"] for e in my_events.json()["events"]] == [event["id"]]


async def test_my_events_round_trip(client, make_user, make_event):
    later = await make_event(
        title="Later", date=(date.today() + timedelta(days=9)).isoformat()
    )
    sooner = await make_event(
        title="Sooner", date=(date.today() + timedelta(days=2)).isoformat()
    )
    alice, _ = await make_user("alice")
    for event in (later, sooner):
        response = await client.post(
            f"/api/registrations/{event['id']}", headers=alice
        )
        assert response.status_code == 201

    listed = await client.get("/api/registrations/my-events", headers=alice)
    assert listed.status_code == 200
    events = listed.json()["events"]
    assert [e["title"] for e in events] == ["Sooner", "Later"]
    assert all(e["registered_at"] for e in events)
    assert events[0]["registered_count"] == 1

    await client.delete(f"/api/registrations/{sooner['id']}", headers=alice)
    listed = await client.get("/api/registrations/my-events", headers=alice)
    assert [e["title"] for e in listed.json()["events"]] == ["Later"]


async def test_my_events_requires_token(client):
    response = await client.get("/api/registrations/my-events")

    assert response.status_code == 401


async def test_admin_lists_event_registrations(
    client, admin_headers, make_user, make_event
):
    event = await make_event(capacity=5)
    url = f"/api/registrations/{event['id']}"
    for name in ("alice", "bob"):
        headers, _ = await make_user(name)
        assert (await client.post(url, headers=headers)).status_code == 201

    response = await client.get(
        f"/api/registrations/event/{event['id']}", headers=admin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["event"]["id"] == event["id"]
    assert body["event"]["registered_count"] == 2
    assert [r["username"] for r in body["registrations"]] == ["bob", "alice"]
    assert body["registrations"][0]["email"] == "bob@example.com"
    assert {"id", "registered_at", "user_id"} <= set(body["registrations"][0])


async def test_event_registrations_admin_only(client, make_user, make_event):
    event = await make_event()
    alice, _ = await make_user("alice")

    response = await client.get(
        f"/api/registrations/event/{event['id']}", headers=alice
    )

    assert response.status_code == 403


async def test_event_registrations_missing_event(client, admin_headers):
    response = await client.get("/api/registrations/event/9999", headers=admin_headers)

    assert response.status_code == 404


async def test_register_with_token_for_missing_user(client, make_event):
    event = await make_event()
    token = security.create_access_token(
        999, username="ghost", email="ghost@example.com", role=UserRole.USER
    )

    response = await client.post(
        f"/api/registrations/{event['id']}", headers=auth_headers(token)
    )

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}
    detail = await client.get(f"/api/events/{event['id']}")
    assert detail.json()["event"]["registered_count"] == 0


async def test_registered_at_is_utc_everywhere(
    client, admin_headers, make_user, make_event
):
    event = await make_event()
    alice, _ = await make_user("alice")
    await client.post(f"/api/registrations/{event['id']}", headers=alice)

    mine = await client.get("/api/registrations/my-events", headers=alice)
    roster = await client.get(
        f"/api/registrations/event/{event['id']}", headers=admin_headers
    )

    mine_at = mine.json()["events"][0]["registered_at"]
    roster_at = roster.json()["registrations"][0]["registered_at"]
    assert mine_at == roster_at
    assert mine_at.endswith("Z")
