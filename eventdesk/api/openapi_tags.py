"""
OpenAPI Tags Configuration for EventDesk API
"""

tags_metadata = [
    {
        "name": "auth",
        "description": """
**Authentication**

Sign up, log in and read your own profile. Successful sign-up and login both
return a JWT bearer token valid for 24 hours.

**Authentication Flow:**
1. Register or login to get a token
2. Send it as `Authorization: Bearer <token>`
3. Discard the token to log out
        """,
    },
    {
        "name": "events",
        "description": """
**Event Catalog**

Anyone may browse events. Creating, updating and deleting events requires the
admin role. Every event reports `registered_count` and `remaining_spots`.
        """,
    },
    {
        "name": "registrations",
        "description": """
**Seat Registration**

Register for an event, cancel a registration and list your events.
Registration never lets an event exceed its capacity, even under concurrent
requests.
        """,
    },
    {
        "name": "Health",
        "description": "Service and database health.",
    },
]
