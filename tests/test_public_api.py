"""
Tests for public guest lookup, autocomplete and event info
"""

from app.services.repositories import EventRepo, GuestRepo, guest_display_name, masked_phone
from app.utils.security import rate_limiter

from tests.conftest import USER_ID


def test_health(anonymous_client):
    assert anonymous_client.get("/health").json() == {"status": "ok"}


def test_public_event_exposes_basic_fields(anonymous_client, store, event):
    EventRepo.update(store, USER_ID, event["id"], {"customTitle": "Find your seat"})
    body = anonymous_client.get(f"/api/public/events/{event['id']}").json()

    assert body["success"] is True
    assert body["event"]["name"] == "Summer Gala"
    assert body["event"]["customTitle"] == "Find your seat"
    assert "userId" not in body["event"]


def test_public_event_not_found(anonymous_client):
    response = anonymous_client.get("/api/public/events/missing")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Event not found"}


def test_find_guest_includes_table_colour(anonymous_client, seated_event):
    event_id = seated_event["event"]["id"]
    body = anonymous_client.get("/api/public/find-guest", params={"eventId": event_id, "name": "alice"}).json()

    assert body["success"] is True
    assert body["guest"]["name"] == "Alice Smith"
    assert body["guest"]["table"] == {
        "id": seated_event["tables"][0]["id"], "name": "1", "color": "#3B82F6",
    }


def test_find_guest_by_email_without_table(anonymous_client, store, seated_event):
    event_id = seated_event["event"]["id"]
    body = anonymous_client.get("/api/public/find-guest", params={"eventId": event_id, "name": "dave"}).json()
    assert body["guest"]["table"] is None

    body = anonymous_client.get("/api/public/find-guest", params={"eventId": event_id, "name": "CAROL@example"}).json()
    assert body["guest"]["name"] == "Carol White"


def test_find_guest_not_found(anonymous_client, seated_event):
    event_id = seated_event["event"]["id"]
    body = anonymous_client.get("/api/public/find-guest", params={"eventId": event_id, "name": "zed"}).json()
    assert body == {"success": False, "error": "Guest not found"}


def test_find_guest_requires_event_and_name(anonymous_client, seated_event):
    response = anonymous_client.get("/api/public/find-guest", params={"name": "alice"})
    assert response.status_code == 400
    assert response.json()["error"] == "Event ID is required"

    response = anonymous_client.get("/api/public/find-guest", params={"eventId": seated_event["event"]["id"]})
    assert response.status_code == 400
    assert response.json()["error"] == "Name parameter is required"


def test_autocomplete_needs_two_characters(anonymous_client, seated_event):
    params = {"eventId": seated_event["event"]["id"], "name": "a", "autocomplete": "true"}
    assert anonymous_client.get("/api/public/find-guest", params=params).json() == {
        "success": True, "suggestions": [],
    }


def test_autocomplete_masks_phone_numbers(anonymous_client, seated_event):
    params = {"eventId": seated_event["event"]["id"], "name": "al", "autocomplete": "true"}
    body = anonymous_client.get("/api/public/find-guest", params=params).json()
    assert body["suggestions"] == ["Alice Smith (•••• 4567)"]


def test_autocomplete_returns_at_most_ten(anonymous_client, store, event):
    for i in range(12):
        GuestRepo.create(store, USER_ID, {"name": f"Guest {i:02d}", "eventId": event["id"]})

    params = {"eventId": event["id"], "name": "guest", "autocomplete": "true"}
    suggestions = anonymous_client.get("/api/public/find-guest", params=params).json()["suggestions"]
    assert len(suggestions) == 10


def test_public_lookup_is_rate_limited(anonymous_client, seated_event, monkeypatch):
    monkeypatch.setattr("app.core.config.settings.RATE_LIMIT_PER_MINUTE", 2)
    rate_limiter.clear()
    params = {"eventId": seated_event["event"]["id"], "name": "alice"}

    assert anonymous_client.get("/api/public/find-guest", params=params).status_code == 200
    assert anonymous_client.get("/api/public/find-guest", params=params).status_code == 200
    response = anonymous_client.get("/api/public/find-guest", params=params)
    assert response.status_code == 429
    assert response.json()["success"] is False


def test_authenticated_find_guest(client, seated_event):
    params = {"eventId": seated_event["event"]["id"], "name": "bob"}
    body = client.get("/api/find-guest", params=params).json()
    assert body["guest"]["name"] == "Bob Jones"
    assert body["guest"]["table"] == {"id": seated_event["tables"][0]["id"], "name": "1"}


def test_display_helpers():
    assert masked_phone("+1 555 123 4567") == "•••• 4567"
    assert masked_phone("12") == "12"
    assert guest_display_name({"firstName": "Ann", "lastName": "Lee", "name": "x"}) == "Ann Lee"
    assert guest_display_name({"name": "Solo", "phoneNumber": "5551234"}) == "Solo (•••• 1234)"
