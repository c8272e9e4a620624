"""
Tests for guest and profile routes
"""

from app.services.repositories import GuestRepo

from tests.conftest import OTHER_USER_ID, USER_ID


def test_list_guests_with_tables(client, seated_event):
    event_id = seated_event["event"]["id"]
    guests = client.get("/api/guests", params={"eventId": event_id}).json()["guests"]

    assert len(guests) == 5
    by_name = {g["name"]: g for g in guests}
    assert by_name["Bob Jones"]["table"]["name"] == "1"
    assert by_name["Erin Green"]["table"] is None


def test_list_guests_across_events_has_no_table_info(client, seated_event):
    guests = client.get("/api/guests").json()["guests"]
    assert len(guests) == 5
    assert all("table" not in g for g in guests)


def test_create_guest_splits_name(client, event):
    body = client.post("/api/guests", json={
        "eventId": event["id"], "name": "Mary Ann Evans", "email": "mary@example.com",
    }).json()

    guest = body["guest"]
    assert guest["firstName"] == "Mary"
    assert guest["lastName"] == "Ann Evans"
    assert guest["userId"] == USER_ID
    assert "tableId" not in guest


def test_create_guest_validates_email(client, event):
    response = client.post("/api/guests", json={"eventId": event["id"], "name": "Mary", "email": "nope"})
    assert response.status_code == 400


def test_update_guest(client, store, seated_event):
    guests = seated_event["guests"]
    table_2 = seated_event["tables"][1]

    body = client.patch("/api/guests", json={
        "id": guests["dave"], "name": " David Brown ", "phoneNumber": "555 0101", "tableId": table_2["id"],
    }).json()

    assert body["guest"]["name"] == "David Brown"
    assert body["guest"]["phoneNumber"] == "555 0101"
    assert body["guest"]["tableId"] == table_2["id"]


def test_update_guest_with_unknown_table_changes_nothing(client, store, seated_event):
    dave = seated_event["guests"]["dave"]

    response = client.patch("/api/guests", json={
        "id": dave, "name": "David Brown", "phoneNumber": "555 0101", "tableId": "no-such-table",
    })

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Table not found or access denied"}
    stored = GuestRepo.get(store, USER_ID, dave)
    assert stored["name"] == "Dave Brown"
    assert "phoneNumber" not in stored
    assert "tableId" not in stored


def test_update_guest_requires_name(client, seated_event):
    response = client.patch("/api/guests", json={"id": seated_event["guests"]["dave"], "name": ""})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Guest name is required"}


def test_delete_guests(client, store, seated_event):
    guests = seated_event["guests"]
    foreign = GuestRepo.create(store, OTHER_USER_ID, {"name": "Mallory", "eventId": "elsewhere"})

    body = client.delete("/api/guests", params={"ids": f"{guests['alice']},{guests['bob']},{foreign}"}).json()
    assert body["message"] == "Deleted 2 guests"
    assert GuestRepo.get(store, OTHER_USER_ID, foreign) is not None

    body = client.delete("/api/guests", params={"id": guests["carol"]}).json()
    assert body["message"] == "Guest deleted successfully"

    response = client.delete("/api/guests")
    assert response.status_code == 400


def test_profile_defaults_and_update(client):
    profile = client.get("/api/profile").json()["profile"]
    assert profile["settings"] == {"notifications": True, "theme": "light", "language": "en"}

    body = client.patch("/api/profile", json={
        "displayName": "Pat",
        "settings": {"theme": "dark"},
        "tableNamingPreferences": {"type": "custom-prefix", "customPrefix": "Round"},
    }).json()
    assert body["profile"]["displayName"] == "Pat"
    assert body["profile"]["tableNamingPreferences"] == {"type": "custom-prefix", "customPrefix": "Round"}

    profile = client.get("/api/profile").json()["profile"]
    assert profile["settings"]["theme"] == "dark"
    assert profile["settings"]["notifications"] is True


def test_profile_rejects_unknown_naming_type(client):
    response = client.patch("/api/profile", json={"tableNamingPreferences": {"type": "emoji"}})
    assert response.status_code == 400
