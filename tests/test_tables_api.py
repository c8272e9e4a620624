"""
Tests for table generation, editing and guest assignment routes
"""

import pytest

from app.schemas.table import TableChangeItem
from app.services.repositories import GuestRepo, SettingsRepo, TableRepo
from app.services.table_naming import TABLE_COLORS

from tests.conftest import OTHER_USER_ID, USER_ID


def test_list_tables_groups_guests(client, seated_event):
    event_id = seated_event["event"]["id"]
    body = client.get("/api/tables", params={"eventId": event_id}).json()

    assert [t["name"] for t in body["tables"]] == ["1", "2"]
    assert [g["name"] for g in body["tables"][0]["guests"]] == ["Alice Smith", "Bob Jones"]
    assert [g["name"] for g in body["unassignedGuests"]] == ["Dave Brown", "Erin Green"]


def test_list_tables_requires_event_id(client):
    response = client.get("/api/tables")
    assert response.status_code == 400
    assert response.json()["error"] == "Event ID is required"


def test_regenerate_replaces_tables_and_unassigns_everyone(client, store, seated_event):
    event_id = seated_event["event"]["id"]
    old_ids = {t["id"] for t in seated_event["tables"]}

    body = client.post("/api/tables", json={"eventId": event_id, "numTables": 3}).json()

    assert body["success"] is True
    assert [t["name"] for t in body["tables"]] == ["1", "2", "3"]
    assert [t["color"] for t in body["tables"]] == TABLE_COLORS[:3]
    assert all(t["capacity"] == 8 and t["guests"] == [] for t in body["tables"])
    assert not old_ids & {t["id"] for t in TableRepo.list(store, USER_ID, event_id)}
    assert all("tableId" not in g for g in GuestRepo.list(store, USER_ID, event_id))


def test_regenerate_with_zero_removes_all_tables(client, store, seated_event):
    event_id = seated_event["event"]["id"]
    body = client.post("/api/tables", json={"eventId": event_id, "numTables": 0}).json()
    assert body == {"success": True, "tables": [], "message": "All tables removed successfully."}
    assert TableRepo.list(store, USER_ID, event_id) == []


@pytest.mark.parametrize("num_tables", [-1, 51, "five", 2.5, None])
def test_regenerate_rejects_invalid_counts(client, event, num_tables):
    response = client.post("/api/tables", json={"eventId": event["id"], "numTables": num_tables})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid number of tables."}


def test_regenerate_uses_requested_naming(client, event):
    body = client.post(
        "/api/tables",
        json={"eventId": event["id"], "numTables": 2, "nameType": "custom-prefix", "customPrefix": "Round"},
    ).json()
    assert [t["name"] for t in body["tables"]] == ["Round 1", "Round 2"]


def test_regenerate_falls_back_to_profile_preference(client, store, event):
    SettingsRepo.update(store, USER_ID, {"tableNamingPreferences": {"type": "roman"}})
    body = client.post("/api/tables", json={"eventId": event["id"], "numTables": 3}).json()
    assert [t["name"] for t in body["tables"]] == ["I", "II", "III"]


def test_batch_rename(client, seated_event):
    event_id = seated_event["event"]["id"]
    body = client.patch(
        "/api/tables/batch-rename", json={"eventId": event_id, "nameType": "letters"}
    ).json()
    assert body["message"] == "Successfully renamed 2 tables using letters convention"
    assert [t["name"] for t in body["tables"]] == ["A", "B"]


def test_batch_rename_without_tables(client, event):
    response = client.patch("/api/tables/batch-rename", json={"eventId": event["id"], "nameType": "letters"})
    assert response.status_code == 404
    assert response.json()["error"] == "No tables found for this event"


def test_edit_table(client, seated_event):
    table_id = seated_event["tables"][0]["id"]
    body = client.patch(f"/api/tables/{table_id}", json={"name": " Head Table ", "capacity": 10}).json()
    assert body["table"]["name"] == "Head Table"
    assert body["table"]["capacity"] == 10
    assert body["table"]["color"] == "#3B82F6"


def test_delete_table_unassigns_its_guests(client, store, seated_event):
    table_id = seated_event["tables"][0]["id"]
    guests = seated_event["guests"]

    body = client.delete(f"/api/tables/{table_id}").json()

    assert body == {"success": True, "message": "Table deleted successfully"}
    assert TableRepo.get(store, USER_ID, table_id) is None
    assert "tableId" not in GuestRepo.get(store, USER_ID, guests["alice"])
    assert "tableId" not in GuestRepo.get(store, USER_ID, guests["bob"])
    assert "tableId" in GuestRepo.get(store, USER_ID, guests["carol"])


def test_assign_single_guest(client, store, seated_event):
    guests = seated_event["guests"]
    table_2 = seated_event["tables"][1]

    body = client.patch("/api/tables", json={"guestId": guests["dave"], "tableId": table_2["id"]}).json()
    assert body["guest"]["tableId"] == table_2["id"]
    assert body["guest"]["table"]["name"] == "2"

    body = client.patch("/api/tables", json={"guestId": guests["dave"], "tableId": None}).json()
    assert "tableId" not in body["guest"]
    assert body["guest"]["table"] is None


def test_assign_rejects_table_from_another_event(client, store, seated_event):
    other_event_table = TableRepo.create(store, USER_ID, {"name": "X", "eventId": "another-event"})
    response = client.patch(
        "/api/tables", json={"guestId": seated_event["guests"]["dave"], "tableId": other_event_table["id"]}
    )
    assert response.status_code == 404


def test_batch_assignments(client, store, seated_event):
    guests = seated_event["guests"]
    table_1, table_2 = seated_event["tables"]

    body = client.post("/api/assignments/batch", json={
        "guestChanges": [
            {"guestId": guests["dave"], "tableId": table_2["id"]},
            {"guestId": guests["alice"], "tableId": None},
        ],
        "tableChanges": [{"tableId": table_1["id"], "updates": {"name": "Family"}}],
    }).json()

    assert body == {"success": True, "message": "Successfully processed 3 changes", "totalProcessed": 3}
    assert GuestRepo.get(store, USER_ID, guests["dave"])["tableId"] == table_2["id"]
    assert "tableId" not in GuestRepo.get(store, USER_ID, guests["alice"])
    assert TableRepo.get(store, USER_ID, table_1["id"])["name"] == "Family"


def test_batch_assignments_with_nothing_to_do(client):
    body = client.post("/api/assignments/batch", json={"guestChanges": []}).json()
    assert body == {"success": True, "message": "No changes to process", "totalProcessed": 0}


@pytest.mark.parametrize("change, error", [
    ({"guestId": 42, "tableId": None}, "Invalid guestId in guestChanges"),
    ({"tableId": None}, "Invalid guestId in guestChanges"),
    ({"guestId": "g1", "tableId": 7}, "Invalid tableId in guestChanges"),
])
def test_batch_assignments_validate_shape(client, change, error):
    response = client.post("/api/assignments/batch", json={"guestChanges": [change]})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": error}


@pytest.mark.parametrize("updates", [
    {"eventId": "someone-elses-event"},
    {"userId": OTHER_USER_ID},
    {"id": "hijacked"},
    {"name": "Family", "userId": OTHER_USER_ID},
    {"capacity": 0},
    {"capacity": "ten"},
    {},
])
def test_batch_table_changes_only_edit_name_capacity_and_color(client, store, seated_event, updates):
    table_1 = seated_event["tables"][0]
    response = client.post("/api/assignments/batch", json={
        "guestChanges": [],
        "tableChanges": [{"tableId": table_1["id"], "updates": updates}],
    })

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid updates in tableChanges"}
    stored = TableRepo.get(store, USER_ID, table_1["id"])
    assert stored["eventId"] == seated_event["event"]["id"]
    assert stored["name"] == "1"
    assert GuestRepo.get(store, USER_ID, seated_event["guests"]["alice"])["tableId"] == table_1["id"]


def test_table_change_keeps_updates_on_the_wire():
    change = TableChangeItem(tableId="t1", updates={"capacity": 6, "color": "#000000"})
    assert change.model_dump(by_alias=True) == {"tableId": "t1", "updates": {"capacity": 6, "color": "#000000"}}


def test_batch_assignments_reject_foreign_guests(client, store, seated_event):
    foreign = GuestRepo.create(store, OTHER_USER_ID, {"name": "Mallory", "eventId": seated_event["event"]["id"]})
    response = client.post("/api/assignments/batch", json={"guestChanges": [{"guestId": foreign, "tableId": None}]})
    assert response.status_code == 404


def test_auto_assign_respects_capacity(client, store, seated_event):
    event_id = seated_event["event"]["id"]
    guests = seated_event["guests"]
    table_2 = seated_event["tables"][1]

    body = client.post("/api/assign-tables", json={"eventId": event_id}).json()

    assert body["success"] is True
    assert body["message"] == "Assigned 2 guests to tables."
    # Table 1 is full, so everyone lands on table 2
    assert GuestRepo.get(store, USER_ID, guests["dave"])["tableId"] == table_2["id"]
    assert GuestRepo.get(store, USER_ID, guests["erin"])["tableId"] == table_2["id"]


def test_auto_assign_without_tables(client, event):
    body = client.post("/api/assign-tables", json={"eventId": event["id"]}).json()
    assert body == {"success": False, "error": "No tables found. Please create tables first."}


def test_auto_assign_without_unassigned_guests(client, store, seated_event):
    event_id = seated_event["event"]["id"]
    client.post("/api/assign-tables", json={"eventId": event_id})
    body = client.post("/api/assign-tables", json={"eventId": event_id}).json()
    assert body == {"success": False, "error": "No unassigned guests found."}
