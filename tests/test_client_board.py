"""
Tests for the API client and the client-side assignment board
"""

import asyncio
import json

import httpx
import pytest

from app.client.api import ApiClient, ApiError, AuthState
from app.client.assignment import AssignmentBoard, SaveError
from app.services.repositories import GuestRepo, TableRepo
from main import app

from tests.conftest import USER_ID

SEATING = {
    "success": True,
    "tables": [
        {"id": "t1", "name": "1", "capacity": 8, "guests": [{"id": "g1", "name": "Ann"}]},
        {"id": "t2", "name": "2", "capacity": 8, "guests": []},
    ],
    "unassignedGuests": [{"id": "g2", "name": "Ben"}],
}


async def token():
    return "tok-1"


def signed_in():
    auth = AuthState()
    auth.sign_in(USER_ID, token)
    return auth


class FakeServer:
    """Serves the seating snapshot and scripted replies for batch saves"""

    def __init__(self, batch_replies):
        self.batch_replies = list(batch_replies)
        self.batch_bodies = []
        self.table_fetches = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tables" and request.method == "GET":
            self.table_fetches += 1
            return httpx.Response(200, json=SEATING)
        if request.url.path == "/api/assignments/batch":
            self.batch_bodies.append(json.loads(request.content))
            status, payload = self.batch_replies.pop(0)
            return httpx.Response(status, json=payload)
        return httpx.Response(404, json={"success": False, "error": "Not found"})


def fake_board(server, sleeps):
    async def sleep(seconds):
        sleeps.append(seconds)

    client = ApiClient("http://test", signed_in(), transport=httpx.MockTransport(server))
    return AssignmentBoard(client, "e1", sleep=sleep)


# -------- auth --------

def test_wait_ready_times_out_without_sign_in():
    with pytest.raises(ApiError) as exc_info:
        asyncio.run(AuthState().wait_ready(0.01))
    assert exc_info.value.status_code == 401


def test_requests_wait_for_sign_in():
    seen = []

    def handler(request):
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json={"success": True, "events": []})

    async def scenario():
        auth = AuthState()
        client = ApiClient("http://test", auth, transport=httpx.MockTransport(handler))
        pending = asyncio.create_task(client.get("/api/events"))
        await asyncio.sleep(0)
        assert not pending.done()
        auth.sign_in(USER_ID, token)
        result = await pending
        await client.aclose()
        return result

    assert asyncio.run(scenario()) == {"success": True, "events": []}
    assert seen == ["Bearer tok-1"]


def test_error_envelope_raises_api_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "Guest not found"})

    async def scenario():
        async with ApiClient("http://test", signed_in(), transport=httpx.MockTransport(handler)) as client:
            await client.get("/api/find-guest", name="zed")

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.message == "Guest not found"


# -------- local edits --------

def test_board_mutations_track_unsaved_changes():
    board = fake_board(FakeServer([]), [])
    asyncio.run(board.load())
    assert not board.has_unsaved_changes

    board.move_guest("g2", "t2")
    assert board.table_of("g2") == "t2"
    assert board.has_unsaved_changes
    assert board.action_log == [{"guestId": "g2", "from": None, "to": "t2"}]

    board.drop_on_guest("g1", "g2")
    assert board.table_of("g1") == "t2"

    board.discard()
    assert board.table_of("g1") == "t1"
    assert not board.has_unsaved_changes


def test_select_and_assign_unassigned():
    board = fake_board(FakeServer([]), [])
    asyncio.run(board.load())

    board.toggle_select_all_unassigned()
    assert board.selected == {"g2"}
    assert board.assign_selected("t1") == 1
    assert board.table_of("g2") == "t1"
    assert board.selected == set()


def test_remove_table_returns_guests():
    board = fake_board(FakeServer([]), [])
    asyncio.run(board.load())

    board.remove_table("t1")
    assert [t["id"] for t in board.tables] == ["t2"]
    assert {g["id"] for g in board.unassigned} == {"g1", "g2"}


def test_confirm_leave():
    board = fake_board(FakeServer([]), [])
    asyncio.run(board.load())
    asked = []

    assert board.confirm_leave(lambda: asked.append(True) or False) is True
    assert asked == []

    board.unassign_guest("g1")
    assert board.confirm_leave(lambda: False) is False
    assert board.confirm_leave(lambda: True) is True


# -------- saving against scripted replies --------

def test_rate_limited_save_is_retried():
    limited = (429, {"success": False, "error": "Rate limit exceeded. Please try again in a few moments."})
    server = FakeServer([limited, limited, (200, {"success": True, "totalProcessed": 1})])
    sleeps = []
    board = fake_board(server, sleeps)
    asyncio.run(board.load())
    board.move_guest("g2", "t2")

    result = asyncio.run(board.save())

    assert result.saved == 1
    assert result.warning is None
    assert sleeps == [2, 4]
    assert server.batch_bodies[0] == {"guestChanges": [{"guestId": "g2", "tableId": "t2"}], "tableChanges": []}
    assert server.table_fetches == 2
    assert not board.has_unsaved_changes


def test_exhausted_retries_keep_edits():
    limited = (429, {"success": False, "error": "Rate limit exceeded. Please try again in a few moments."})
    server = FakeServer([limited, limited, limited])
    sleeps = []
    board = fake_board(server, sleeps)
    asyncio.run(board.load())
    board.move_guest("g2", "t2")

    with pytest.raises(SaveError):
        asyncio.run(board.save())

    assert sleeps == [2, 4]
    assert board.has_unsaved_changes
    assert board.table_of("g2") == "t2"


def test_other_failures_are_not_retried():
    server = FakeServer([(500, {"success": False, "error": "All operations failed"})])
    sleeps = []
    board = fake_board(server, sleeps)
    asyncio.run(board.load())
    board.move_guest("g2", "t2")

    with pytest.raises(SaveError, match="All operations failed"):
        asyncio.run(board.save())
    assert sleeps == []


def test_partial_save_is_a_qualified_success():
    partial = (207, {
        "success": False,
        "error": "Partially completed: 75 operations succeeded, but 1 chunks failed",
        "totalProcessed": 75,
    })
    server = FakeServer([partial])
    board = fake_board(server, [])
    asyncio.run(board.load())
    board.move_guest("g2", "t2")

    result = asyncio.run(board.save())

    assert result.saved == 75
    assert result.warning.startswith("Partially completed")
    assert not board.has_unsaved_changes


# -------- saving against the real API --------

def asgi_board(store_event_id):
    transport = httpx.ASGITransport(app=app)
    return AssignmentBoard(ApiClient("http://test", signed_in(), transport=transport), store_event_id)


def test_save_persists_moves(client, store, seated_event):
    guests = seated_event["guests"]
    table_1, table_2 = seated_event["tables"]

    async def scenario():
        board = asgi_board(seated_event["event"]["id"])
        await board.load()
        board.move_guest(guests["dave"], table_2["id"])
        board.unassign_guest(guests["alice"])
        result = await board.save()
        await board.client.aclose()
        return board, result

    board, result = asyncio.run(scenario())

    assert result.saved == 2
    assert not board.has_unsaved_changes
    assert GuestRepo.get(store, USER_ID, guests["dave"])["tableId"] == table_2["id"]
    assert "tableId" not in GuestRepo.get(store, USER_ID, guests["alice"])
    assert GuestRepo.get(store, USER_ID, guests["bob"])["tableId"] == table_1["id"]


def test_save_recreates_tables_when_structure_changes(client, store, seated_event):
    event_id = seated_event["event"]["id"]
    guests = seated_event["guests"]

    async def scenario():
        board = asgi_board(event_id)
        await board.load()
        kids = board.add_table(name="Kids")
        board.move_guest(guests["erin"], kids["id"])
        await board.save()
        await board.client.aclose()
        return board

    board = asyncio.run(scenario())

    tables = TableRepo.list(store, USER_ID, event_id)
    assert [t["name"] for t in tables] == ["1", "2", "Kids"]
    assert not any(t["id"].startswith("temp-") for t in board.tables)

    seating = {
        g["name"]: next((t["name"] for t in tables if t["id"] == g.get("tableId")), None)
        for g in GuestRepo.list(store, USER_ID, event_id)
    }
    assert seating == {
        "Alice Smith": "1",
        "Bob Jones": "1",
        "Carol White": "2",
        "Dave Brown": None,
        "Erin Green": "Kids",
    }
