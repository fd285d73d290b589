import pytest
from fastapi.testclient import TestClient

from habitloop.main import create_app
from habitloop.models.habit import Habit
from habitloop.services.store import MemoryHabitStore

DAY = "2025-09-17"


@pytest.fixture
def store():
    return MemoryHabitStore()


@pytest.fixture
def client(store):
    with TestClient(create_app(store=store)) as client:
        yield client


def create(client, **fields):
    body = {"name": "Drink Water", "target_count": 8, "unit": "glasses", **fields}
    response = client.post("/habits/", json=body)
    assert response.status_code == 201
    return response.json()["habit"]


def test_root(client):
    assert client.get("/").json() == {"message": "Welcome to Habitloop API"}


def test_create_and_list(client):
    habit = create(client)
    assert habit["name"] == "Drink Water"
    assert habit["sort_order"] == 0

    habits = client.get("/habits/").json()
    assert [h["_id"] for h in habits] == [habit["_id"]]
    assert client.get(f"/habits/{habit['_id']}").json()["unit"] == "glasses"


def test_create_rejects_empty_name(client):
    response = client.post("/habits/", json={"name": "", "target_count": 5})
    assert response.status_code == 422
    assert client.get("/habits/").json() == []


def test_unknown_habit_is_404(client):
    assert client.get("/habits/missing").status_code == 404
    assert client.post("/habits/missing/increment").status_code == 404
    assert client.get("/analytics/missing/week").status_code == 404


def test_progress_endpoints(client):
    habit = create(client)
    habit_id = habit["_id"]

    for _ in range(3):
        response = client.post(f"/habits/{habit_id}/increment", params={"day": DAY})
    body = response.json()
    assert body["count"] == 3
    assert body["ratio"] == 0.375
    assert body["is_completed"] is False
    assert body["synced"] is True

    response = client.put(f"/habits/{habit_id}/count", json={"count": 10, "day": DAY})
    assert response.json()["ratio"] == 1.0
    assert response.json()["is_completed"] is True

    response = client.post(f"/habits/{habit_id}/decrement", params={"day": DAY})
    assert response.json()["count"] == 9

    progress = client.get(f"/habits/{habit_id}/progress", params={"day": DAY}).json()
    assert progress["count"] == 9
    assert progress["day"] == DAY
    assert len(progress["habit"]["entries"]) == 1


def test_edit_and_archive(client):
    habit = create(client)
    habit_id = habit["_id"]

    response = client.patch(f"/habits/{habit_id}", json={"name": "Water", "target_count": 6})
    assert response.json()["habit"]["target_count"] == 6

    assert client.patch(f"/habits/{habit_id}", json={"target_count": 0}).status_code == 422

    assert client.delete(f"/habits/{habit_id}").json()["synced"] is True
    assert client.get(f"/habits/{habit_id}").status_code == 404
    assert client.get("/habits/").json() == []


def test_reorder(client):
    ids = [create(client, name=name)["_id"] for name in ("One", "Two", "Three")]
    response = client.put("/habits/order", json={"habit_ids": [ids[2], ids[0], ids[1]]})
    assert [h["name"] for h in response.json()["habits"]] == ["Three", "One", "Two"]

    assert client.put("/habits/order", json={"habit_ids": [ids[0], ids[0]]}).status_code == 422


def test_templates(client):
    templates = client.get("/habits/templates").json()
    assert len(templates) == 8

    response = client.post("/habits/templates/read", json={"target_count": 20, "reminder_days": [2, 4]})
    assert response.status_code == 201
    habit = response.json()["habit"]
    assert habit["name"] == "Read"
    assert habit["target_count"] == 20
    assert habit["reminder_days"] == [2, 4]

    assert client.post("/habits/templates/Juggle").status_code == 404


def test_reminders(client):
    habit = create(client, reminder_enabled=True, reminder_time="08:30:00", reminder_days=[1, 7])
    slots = client.get(f"/habits/{habit['_id']}/reminders").json()
    assert [s["weekday"] for s in slots] == [1, 7]
    assert slots[0]["hour"] == 8


def test_analytics_views(client):
    habit = create(client, target_count=1)
    habit_id = habit["_id"]
    client.put(f"/habits/{habit_id}/count", json={"count": 1, "day": DAY})

    week = client.get(f"/analytics/{habit_id}/week", params={"day": DAY}).json()
    assert week["week_start"] == "2025-09-14"
    assert len(week["days"]) == 7
    assert week["completed_days"] == 1

    month = client.get(f"/analytics/{habit_id}/month", params={"month": "2025-09-01"}).json()
    assert month["total_days"] == 30
    assert month["grid"]["leading_blanks"] == 1
    assert month["completed_days"] == 1

    contributions = client.get(f"/analytics/{habit_id}/contributions").json()
    assert len(contributions["weeks"]) == 52
    assert all(len(week) == 7 for week in contributions["weeks"])

    summary = client.get("/analytics/today", params={"day": DAY}).json()
    assert summary == {"day": DAY, "completed": 1, "total": 1, "ratio": 1.0}


def test_storage_failure_reports_unsynced(client, store):
    habit = create(client)
    store.fail_writes = True

    response = client.post(f"/habits/{habit['_id']}/increment", params={"day": DAY})
    assert response.status_code == 200
    assert response.json()["synced"] is False
    assert response.json()["count"] == 1

    progress = client.get(f"/habits/{habit['_id']}/progress", params={"day": DAY}).json()
    assert progress["synced"] is False
    assert progress["count"] == 1


def test_archiving_twice_across_restarts():
    habit = Habit(name="Old", is_archived=True)
    with TestClient(create_app(store=MemoryHabitStore([habit]))) as client:
        response = client.delete(f"/habits/{habit.id}")
        assert response.status_code == 200
        assert response.json()["synced"] is True
        assert client.delete("/habits/missing").status_code == 404
