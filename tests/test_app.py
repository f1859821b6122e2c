from __future__ import annotations

from pathlib import Path

import pytest

from shift_web import create_app

WEEK = {"start": "2025-09-01", "end": "2025-09-05"}


@pytest.fixture()
def app(tmp_path: Path):
    return create_app({
        "TESTING": True,
        "DATABASE": str(tmp_path / "test.sqlite"),
    })


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


def noon_stats(client) -> dict[str, int]:
    payload = client.get("/api/stats").get_json()
    return {row["id"]: row["stats"]["noon"] for row in payload["employees"]}


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.data == b"OK"


def test_seeded_stats(client):
    payload = client.get("/api/stats").get_json()
    assert [row["id"] for row in payload["employees"]] == ["E01", "E02", "E03", "E04", "E05", "E06"]
    assert noon_stats(client)["E01"] == 4


def test_run_without_commit_leaves_stats_untouched(client):
    before = noon_stats(client)
    response = client.post("/api/schedule/run", json=WEEK)
    assert response.status_code == 200
    data = response.get_json()
    assert data["days"] == 5
    assert data["committed"] is False
    assert [schedule["date"] for schedule in data["schedules"]][0] == "2025-09-01"
    for schedule in data["schedules"]:
        holders = [slot["employee_id"] for slot in schedule["shifts"].values()]
        assert "E06" not in holders
        assert len(holders) == len(set(holders))
    assert noon_stats(client) == before


def test_run_with_commit_updates_stats(client):
    before = noon_stats(client)
    data = client.post("/api/schedule/run", json={**WEEK, "commit": True}).get_json()
    assert data["committed"] is True

    after = noon_stats(client)
    for employee_id, counts in data["stats_delta"].items():
        assert after[employee_id] == before[employee_id] + counts.get("noon", 0)


def test_run_rejects_bad_ranges(client):
    assert client.post("/api/schedule/run", json={"start": "2025-09-05", "end": "2025-09-01"}).status_code == 400
    assert client.post("/api/schedule/run", json={"end": "2025-09-01"}).status_code == 400
    assert client.post("/api/schedule/run", json={"start": "09/01/2025", "end": "2025-09-01"}).status_code == 400


def test_candidates(client):
    response = client.get("/api/schedule/candidates?date=2025-09-01&shift=noon")
    assert response.status_code == 200
    ids = [candidate["id"] for candidate in response.get_json()["candidates"]]
    assert ids == ["E01", "E02", "E03", "E05"]

    weekend = client.get("/api/schedule/candidates?date=2025-09-06&shift=noon").get_json()
    assert weekend["candidates"] == []

    unavailable = client.get("/api/schedule/candidates?date=2025-09-03&shift=phone").get_json()
    assert "E04" not in [candidate["id"] for candidate in unavailable["candidates"]]

    assert client.get("/api/schedule/candidates?date=2025-09-01&shift=night").status_code == 400


def test_candidates_offer_current_holder_first(client):
    data = client.post("/api/schedule/run", json={**WEEK, "commit": True}).get_json()
    holder = data["schedules"][0]["shifts"]["noon"]["employee_id"]

    response = client.get("/api/schedule/candidates?date=2025-09-01&shift=noon").get_json()
    assert response["candidates"][0]["id"] == holder


def test_reassign_moves_stats(client):
    data = client.post("/api/schedule/run", json={**WEEK, "commit": True}).get_json()
    holder = data["schedules"][0]["shifts"]["noon"]["employee_id"]
    replacement = next(e for e in ["E01", "E02", "E03", "E05"] if e != holder)
    before = noon_stats(client)

    response = client.put("/api/schedule/2025-09-01/noon", json={"employee_id": replacement})
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["previous_employee_id"] == holder
    assert payload["employee_id"] == replacement

    after = noon_stats(client)
    assert after[holder] == before[holder] - 1
    assert after[replacement] == before[replacement] + 1


def test_reassign_errors(client):
    assert client.put("/api/schedule/2025-09-01/noon", json={"employee_id": "E99"}).status_code == 404
    assert client.put("/api/schedule/2025-09-01/noon", json={"employee_id": "E04"}).status_code == 400
    assert client.put("/api/schedule/2025-09-01/night", json={"employee_id": "E01"}).status_code == 400
    assert client.put("/api/schedule/2025-09-01/noon", json={}).status_code == 400


def test_init_db_command(app):
    result = app.test_cli_runner().invoke(args=["init-db", "--force"])
    assert "Database initialized with 6 employees." in result.output


def test_commit_over_manual_edit_counts_slot_once(client):
    client.put("/api/schedule/2025-09-01/noon", json={"employee_id": "E01"})
    edited = noon_stats(client)
    assert edited["E01"] == 5

    data = client.post("/api/schedule/run", json={"start": "2025-09-01", "end": "2025-09-01", "commit": True}).get_json()
    holder = data["schedules"][0]["shifts"]["noon"]["employee_id"]
    expected = dict(edited)
    expected["E01"] -= 1
    expected[holder] += 1

    after = noon_stats(client)
    assert after == expected
    assert sum(after.values()) == sum(edited.values())
    stored = client.get("/api/schedules?start=2025-09-01&end=2025-09-01").get_json()
    assert stored["schedules"][0]["shifts"]["noon"]["employee_id"] == holder


def test_list_schedules_with_period_stats(client):
    run = client.post("/api/schedule/run", json={**WEEK, "commit": True}).get_json()

    response = client.get("/api/schedules?start=2025-09-01&end=2025-09-05")
    assert response.status_code == 200
    data = response.get_json()
    assert [schedule["date"] for schedule in data["schedules"]] == [s["date"] for s in run["schedules"]]
    assert data["stats"] == run["stats_delta"]

    empty = client.get("/api/schedules?start=2025-09-08&end=2025-09-12").get_json()
    assert empty["schedules"] == []
    assert empty["stats"] == {}


def test_delete_schedules_reverts_stats(client):
    before = noon_stats(client)
    client.post("/api/schedule/run", json={**WEEK, "commit": True})

    response = client.delete("/api/schedules?start=2025-09-01&end=2025-09-05")
    assert response.status_code == 200
    assert response.get_json()["deleted"] > 0

    assert noon_stats(client) == before
    assert client.get("/api/schedules?start=2025-09-01&end=2025-09-05").get_json()["schedules"] == []


def test_schedule_range_errors(client):
    assert client.get("/api/schedules?start=2025-09-05&end=2025-09-01").status_code == 400
    assert client.get("/api/schedules?start=2025-09-01").status_code == 400
    assert client.delete("/api/schedules?start=bad&end=2025-09-01").status_code == 400
