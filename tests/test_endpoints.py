import pytest
from fastapi.testclient import TestClient

from timesync.data.sample_meeting import SAMPLE_MEETING, SAMPLE_PARTICIPANTS
from timesync.main import app
from timesync.routes.meetings import EMPTY_AVAILABILITY_DETAIL, get_poll_service, reset_services


client = TestClient(app)


@pytest.fixture(autouse=True)
def fresh_services(monkeypatch):
    monkeypatch.setenv("MAIL_DRIVER", "console")
    monkeypatch.setenv("MEETING_STORE", "memory")
    monkeypatch.setenv("LLM_ENABLED", "false")
    monkeypatch.setenv("BASE_URL", "https://timesync.example.com/")
    monkeypatch.delenv("API_KEY", raising=False)
    reset_services()
    yield
    reset_services()


def _create_sample():
    organizer = SAMPLE_PARTICIPANTS[0]
    body = {**SAMPLE_MEETING, "availability": organizer["availability"]}
    r = client.post("/meetings", json=body)
    assert r.status_code == 201
    return r.json()


def _submit(meeting_id, participant):
    return client.post(f"/meetings/{meeting_id}/participants", json=participant)


def test_root_ok():
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_timezones_listed():
    r = client.get("/timezones")
    assert r.status_code == 200
    values = [tz["value"] for tz in r.json()["timezones"]]
    assert "Europe/London" in values
    assert "Asia/Shanghai" in values


def test_create_meeting_returns_snapshot():
    meeting = _create_sample()

    assert meeting["status"] == "ACTIVE"
    assert meeting["expected_participants"] == 3
    assert meeting["participants"][0]["email"] == "alice@example.com"
    assert len(meeting["participants"][0]["availability"]) == 3
    assert meeting["share_url"] == f"https://timesync.example.com/meetings/{meeting['id']}"

    r = client.get(f"/meetings/{meeting['id']}")
    assert r.status_code == 200
    assert r.json()["id"] == meeting["id"]


def test_create_meeting_requires_availability():
    r = client.post("/meetings", json={**SAMPLE_MEETING, "availability": []})
    assert r.status_code == 400
    assert r.json()["detail"] == EMPTY_AVAILABILITY_DETAIL


def test_create_meeting_rejects_inverted_range():
    body = {
        **SAMPLE_MEETING,
        "date_range_start": "2025-03-12T00:00:00Z",
        "date_range_end": "2025-03-10T00:00:00Z",
        "availability": SAMPLE_PARTICIPANTS[0]["availability"],
    }
    r = client.post("/meetings", json=body)
    assert r.status_code == 400


@pytest.mark.parametrize("field,value", [
    ("slot_duration", 45),
    ("organizer_email", "not-an-email"),
    ("expected_participants", 0),
])
def test_create_meeting_validation(field, value):
    body = {**SAMPLE_MEETING, "availability": SAMPLE_PARTICIPANTS[0]["availability"], field: value}
    r = client.post("/meetings", json=body)
    assert r.status_code == 422


def test_slot_end_must_follow_start():
    body = {
        **SAMPLE_MEETING,
        "availability": [{"start": "2025-03-10T15:00:00Z", "end": "2025-03-10T14:00:00Z"}],
    }
    r = client.post("/meetings", json=body)
    assert r.status_code == 422


def test_unknown_meeting_404():
    assert client.get("/meetings/does-not-exist").status_code == 404
    assert client.get("/meetings/does-not-exist/results").status_code == 404
    r = _submit("does-not-exist", SAMPLE_PARTICIPANTS[1])
    assert r.status_code == 404


def test_submit_requires_availability():
    meeting = _create_sample()
    r = _submit(meeting["id"], {**SAMPLE_PARTICIPANTS[1], "availability": []})
    assert r.status_code == 400
    assert r.json()["detail"] == EMPTY_AVAILABILITY_DETAIL


def test_full_poll_finds_overlap():
    meeting = _create_sample()

    r = _submit(meeting["id"], SAMPLE_PARTICIPANTS[1])
    assert r.status_code == 200
    data = r.json()
    assert data["ok"] is True
    assert data["is_complete"] is False
    assert data["participants_remaining"] == 1

    r = _submit(meeting["id"], SAMPLE_PARTICIPANTS[2])
    data = r.json()
    assert data["is_complete"] is True
    assert data["overlap"]["has_overlap"] is True
    slots = data["overlap"]["overlapping_slots"]
    assert len(slots) == 1
    assert slots[0]["start"].startswith("2025-03-10T14:00:00")
    assert slots[0]["end"].startswith("2025-03-10T14:30:00")
    assert data["suggestion"] is None

    assert client.get(f"/meetings/{meeting['id']}").json()["status"] == "COMPLETED"

    results = client.get(f"/meetings/{meeting['id']}/results").json()
    assert results["meeting_id"] == meeting["id"]
    assert results["overlap"]["has_overlap"] is True


def test_poll_without_overlap_suggests_compromise():
    meeting = _create_sample()
    _submit(meeting["id"], SAMPLE_PARTICIPANTS[1])

    carmen = {
        **SAMPLE_PARTICIPANTS[2],
        "availability": [{"start": "2025-03-11T20:00:00Z", "end": "2025-03-11T20:30:00Z"}],
    }
    data = _submit(meeting["id"], carmen).json()

    assert data["is_complete"] is True
    assert data["overlap"]["has_overlap"] is False
    suggestion = data["suggestion"]
    assert suggestion["reasoning"]
    assert suggestion["suggested_time"]["start"].startswith("2025-03-10T14:00:00")
    assert [p["name"] for p in suggestion["participant_impact"]] == ["Alice Martin", "Bo Chen", "Carmen Diaz"]


def test_resubmission_replaces_previous_answer():
    meeting = _create_sample()
    _submit(meeting["id"], SAMPLE_PARTICIPANTS[1])
    _submit(meeting["id"], {**SAMPLE_PARTICIPANTS[1], "availability": SAMPLE_PARTICIPANTS[1]["availability"][:1]})

    stored = client.get(f"/meetings/{meeting['id']}").json()

    assert len(stored["participants"]) == 2
    assert len(stored["participants"][1]["availability"]) == 1


def test_api_key_guard_blocks_when_configured(monkeypatch):
    monkeypatch.setenv("API_KEY", "secret123")

    r = client.post("/meetings", json={**SAMPLE_MEETING, "availability": SAMPLE_PARTICIPANTS[0]["availability"]})
    assert r.status_code == 401
    assert "api key" in r.json()["detail"].lower()

    r2 = client.post(
        "/meetings",
        json={**SAMPLE_MEETING, "availability": SAMPLE_PARTICIPANTS[0]["availability"]},
        headers={"x-api-key": "secret123"},
    )
    assert r2.status_code == 201


def test_default_service_uses_local_compromise_choice():
    service = get_poll_service()
    assert service.selector.reasoner is None
