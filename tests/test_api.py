import pytest
from fastapi.testclient import TestClient

from gridcard.api import state as state_module
from gridcard.api.app import app
from gridcard.api.state import AppState, get_state
from gridcard.core.f1_client import MOCK_RACE
from gridcard.core.store import MYO_CARD_ID_KEY, TOKENS_KEY, TTS_CARD_ID_KEY

from conftest import FakeResponse

API = "https://api.yotoplay.com"
LABS = "https://labs.api.yotoplay.com"

CHAPTERS = [
    {
        "title": "Next F1 Race",
        "icon": None,
        "tracks": [{"title": "Monaco Grand Prix", "text": "Hello Formula 1 fans!", "icon": None}],
    }
]
TRANSCODED = {"transcode": {"transcodedSha256": "abc", "transcodedInfo": {"duration": 12, "format": "aac"}}}


@pytest.fixture
def app_state(session, store, no_sleep):
    state = AppState(store=store, session=session, sleep=no_sleep.append)
    app.dependency_overrides[get_state] = lambda: state
    yield state
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_state):
    return TestClient(app)


def _login(store):
    store.set(TOKENS_KEY, {"accessToken": "tok", "refreshToken": "r", "expiresAt": None})


def _tts_job(session, card_id="card-1"):
    session.add(
        "POST",
        f"{LABS}/content/job",
        FakeResponse(json_body={"job": {"jobId": "job-1", "cardId": card_id, "status": "queued"}}),
    )


def test_send_to_yoto_requires_auth(client):
    response = client.post("/api/send-to-yoto", json={"chapters": CHAPTERS})

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "Not authenticated. Please connect with Yoto first.",
        "needsAuth": True,
    }


def test_send_to_yoto_rejects_empty_chapters(client, store):
    _login(store)

    response = client.post("/api/send-to-yoto", json={"chapters": []})

    assert response.status_code == 400
    assert response.json()["error"] == "No chapters data provided"


def test_malformed_body_is_bad_request(client, store):
    _login(store)

    response = client.post("/api/send-to-yoto", json={"chapters": [{"tracks": "nope"}]})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_send_to_yoto_publishes_stores_card_and_deploys(client, store, session):
    _login(store)
    _tts_job(session)
    session.add("GET", f"{API}/device-v2/devices/mine", FakeResponse(json_body={"devices": [{"deviceId": "d1"}]}))
    session.add("POST", f"{API}/device-v2/d1/", FakeResponse(json_body={}))

    response = client.post("/api/send-to-yoto", json={"chapters": CHAPTERS, "title": "F1: Next Race"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["yoto"]["jobId"] == "job-1"
    assert body["yoto"]["cardId"] == "card-1"
    assert body["isUpdate"] is False
    assert body["deviceDeployment"]["success"] == 1
    assert body["deviceDeployment"]["total"] == 1
    assert store.get(TTS_CARD_ID_KEY) == "card-1"
    doc = session.calls_to("POST", f"{LABS}/content/job")[0][2]["json"]
    assert doc["content"]["chapters"][0]["tracks"][0]["trackUrl"] == "Hello Formula 1 fans!"


def test_send_to_yoto_deploy_failure_is_reported_not_fatal(client, store, session):
    _login(store)
    store.set(TTS_CARD_ID_KEY, "old-card")
    _tts_job(session, card_id="card-2")
    session.add("GET", f"{API}/device-v2/devices/mine", FakeResponse(500, text="devices down"))

    response = client.post("/api/send-to-yoto", json={"chapters": CHAPTERS})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["deviceDeployment"]["total"] == 0
    assert "devices down" in body["deviceDeployment"]["error"]
    # text-to-speech cannot update in place: the new card id replaces the old one
    assert "cardId" not in session.calls_to("POST", f"{LABS}/content/job")[0][2]["json"]
    assert store.get(TTS_CARD_ID_KEY) == "card-2"


def test_upstream_401_asks_to_reconnect(client, store, session):
    _login(store)
    session.add("POST", f"{LABS}/content/job", FakeResponse(401, text="jwt expired"))

    response = client.post("/api/send-to-yoto", json={"chapters": CHAPTERS})

    assert response.status_code == 401
    assert response.json()["needsAuth"] is True
    assert "reconnect" in response.json()["error"]


def test_upstream_failure_surfaces_error_text(client, store, session):
    _login(store)
    session.add("POST", f"{LABS}/content/job", FakeResponse(400, text="voice not found"))

    response = client.post("/api/send-to-yoto", json={"chapters": CHAPTERS})

    assert response.status_code == 500
    assert "voice not found" in response.json()["error"]


def test_job_status(client, store, session):
    _login(store)
    session.add(
        "GET",
        f"{LABS}/content/job/job-1",
        FakeResponse(json_body={"job": {"jobId": "job-1", "status": "processing",
                                        "progress": {"completed": 1, "total": 2}}}),
    )

    response = client.get("/api/job-status", params={"jobId": "job-1"})

    assert response.status_code == 200
    job = response.json()["job"]
    assert job["status"] == "processing"
    assert job["done"] is False
    assert job["progress"] == {"completed": 1, "total": 2}


def test_job_status_needs_job_id(client, store):
    _login(store)

    response = client.get("/api/job-status")

    assert response.status_code == 400
    assert response.json()["error"] == "Missing jobId parameter"


def test_generate_card_degrades_to_mock_data(client):
    # No routes on the fake session: every upstream call fails
    response = client.post("/api/generate-card", json={"timezone": "Europe/London"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["timezone"] == "Europe/London"
    assert body["race"]["name"] == MOCK_RACE.name
    assert len(body["drivers"]) == 5
    assert len(body["teams"]) == 5
    assert body["weather"] is None
    assert len(body["chapters"]) == 1
    assert body["chapters"][0]["tracks"][0]["title"] == MOCK_RACE.name
    assert body["script"]["full"].startswith("Chapter 1: Next Race")
    assert len(body["script"]["chapters"]) == 3


def test_generate_card_without_body_uses_default_timezone(client):
    response = client.post("/api/generate-card")

    assert response.status_code == 200
    assert response.json()["timezone"] == "UTC"


def test_upload_to_myo_creates_card(client, store, session):
    _login(store)
    session.add(
        "GET",
        f"{API}/media/transcode/audio/uploadUrl",
        FakeResponse(json_body={"upload": {"uploadId": "up-1", "uploadUrl": "https://s3.test/u"}}),
    )
    session.add("PUT", "https://s3.test/u", FakeResponse(200, text=""))
    session.add(
        "GET",
        f"{API}/media/upload/up-1/transcoded",
        FakeResponse(json_body={"transcode": {}}),
        FakeResponse(json_body=TRANSCODED),
    )
    session.add("POST", f"{API}/content", FakeResponse(json_body={"card": {"cardId": "myo-1"}}))

    response = client.post(
        "/api/upload-to-myo",
        data={"title": "Race Recap", "updateExisting": "true"},
        files={"audio": ("recap.mp3", b"ID3 audio bytes", "audio/mpeg")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["card"] == {"cardId": "myo-1", "title": "Race Recap"}
    assert body["isUpdate"] is False
    assert store.get(MYO_CARD_ID_KEY) == "myo-1"
    doc = session.calls_to("POST", f"{API}/content")[0][2]["json"]
    assert doc["content"]["chapters"][0]["tracks"][0]["trackUrl"] == "yoto:#abc"


def test_upload_to_myo_updates_stored_card(client, store, session):
    _login(store)
    store.set(MYO_CARD_ID_KEY, "myo-1")
    session.add(
        "GET",
        f"{API}/media/transcode/audio/uploadUrl",
        FakeResponse(json_body={"upload": {"uploadId": "up-1", "uploadUrl": None}}),
    )
    session.add("GET", f"{API}/media/upload/up-1/transcoded", FakeResponse(json_body=TRANSCODED))
    session.add("POST", f"{API}/content", FakeResponse(json_body={"card": {"cardId": "myo-1"}}))

    response = client.post(
        "/api/upload-to-myo",
        data={"updateExisting": "true"},
        files={"audio": ("recap.mp3", b"bytes", "audio/mpeg")},
    )

    assert response.json()["isUpdate"] is True
    assert session.calls_to("POST", f"{API}/content")[0][2]["json"]["cardId"] == "myo-1"


def test_upload_to_myo_transcode_timeout(client, store, session, no_sleep):
    _login(store)
    session.add(
        "GET",
        f"{API}/media/transcode/audio/uploadUrl",
        FakeResponse(json_body={"upload": {"uploadId": "up-1", "uploadUrl": None}}),
    )
    session.add("GET", f"{API}/media/upload/up-1/transcoded", FakeResponse(json_body={"transcode": {}}))

    response = client.post("/api/upload-to-myo", files={"audio": ("a.mp3", b"bytes", "audio/mpeg")})

    assert response.status_code == 500
    assert "timed out" in response.json()["error"]
    assert len(session.calls_to("GET", f"{API}/media/upload/up-1/transcoded")) == 60
    assert len(no_sleep) == 59


def test_upload_to_myo_requires_file(client, store):
    _login(store)

    response = client.post("/api/upload-to-myo", data={"title": "x"})

    assert response.status_code == 400
    assert response.json()["error"] == "No audio file provided"


def test_auth_status_and_logout(client, store):
    assert client.get("/api/auth/status").json() == {"success": True, "authenticated": False}
    _login(store)
    store.set(TTS_CARD_ID_KEY, "card-1")
    assert client.get("/api/auth/status").json()["authenticated"] is True

    assert client.post("/api/auth/logout").json()["success"] is True

    assert store.get(TOKENS_KEY) is None
    assert store.get(TTS_CARD_ID_KEY) is None


def test_callback_stores_tokens_and_redirects(client, store, session):
    session.add(
        "POST",
        "https://login.yotoplay.com/oauth/token",
        FakeResponse(json_body={"access_token": "a", "refresh_token": "r", "expires_in": 86400}),
    )

    response = client.get("/api/auth/callback", params={"code": "c"}, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/"
    assert store.get(TOKENS_KEY)["accessToken"] == "a"


def test_callback_failure_redirects_with_error(client, store, session):
    session.add("POST", "https://login.yotoplay.com/oauth/token", FakeResponse(400, text="invalid_grant"))

    response = client.get("/api/auth/callback", params={"code": "c"}, follow_redirects=False)

    assert response.headers["location"] == "/?error=auth_failed"
    assert store.get(TOKENS_KEY) is None


def test_callback_without_code(client):
    assert client.get("/api/auth/callback").status_code == 400


def test_login_redirects_to_yoto(client, monkeypatch):
    monkeypatch.setattr("gridcard.api.routes.auth.YOTO_CLIENT_ID", "cid")
    monkeypatch.setattr("gridcard.core.yoto_auth.YOTO_CLIENT_ID", "cid")

    response = client.get("/api/auth/login", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"].startswith("https://login.yotoplay.com/authorize?")
    assert "client_id=cid" in response.headers["location"]


def test_default_state_is_created_lazily(monkeypatch, tmp_path):
    monkeypatch.setattr(state_module, "_state", None)
    monkeypatch.setattr(state_module, "STORE_PATH", tmp_path / "store.json")

    first = state_module.get_state()

    assert first is state_module.get_state()
    assert first.store.path == tmp_path / "store.json"


def test_malformed_device_list_does_not_fail_publish(client, store, session):
    _login(store)
    _tts_job(session)
    session.add("GET", f"{API}/device-v2/devices/mine", FakeResponse(json_body={"devices": None}))

    response = client.post("/api/send-to-yoto", json={"chapters": CHAPTERS})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["yoto"]["cardId"] == "card-1"
    assert body["deviceDeployment"]["total"] == 0
    assert "no devices array" in body["deviceDeployment"]["error"]
    assert store.get(TTS_CARD_ID_KEY) == "card-1"


def test_track_without_text_is_bad_request(client, store, session):
    _login(store)
    chapters = [{"title": "c", "tracks": [{"title": "t", "text": ""}]}]

    response = client.post("/api/send-to-yoto", json={"chapters": chapters})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Track 't' has no text for text-to-speech",
    }
    assert session.calls_to("POST", f"{LABS}/content/job") == []


def test_job_status_without_job_in_response(client, store, session):
    _login(store)
    session.add("GET", f"{LABS}/content/job/job-1", FakeResponse(json_body={"status": "ok"}))

    response = client.get("/api/job-status", params={"jobId": "job-1"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Job status response for job-1 has no job"}


def test_unexpected_error_keeps_json_envelope(app_state, store, monkeypatch):
    _login(store)

    def broken(api, job_id):
        raise RuntimeError("boom")

    monkeypatch.setattr("gridcard.api.routes.card.check_job_status", broken)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/api/job-status", params={"jobId": "job-1"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "boom"}


def test_generate_card_reports_timezone_actually_used(client):
    response = client.post("/api/generate-card", json={"timezone": "Mars/Base"})

    assert response.status_code == 200
    assert response.json()["timezone"] == "UTC"


def test_send_to_yoto_uploads_configured_cover(client, store, session, monkeypatch, tmp_path):
    cover = tmp_path / "cover.png"
    cover.write_bytes(b"\x89PNG")
    monkeypatch.setattr("gridcard.api.routes.card.COVER_IMAGE_PATH", cover)
    _login(store)
    _tts_job(session)
    session.add(
        "POST",
        f"{API}/media/coverImage/user/me/upload",
        FakeResponse(json_body={"coverImage": {"mediaUrl": "https://cdn.test/cover.png"}}),
    )
    session.add("GET", f"{API}/device-v2/devices/mine", FakeResponse(json_body={"devices": []}))

    response = client.post("/api/send-to-yoto", json={"chapters": CHAPTERS})

    assert response.status_code == 200
    doc = session.calls_to("POST", f"{LABS}/content/job")[0][2]["json"]
    assert doc["metadata"]["cover"] == {"imageL": "https://cdn.test/cover.png"}
