# tests/test_twilio_calls_router.py
import requests
from fastapi.testclient import TestClient

from conftest import auth_headers
from softphone.main import app
from softphone.services.twilio_client import get_twilio_client

client = TestClient(app)


class FakeUpstream:
    def __init__(self, status_code=200, content=b"ID3-audio"):
        self.status_code = status_code
        self.content = content
        self.reason = "OK" if status_code == 200 else "Not Found"

    @property
    def ok(self):
        return self.status_code < 400


class FakeTwilioClient:
    def __init__(self, upstream=None, error=None):
        self.hung_up = []
        self.fetched = []
        self.upstream = upstream or FakeUpstream()
        self.error = error

    def hangup_call(self, call_sid: str) -> None:
        if self.error:
            raise self.error
        self.hung_up.append(call_sid)

    def fetch_recording(self, recording_sid: str):
        self.fetched.append(recording_sid)
        if self.error:
            raise self.error
        return self.upstream


def test_hangup_completes_call():
    fake = FakeTwilioClient()
    app.dependency_overrides[get_twilio_client] = lambda: fake

    response = client.post("/twilio/hangup", json={"call_sid": "CA123"}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert fake.hung_up == ["CA123"]


def test_hangup_without_sid_is_noop():
    fake = FakeTwilioClient()
    app.dependency_overrides[get_twilio_client] = lambda: fake

    response = client.post("/twilio/hangup", json={}, headers=auth_headers())

    assert response.status_code == 200
    assert fake.hung_up == []


def test_hangup_requires_session():
    app.dependency_overrides[get_twilio_client] = lambda: FakeTwilioClient()
    response = client.post("/twilio/hangup", json={"call_sid": "CA123"})
    assert response.status_code == 401


def test_recording_proxy_streams_audio():
    fake = FakeTwilioClient()
    app.dependency_overrides[get_twilio_client] = lambda: fake

    response = client.get("/twilio/recordings/RE456", headers=auth_headers())

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/mpeg"
    assert response.content == b"ID3-audio"
    assert fake.fetched == ["RE456"]


def test_recording_proxy_passes_upstream_status():
    app.dependency_overrides[get_twilio_client] = lambda: FakeTwilioClient(FakeUpstream(404))

    response = client.get("/twilio/recordings/RE_MISSING", headers=auth_headers())

    assert response.status_code == 404
    assert response.json() == {"error": "Recording not found"}


def test_recording_proxy_network_error_returns_error_body():
    fake = FakeTwilioClient(error=requests.ConnectionError("timeout"))
    app.dependency_overrides[get_twilio_client] = lambda: fake

    response = client.get("/twilio/recordings/RE456", headers=auth_headers())

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch recording"}


def test_hangup_failure_returns_error_body():
    fake = FakeTwilioClient(error=RuntimeError("20404 call not found"))
    app.dependency_overrides[get_twilio_client] = lambda: fake

    response = client.post("/twilio/hangup", json={"call_sid": "CA123"}, headers=auth_headers())

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to end call"}
