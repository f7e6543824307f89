from __future__ import annotations

import datetime
import time

import pytest
from fastapi.testclient import TestClient

from herday.api.routes.schedule import get_schedule_repository
from herday.config import get_settings
from herday.main import app


@pytest.fixture
def client():
  with TestClient(app) as test_client:
    yield test_client
  app.dependency_overrides.clear()


def _iso_in(seconds: int) -> str:
  moment = datetime.datetime.now(tz=datetime.UTC) + datetime.timedelta(seconds=seconds)
  return moment.isoformat().replace("+00:00", "Z")


def _schedule_body(subscriber, notify_at: str, **extra) -> dict:
  return {"subscription": subscriber.as_json(), "notifyAt": notify_at, **extra}


def _status(client: TestClient, endpoint: str) -> dict:
  response = client.post("/api/schedule/status", json={"endpoint": endpoint})
  assert response.status_code == 200
  return response.json()


def test_health_reports_time(client):
  response = client.get("/health")
  assert response.status_code == 200
  body = response.json()
  assert body["ok"] is True
  assert body["time"].endswith("Z")
  assert response.headers["x-request-id"]


def test_vapid_public_key_is_exposed(client, vapid_keys):
  response = client.get("/api/vapid-public-key")
  assert response.status_code == 200
  assert response.json() == {"publicKey": vapid_keys.public_key}


def test_schedule_then_status_and_delete(client, subscriber):
  notify_at = int(time.time()) + 3600
  iso = datetime.datetime.fromtimestamp(notify_at, tz=datetime.UTC).isoformat().replace("+00:00", "Z")

  response = client.post("/api/schedule", json=_schedule_body(subscriber, iso, title="Ovulation window", body="Starts in two days"))
  assert response.status_code == 200
  assert response.json() == {"ok": True, "notifyAt": iso.replace("Z", ".000Z")}

  status = _status(client, subscriber.endpoint)
  assert status == {"scheduled": True, "notifyAt": iso.replace("Z", ".000Z"), "title": "Ovulation window", "body": "Starts in two days"}

  response = client.request("DELETE", "/api/schedule", json={"endpoint": subscriber.endpoint})
  assert response.status_code == 200
  assert response.json() == {"ok": True}
  assert _status(client, subscriber.endpoint) == {"scheduled": False}


def test_schedule_uses_default_title_and_body(client, subscriber):
  response = client.post("/api/schedule", json=_schedule_body(subscriber, _iso_in(3600)))
  assert response.status_code == 200

  status = _status(client, subscriber.endpoint)
  assert status["title"] == "HerDay Reminder"
  assert status["body"] == "Time to check your cycle!"


def test_resubmission_replaces_pending_notification(client, subscriber):
  client.post("/api/schedule", json=_schedule_body(subscriber, _iso_in(3600), title="first"))
  response = client.post("/api/schedule", json=_schedule_body(subscriber, _iso_in(7200), title="second"))
  assert response.status_code == 200

  assert _status(client, subscriber.endpoint)["title"] == "second"


def test_naive_notify_at_is_read_as_utc(client, subscriber):
  moment = datetime.datetime.now(tz=datetime.UTC).replace(microsecond=0) + datetime.timedelta(hours=2)
  response = client.post("/api/schedule", json=_schedule_body(subscriber, moment.replace(tzinfo=None).isoformat()))
  assert response.status_code == 200
  assert response.json()["notifyAt"] == moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@pytest.mark.parametrize("notify_at", ["not-a-date", "", "2024-13-45T00:00:00Z", 1893456000])
def test_malformed_notify_at_is_rejected_without_creating_a_row(client, subscriber, notify_at):
  response = client.post("/api/schedule", json=_schedule_body(subscriber, notify_at))
  assert response.status_code == 400
  assert "notifyAt" in response.json()["error"]
  assert _status(client, subscriber.endpoint) == {"scheduled": False}


def test_past_notify_at_is_rejected(client, subscriber):
  response = client.post("/api/schedule", json=_schedule_body(subscriber, _iso_in(-60)))
  assert response.status_code == 400
  assert response.json() == {"error": "notifyAt must be in the future"}
  assert _status(client, subscriber.endpoint) == {"scheduled": False}


def test_missing_subscription_is_rejected(client):
  response = client.post("/api/schedule", json={"notifyAt": _iso_in(3600)})
  assert response.status_code == 400
  assert response.json() == {"error": "subscription is required"}


def test_invalid_json_is_rejected(client):
  response = client.post("/api/schedule", content=b"{not json", headers={"Content-Type": "application/json"})
  assert response.status_code == 400
  assert response.json() == {"error": "Request body must be valid JSON"}


def test_non_https_endpoint_is_rejected(client, make_subscriber):
  insecure = make_subscriber("http://fcm.googleapis.com/fcm/send/abc")
  response = client.post("/api/schedule", json=_schedule_body(insecure, _iso_in(3600)))
  assert response.status_code == 400
  assert response.json() == {"error": "endpoint must be an absolute https URL"}


def test_invalid_subscription_keys_are_rejected(client, subscriber):
  body = _schedule_body(subscriber, _iso_in(3600))
  body["subscription"]["keys"]["p256dh"] = "not-valid-***"
  response = client.post("/api/schedule", json=body)
  assert response.status_code == 400
  assert "p256dh" in response.json()["error"]

  body = _schedule_body(subscriber, _iso_in(3600))
  body["subscription"]["keys"]["auth"] = "AAAA"
  response = client.post("/api/schedule", json=body)
  assert response.status_code == 400
  assert response.json() == {"error": "subscription.keys.auth must decode to 16 bytes"}


def test_overlong_title_is_rejected(client, subscriber):
  response = client.post("/api/schedule", json=_schedule_body(subscriber, _iso_in(3600), title="x" * 201))
  assert response.status_code == 400
  assert response.json()["error"].startswith("title:")


def test_delete_of_missing_endpoint_succeeds(client):
  response = client.request("DELETE", "/api/schedule", json={"endpoint": "https://fcm.googleapis.com/fcm/send/never-scheduled"})
  assert response.status_code == 200
  assert response.json() == {"ok": True}


@pytest.mark.parametrize(("method", "path"), [("DELETE", "/api/schedule"), ("POST", "/api/schedule/status")])
def test_endpoint_is_required(client, method, path):
  response = client.request(method, path, json={})
  assert response.status_code == 400
  assert response.json() == {"error": "endpoint is required"}

  response = client.request(method, path, json={"endpoint": "   "})
  assert response.status_code == 400
  assert response.json() == {"error": "endpoint is required"}


def test_store_failure_returns_500(client, subscriber):
  class _BrokenRepo:
    async def upsert(self, entry):
      raise RuntimeError("disk full")

  app.dependency_overrides[get_schedule_repository] = lambda: _BrokenRepo()
  response = client.post("/api/schedule", json=_schedule_body(subscriber, _iso_in(3600)))
  assert response.status_code == 500
  assert response.json()["error"] == "Internal Server Error"
  assert "requestId" in response.json()


def test_unknown_route_uses_error_envelope(client):
  response = client.get("/api/nope")
  assert response.status_code == 404
  assert response.json() == {"error": "Not Found"}


def test_cors_preflight_allows_configured_methods(client):
  response = client.options("/api/schedule", headers={"Origin": "https://herday.example", "Access-Control-Request-Method": "DELETE", "Access-Control-Request-Headers": "Content-Type"})
  assert response.status_code == 200
  assert "DELETE" in response.headers["access-control-allow-methods"]


@pytest.mark.parametrize("notify_at", ["9999-12-31T23:59:59-05:00", "9999-12-31T23:30:00-01:00"])
def test_notify_at_beyond_year_9999_is_rejected_before_storing(client, subscriber, notify_at):
  response = client.post("/api/schedule", json=_schedule_body(subscriber, notify_at))
  assert response.status_code == 400
  assert response.json() == {"error": "Invalid notifyAt date"}
  assert _status(client, subscriber.endpoint) == {"scheduled": False}


def test_latest_renderable_notify_at_is_accepted(client, subscriber):
  response = client.post("/api/schedule", json=_schedule_body(subscriber, "9999-12-31T23:59:59Z"))
  assert response.status_code == 200
  assert response.json()["notifyAt"] == "9999-12-31T23:59:59.000Z"
  assert _status(client, subscriber.endpoint)["scheduled"] is True


def test_fractional_expiration_time_is_accepted(client, subscriber):
  body = _schedule_body(subscriber, _iso_in(3600))
  body["subscription"]["expirationTime"] = 1893456000000.5
  response = client.post("/api/schedule", json=body)
  assert response.status_code == 200
  assert _status(client, subscriber.endpoint)["scheduled"] is True


def test_unhandled_error_still_carries_request_id_header():
  def _broken_settings():
    raise RuntimeError("settings unavailable")

  with TestClient(app, raise_server_exceptions=False) as test_client:
    app.dependency_overrides[get_settings] = _broken_settings
    try:
      response = test_client.get("/api/vapid-public-key")
    finally:
      app.dependency_overrides.clear()

  assert response.status_code == 500
  body = response.json()
  assert body["error"] == "Internal Server Error"
  assert response.headers["x-request-id"] == body["requestId"]
