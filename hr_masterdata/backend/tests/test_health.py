from datetime import datetime, timezone


def test_health_timestamp_is_current(client):
    before = datetime.now(timezone.utc)
    resp = client.get("/api/health")
    after = datetime.now(timezone.utc)

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    stamp = datetime.fromisoformat(body["timestamp"])
    assert before <= stamp <= after


def test_root_health_needs_no_auth(client):
    assert client.get("/health").json()["status"] == "ok"
