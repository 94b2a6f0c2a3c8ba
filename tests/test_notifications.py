import json

from test_api import create_band, register, request, start_test_client


def _invited_twice(client):
    """Bob receives one invitation from each of two bands."""
    _, alice = register(client, "Alice", "alice@example.com")
    _, bob = register(client, "Bob", "bob@example.com")
    for name in ("First", "Second"):
        band = create_band(client, alice, name)
        request(client, "POST", f"/api/bands/{band['id']}/members", {"email": "bob@example.com"}, alice)
    return alice, bob


def test_list_newest_first_and_mark_read():
    client = start_test_client()
    alice, bob = _invited_twice(client)

    status, _, body = request(client, "GET", "/api/notifications", headers=bob)
    assert status == 200
    notifications = json.loads(body)["data"]
    assert len(notifications) == 2
    assert "Second" in notifications[0]["content"]
    assert not any(n["isRead"] for n in notifications)

    status, _, body = request(client, "PUT", f"/api/notifications/{notifications[0]['id']}/read", headers=bob)
    assert status == 200
    assert json.loads(body)["data"]["isRead"] is True

    status, _, body = request(client, "GET", "/api/notifications?unread=true", headers=bob)
    assert [n["id"] for n in json.loads(body)["data"]] == [notifications[1]["id"]]

    status, _, body = request(client, "PUT", "/api/notifications/read-all", headers=bob)
    assert status == 200
    assert json.loads(body)["data"]["updated"] == 1
    status, _, body = request(client, "GET", "/api/notifications?unread=true", headers=bob)
    assert json.loads(body)["data"] == []


def test_notifications_are_private():
    client = start_test_client()
    alice, bob = _invited_twice(client)
    _, _, body = request(client, "GET", "/api/notifications", headers=bob)
    notification_id = json.loads(body)["data"][0]["id"]

    status, _, _ = request(client, "PUT", f"/api/notifications/{notification_id}/read", headers=alice)
    assert status == 404
    status, _, _ = request(client, "DELETE", f"/api/notifications/{notification_id}", headers=alice)
    assert status == 404

    status, _, _ = request(client, "DELETE", f"/api/notifications/{notification_id}", headers=bob)
    assert status == 200
    _, _, body = request(client, "GET", "/api/notifications", headers=bob)
    assert len(json.loads(body)["data"]) == 1
