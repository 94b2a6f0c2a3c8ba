import json

from test_api import add_active_member, create_band, register, request, start_test_client


def test_create_band_makes_creator_leader():
    client = start_test_client()
    alice, headers = register(client, "Alice", "alice@example.com")
    band = create_band(client, headers)
    assert band["name"] == "The Testers"
    assert len(band["members"]) == 1
    member = band["members"][0]
    assert member["userId"] == alice["id"]
    assert member["role"] == "LEADER"
    assert member["status"] == "ACTIVE"

    status, _, body = request(client, "GET", "/api/bands", headers=headers)
    assert status == 200
    bands = json.loads(body)["data"]
    assert [b["id"] for b in bands] == [band["id"]]
    assert bands[0]["memberCount"] == 1
    assert bands[0]["myRole"] == "LEADER"


def test_create_band_requires_name():
    client = start_test_client()
    _, headers = register(client, "Alice", "alice@example.com")
    status, _, body = request(client, "POST", "/api/bands", {"name": "   "}, headers)
    assert status == 400
    assert json.loads(body)["success"] is False


def test_get_band_access():
    client = start_test_client()
    _, alice = register(client, "Alice", "alice@example.com")
    _, mallory = register(client, "Mallory", "mallory@example.com")
    band = create_band(client, alice)

    status, _, body = request(client, "GET", f"/api/bands/{band['id']}", headers=alice)
    assert status == 200
    data = json.loads(body)["data"]
    assert len(data["members"]) == 1
    assert data["upcomingRehearsals"] == []

    status, _, body = request(client, "GET", f"/api/bands/{band['id']}", headers=mallory)
    assert status == 403
    assert json.loads(body)["error"] == "Forbidden"

    status, _, body = request(client, "GET", "/api/bands/9999", headers=alice)
    assert status == 404
    assert json.loads(body)["message"] == "Band not found"


def test_invite_accept_leave_and_reinvite():
    client = start_test_client()
    _, alice = register(client, "Alice", "alice@example.com")
    _, bob = register(client, "Bob", "bob@example.com")
    band = create_band(client, alice)
    band_id = band["id"]

    status, _, body = request(client, "POST", f"/api/bands/{band_id}/members",
                              {"email": "bob@example.com"}, alice)
    assert status == 201
    data = json.loads(body)
    assert data["message"] == "Member invited successfully"
    assert data["data"]["status"] == "INVITED"
    assert data["data"]["role"] == "MEMBER"

    # An outstanding invitation is not an active membership
    status, _, _ = request(client, "POST", f"/api/bands/{band_id}/members",
                           {"email": "bob@example.com"}, alice)
    assert status == 409
    status, _, body = request(client, "GET", "/api/bands", headers=bob)
    assert json.loads(body)["data"] == []
    status, _, _ = request(client, "GET", f"/api/bands/{band_id}", headers=bob)
    assert status == 403

    status, _, body = request(client, "PUT", f"/api/bands/{band_id}/membership", {"status": "ACTIVE"}, bob)
    assert status == 200
    assert json.loads(body)["data"]["status"] == "ACTIVE"
    status, _, body = request(client, "GET", "/api/bands", headers=bob)
    bands = json.loads(body)["data"]
    assert bands[0]["memberCount"] == 2
    assert bands[0]["myRole"] == "MEMBER"

    status, _, body = request(client, "PUT", f"/api/bands/{band_id}/membership", {"status": "INACTIVE"}, bob)
    assert status == 200
    assert json.loads(body)["data"]["status"] == "INACTIVE"

    status, _, body = request(client, "PUT", f"/api/bands/{band_id}/membership", {"status": "ACTIVE"}, bob)
    assert status == 403
    assert json.loads(body)["message"] == "A new invitation is required to rejoin this band"

    status, _, body = request(client, "POST", f"/api/bands/{band_id}/members",
                              {"email": "bob@example.com"}, alice)
    assert status == 200
    data = json.loads(body)
    assert data["message"] == "Member reactivated successfully"
    assert data["data"]["status"] == "INVITED"


def test_invite_sends_notification():
    client = start_test_client()
    _, alice = register(client, "Alice", "alice@example.com")
    _, bob = register(client, "Bob", "bob@example.com")
    band = create_band(client, alice, "Night Owls")
    request(client, "POST", f"/api/bands/{band['id']}/members", {"email": "bob@example.com"}, alice)

    status, _, body = request(client, "GET", "/api/notifications", headers=bob)
    assert status == 200
    notifications = json.loads(body)["data"]
    assert len(notifications) == 1
    assert notifications[0]["type"] == "BAND_INVITATION"
    assert notifications[0]["relatedId"] == band["id"]
    assert "Night Owls" in notifications[0]["content"]


def test_invite_errors():
    client = start_test_client()
    _, alice = register(client, "Alice", "alice@example.com")
    _, bob = register(client, "Bob", "bob@example.com")
    register(client, "Carol", "carol@example.com")
    band = create_band(client, alice)
    band_id = band["id"]

    status, _, body = request(client, "POST", f"/api/bands/{band_id}/members",
                              {"email": "ghost@example.com"}, alice)
    assert status == 404
    assert json.loads(body)["message"] == "User not found"

    add_active_member(client, alice, band_id, "bob@example.com", bob)
    status, _, _ = request(client, "POST", f"/api/bands/{band_id}/members",
                           {"email": "carol@example.com"}, bob)
    assert status == 403

    status, _, body = request(client, "POST", f"/api/bands/{band_id}/members",
                              {"email": "bob@example.com"}, alice)
    assert status == 409
    assert json.loads(body)["message"] == "User is already a member of this band"


def test_band_keeps_a_leader():
    client = start_test_client()
    alice_user, alice = register(client, "Alice", "alice@example.com")
    bob_user, bob = register(client, "Bob", "bob@example.com")
    band = create_band(client, alice)
    band_id = band["id"]
    add_active_member(client, alice, band_id, "bob@example.com", bob)

    status, _, body = request(client, "DELETE", f"/api/bands/{band_id}/members/{alice_user['id']}", headers=alice)
    assert status == 409
    assert json.loads(body)["message"] == "A band must keep at least one active leader"
    status, _, _ = request(client, "PUT", f"/api/bands/{band_id}/members/{alice_user['id']}",
                           {"role": "MEMBER"}, alice)
    assert status == 409

    status, _, body = request(client, "PUT", f"/api/bands/{band_id}/members/{bob_user['id']}",
                              {"role": "LEADER"}, alice)
    assert status == 200
    assert json.loads(body)["data"]["role"] == "LEADER"

    status, _, body = request(client, "DELETE", f"/api/bands/{band_id}/members/{alice_user['id']}", headers=alice)
    assert status == 200
    assert json.loads(body)["message"] == "Left band"


def test_member_cannot_remove_others():
    client = start_test_client()
    alice_user, alice = register(client, "Alice", "alice@example.com")
    bob_user, bob = register(client, "Bob", "bob@example.com")
    band = create_band(client, alice)
    add_active_member(client, alice, band["id"], "bob@example.com", bob)

    status, _, _ = request(client, "DELETE", f"/api/bands/{band['id']}/members/{alice_user['id']}", headers=bob)
    assert status == 403
    # Members leave through the membership response route, not this one
    status, _, body = request(client, "DELETE", f"/api/bands/{band['id']}/members/{bob_user['id']}", headers=bob)
    assert status == 403
    assert json.loads(body)["message"] == "Only band leaders can remove members"

    status, _, body = request(client, "DELETE", f"/api/bands/{band['id']}/members/{bob_user['id']}", headers=alice)
    assert status == 200
    assert json.loads(body)["message"] == "Member removed"

    status, _, body = request(client, "GET", f"/api/bands/{band['id']}/members", headers=alice)
    statuses = {m["userId"]: m["status"] for m in json.loads(body)["data"]}
    assert statuses[bob_user["id"]] == "INACTIVE"


def test_update_and_delete_band_leader_only():
    client = start_test_client()
    _, alice = register(client, "Alice", "alice@example.com")
    _, bob = register(client, "Bob", "bob@example.com")
    band = create_band(client, alice)
    add_active_member(client, alice, band["id"], "bob@example.com", bob)

    status, _, _ = request(client, "PUT", f"/api/bands/{band['id']}", {"name": "Renamed"}, bob)
    assert status == 403
    status, _, body = request(client, "PUT", f"/api/bands/{band['id']}", {"name": "Renamed"}, alice)
    assert status == 200
    assert json.loads(body)["data"]["name"] == "Renamed"

    status, _, _ = request(client, "DELETE", f"/api/bands/{band['id']}", headers=bob)
    assert status == 403
    status, _, _ = request(client, "DELETE", f"/api/bands/{band['id']}", headers=alice)
    assert status == 200
    status, _, _ = request(client, "GET", f"/api/bands/{band['id']}", headers=alice)
    assert status == 404


def test_leader_cannot_accept_on_behalf_of_member():
    client = start_test_client()
    _, alice = register(client, "Alice", "alice@example.com")
    bob_user, bob = register(client, "Bob", "bob@example.com")
    carol_user, _ = register(client, "Carol", "carol@example.com")
    band = create_band(client, alice)
    band_id = band["id"]
    request(client, "POST", f"/api/bands/{band_id}/members", {"email": "carol@example.com"}, alice)

    status, _, body = request(client, "PUT", f"/api/bands/{band_id}/members/{carol_user['id']}",
                              {"status": "ACTIVE"}, alice)
    assert status == 403
    assert json.loads(body)["message"] == "Members join a band by accepting an invitation"
    status, _, body = request(client, "GET", f"/api/bands/{band_id}/members", headers=alice)
    statuses = {m["userId"]: m["status"] for m in json.loads(body)["data"]}
    assert statuses[carol_user["id"]] == "INVITED"

    # A removed member cannot be switched back on either
    add_active_member(client, alice, band_id, "bob@example.com", bob)
    status, _, _ = request(client, "PUT", f"/api/bands/{band_id}/members/{bob_user['id']}",
                           {"status": "INACTIVE"}, alice)
    assert status == 200
    status, _, _ = request(client, "PUT", f"/api/bands/{band_id}/members/{bob_user['id']}",
                           {"status": "ACTIVE"}, alice)
    assert status == 403

    status, _, body = request(client, "PUT", f"/api/bands/{band_id}/members/{carol_user['id']}",
                              {"status": "INVITED"}, alice)
    assert status == 400
