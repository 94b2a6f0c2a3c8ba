import json

from rehearsal_scheduler.auth import dummy_verify, hash_password, verify_password
from test_api import PASSWORD, register, request, start_test_client


def test_verify_password_valid_and_invalid():
    stored = hash_password("correcthorsebatterystaple")
    assert stored != "correcthorsebatterystaple"
    assert verify_password("correcthorsebatterystaple", stored)
    assert not verify_password("tr0ub4dor&3", stored)
    assert not verify_password("anything", "not-a-hash")
    assert dummy_verify() is None


def test_update_profile():
    client = start_test_client()
    _, headers = register(client, "Alice", "alice@example.com")
    status, _, body = request(client, "PUT", "/api/users/me",
                              {"name": "  Alice B  ", "instrument": "Bass"}, headers)
    assert status == 200
    data = json.loads(body)["data"]
    assert data["name"] == "Alice B"
    assert data["instrument"] == "Bass"

    status, _, body = request(client, "GET", "/api/users/me", headers=headers)
    assert json.loads(body)["data"]["instrument"] == "Bass"


def test_password_change():
    client = start_test_client()
    _, headers = register(client, "Alice", "alice@example.com")

    status, _, body = request(client, "PUT", "/api/users/me/password",
                              {"currentPassword": "wrong-password", "newPassword": "newsecret123"}, headers)
    assert status == 401
    assert json.loads(body)["message"] == "Current password is incorrect"

    status, _, _ = request(client, "PUT", "/api/users/me/password",
                           {"currentPassword": PASSWORD, "newPassword": "newsecret123"}, headers)
    assert status == 200

    status, _, _ = request(client, "POST", "/api/auth/login",
                           {"email": "alice@example.com", "password": PASSWORD})
    assert status == 401
    status, _, _ = request(client, "POST", "/api/auth/login",
                           {"email": "alice@example.com", "password": "newsecret123"})
    assert status == 200
