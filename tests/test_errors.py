import json
from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from rehearsal_scheduler.notifications import notify_users
from rehearsal_scheduler.utils import parse_hhmm, sanitize_name
from test_api import request, start_test_client


def test_database_outage_returns_503():
    client = start_test_client()
    boom = OperationalError("SELECT 1", {}, Exception("connection refused"))
    with mock.patch("rehearsal_scheduler.api.auth.find_user_by_email", side_effect=boom):
        status, _, body = request(client, "POST", "/api/auth/login",
                                  {"email": "alice@example.com", "password": "whatever"})
    assert status == 503
    data = json.loads(body)
    assert data["success"] is False
    assert data["message"] == "Database unavailable"


def test_unexpected_error_returns_500_with_stack():
    client = start_test_client(raise_server_exceptions=False)
    with mock.patch("rehearsal_scheduler.api.auth.find_user_by_email", side_effect=RuntimeError("kaboom")):
        status, _, body = request(client, "POST", "/api/auth/login",
                                  {"email": "alice@example.com", "password": "whatever"})
    assert status == 500
    data = json.loads(body)
    assert data["message"] == "Something went wrong on the server"
    assert data["error"] == "Internal Server Error"
    assert "kaboom" in data["stack"]


def test_notify_users_rejects_unknown_type():
    with pytest.raises(ValueError):
        notify_users(None, [1], "NOT_A_TYPE", "content")


def test_sanitize_name():
    assert sanitize_name("  setlist.pdf ") == "setlist.pdf"
    assert sanitize_name("..") is None
    assert sanitize_name("") is None
    assert sanitize_name(None) is None


def test_parse_hhmm():
    assert parse_hhmm("09:05").hour == 9
    assert parse_hhmm("24:00") is None
    assert parse_hhmm("9:05") is None
