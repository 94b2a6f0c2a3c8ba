import datetime as dt
import json

from rehearsal_scheduler.scheduling import next_weekday, suggest_rehearsal_times
from test_api import create_band, register, request, start_test_client


def test_next_weekday_is_strictly_after():
    saturday = dt.date(2026, 10, 17)
    assert next_weekday(saturday, 5) == dt.date(2026, 10, 24)
    assert next_weekday(saturday, 6) == dt.date(2026, 10, 18)
    assert next_weekday(saturday, 1) == dt.date(2026, 10, 20)


def test_suggestions_from_a_saturday():
    suggestions = suggest_rehearsal_times(dt.datetime(2026, 10, 17, 9, 30))
    assert suggestions == [
        {"startDatetime": dt.datetime(2026, 10, 24, 14), "endDatetime": dt.datetime(2026, 10, 24, 17),
         "confidence": 0.9},
        {"startDatetime": dt.datetime(2026, 10, 18, 15), "endDatetime": dt.datetime(2026, 10, 18, 18),
         "confidence": 0.8},
        {"startDatetime": dt.datetime(2026, 10, 20, 19), "endDatetime": dt.datetime(2026, 10, 20, 22),
         "confidence": 0.7},
    ]


def test_suggestions_from_a_wednesday():
    suggestions = suggest_rehearsal_times(dt.datetime(2026, 10, 14, 23, 59))
    starts = [s["startDatetime"].date() for s in suggestions]
    assert starts == [dt.date(2026, 10, 17), dt.date(2026, 10, 18), dt.date(2026, 10, 20)]
    assert suggest_rehearsal_times(dt.datetime(2026, 10, 14)) == suggestions


def test_suggested_times_endpoint():
    client = start_test_client()
    _, alice = register(client, "Alice", "alice@example.com")
    _, mallory = register(client, "Mallory", "mallory@example.com")
    band = create_band(client, alice)

    status, _, body = request(client, "GET", "/api/rehearsals/suggested-times", headers=alice)
    assert status == 200
    suggestions = json.loads(body)["data"]
    assert [s["confidence"] for s in suggestions] == [0.9, 0.8, 0.7]
    assert all(s["startDatetime"] < s["endDatetime"] for s in suggestions)

    status, _, _ = request(client, "GET", f"/api/rehearsals/suggested-times?bandId={band['id']}", headers=alice)
    assert status == 200
    status, _, _ = request(client, "GET", f"/api/rehearsals/suggested-times?bandId={band['id']}", headers=mallory)
    assert status == 403
