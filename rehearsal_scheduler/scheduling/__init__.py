"""Suggested rehearsal slots.

The suggestions are a fixed template: the next Saturday afternoon, Sunday
afternoon and Tuesday evening after today, each with a hand-set confidence.
Availability records are not consulted."""

import datetime as dt

SATURDAY = 5
SUNDAY = 6
TUESDAY = 1

# (weekday, start, end, confidence)
SUGGESTION_TEMPLATE = (
    (SATURDAY, dt.time(14, 0), dt.time(17, 0), 0.9),
    (SUNDAY, dt.time(15, 0), dt.time(18, 0), 0.8),
    (TUESDAY, dt.time(19, 0), dt.time(22, 0), 0.7),
)


def next_weekday(day: dt.date, weekday: int) -> dt.date:
    """Return the first date strictly after ``day`` falling on ``weekday``."""
    days_ahead = (weekday - day.weekday()) % 7 or 7
    return day + dt.timedelta(days=days_ahead)


def suggest_rehearsal_times(now: dt.datetime) -> list[dict]:
    today = now.date()
    suggestions = []
    for weekday, start, end, confidence in SUGGESTION_TEMPLATE:
        day = next_weekday(today, weekday)
        suggestions.append({
            'startDatetime': dt.datetime.combine(day, start),
            'endDatetime': dt.datetime.combine(day, end),
            'confidence': confidence,
        })
    return suggestions
