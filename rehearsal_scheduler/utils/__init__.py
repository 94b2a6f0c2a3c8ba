import datetime as dt
import re

_HHMM = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def sanitize_name(name: str) -> str | None:
    """Return a sanitized file/display name or ``None`` if invalid."""
    name = (name or '').strip()
    if not name or '..' in name or '/' in name or '\\' in name:
        return None
    return name


def to_utc_naive(value: dt.datetime) -> dt.datetime:
    """Normalise ``value`` to a naive UTC datetime.

    Aware datetimes are converted to UTC; naive ones are assumed to be UTC
    already."""
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value


def parse_hhmm(value: str) -> dt.time | None:
    """Parse a ``HH:MM`` string.  Returns ``None`` when malformed."""
    m = _HHMM.match((value or '').strip())
    if not m:
        return None
    return dt.time(int(m.group(1)), int(m.group(2)))
