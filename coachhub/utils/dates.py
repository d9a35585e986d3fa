"""Date helpers shared by bookings, analytics and the webhook.

All datetimes are stored naive in UTC.
"""
import calendar
import re
from datetime import datetime, timedelta, timezone

WEEKDAY_NAMES = ['sunday', 'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday']

_YMD_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(T.*)?$")


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value):
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_iso(value):
    """Parse an ISO-8601 string (``Z`` suffix allowed) into naive UTC, or None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    try:
        return to_naive_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def normalize_date_string(value):
    """Repair loosely formatted appointment dates.

    ``2025-1-5 10:00`` becomes ``2025-01-05T10:00`` and a bare ``2025-1-5``
    becomes ``2025-01-05T00:00:00Z``.
    """
    if not isinstance(value, str):
        return value
    text = value.strip().replace(' ', 'T', 1)
    if parse_iso(text) is not None:
        return text
    match = _YMD_RE.match(text)
    if match:
        year, month, day, rest = match.groups()
        rebuilt = f"{year}-{int(month):02d}-{int(day):02d}{rest or 'T00:00:00Z'}"
        if parse_iso(rebuilt) is not None:
            return rebuilt
    return text


def parse_appointment(value):
    return parse_iso(normalize_date_string(value))


def weekday_index(value):
    """Day of week with Sunday as 0."""
    return (value.weekday() + 1) % 7


def add_months(value, months=1):
    month = value.month - 1 + months
    year = value.year + month // 12
    month = month % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def start_of_day(value):
    return datetime(value.year, value.month, value.day)


def day_range(value):
    start = start_of_day(value)
    return start, start + timedelta(days=1)


def today_iso():
    return utcnow().date().isoformat()


def calculate_age(date_of_birth, today=None):
    if not date_of_birth:
        return None
    today = today or utcnow().date()
    if isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def isoformat(value):
    return value.isoformat() if value else None
