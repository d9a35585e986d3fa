"""Coach availability: blocked days, blocked time slots and weekend days."""
import re
from datetime import timedelta

from coachhub.errors import ApiError
from coachhub.utils.dates import WEEKDAY_NAMES, parse_iso, today_iso, utcnow, weekday_index

_BLOCKED_DAY_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")

SHORT_NAMES = {name[:3]: name for name in WEEKDAY_NAMES}


def _clean_entries(entries, field):
    if not isinstance(entries, list):
        raise ApiError(f"{field} must be an array")
    for entry in entries:
        text = str(entry).strip()
        if text:
            yield text


def _dedupe(items):
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def iso_z(value):
    return value.isoformat(timespec='milliseconds') + 'Z'


def normalize_blocked_days(entries, existing=None, today=None):
    """Validate ``YYYY-M-D`` entries and merge them with still-valid existing days."""
    today = today or today_iso()
    sanitized = []
    for text in _clean_entries(entries, 'blocked_dates'):
        match = _BLOCKED_DAY_RE.match(text)
        if not match:
            raise ApiError(f"Invalid date format: {text}")
        year, month, day = match.groups()
        sanitized.append(f"{int(year):04d}-{int(month):02d}-{int(day):02d}")

    valid_existing = [d for d in (existing or []) if d >= today]
    return _dedupe(valid_existing + sanitized)


def normalize_time_slots(entries):
    sanitized = []
    for text in _clean_entries(entries, 'blocked_time_slots'):
        parsed = parse_iso(text)
        if parsed is None:
            raise ApiError(f"Invalid time slot format: {text}")
        sanitized.append(iso_z(parsed))
    return sanitized


def normalize_weekend_days(entries):
    sanitized = []
    for text in _clean_entries(entries, 'weekend_days'):
        lowered = text.lower()
        if lowered in WEEKDAY_NAMES or lowered in SHORT_NAMES:
            sanitized.append(lowered)
            continue
        match = _BLOCKED_DAY_RE.match(text)
        parsed = parse_iso(f"{int(match.group(1)):04d}-{int(match.group(2)):02d}-{int(match.group(3)):02d}") if match else parse_iso(text)
        if parsed is not None:
            sanitized.append(parsed.date().isoformat())
            continue
        raise ApiError(f"Invalid weekend day format: {text}")
    return _dedupe(sanitized)


def remove_expired_blocked_days(profile, today=None):
    """Drop blocked days before today. Returns True when the profile changed."""
    today = today or today_iso()
    current = profile.blocked_days or []
    valid = [d for d in current if d >= today]
    if len(valid) != len(current):
        profile.blocked_days = valid
        return True
    return False


def is_appointment_blocked(appointment, blocked_days=None, blocked_time_slots=None):
    """True when the appointment falls on a blocked date or weekday, or exactly on a blocked slot."""
    if appointment is None:
        return False
    index = weekday_index(appointment)
    name = WEEKDAY_NAMES[index]
    blocked = {str(d).strip().lower() for d in (blocked_days or [])}
    if blocked & {appointment.date().isoformat(), str(index), name, name[:3]}:
        return True
    for slot in blocked_time_slots or []:
        if parse_iso(slot) == appointment:
            return True
    return False


def profile_blocks(profile, appointment):
    days = list(profile.blocked_days or []) + list(profile.weekend_days or [])
    return is_appointment_blocked(appointment, days, profile.blocked_time_slots or [])


def compute_available_days(profile, now=None):
    """Weekday names of the next 7 days that are neither blocked nor weekend days."""
    now = now or utcnow()
    today = now.date()
    horizon = today + timedelta(days=7)

    excluded = set()
    for entry in profile.blocked_days or []:
        parsed = parse_iso(entry)
        if parsed and today <= parsed.date() <= horizon:
            excluded.add(WEEKDAY_NAMES[weekday_index(parsed)])
    for entry in profile.weekend_days or []:
        lowered = str(entry).lower()
        excluded.add(SHORT_NAMES.get(lowered, lowered))

    available = []
    for offset in range(7):
        name = WEEKDAY_NAMES[weekday_index(today + timedelta(days=offset))]
        if name not in excluded:
            available.append(name)
    return available
