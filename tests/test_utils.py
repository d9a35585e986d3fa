"""Date, formatting and availability helpers plus the daily maintenance job."""

from datetime import date, datetime, timedelta

import pytest

from coachhub.errors import ApiError
from coachhub.extensions import db
from coachhub.models import CoachProfile, PaymentTransaction
from coachhub.tasks import run_daily_maintenance
from coachhub.utils.availability import (
    compute_available_days,
    is_appointment_blocked,
    normalize_blocked_days,
    normalize_time_slots,
    normalize_weekend_days,
    remove_expired_blocked_days,
)
from coachhub.utils.dates import (
    add_months,
    calculate_age,
    normalize_date_string,
    parse_iso,
    utcnow,
    weekday_index,
)
from coachhub.utils.formatting import format_percent, parse_bool, parse_int, percent_change


# ─────────────────────────────────────────────────────────────────
# Dates
# ─────────────────────────────────────────────────────────────────


class TestDates:
    def test_parse_iso_converts_to_naive_utc(self):
        assert parse_iso("2030-01-02T08:00:00+01:00") == datetime(2030, 1, 2, 7)
        assert parse_iso("2030-01-02T08:00:00Z") == datetime(2030, 1, 2, 8)

    @pytest.mark.parametrize("value", [None, "", "   ", "next tuesday"])
    def test_parse_iso_rejects(self, value):
        assert parse_iso(value) is None

    def test_normalize_loose_dates(self):
        assert normalize_date_string("2025-1-5") == "2025-01-05T00:00:00Z"
        assert normalize_date_string("2025-1-5 10:30") == "2025-01-05T10:30"
        assert normalize_date_string("2025-01-05T10:30:00") == "2025-01-05T10:30:00"

    def test_add_months_clamps_day(self):
        assert add_months(datetime(2030, 1, 31)) == datetime(2030, 2, 28)
        assert add_months(datetime(2030, 12, 15)) == datetime(2031, 1, 15)
        assert add_months(datetime(2030, 1, 1), 6) == datetime(2030, 7, 1)

    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index(datetime(2030, 1, 6)) == 0
        assert weekday_index(datetime(2030, 1, 12)) == 6

    def test_calculate_age(self):
        assert calculate_age(date(2000, 6, 15), today=date(2030, 6, 14)) == 29
        assert calculate_age(date(2000, 6, 15), today=date(2030, 6, 15)) == 30
        assert calculate_age(None) is None


# ─────────────────────────────────────────────────────────────────
# Formatting
# ─────────────────────────────────────────────────────────────────


class TestFormatting:
    @pytest.mark.parametrize("value,expected", [
        (12.5, "12.5%"),
        (10.0, "10%"),
        (-3.333, "-3.33%"),
        (-0.001, "0%"),
        (None, "0%"),
    ])
    def test_format_percent(self, value, expected):
        assert format_percent(value) == expected

    def test_percent_change(self):
        assert percent_change(150, 100) == 50.0
        assert percent_change(5, 0) == 100.0
        assert percent_change(0, 0) == 0.0

    def test_parse_int(self):
        assert parse_int("abc", 5) == 5
        assert parse_int("200", 10, maximum=50) == 50
        assert parse_int("-1", 1, minimum=1) == 1

    def test_parse_bool(self):
        assert parse_bool("Yes")
        assert parse_bool(True)
        assert not parse_bool("0")
        assert not parse_bool(None)


# ─────────────────────────────────────────────────────────────────
# Availability
# ─────────────────────────────────────────────────────────────────


class TestAvailability:
    def test_blocked_days_merge_with_unexpired(self):
        result = normalize_blocked_days(
            ["2030-1-5", " ", "2030-01-05"],
            existing=["2020-01-01", "2031-01-01"],
            today="2025-01-01",
        )
        assert result == ["2031-01-01", "2030-01-05"]

    def test_blocked_days_validation(self):
        with pytest.raises(ApiError, match="Invalid date format: 05/01/2030"):
            normalize_blocked_days(["05/01/2030"])
        with pytest.raises(ApiError, match="blocked_dates must be an array"):
            normalize_blocked_days("2030-01-05")

    def test_time_slots_are_normalized(self):
        assert normalize_time_slots(["2030-01-10T10:00:00Z"]) == ["2030-01-10T10:00:00.000Z"]
        with pytest.raises(ApiError):
            normalize_time_slots(["ten o'clock"])

    def test_weekend_days(self):
        assert normalize_weekend_days(["Saturday", "sun", "2030-1-5", "saturday"]) == [
            "saturday", "sun", "2030-01-05",
        ]
        with pytest.raises(ApiError, match="Invalid weekend day format"):
            normalize_weekend_days(["someday"])

    def test_remove_expired_blocked_days(self):
        profile = CoachProfile(blocked_days=["2020-01-01", "2031-01-01"])
        assert remove_expired_blocked_days(profile, today="2025-01-01")
        assert profile.blocked_days == ["2031-01-01"]
        assert not remove_expired_blocked_days(profile, today="2025-01-01")

    def test_appointment_blocking(self):
        wednesday = datetime(2030, 1, 9, 10)
        assert is_appointment_blocked(wednesday, ["2030-01-09"])
        assert is_appointment_blocked(wednesday, ["wed"])
        assert is_appointment_blocked(wednesday, ["3"])
        assert is_appointment_blocked(wednesday, [], ["2030-01-09T10:00:00.000Z"])
        assert not is_appointment_blocked(wednesday, ["2030-01-10"], ["2030-01-09T11:00:00.000Z"])
        assert not is_appointment_blocked(None, ["2030-01-09"])

    def test_available_days(self):
        profile = CoachProfile(blocked_days=["2030-01-09", "2030-02-01"], weekend_days=["sat", "sunday"])
        assert compute_available_days(profile, now=datetime(2030, 1, 7, 9)) == [
            "monday", "tuesday", "thursday", "friday",
        ]


# ─────────────────────────────────────────────────────────────────
# Scheduled jobs
# ─────────────────────────────────────────────────────────────────


def test_daily_maintenance(app, make_coach, athlete):
    now = utcnow()
    lapsed = make_coach(subscription_active=True, subscription_expires_at=now - timedelta(days=1))
    current = make_coach(subscription_active=True, subscription_expires_at=now + timedelta(days=5))
    db.session.add_all([
        PaymentTransaction(user_id=athlete.id, type="booking", status="pending", amount=10,
                           created_at=now - timedelta(days=8)),
        PaymentTransaction(user_id=athlete.id, type="booking", status="pending", amount=10),
    ])
    db.session.commit()

    assert run_daily_maintenance(now) == (1, 1)
    assert not lapsed.coach_profile.subscription_active
    assert current.coach_profile.subscription_active
    statuses = sorted(tx.status for tx in PaymentTransaction.query.all())
    assert statuses == ["expired", "pending"]
