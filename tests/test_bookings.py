"""Booking flow: availability rules, appointments, packages, validation tokens and reviews."""

from datetime import timedelta

import pytest

from coachhub.extensions import db
from coachhub.models import Booking, CoachProfile, PaymentTransaction
from coachhub.utils.dates import utcnow


def _future(days=10, hour=10):
    day = (utcnow() + timedelta(days=days)).date()
    return f"{day.isoformat()}T{hour:02d}:00:00Z"


def _book(client, headers, coach_id, when=None, **extra):
    return client.post(f"/booking/coach/{coach_id}", headers=headers, json={
        "appointment_date": when or _future(), **extra,
    })


# ─────────────────────────────────────────────────────────────────
# Availability
# ─────────────────────────────────────────────────────────────────


class TestAvailability:
    def test_set_blocked_days_normalizes_and_drops_past_entries(self, client, coach, auth_headers):
        profile = coach.coach_profile
        profile.blocked_days = ["2000-01-01"]
        db.session.commit()

        future = (utcnow() + timedelta(days=30)).date()
        loose = f"{future.year}-{future.month}-{future.day}"
        resp = client.post(f"/booking/coach/{coach.id}/blocked-days", headers=auth_headers(coach), json={
            "blocked_dates": [loose, loose],
        })
        assert resp.status_code == 200
        assert resp.get_json()["blocked_days"] == [future.isoformat()]

    def test_blocked_days_must_be_array(self, client, coach, auth_headers):
        resp = client.post(f"/booking/coach/{coach.id}/blocked-days", headers=auth_headers(coach), json={
            "blocked_dates": "2030-01-01",
        })
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "blocked_dates must be an array"

    def test_blocked_days_reject_bad_format(self, client, coach, auth_headers):
        resp = client.post(f"/booking/coach/{coach.id}/blocked-days", headers=auth_headers(coach), json={
            "blocked_dates": ["01/02/2030"],
        })
        assert resp.status_code == 400
        assert "Invalid date format" in resp.get_json()["message"]

    def test_athlete_cannot_set_blocked_days(self, client, athlete, coach, auth_headers):
        resp = client.post(f"/booking/coach/{coach.id}/blocked-days", headers=auth_headers(athlete), json={
            "blocked_dates": [],
        })
        assert resp.status_code == 404

    def test_blocked_time_slots_are_stored_as_utc(self, client, coach, auth_headers):
        resp = client.post(f"/booking/coach/{coach.id}/blocked-time-slots", headers=auth_headers(coach), json={
            "blockedTimeSlots": ["2030-05-01T12:00:00+02:00"],
        })
        assert resp.status_code == 200
        assert resp.get_json()["blocked_time_slots"] == ["2030-05-01T10:00:00.000Z"]

    def test_weekend_days_and_available_days(self, client, coach, athlete, auth_headers):
        resp = client.post(f"/booking/coach/{coach.id}/weekend-days", headers=auth_headers(coach), json={
            "weekend_days": ["Sat", "sunday"],
        })
        assert resp.get_json()["weekend_days"] == ["sat", "sunday"]

        resp = client.get(f"/booking/coach/{coach.id}/available-days", headers=auth_headers(athlete))
        days = resp.get_json()["data"]
        assert len(days) == 5
        assert "saturday" not in days and "sunday" not in days

    def test_get_lists_for_unknown_coach_are_empty(self, client, athlete, auth_headers):
        resp = client.get("/booking/coach/9999/weekend-days", headers=auth_headers(athlete))
        assert resp.get_json() == {"success": True, "data": []}


# ─────────────────────────────────────────────────────────────────
# Appointments
# ─────────────────────────────────────────────────────────────────


class TestBookAppointment:
    def test_books_pending_session_with_payment_intent(self, client, coach, athlete, auth_headers, stripe_mock):
        resp = _book(client, auth_headers(athlete), coach.id)
        body = resp.get_json()
        assert resp.status_code == 201
        assert body["clientSecret"] == "secret_123"
        assert body["booking"]["status"] == "PENDING"
        assert body["booking"]["session_price"] == 50.0

        tx = db.session.get(PaymentTransaction, body["booking"]["payment_transaction_id"])
        assert tx.type == "booking"
        assert tx.status == "pending"
        kwargs = stripe_mock["create_payment_intent"].call_args.kwargs
        assert kwargs["amount"] == 50.0
        assert kwargs["metadata"]["booking_id"] == body["booking"]["id"]

    def test_loose_date_format_is_accepted(self, client, coach, athlete, auth_headers):
        day = (utcnow() + timedelta(days=12)).date()
        resp = _book(client, auth_headers(athlete), coach.id, when=f"{day.year}-{day.month}-{day.day} 09:30")
        assert resp.status_code == 201
        assert resp.get_json()["booking"]["appointment_date"] == f"{day.isoformat()}T09:30:00"

    def test_invalid_date(self, client, coach, athlete, auth_headers):
        resp = _book(client, auth_headers(athlete), coach.id, when="not a date")
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid date format"

    def test_target_must_be_coach(self, client, make_user, athlete, auth_headers):
        other = make_user("athlete")
        resp = _book(client, auth_headers(athlete), other.id)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "The target user is not a coach"

    def test_duplicate_booking_conflicts(self, client, coach, athlete, auth_headers):
        when = _future()
        assert _book(client, auth_headers(athlete), coach.id, when=when).status_code == 201
        resp = _book(client, auth_headers(athlete), coach.id, when=when)
        assert resp.status_code == 409

    def test_blocked_day_is_refused(self, client, coach, athlete, auth_headers):
        when = _future(days=15)
        profile = coach.coach_profile
        profile.blocked_days = [when[:10]]
        db.session.commit()

        resp = _book(client, auth_headers(athlete), coach.id, when=when)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Selected date/time is blocked by the coach"

    def test_weekend_day_is_refused(self, client, coach, athlete, auth_headers):
        when = _future(days=8)
        profile = coach.coach_profile
        profile.weekend_days = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
        db.session.commit()

        resp = _book(client, auth_headers(athlete), coach.id, when=when)
        assert resp.status_code == 400

    def test_blocked_time_slot_is_refused(self, client, coach, athlete, auth_headers):
        when = _future(days=9, hour=14)
        profile = coach.coach_profile
        profile.blocked_time_slots = [when]
        db.session.commit()

        assert _book(client, auth_headers(athlete), coach.id, when=when).status_code == 400
        assert _book(client, auth_headers(athlete), coach.id, when=_future(days=9, hour=15)).status_code == 201

    def test_stripe_failure_rolls_back(self, client, coach, athlete, auth_headers, stripe_mock):
        stripe_mock["create_payment_intent"].side_effect = RuntimeError("card network down")
        resp = _book(client, auth_headers(athlete), coach.id)
        assert resp.status_code == 500
        assert Booking.query.count() == 0


class TestPackages:
    def _create_package(self, client, coach, auth_headers, **overrides):
        payload = {"title": "10 swims", "number_of_sessions": 10, "total_price": 400, "currency": "eur"}
        payload.update(overrides)
        return client.post("/booking/session-package", headers=auth_headers(coach), json=payload)

    def test_create_and_list_packages(self, client, coach, auth_headers):
        resp = self._create_package(client, coach, auth_headers)
        assert resp.status_code == 201
        assert resp.get_json()["data"]["currency"] == "EUR"

        resp = client.get("/booking/session/packages", headers=auth_headers(coach))
        assert [p["title"] for p in resp.get_json()["data"]] == ["10 swims"]

    def test_no_packages_is_not_found(self, client, coach, auth_headers):
        resp = client.get("/booking/session/packages", headers=auth_headers(coach))
        assert resp.status_code == 404

    def test_package_validation(self, client, coach, auth_headers):
        resp = self._create_package(client, coach, auth_headers, number_of_sessions=0)
        assert resp.status_code == 400

    def test_update_and_delete_package(self, client, coach, auth_headers):
        package_id = self._create_package(client, coach, auth_headers).get_json()["data"]["id"]
        resp = client.patch(f"/booking/session/package/{package_id}", headers=auth_headers(coach), json={
            "total_price": 350,
        })
        assert resp.get_json()["data"]["total_price"] == 350.0

        assert client.delete(f"/booking/session/package/{package_id}", headers=auth_headers(coach)).status_code == 200
        assert client.delete(f"/booking/session/package/{package_id}", headers=auth_headers(coach)).status_code == 404

    def test_book_package_charges_total(self, client, coach, athlete, auth_headers, stripe_mock):
        package_id = self._create_package(client, coach, auth_headers).get_json()["data"]["id"]
        resp = _book(client, auth_headers(athlete), coach.id, sessionPackageId=package_id)
        body = resp.get_json()
        assert resp.status_code == 201
        assert body["message"] == "Session booking created (awaiting payment)"
        assert body["booking"]["total_amount"] == 400.0
        assert body["booking"]["session_price"] == 40.0
        assert body["booking"]["number_of_sessions"] == 10
        assert stripe_mock["create_payment_intent"].call_args.kwargs["amount"] == 400.0

    def test_package_of_another_coach(self, client, make_coach, athlete, auth_headers):
        owner = make_coach()
        other = make_coach()
        package_id = self._create_package(client, owner, auth_headers).get_json()["data"]["id"]
        resp = _book(client, auth_headers(athlete), other.id, sessionPackageId=package_id)
        assert resp.status_code == 400


# ─────────────────────────────────────────────────────────────────
# Listings and lifecycle
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def booking(client, coach, athlete, auth_headers):
    resp = _book(client, auth_headers(athlete), coach.id)
    return db.session.get(Booking, resp.get_json()["booking"]["id"])


class TestListings:
    def test_athlete_and_coach_listings(self, client, booking, coach, athlete, auth_headers):
        resp = client.get(f"/booking/athlete/{athlete.id}", headers=auth_headers(athlete))
        data = resp.get_json()["data"]
        assert len(data) == 1
        assert data[0]["coach"]["user"]["id"] == coach.id

        resp = client.get(f"/booking/coach/{coach.id}", headers=auth_headers(coach))
        assert resp.get_json()["data"][0]["user"]["id"] == athlete.id

    def test_listing_by_date(self, client, booking, athlete, auth_headers):
        day = booking.appointment_date.date().isoformat()
        resp = client.get(f"/booking/athlete/{athlete.id}/date/{day}", headers=auth_headers(athlete))
        assert len(resp.get_json()["data"]) == 1

        resp = client.get(f"/booking/athlete/{athlete.id}/date/2001-01-01", headers=auth_headers(athlete))
        assert resp.status_code == 404

    def test_upcoming_and_next(self, client, booking, coach, athlete, auth_headers):
        upcoming = client.get("/booking/upcoming", headers=auth_headers(athlete)).get_json()["data"]
        assert [b["id"] for b in upcoming] == [booking.id]

        nxt = client.get("/booking/next", headers=auth_headers(coach)).get_json()["data"]
        assert nxt["id"] == booking.id

    def test_next_is_null_without_bookings(self, client, athlete, auth_headers):
        resp = client.get("/booking/next", headers=auth_headers(athlete))
        assert resp.get_json() == {"success": True, "data": None}

    def test_soft_deleted_bookings_are_hidden(self, client, booking, athlete, auth_headers):
        booking.deleted_at = utcnow()
        db.session.commit()
        resp = client.get(f"/booking/athlete/{athlete.id}", headers=auth_headers(athlete))
        assert resp.status_code == 404


class TestBookingLifecycle:
    def test_coach_updates_booking(self, client, booking, coach, auth_headers):
        resp = client.patch(f"/booking/{booking.id}", headers=auth_headers(coach), json={
            "notes": "Bring fins",
            "status": "CONFIRMED",
        })
        assert resp.status_code == 200
        assert resp.get_json()["data"]["notes"] == "Bring fins"

    def test_invalid_status_is_rejected(self, client, booking, coach, auth_headers):
        resp = client.patch(f"/booking/{booking.id}", headers=auth_headers(coach), json={"status": "DONE"})
        assert resp.status_code == 400

    def test_athlete_cannot_update(self, client, booking, athlete, auth_headers):
        resp = client.patch(f"/booking/{booking.id}", headers=auth_headers(athlete), json={"notes": "x"})
        assert resp.status_code == 403

    def test_validation_token_completes_booking(self, client, booking, coach, athlete, auth_headers):
        booking.status = "CONFIRMED"
        booking.validation_token = "123456"
        booking.token_expires_at = utcnow() + timedelta(hours=24)
        db.session.commit()
        booking_id = booking.id

        resp = client.get(f"/booking/{booking_id}/token", headers=auth_headers(athlete))
        assert resp.get_json()["validation_token"] == "123456"

        resp = client.post(f"/booking/{booking_id}/validate", headers=auth_headers(coach), json={"token": "000000"})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid validation token"

        resp = client.post(f"/booking/{booking_id}/validate", headers=auth_headers(coach), json={"token": "123456"})
        assert resp.status_code == 200
        refreshed = db.session.get(Booking, booking_id)
        assert refreshed.status == "COMPLETED"
        assert refreshed.validation_token is None
        assert refreshed.total_completed_session == 1

    def test_expired_validation_token(self, client, booking, coach, auth_headers):
        booking.validation_token = "654321"
        booking.token_expires_at = utcnow() - timedelta(minutes=1)
        db.session.commit()
        resp = client.post(f"/booking/{booking.id}/validate", headers=auth_headers(coach), json={"token": "654321"})
        assert resp.get_json()["message"] == "Validation token has expired"

    def test_completed_listing(self, client, booking, coach, athlete, auth_headers):
        booking.status = "COMPLETED"
        db.session.commit()
        data = client.get("/booking/completed", headers=auth_headers(athlete)).get_json()["data"]
        assert data[0]["sessionPackage"] is None
        data = client.get("/booking/completed", headers=auth_headers(coach)).get_json()["data"]
        assert data[0]["user"]["id"] == athlete.id


# ─────────────────────────────────────────────────────────────────
# Coach discovery
# ─────────────────────────────────────────────────────────────────


class TestCoachDiscovery:
    def test_search_matches_specialty(self, client, make_coach, athlete, auth_headers):
        make_coach(primary_specialty="Swimming", specialties=["swimming"])
        make_coach(primary_specialty="Boxing", specialties=["boxing"])
        resp = client.get("/booking/search/coaches?search=box", headers=auth_headers(athlete))
        data = resp.get_json()["data"]
        assert [c["coach_profile"]["primary_specialty"] for c in data] == ["Boxing"]

    def test_verified_coaches_come_first(self, client, make_coach, athlete, auth_headers):
        make_coach(session_price=10)
        verified = make_coach(session_price=90, is_verified=True)
        data = client.get("/booking/search/coaches", headers=auth_headers(athlete)).get_json()["data"]
        assert data[0]["id"] == verified.id

    def test_suggested_uses_athlete_sport(self, client, make_coach, make_user, auth_headers):
        make_coach(primary_specialty="Boxing", specialties=["boxing"])
        runner = make_user("athlete", sports="boxing")
        data = client.get("/booking/suggested/coaches", headers=auth_headers(runner)).get_json()["data"]
        assert len(data) == 1

    def test_coach_details(self, client, coach, athlete, auth_headers):
        resp = client.get(f"/booking/coach/{coach.id}/details", headers=auth_headers(athlete))
        data = resp.get_json()["data"]
        assert data["user"]["id"] == coach.id
        assert data["session_packages"] == []

    def test_coach_details_for_athlete_id(self, client, athlete, auth_headers):
        resp = client.get(f"/booking/coach/{athlete.id}/details", headers=auth_headers(athlete))
        assert resp.status_code == 404


# ─────────────────────────────────────────────────────────────────
# Reviews
# ─────────────────────────────────────────────────────────────────


class TestReviews:
    def test_review_requires_completed_booking(self, client, booking, athlete, auth_headers):
        resp = client.post(f"/reviews/booking/{booking.id}", headers=auth_headers(athlete), json={
            "review": "Great", "rating": 5,
        })
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "You can only review a completed booking"

    def test_review_updates_coach_rating(self, client, booking, coach, athlete, auth_headers):
        booking.status = "COMPLETED"
        db.session.commit()
        profile_id = booking.coach_profile_id

        resp = client.post(f"/reviews/booking/{booking.id}", headers=auth_headers(athlete), json={
            "review": "Great technique drills", "rating": 4,
        })
        assert resp.status_code == 201
        profile = db.session.get(CoachProfile, profile_id)
        assert profile.avg_rating == 4.0
        assert profile.rating_count == 1

        again = client.post(f"/reviews/booking/{booking.id}", headers=auth_headers(athlete), json={"review": "x"})
        assert again.get_json()["message"] == "Review already submitted for this booking"

        listing = client.get(f"/reviews/coach/{profile_id}", headers=auth_headers(coach)).get_json()
        assert listing["coach"]["rating_count"] == 1
        assert listing["reviews"][0]["review"] == "Great technique drills"

    @pytest.mark.parametrize("rating", [0, 6, "five"])
    def test_rating_out_of_range(self, client, booking, athlete, auth_headers, rating):
        booking.status = "COMPLETED"
        db.session.commit()
        resp = client.post(f"/reviews/booking/{booking.id}", headers=auth_headers(athlete), json={
            "review": "ok", "rating": rating,
        })
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Rating must be a number between 1 and 5"
