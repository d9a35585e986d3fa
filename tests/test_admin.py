"""Admin dashboard, booking list, content approval, users, plans and marketplace."""

import base64
import io
from datetime import datetime, timedelta

import pytest

from coachhub.extensions import db
from coachhub.models import (
    Booking,
    Conversation,
    MarketplaceProduct,
    PaymentTransaction,
    SubscriptionPlan,
    User,
)
from coachhub.utils.dates import utcnow


def _payment(user, paid_amount, created_at=None):
    db.session.add(PaymentTransaction(
        user_id=user.id,
        type="booking",
        status="succeeded",
        amount=paid_amount,
        paid_amount=paid_amount,
        created_at=created_at or utcnow(),
    ))
    db.session.commit()


def _booking(coach, athlete, title="Swim clinic", status="PENDING", days=3):
    booking = Booking(
        user_id=athlete.id,
        coach_id=coach.id,
        coach_profile_id=coach.coach_profile.id,
        title=title,
        appointment_date=utcnow() + timedelta(days=days),
        duration_minutes=60,
        status=status,
    )
    db.session.add(booking)
    db.session.commit()
    return booking


class TestAccess:
    def test_non_admins_are_refused(self, client, coach, auth_headers):
        resp = client.get("/admin/users/overview", headers=auth_headers(coach))
        assert resp.status_code == 403
        assert resp.get_json()["message"] == "Admin access required"

    def test_token_is_required(self, client):
        assert client.get("/admin/user-list").status_code == 401


# ─────────────────────────────────────────────────────────────────
# Dashboard
# ─────────────────────────────────────────────────────────────────


class TestDashboard:
    def test_overview(self, client, admin, coach, athlete, auth_headers):
        _booking(coach, athlete)
        _booking(coach, athlete, status="CANCELLED")
        _payment(athlete, 30)

        body = client.get("/admin/users/overview", headers=auth_headers(admin)).get_json()
        assert body["totalUsers"] == 1
        assert body["activeUsers"] == 1
        assert body["totalSessions"] == 1
        assert body["monthlyRevenue"] == 30

    def test_revenue_trend_by_month(self, client, admin, athlete, auth_headers):
        _payment(athlete, 20, created_at=datetime(2030, 2, 10))
        _payment(athlete, 5, created_at=datetime(2030, 2, 11))
        _payment(athlete, 99, created_at=datetime(2030, 7, 1))

        data = client.get("/admin/users/revenue-trend?year=2030&months=3", headers=auth_headers(admin)).get_json()["data"]
        assert data == [
            {"month": "Jan", "revenue": 0},
            {"month": "Feb", "revenue": 25},
            {"month": "Mar", "revenue": 0},
        ]

    def test_unsupported_range_falls_back_to_six_months(self, client, admin, auth_headers):
        data = client.get("/admin/users/revenue-trend?year=2030&months=5", headers=auth_headers(admin)).get_json()["data"]
        assert len(data) == 6

    def test_user_distribution(self, client, admin, coach, athlete, make_user, auth_headers):
        make_user("athlete", status="blocked")
        body = client.get("/admin/users/user-distribution", headers=auth_headers(admin)).get_json()
        assert body == {"success": True, "total": 2, "coaches": 1, "athletes": 1}


# ─────────────────────────────────────────────────────────────────
# Booking list
# ─────────────────────────────────────────────────────────────────


class TestBookingList:
    def test_create_fills_coach_profile(self, client, admin, coach, athlete, auth_headers):
        resp = client.post("/admin/booking-list", headers=auth_headers(admin), json={
            "user_id": athlete.id,
            "coach_id": coach.id,
            "title": "Stroke analysis",
            "appointment_date": "2030-1-5 10:00",
        })
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["coach_specialization"] == "Swimming"
        assert data["date_time"] == "Jan 5, 2030, 10:00 AM"
        assert data["status"] == "PENDING"

    def test_create_requires_a_coach(self, client, admin, athlete, auth_headers):
        resp = client.post("/admin/booking-list", headers=auth_headers(admin), json={
            "user_id": athlete.id, "coach_id": athlete.id,
        })
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "Coach not found"

    def test_search_and_status_filters(self, client, admin, coach, athlete, auth_headers):
        _booking(coach, athlete, title="Swim clinic")
        _booking(coach, athlete, title="Bike fit", status="CONFIRMED")

        body = client.get("/admin/booking-list?search=bike", headers=auth_headers(admin)).get_json()
        assert [b["session_type"] for b in body["data"]] == ["Bike fit"]

        body = client.get("/admin/booking-list?status=pending", headers=auth_headers(admin)).get_json()
        assert [b["session_type"] for b in body["data"]] == ["Swim clinic"]
        assert body["pagination"]["total"] == 1

    def test_pagination(self, client, admin, coach, athlete, auth_headers):
        for i in range(3):
            _booking(coach, athlete, title=f"Session {i}")
        body = client.get("/admin/booking-list?page=2&limit=2", headers=auth_headers(admin)).get_json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {
            "page": 2,
            "limit": 2,
            "total": 3,
            "total_pages": 2,
            "has_next_page": False,
            "has_previous_page": True,
        }

    def test_export_csv(self, client, admin, coach, athlete, auth_headers):
        _booking(coach, athlete, title="Swim clinic")
        resp = client.get("/admin/booking-list/export", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.headers["Content-Type"].startswith("text/csv")
        assert "attachment; filename=bookings_" in resp.headers["Content-Disposition"]

        lines = resp.get_data(as_text=True).splitlines()
        assert lines[0].startswith("Athlete Name,Session Type,Coach Name")
        assert "Swim clinic" in lines[1]

    def test_export_without_bookings(self, client, admin, auth_headers):
        resp = client.get("/admin/booking-list/export", headers=auth_headers(admin))
        assert resp.status_code == 404

    def test_update_and_soft_delete(self, client, admin, coach, athlete, auth_headers):
        booking_id = _booking(coach, athlete).id
        resp = client.patch(f"/admin/booking-list/{booking_id}", headers=auth_headers(admin), json={
            "location": "Pool B",
        })
        assert resp.get_json()["data"]["location"] == "Pool B"

        assert client.delete(f"/admin/booking-list/{booking_id}", headers=auth_headers(admin)).status_code == 200
        assert db.session.get(Booking, booking_id).deleted_at is not None
        assert client.get(f"/admin/booking-list/{booking_id}", headers=auth_headers(admin)).status_code == 404


class TestBulkNotifications:
    def test_send_to_athletes_and_track_delivery(self, client, admin, coach, athlete, auth_headers):
        resp = client.post("/admin/booking-list/send-bulk-notification", headers=auth_headers(admin), json={
            "notification_title": "Pool closed",
            "message_content": "No sessions on Friday",
            "recipient_type": "athletes",
        })
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["total_recipients"] == 1

        status = client.get(
            f"/admin/booking-list/notification-status/{data['notification_event_id']}",
            headers=auth_headers(admin),
        ).get_json()["data"]
        assert status["notification_event"]["title"] == "Pool closed"
        assert status["notification_event"]["message"] == "No sessions on Friday"
        assert status["delivery_status"]["total_unread"] == 1
        assert status["recipients"][0]["user_id"] == athlete.id

        inbox = client.get(
            f"/admin/booking-list/user-notifications/{athlete.id}", headers=auth_headers(admin)
        ).get_json()["data"]
        assert inbox["unread_count"] == 1

        activity = client.get("/admin/users/recent-activity", headers=auth_headers(admin)).get_json()["data"]
        assert activity[0]["message"] == "Pool closed: No sessions on Friday"
        assert activity[0]["sender"]["id"] == admin.id

    def test_specific_recipients_must_exist(self, client, admin, athlete, auth_headers):
        resp = client.post("/admin/booking-list/send-bulk-notification", headers=auth_headers(admin), json={
            "notification_title": "Hi",
            "message_content": "Hello",
            "recipient_type": "specific",
            "recipient_ids": [athlete.id, 999],
        })
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Some recipient IDs are invalid or deleted"

    def test_specific_recipients_are_required(self, client, admin, auth_headers):
        resp = client.post("/admin/booking-list/send-bulk-notification", headers=auth_headers(admin), json={
            "notification_title": "Hi", "message_content": "Hello", "recipient_type": "specific",
        })
        assert resp.status_code == 400
        assert "Recipient IDs are required" in resp.get_json()["message"]


# ─────────────────────────────────────────────────────────────────
# Content
# ─────────────────────────────────────────────────────────────────


class TestContent:
    def test_new_coach_profile_awaits_approval(self, client, admin, coach, auth_headers):
        data = client.get("/admin/content/content-approval", headers=auth_headers(admin)).get_json()["data"]
        assert [item["user_id"] for item in data] == [coach.id]
        assert data[0]["update_type"] == "New Specialization"
        assert data[0]["description"] == "triathlon specialization added"

    def test_approve_and_reject(self, client, admin, coach, auth_headers):
        profile_id = coach.coach_profile.id
        resp = client.post("/admin/content/content-approval/approve", headers=auth_headers(admin), json={"id": profile_id})
        assert resp.get_json()["message"] == "Content approved successfully"
        assert db.session.get(User, coach.id).approved_at is not None

        resp = client.post("/admin/content/content-approval/reject", headers=auth_headers(admin), json={
            "id": coach.id, "type": "user", "reason": "Missing certificate",
        })
        assert resp.get_json()["message"] == "Content rejected: Missing certificate"
        assert db.session.get(User, coach.id).approved_at is None

    def test_invalid_type(self, client, admin, coach, auth_headers):
        resp = client.post("/admin/content/content-approval/approve", headers=auth_headers(admin), json={
            "id": coach.id, "type": "video",
        })
        assert resp.status_code == 400

    def test_coach_listing_and_session_validation(self, client, admin, coach, athlete, auth_headers):
        _booking(coach, athlete)
        coaches = client.get("/admin/content/coaches", headers=auth_headers(admin)).get_json()
        assert coaches["total"] == 1
        assert coaches["data"][0]["session_count"] == 1

        sessions = client.get("/admin/content/session-validation", headers=auth_headers(admin)).get_json()["data"]
        assert sessions[0]["athlete"]["role"] == "Athlete"
        assert sessions[0]["is_validated"] is False


# ─────────────────────────────────────────────────────────────────
# Users
# ─────────────────────────────────────────────────────────────────


class TestUserList:
    def test_role_filter(self, client, admin, coach, athlete, auth_headers):
        body = client.get("/admin/user-list?role=coach", headers=auth_headers(admin)).get_json()
        assert [u["id"] for u in body["data"]] == [coach.id]
        assert body["data"][0]["role"] == "Coach"

    def test_details_by_role(self, client, admin, coach, make_user, auth_headers):
        athlete = make_user("athlete", goals="Run 10k, Swim 2k")
        coach_data = client.get(f"/admin/user-list/{coach.id}", headers=auth_headers(admin)).get_json()["data"]
        assert coach_data["primary_specialty"] == "Swimming"

        athlete_data = client.get(f"/admin/user-list/{athlete.id}", headers=auth_headers(admin)).get_json()["data"]
        assert athlete_data["goals"] == ["Run 10k", "Swim 2k"]

    def test_block_user(self, client, admin, athlete, auth_headers):
        resp = client.patch(f"/admin/user-list/{athlete.id}", headers=auth_headers(admin), json={"status": "blocked"})
        assert resp.get_json()["data"]["status"] == "Blocked"

        body = client.get("/admin/user-list?status=blocked", headers=auth_headers(admin)).get_json()
        assert [u["id"] for u in body["data"]] == [athlete.id]

    def test_email_must_be_unique(self, client, admin, coach, athlete, auth_headers):
        resp = client.patch(f"/admin/user-list/{athlete.id}", headers=auth_headers(admin), json={"email": coach.email})
        assert resp.status_code == 409

    def test_delete_removes_conversations(self, client, admin, coach, athlete, auth_headers):
        athlete_id = athlete.id
        db.session.add(Conversation(creator_id=athlete_id, participant_id=coach.id))
        db.session.commit()

        resp = client.delete(f"/admin/user-list/{athlete_id}", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert db.session.get(User, athlete_id) is None
        assert Conversation.query.count() == 0

    def test_unknown_user(self, client, admin, auth_headers):
        assert client.get("/admin/user-list/999", headers=auth_headers(admin)).status_code == 404


# ─────────────────────────────────────────────────────────────────
# Subscription plans
# ─────────────────────────────────────────────────────────────────


class TestSubscriptionPlans:
    def test_create_plan(self, client, admin, auth_headers, stripe_mock):
        resp = client.post("/admin/subscription-plans", headers=auth_headers(admin), json={
            "name": "Premium", "price": 19.99, "currency": "usd", "features": ["Premium videos"],
        })
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["currency"] == "USD"
        assert data["stripe_price_id"] == "price_1"
        assert stripe_mock["create_product_price"].call_args.kwargs["product_id"] is None

    def test_update_reuses_product(self, client, admin, auth_headers, stripe_mock):
        plan = SubscriptionPlan(name="Basic", price=9, stripe_product_id="prod_old", stripe_price_id="price_old")
        db.session.add(plan)
        db.session.commit()

        resp = client.post("/admin/subscription-plans", headers=auth_headers(admin), json={
            "plan_id": plan.id, "name": "Basic", "price": 12,
        })
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Subscription plan updated"
        assert stripe_mock["create_product_price"].call_args.kwargs["product_id"] == "prod_old"
        assert db.session.get(SubscriptionPlan, plan.id).stripe_price_id == "price_1"

    def test_stripe_failure(self, client, admin, auth_headers, stripe_mock):
        stripe_mock["create_product_price"].side_effect = RuntimeError("stripe down")
        resp = client.post("/admin/subscription-plans", headers=auth_headers(admin), json={"name": "X", "price": 1})
        assert resp.status_code == 502
        assert SubscriptionPlan.query.count() == 0

    def test_list_is_sorted(self, client, admin, auth_headers):
        db.session.add_all([
            SubscriptionPlan(name="Pro", price=30, sort_order=2),
            SubscriptionPlan(name="Starter", price=10, sort_order=1),
        ])
        db.session.commit()
        data = client.get("/admin/subscription-plans", headers=auth_headers(admin)).get_json()["data"]
        assert [p["name"] for p in data] == ["Starter", "Pro"]


# ─────────────────────────────────────────────────────────────────
# Marketplace
# ─────────────────────────────────────────────────────────────────


class TestMarketplace:
    @pytest.fixture
    def product(self, app):
        product = MarketplaceProduct(name="Kettlebell", price=25, stock_quantity=3)
        db.session.add(product)
        db.session.commit()
        return product

    def test_create_with_image(self, client, admin, auth_headers):
        resp = client.post(
            "/admin/marketplace",
            headers=auth_headers(admin),
            data={
                "productName": "Fins",
                "price": "35.5",
                "image": (io.BytesIO(b"png-bytes"), "fins.png", "image/png"),
            },
            content_type="multipart/form-data",
        )
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["productName"] == "Fins"
        assert data["price"] == 35.5
        assert data["stockQuantity"] == 0
        assert data["isActive"] is True
        assert data["image"]["mimeType"] == "image/png"
        assert base64.b64decode(data["image"]["base64"]) == b"png-bytes"

    def test_name_is_required(self, client, admin, auth_headers):
        resp = client.post("/admin/marketplace", headers=auth_headers(admin), json={"price": 3})
        assert resp.status_code == 400

    def test_partial_update(self, client, admin, product, auth_headers):
        resp = client.patch(f"/admin/marketplace/{product.id}", headers=auth_headers(admin), json={"price": 20})
        data = resp.get_json()["data"]
        assert data["price"] == 20
        assert data["productName"] == "Kettlebell"

    def test_delete_hides_product(self, client, admin, product, auth_headers):
        product_id = product.id
        assert client.delete(f"/admin/marketplace/{product_id}", headers=auth_headers(admin)).status_code == 200
        assert client.get("/admin/marketplace", headers=auth_headers(admin)).get_json()["total"] == 0
        resp = client.get(f"/admin/marketplace/{product_id}", headers=auth_headers(admin))
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "Product not found"
