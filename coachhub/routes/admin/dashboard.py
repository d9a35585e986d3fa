from calendar import month_abbr
from datetime import datetime

from flask import jsonify, request
from sqlalchemy import func

from coachhub.extensions import db
from coachhub.models import Booking, Notification, PaymentTransaction, User
from coachhub.utils.dates import add_months, utcnow
from coachhub.utils.decorators import admin_required
from coachhub.utils.formatting import parse_int, round2
from . import admin_bp

TREND_RANGES = (3, 6, 12)


def _revenue_between(start, end):
    total = db.session.query(func.coalesce(func.sum(PaymentTransaction.paid_amount), 0)).filter(
        PaymentTransaction.deleted_at.is_(None),
        PaymentTransaction.status == 'succeeded',
        PaymentTransaction.created_at >= start,
        PaymentTransaction.created_at < end,
    ).scalar()
    return round2(total)


@admin_bp.route("/users/overview", methods=["GET"])
@admin_required
def dashboard_overview():
    now = utcnow()
    month_start = datetime(now.year, now.month, 1)

    total_users = User.query.filter_by(role='athlete').count()
    active_users = User.query.filter_by(role='athlete', status='active').count()
    total_sessions = Booking.query.filter(
        Booking.deleted_at.is_(None),
        Booking.status != 'CANCELLED',
    ).count()

    return jsonify({
        "success": True,
        "totalUsers": total_users,
        "activeUsers": active_users,
        "totalSessions": total_sessions,
        "monthlyRevenue": _revenue_between(month_start, add_months(month_start, 1)),
    })


@admin_bp.route("/users/revenue-trend", methods=["GET"])
@admin_required
def revenue_trend():
    months = parse_int(request.args.get("months"), 6)
    if months not in TREND_RANGES:
        months = 6
    year = parse_int(request.args.get("year"), utcnow().year, minimum=1970, maximum=9998)

    start = datetime(year, 1, 1)
    end = add_months(start, months)

    payments = PaymentTransaction.query.filter(
        PaymentTransaction.deleted_at.is_(None),
        PaymentTransaction.status == 'succeeded',
        PaymentTransaction.created_at >= start,
        PaymentTransaction.created_at < end,
    ).all()

    buckets = {}
    for p in payments:
        buckets[p.created_at.month] = buckets.get(p.created_at.month, 0.0) + float(p.paid_amount or 0)

    trend = [
        {"month": month_abbr[m], "revenue": round2(buckets.get(m, 0))}
        for m in range(1, months + 1)
    ]
    return jsonify({"success": True, "data": trend})


@admin_bp.route("/users/user-distribution", methods=["GET"])
@admin_required
def user_distribution():
    coaches = User.query.filter_by(role='coach', status='active').count()
    athletes = User.query.filter_by(role='athlete', status='active').count()
    return jsonify({"success": True, "total": coaches + athletes, "coaches": coaches, "athletes": athletes})


@admin_bp.route("/users/recent-activity", methods=["GET"])
@admin_required
def recent_activity():
    limit = parse_int(request.args.get("limit"), 10, minimum=1, maximum=50)
    items = Notification.query.filter(Notification.deleted_at.is_(None)) \
        .order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    data = []
    for n in items:
        event = n.notification_event
        data.append({
            "id": n.id,
            "message": event.text if event else "",
            "type": event.type if event else None,
            "created_at": n.to_dict()["created_at"],
            "sender": {"id": n.sender.id, "name": n.sender.name, "avatar": n.sender.avatar} if n.sender else None,
            "receiver": {"id": n.receiver.id, "name": n.receiver.name} if n.receiver else None,
        })
    return jsonify({"success": True, "data": data})
