"""Earnings and performance dashboards for the signed-in coach."""
from collections import Counter, defaultdict
from datetime import timedelta

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import current_user

from coachhub.errors import NotFoundError
from coachhub.extensions import db
from coachhub.models import Booking, CoachReview, User
from coachhub.utils.dates import start_of_day, utcnow
from coachhub.utils.decorators import coach_required
from coachhub.utils.formatting import format_percent, parse_int, percent_change, round2

coach_home_bp = Blueprint("coach_home", __name__)


def _trend(current, previous):
    return round2(percent_change(current, previous))


def _windows(now):
    start30 = start_of_day(now - timedelta(days=30))
    prev_start = start_of_day(now - timedelta(days=60))
    return start30, prev_start


def _completed(coach_id):
    return Booking.query.filter_by(coach_id=coach_id, status='COMPLETED', deleted_at=None)


def _ratings_by_booking(booking_ids):
    if not booking_ids:
        return {}
    reviews = CoachReview.query.filter(
        CoachReview.booking_id.in_(booking_ids),
        CoachReview.rating.isnot(None),
        CoachReview.deleted_at.is_(None),
    ).all()
    return {r.booking_id: r.rating for r in reviews}


def _mean(values):
    return round2(sum(values) / len(values)) if values else None


@coach_home_bp.route("/overview", methods=["GET"])
@coach_required
def overview():
    profile = current_user.coach_profile
    if not profile:
        raise NotFoundError("Coach profile not found")

    now = utcnow()
    start30, prev_start = _windows(now)
    completed = _completed(current_user.id).all()
    ratings = _ratings_by_booking([b.id for b in completed])

    total_revenue = last30 = prev30 = 0.0
    last30_sessions = prev30_sessions = 0
    by_athlete = defaultdict(list)
    for b in completed:
        price = b.revenue
        total_revenue += price
        if b.appointment_date and start30 <= b.appointment_date <= now:
            last30 += price
            last30_sessions += 1
        elif b.appointment_date and prev_start <= b.appointment_date < start30:
            prev30 += price
            prev30_sessions += 1
        by_athlete[b.user_id].append(b)

    recurring_cutoff = now - timedelta(days=90)
    recurring_athletes = {
        athlete_id for athlete_id, bookings in by_athlete.items()
        if sum(1 for b in bookings if b.appointment_date and b.appointment_date >= recurring_cutoff) > 1
    }
    recurring_revenue = sum(b.revenue for b in completed if b.user_id in recurring_athletes)

    repeat_athletes = {a for a, bookings in by_athlete.items() if len(bookings) > 1}
    last30_recurring = sum(
        b.revenue for b in completed
        if b.user_id in repeat_athletes and b.appointment_date and start30 <= b.appointment_date <= now
    )
    prev30_recurring = sum(
        b.revenue for b in completed
        if b.user_id in repeat_athletes and b.appointment_date and prev_start <= b.appointment_date < start30
    )

    total_sessions = len(completed)
    avg_last30 = last30 / last30_sessions if last30_sessions else 0
    avg_prev30 = prev30 / prev30_sessions if prev30_sessions else 0
    revenue_trend = _trend(last30, prev30)
    fee = float(current_app.config.get('PLATFORM_FEE_PERCENT', 0.25))

    average_rating = _mean(list(ratings.values()))
    if average_rating is None and profile.avg_rating is not None:
        average_rating = float(profile.avg_rating)

    return jsonify({
        "success": True,
        "data": {
            "totalRevenue": round2(total_revenue),
            "totalRevenueTrend": format_percent(revenue_trend),
            "netProfit": round2(total_revenue * (1 - fee)),
            "netProfitTrend": format_percent(revenue_trend),
            "recurringRevenue": round2(recurring_revenue),
            "recurringRevenueTrend": format_percent(_trend(last30_recurring, prev30_recurring)),
            "avgRevenue": round2(total_revenue / total_sessions) if total_sessions else 0,
            "avgRevenueTrend": format_percent(_trend(avg_last30, avg_prev30)),
            "totalSessions": total_sessions,
            "averageRating": average_rating,
        },
    })


@coach_home_bp.route("/weekly-sessions", methods=["GET"])
@coach_required
def weekly_sessions():
    today = start_of_day(utcnow())
    start = today - timedelta(days=6)
    end = today + timedelta(days=1)
    bookings = Booking.query.filter(
        Booking.coach_id == current_user.id,
        Booking.deleted_at.is_(None),
        Booking.appointment_date >= start,
        Booking.appointment_date < end,
    ).all()

    counts = Counter(b.appointment_date.date() for b in bookings)
    buckets = []
    for offset in range(7):
        day = (start + timedelta(days=offset)).date()
        buckets.append({"date": day.isoformat(), "count": counts.get(day, 0)})
    return jsonify({"success": True, "data": buckets})


@coach_home_bp.route("/top-customers", methods=["GET"])
@coach_required
def top_customers():
    limit = parse_int(request.args.get("limit"), 5, minimum=1, maximum=50)
    rows = db.session.query(Booking.user_id, db.func.count(Booking.id).label("sessions")) \
        .filter(Booking.coach_id == current_user.id, Booking.status == 'COMPLETED', Booking.deleted_at.is_(None)) \
        .group_by(Booking.user_id) \
        .order_by(db.func.count(Booking.id).desc(), Booking.user_id.asc()) \
        .limit(limit).all()

    users = {u.id: u for u in User.query.filter(User.id.in_([r.user_id for r in rows])).all()} if rows else {}
    data = []
    for row in rows:
        user = users.get(row.user_id)
        data.append({
            "customer": {
                "id": user.id,
                "name": user.name,
                "avatar": user.avatar_url,
                "email": user.email,
                "phone_number": user.phone_number,
            } if user else None,
            "sessions": row.sessions,
        })
    return jsonify({"success": True, "data": data})


def response_stability(trend):
    if abs(trend) < 5:
        return "Stable"
    return "Slower" if trend > 0 else "Faster"


@coach_home_bp.route("/performance", methods=["GET"])
@coach_required
def performance():
    now = utcnow()
    start30, prev_start = _windows(now)
    base = Booking.query.filter_by(coach_id=current_user.id, deleted_at=None)

    total = base.count()
    completed_total = base.filter(Booking.status == 'COMPLETED').count()
    completion_rate = round2(completed_total / total * 100) if total else 0

    window = _completed(current_user.id).filter(
        Booking.appointment_date >= prev_start,
        Booking.appointment_date <= now,
    ).all()
    ratings = _ratings_by_booking([b.id for b in window])

    recent = [b for b in window if b.appointment_date >= start30]
    earlier = [b for b in window if b.appointment_date < start30]

    recent_users = {b.user_id for b in recent}
    earlier_users = {b.user_id for b in earlier}
    retention = round2(len(recent_users & earlier_users) / len(earlier_users) * 100) if earlier_users else 0

    windowed = len(recent) + len(earlier)
    session_completion = round2(len(recent) / windowed * 100) if windowed else completion_rate

    recent_rating = _mean([ratings[b.id] for b in recent if b.id in ratings])
    earlier_rating = _mean([ratings[b.id] for b in earlier if b.id in ratings])
    if earlier_rating is None:
        rating_trend = round2(recent_rating * 100) if recent_rating is not None else 0
    elif recent_rating is None:
        rating_trend = 0
    else:
        rating_trend = _trend(recent_rating, earlier_rating)

    responded = base.filter(
        Booking.status.in_(('CONFIRMED', 'COMPLETED')),
        Booking.updated_at >= prev_start,
        Booking.updated_at <= now,
    ).all()
    hours_total = recent_hours = earlier_hours = 0.0
    responses = 0
    for b in responded:
        if not b.created_at or not b.updated_at or b.updated_at <= b.created_at:
            continue
        hours = (b.updated_at - b.created_at).total_seconds() / 3600
        hours_total += hours
        responses += 1
        if b.updated_at >= start30:
            recent_hours += hours
        else:
            earlier_hours += hours
    response_hours = round2(hours_total / responses) if responses else None
    response_trend = round2((recent_hours / earlier_hours - 1) * 100) if earlier_hours > 0 else 0

    return jsonify({
        "success": True,
        "data": {
            "clientRetentionRate": retention,
            "clientRetentionTrend": format_percent(0),
            "sessionCompletionRate": session_completion,
            "sessionCompletionTrend": format_percent(0),
            "averageSessionRating": recent_rating if recent_rating is not None else earlier_rating,
            "ratingTrend": format_percent(rating_trend),
            "responseTimeHours": response_hours,
            "responseTimeTrendPercent": format_percent(response_trend),
            "responseTimeStability": response_stability(response_trend),
        },
    })
