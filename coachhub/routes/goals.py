import logging
import math

from flask import Blueprint, jsonify, request
from flask_jwt_extended import current_user, jwt_required

from coachhub.errors import ApiError, ForbiddenError, NotFoundError
from coachhub.extensions import db
from coachhub.models import Goal, GoalNote, GoalProgress, User
from coachhub.models.athlete_goals import compute_percent
from coachhub.schemas.goals import GoalProgressSchema, GoalSchema
from coachhub.utils.decorators import coach_required
from coachhub.utils.formatting import parse_int
from coachhub.utils.payload import get_payload

logger = logging.getLogger(__name__)

goals_bp = Blueprint("goals", __name__)


def _owned_goal(goal_id):
    goal = db.session.get(Goal, goal_id)
    if not goal or goal.user_id != current_user.id:
        raise NotFoundError("Goal not found")
    return goal


def _visible_goal(goal_id):
    goal = db.session.get(Goal, goal_id)
    if not goal or current_user.id not in (goal.user_id, goal.coach_id):
        raise NotFoundError("Goal not found")
    return goal


def _coach_user(coach_id):
    coach = db.session.get(User, coach_id) if coach_id else None
    if not coach or not coach.is_coach:
        raise NotFoundError("Coach user not found")
    return coach


def _latest_progress(goal):
    return goal.progress_logs.order_by(GoalProgress.recorded_at.desc(), GoalProgress.id.desc()).first()


def goal_summary(goal):
    """Goal with its latest progress entry, last coach notes and derived percent."""
    latest = _latest_progress(goal)
    current = latest.current_weight if latest and latest.current_weight is not None else goal.current_value

    if goal.progress_percent is not None:
        percent = goal.progress_percent
    else:
        percent = compute_percent(current, goal.target_value)

    notes = goal.notes.order_by(GoalNote.created_at.desc()).limit(3).all()
    data = goal.to_dict()
    data.update({
        'progress_percent': percent,
        'current_value': current,
        'progress_label': f"{current if current is not None else 0}/{goal.target_value or 0}",
        'latest_progress': latest.to_dict() if latest else None,
        'coach_notes': [n.to_dict() for n in notes],
    })
    return data


def _commit(action, goal_id=None):
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error during {action} for goal {goal_id}: {e}")
        raise ApiError(f"Failed to {action}", 500)


@goals_bp.route("/setup", methods=["POST"])
@jwt_required()
def setup_goal():
    data = GoalSchema().load(get_payload())
    if current_user.user_goals.first():
        raise ApiError("A goal already exists for this user please update the existing goal instead.")
    if data.get("coach_id"):
        _coach_user(data["coach_id"])

    goal = Goal(user_id=current_user.id, **data)
    db.session.add(goal)
    _commit("create goal")
    return jsonify({"success": True, "message": "Goal created", "data": goal.to_dict()}), 201


@goals_bp.route("/<int:goal_id>", methods=["PATCH"])
@jwt_required()
def update_goal(goal_id):
    goal = _owned_goal(goal_id)
    data = GoalSchema(partial=True).load(get_payload())
    if data.get("coach_id"):
        _coach_user(data["coach_id"])

    for field, value in data.items():
        setattr(goal, field, value)
    if "current_value" in data or "target_value" in data:
        goal.progress_percent = compute_percent(goal.current_value, goal.target_value)
    _commit("update goal", goal_id)
    return jsonify({"success": True, "message": "Goal updated", "data": goal.to_dict()})


@goals_bp.route("/me", methods=["GET"])
@jwt_required()
def get_my_goals():
    goals = current_user.user_goals.order_by(Goal.created_at.desc()).all()
    summaries = [goal_summary(g) for g in goals]
    percents = [s['progress_percent'] for s in summaries if s['progress_percent'] is not None]
    overall = math.floor(sum(percents) / len(percents)) if percents else 0
    return jsonify({"success": True, "data": {"overall_percent": overall, "goals": summaries}})


@goals_bp.route("/assigned", methods=["GET"])
@coach_required
def get_assigned_goals():
    goals = current_user.assigned_goals.order_by(Goal.updated_at.desc()).all()
    data = []
    for goal in goals:
        summary = goal_summary(goal)
        summary['user'] = goal.user.to_summary() if goal.user else None
        data.append(summary)
    return jsonify({"success": True, "data": data})


@goals_bp.route("/<int:goal_id>", methods=["GET"])
@jwt_required()
def get_goal(goal_id):
    goal = _visible_goal(goal_id)
    return jsonify({"success": True, "data": goal_summary(goal)})


@goals_bp.route("/<int:goal_id>/progress", methods=["POST"])
@jwt_required()
def add_progress(goal_id):
    goal = _owned_goal(goal_id)
    data = GoalProgressSchema().load(get_payload())
    if data.get("recorded_at") is None:
        data.pop("recorded_at", None)

    entry = GoalProgress(goal_id=goal.id, user_id=current_user.id, **data)
    db.session.add(entry)
    db.session.flush()

    latest = _latest_progress(goal)
    current = latest.current_weight if latest and latest.current_weight is not None else goal.current_value
    if current is not None and goal.target_value:
        goal.progress_percent = compute_percent(current, goal.target_value)
    _commit("record progress", goal_id)

    return jsonify({
        "success": True,
        "message": "Progress recorded",
        "data": entry.to_dict(),
        "progress_percent": goal.progress_percent,
    }), 201


@goals_bp.route("/<int:goal_id>/progress", methods=["GET"])
@jwt_required()
def list_progress(goal_id):
    goal = _visible_goal(goal_id)
    page = parse_int(request.args.get("page"), 1, minimum=1)
    limit = parse_int(request.args.get("limit"), 20, minimum=1, maximum=100)

    query = goal.progress_logs
    total = query.count()
    items = query.order_by(GoalProgress.recorded_at.desc(), GoalProgress.id.desc()) \
        .offset((page - 1) * limit).limit(limit).all()
    return jsonify({
        "success": True,
        "data": {"items": [i.to_dict() for i in items], "total": total, "page": page, "limit": limit},
    })


@goals_bp.route("/<int:goal_id>/coach-note", methods=["POST"])
@coach_required
def add_coach_note(goal_id):
    goal = db.session.get(Goal, goal_id)
    if not goal:
        raise NotFoundError("Goal not found")
    if goal.coach_id != current_user.id:
        raise ForbiddenError("Only the assigned coach can add notes to this goal")

    text = str(get_payload().get("note") or "").strip()
    if not text:
        raise ApiError("note is required")

    note = GoalNote(goal_id=goal.id, coach_id=current_user.id, note=text)
    db.session.add(note)
    _commit("add coach note", goal_id)
    return jsonify({"success": True, "message": "Note added", "data": note.to_dict()}), 201


@goals_bp.route("/<int:goal_id>/assign-coach", methods=["POST"])
@jwt_required()
def assign_coach(goal_id):
    goal = _owned_goal(goal_id)
    coach_id = get_payload().get("coach_id")
    if not coach_id or not str(coach_id).isdigit():
        raise ApiError("coach_id is required")
    coach = _coach_user(int(coach_id))

    goal.coach_id = coach.id
    _commit("assign coach", goal_id)
    return jsonify({"success": True, "message": "Coach assigned", "data": goal.to_dict()})


@goals_bp.route("/<int:goal_id>/unassign-coach", methods=["POST"])
@jwt_required()
def unassign_coach(goal_id):
    goal = _owned_goal(goal_id)
    goal.coach_id = None
    _commit("unassign coach", goal_id)
    return jsonify({"success": True, "message": "Coach unassigned", "data": goal.to_dict()})
