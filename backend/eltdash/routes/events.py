from datetime import datetime
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from sqlalchemy import or_
from eltdash.models import Event, School
from eltdash.extensions import db
from eltdash.schemas import EventCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltutils.access_control import MANAGE_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required

events_bp = Blueprint("events", __name__)


def _visible_events(user):
    allowed = scoped_school_ids(user)
    return Event.query.filter(or_(Event.school_id.is_(None), Event.school_id.in_(allowed)))


@events_bp.route('', methods=['GET'])
@jwt_required()
def list_events():
    items = _visible_events(current_user_or_401()).order_by(Event.start).all()
    return jsonify([e.to_dict() for e in items]), 200


@events_bp.route('/upcoming', methods=['GET'])
@jwt_required()
def upcoming_events():
    limit = request.args.get("limit", 5, type=int)
    items = (_visible_events(current_user_or_401())
             .filter(Event.end >= datetime.utcnow())
             .order_by(Event.start)
             .limit(max(limit, 1))
             .all())
    return jsonify([e.to_dict() for e in items]), 200


@events_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def create_event():
    user = current_user_or_401()
    try:
        data = EventCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("event", e)

    require_reference(School, data.school_id, "School")
    check_school_access(user, data.school_id)

    event = Event(**data.model_dump())
    db.session.add(event)
    record_activity("event_added", f"Event {event.title} scheduled")
    db.session.commit()
    return jsonify(event.to_dict()), 201


@events_bp.route('/<int:event_id>', methods=['PATCH'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def update_event(event_id):
    user = current_user_or_401()
    event = db.get_or_404(Event, event_id, description="Event not found")
    check_school_access(user, event.school_id)
    try:
        changes = validate_update(EventCreate, event, get_json_payload())
    except ValidationError as e:
        return invalid("event", e)

    if "school_id" in changes:
        require_reference(School, changes["school_id"], "School")
        check_school_access(user, changes["school_id"])

    apply_changes(event, changes)
    record_activity("event_updated", f"Event {event.title} updated")
    db.session.commit()
    return jsonify(event.to_dict()), 200


@events_bp.route('/<int:event_id>', methods=['DELETE'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def delete_event(event_id):
    user = current_user_or_401()
    event = db.get_or_404(Event, event_id, description="Event not found")
    check_school_access(user, event.school_id)
    db.session.delete(event)
    record_activity("event_deleted", f"Event {event.title} cancelled")
    db.session.commit()
    return '', 204
