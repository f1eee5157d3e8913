from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from sqlalchemy import or_
from eltdash.models import ActionLog, ActionLogStatusEnum, School
from eltdash.extensions import db
from eltdash.schemas import ActionLogCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltutils.access_control import MANAGE_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required

action_logs_bp = Blueprint("action_logs", __name__)


def _visible_log(log_id):
    user = current_user_or_401()
    log = db.get_or_404(ActionLog, log_id, description="Action log not found")
    check_school_access(user, log.school_id)
    return user, log


@action_logs_bp.route('', methods=['GET'])
@jwt_required()
def list_action_logs():
    user = current_user_or_401()
    allowed = scoped_school_ids(user)
    query = ActionLog.query.filter(or_(ActionLog.school_id.is_(None), ActionLog.school_id.in_(allowed)))
    if request.args.get("schoolId"):
        query = query.filter(ActionLog.school_id.in_(allowed))

    status = request.args.get("status")
    if status:
        try:
            query = query.filter(ActionLog.status == ActionLogStatusEnum(status))
        except ValueError:
            return jsonify({"message": f"Unknown status '{status}'"}), 400

    items = query.order_by(ActionLog.created_at.desc(), ActionLog.id.desc()).all()
    return jsonify([log.to_dict() for log in items]), 200


@action_logs_bp.route('/<int:log_id>', methods=['GET'])
@jwt_required()
def get_action_log(log_id):
    _, log = _visible_log(log_id)
    return jsonify(log.to_dict()), 200


@action_logs_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def create_action_log():
    user = current_user_or_401()
    try:
        data = ActionLogCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("action log", e)

    require_reference(School, data.school_id, "School")
    check_school_access(user, data.school_id)

    values = data.model_dump()
    status = values.pop("status")
    log = ActionLog(**values, created_by=user.id)
    log.set_status(status)
    db.session.add(log)
    record_activity("action_log_added", f"Action item {log.title} logged")
    db.session.commit()
    return jsonify(log.to_dict()), 201


@action_logs_bp.route('/<int:log_id>', methods=['PATCH'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def update_action_log(log_id):
    user, log = _visible_log(log_id)
    try:
        changes = validate_update(ActionLogCreate, log, get_json_payload())
    except ValidationError as e:
        return invalid("action log", e)

    if "school_id" in changes:
        require_reference(School, changes["school_id"], "School")
        check_school_access(user, changes["school_id"])

    status = changes.pop("status", None)
    apply_changes(log, changes)
    if status is not None:
        log.set_status(status)
    record_activity("action_log_updated", f"Action item {log.title} updated")
    db.session.commit()
    return jsonify(log.to_dict()), 200


@action_logs_bp.route('/<int:log_id>', methods=['DELETE'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def delete_action_log(log_id):
    _, log = _visible_log(log_id)
    db.session.delete(log)
    record_activity("action_log_deleted", f"Action item {log.title} deleted")
    db.session.commit()
    return '', 204
