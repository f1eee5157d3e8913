from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import (
    User, Role, School, Activity, ActionLog, StaffAttendance, Evaluation, AccessRequest, StaffCounseling
)
from eltdash.extensions import db
from eltdash.schemas import UserCreate, ChangePasswordRequest
from eltdash.routes.common import invalid, get_json_payload, require_reference, current_user_or_401
from eltutils.audit import log_event
from eltutils.decorators import role_required

users_bp = Blueprint('users', __name__)

USER_ADMIN_ROLES = ("superuser", "admin")

# nullable columns that only record who did something
USER_REFERENCES = (
    (Activity, "user_id"), (ActionLog, "created_by"), (StaffAttendance, "recorded_by"),
    (Evaluation, "evaluator_id"), (AccessRequest, "processed_by"), (StaffCounseling, "created_by"),
)


@users_bp.route('/users', methods=['GET'])
@jwt_required()
@role_required(*USER_ADMIN_ROLES)
def list_users():
    users = User.query.order_by(User.username).all()
    return jsonify([u.to_dict() for u in users]), 200


@users_bp.route('/users', methods=['POST'])
@jwt_required()
@role_required(*USER_ADMIN_ROLES)
def create_user():
    try:
        data = UserCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("user", e)

    if User.query.filter_by(username=data.username).first():
        return jsonify({"message": "Username already exists"}), 409

    role = Role.query.filter_by(name=data.role).first()
    if not role:
        return jsonify({"message": f"Role '{data.role}' not found"}), 400
    require_reference(School, data.school_id, "School")

    user = User(username=data.username, email=data.email, role_id=role.id, school_id=data.school_id)
    user.set_password(data.password)
    db.session.add(user)
    db.session.commit()

    log_event("USER_CREATED", user_id=user.id, ip=request.remote_addr, description=f"{user.username} as {role.name}")
    return jsonify(user.to_dict()), 201


@users_bp.route('/users/<int:user_id>', methods=['DELETE'])
@jwt_required()
@role_required(*USER_ADMIN_ROLES)
def delete_user(user_id):
    current = current_user_or_401()
    user = db.get_or_404(User, user_id, description="User not found")
    if user.id == current.id:
        return jsonify({"message": "You cannot delete your own account"}), 400

    for model, column in USER_REFERENCES:
        model.query.filter(getattr(model, column) == user.id).update({column: None}, synchronize_session=False)
    db.session.delete(user)
    db.session.commit()

    log_event("USER_DELETED", user_id=current.id, ip=request.remote_addr, description=f"Removed {user.username}")
    return '', 204


@users_bp.route('/change-password', methods=['POST'])
@jwt_required()
def change_password():
    user = current_user_or_401()
    try:
        data = ChangePasswordRequest.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("password", e)

    if not user.check_password(data.current_password):
        log_event("PASSWORD_CHANGE_FAILED", user_id=user.id, ip=request.remote_addr, level="WARNING")
        return jsonify({"message": "Current password is incorrect"}), 400

    user.set_password(data.new_password)
    db.session.commit()

    log_event("PASSWORD_CHANGED", user_id=user.id, ip=request.remote_addr)
    return jsonify({"message": "Password updated successfully"}), 200
