from datetime import datetime
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import AccessRequest, AccessRequestStatusEnum, AccessRequestTypeEnum, User, Role, School
from eltdash.extensions import db, limiter
from eltdash.schemas import AccessRequestCreate, AccessRequestApprove
from eltdash.routes.common import invalid, get_json_payload, require_reference, current_user_or_401
from eltutils.audit import log_event, record_activity
from eltutils.decorators import role_required

access_requests_bp = Blueprint('access_requests', __name__)

REVIEWER_ROLES = ("superuser", "admin")


def _pending_or_409(request_id):
    access_request = db.get_or_404(AccessRequest, request_id, description="Access request not found")
    if access_request.status != AccessRequestStatusEnum.pending:
        return access_request, (jsonify({"message": "Access request has already been processed"}), 409)
    return access_request, None


@access_requests_bp.route('', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def create_access_request():
    try:
        data = AccessRequestCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("access request", e)

    access_request = AccessRequest(**data.model_dump())
    db.session.add(access_request)
    db.session.commit()

    log_event("ACCESS_REQUESTED", ip=request.remote_addr,
              description=f"{access_request.request_type.value} for {access_request.email}")
    return jsonify(access_request.to_dict()), 201


@access_requests_bp.route('', methods=['GET'])
@jwt_required()
@role_required(*REVIEWER_ROLES)
def list_access_requests():
    query = AccessRequest.query
    status = request.args.get("status")
    if status:
        try:
            query = query.filter(AccessRequest.status == AccessRequestStatusEnum(status))
        except ValueError:
            return jsonify({"message": f"Unknown status '{status}'"}), 400
    items = query.order_by(AccessRequest.created_at.desc()).all()
    return jsonify([r.to_dict() for r in items]), 200


@access_requests_bp.route('/<int:request_id>/approve', methods=['POST'])
@jwt_required()
@role_required(*REVIEWER_ROLES)
def approve_access_request(request_id):
    reviewer = current_user_or_401()
    access_request, conflict = _pending_or_409(request_id)
    if conflict:
        return conflict

    try:
        data = AccessRequestApprove.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("approval", e)

    role = Role.query.filter_by(name=data.role).first()
    if not role:
        return jsonify({"message": f"Role '{data.role}' not found"}), 400
    require_reference(School, data.school_id, "School")

    # password resets reuse the account registered under the same email
    user = User.query.filter_by(email=access_request.email).first()
    if user is not None and access_request.request_type != AccessRequestTypeEnum.password_reset:
        return jsonify({"message": "An account already exists for this email"}), 409
    if user is None:
        if User.query.filter_by(username=data.username).first():
            return jsonify({"message": "Username already exists"}), 409
        user = User(username=data.username, email=access_request.email,
                    role_id=role.id, school_id=data.school_id)
        db.session.add(user)
    user.set_password(data.password)

    access_request.status = AccessRequestStatusEnum.approved
    access_request.processed_at = datetime.utcnow()
    access_request.processed_by = reviewer.id
    record_activity("access_request_approved", f"Access granted to {access_request.full_name}")
    db.session.commit()

    log_event("ACCESS_REQUEST_APPROVED", user_id=reviewer.id, ip=request.remote_addr,
              description=f"{access_request.email} -> {user.username}")
    return jsonify({"request": access_request.to_dict(), "user": user.to_dict()}), 200


@access_requests_bp.route('/<int:request_id>/reject', methods=['POST'])
@jwt_required()
@role_required(*REVIEWER_ROLES)
def reject_access_request(request_id):
    reviewer = current_user_or_401()
    access_request, conflict = _pending_or_409(request_id)
    if conflict:
        return conflict

    access_request.status = AccessRequestStatusEnum.rejected
    access_request.processed_at = datetime.utcnow()
    access_request.processed_by = reviewer.id
    db.session.commit()

    log_event("ACCESS_REQUEST_REJECTED", user_id=reviewer.id, ip=request.remote_addr,
              description=access_request.email)
    return jsonify(access_request.to_dict()), 200
