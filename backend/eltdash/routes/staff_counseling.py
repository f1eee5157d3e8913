import json
from flask import Blueprint, jsonify, request, abort
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import StaffCounseling, Instructor, School, CounselingTypeEnum
from eltdash.extensions import db
from eltdash.schemas import StaffCounselingCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltdash.routes.uploads import allowed_file, save_file, delete_stored_file, ATTACHMENT_EXTENSIONS, ATTACHMENT_MIME_TYPES
from eltutils.access_control import HR_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required

staff_counseling_bp = Blueprint("staff_counseling", __name__)


def _read_payload():
    """Counseling forms post multipart with a JSON ``data`` field and an optional ``attachment``."""
    if request.mimetype == "multipart/form-data":
        try:
            payload = json.loads(request.form.get("data") or "{}")
        except json.JSONDecodeError:
            abort(400, "The data field must contain JSON")
        if not isinstance(payload, dict):
            abort(400, "The data field must contain a JSON object")
        return payload, request.files.get("attachment")
    return get_json_payload(), None


def _check_attachment(attachment):
    if attachment and attachment.filename and not allowed_file(attachment, ATTACHMENT_EXTENSIONS, ATTACHMENT_MIME_TYPES):
        abort(400, "Attachment must be a PDF, Word document or image")


def _check_refs(user, school_id, instructor_id):
    require_reference(School, school_id, "School")
    require_reference(Instructor, instructor_id, "Instructor")
    check_school_access(user, school_id)
    if db.session.get(Instructor, instructor_id).school_id != school_id:
        abort(400, "Instructor does not belong to this school")


def _visible_record(record_id):
    user = current_user_or_401()
    record = db.get_or_404(StaffCounseling, record_id, description="Counseling record not found")
    check_school_access(user, record.school_id)
    return user, record


def _type_or_400(value):
    try:
        return CounselingTypeEnum(value)
    except ValueError:
        abort(400, f"Unknown counseling type '{value}'")


@staff_counseling_bp.route('', methods=['GET'])
@jwt_required()
def list_counseling():
    user = current_user_or_401()
    query = StaffCounseling.query.filter(StaffCounseling.school_id.in_(scoped_school_ids(user)))
    counseling_type = request.args.get("counselingType")
    if counseling_type:
        query = query.filter(StaffCounseling.counseling_type == _type_or_400(counseling_type))
    items = query.order_by(StaffCounseling.counseling_date.desc()).all()
    return jsonify([r.to_dict() for r in items]), 200


@staff_counseling_bp.route('/<int:record_id>', methods=['GET'])
@jwt_required()
def get_counseling(record_id):
    _, record = _visible_record(record_id)
    return jsonify(record.to_dict()), 200


@staff_counseling_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*HR_ROLES)
def create_counseling():
    user = current_user_or_401()
    payload, attachment = _read_payload()
    try:
        data = StaffCounselingCreate.model_validate(payload)
    except ValidationError as e:
        return invalid("counseling", e)

    _check_refs(user, data.school_id, data.instructor_id)
    _check_attachment(attachment)

    record = StaffCounseling(**data.model_dump(), created_by=user.id)
    if attachment and attachment.filename:
        record.attachment_url = save_file(attachment, "counseling")
    db.session.add(record)
    record_activity("counseling_added",
                    f"{record.counseling_type.value} issued to instructor {record.instructor_id}")
    db.session.commit()
    return jsonify(record.to_dict()), 201


@staff_counseling_bp.route('/<int:record_id>', methods=['PATCH'])
@jwt_required()
@role_required(*HR_ROLES)
def update_counseling(record_id):
    user, record = _visible_record(record_id)
    payload, attachment = _read_payload()
    try:
        changes = validate_update(StaffCounselingCreate, record, payload)
    except ValidationError as e:
        return invalid("counseling", e)

    if "school_id" in changes or "instructor_id" in changes:
        _check_refs(user, changes.get("school_id", record.school_id),
                    changes.get("instructor_id", record.instructor_id))
    _check_attachment(attachment)

    apply_changes(record, changes)
    if attachment and attachment.filename:
        record.attachment_url = save_file(attachment, "counseling", old_path=record.attachment_url)
    record_activity("counseling_updated", f"Counseling record {record.id} updated")
    db.session.commit()
    return jsonify(record.to_dict()), 200


@staff_counseling_bp.route('/<int:record_id>', methods=['DELETE'])
@jwt_required()
@role_required(*HR_ROLES)
def delete_counseling(record_id):
    _, record = _visible_record(record_id)
    if record.attachment_url:
        delete_stored_file(record.attachment_url)
    db.session.delete(record)
    record_activity("counseling_deleted", f"Counseling record {record.id} deleted")
    db.session.commit()
    return '', 204
