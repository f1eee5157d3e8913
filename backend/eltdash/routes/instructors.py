from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import Instructor, School, Course, Evaluation, StaffCounseling
from eltdash.extensions import db
from eltdash.schemas import InstructorCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltutils.access_control import MANAGE_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required
from eltutils.formSchema import generate_schema_from_model
from eltutils.pagination import list_response

instructors_bp = Blueprint("instructors", __name__)

SEARCH_COLUMNS = ["name", "nationality", "credentials", "compound", "role"]


def _visible_instructor(instructor_id):
    user = current_user_or_401()
    instructor = db.get_or_404(Instructor, instructor_id, description="Instructor not found")
    check_school_access(user, instructor.school_id)
    return instructor


@instructors_bp.route('', methods=['GET'])
@jwt_required()
def list_instructors():
    user = current_user_or_401()
    query = Instructor.query.filter(Instructor.school_id.in_(scoped_school_ids(user)))

    nationality = request.args.get("nationality")
    if nationality:
        query = query.filter(Instructor.nationality == nationality)

    return list_response(query.order_by(Instructor.name), Instructor, SEARCH_COLUMNS)


@instructors_bp.route('/form-schema', methods=['GET'])
@jwt_required()
def form_schema():
    user = current_user_or_401()
    return jsonify(generate_schema_from_model(Instructor, "Instructor", current_user=user)), 200


@instructors_bp.route('/<int:instructor_id>', methods=['GET'])
@jwt_required()
def get_instructor(instructor_id):
    return jsonify(_visible_instructor(instructor_id).to_dict()), 200


@instructors_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def create_instructor():
    user = current_user_or_401()
    try:
        data = InstructorCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("instructor", e)

    require_reference(School, data.school_id, "School")
    check_school_access(user, data.school_id)

    instructor = Instructor(**data.model_dump())
    db.session.add(instructor)
    record_activity("instructor_added", f"New instructor {instructor.name} added")
    db.session.commit()
    return jsonify(instructor.to_dict()), 201


@instructors_bp.route('/<int:instructor_id>', methods=['PATCH'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def update_instructor(instructor_id):
    user = current_user_or_401()
    instructor = _visible_instructor(instructor_id)
    try:
        changes = validate_update(InstructorCreate, instructor, get_json_payload())
    except ValidationError as e:
        return invalid("instructor", e)

    if "school_id" in changes:
        require_reference(School, changes["school_id"], "School")
        check_school_access(user, changes["school_id"])

    apply_changes(instructor, changes)
    record_activity("instructor_updated", f"Instructor {instructor.name} updated")
    db.session.commit()
    return jsonify(instructor.to_dict()), 200


@instructors_bp.route('/<int:instructor_id>', methods=['DELETE'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def delete_instructor(instructor_id):
    instructor = _visible_instructor(instructor_id)
    if instructor.courses:
        return jsonify({"message": "Instructor still teaches courses; reassign them first"}), 409

    db.session.delete(instructor)
    record_activity("instructor_deleted", f"Instructor {instructor.name} removed")
    db.session.commit()
    return '', 204


@instructors_bp.route('/<int:instructor_id>/courses', methods=['GET'])
@jwt_required()
def instructor_courses(instructor_id):
    instructor = _visible_instructor(instructor_id)
    items = Course.query.filter_by(instructor_id=instructor.id).order_by(Course.start_date.desc()).all()
    return jsonify([c.to_dict() for c in items]), 200


@instructors_bp.route('/<int:instructor_id>/evaluations', methods=['GET'])
@jwt_required()
def instructor_evaluations(instructor_id):
    instructor = _visible_instructor(instructor_id)
    items = (Evaluation.query.filter_by(instructor_id=instructor.id)
             .order_by(Evaluation.year.desc(), Evaluation.quarter.desc()).all())
    return jsonify([e.to_dict() for e in items]), 200


@instructors_bp.route('/<int:instructor_id>/staff-counseling', methods=['GET'])
@jwt_required()
def instructor_counseling(instructor_id):
    instructor = _visible_instructor(instructor_id)
    items = (StaffCounseling.query.filter_by(instructor_id=instructor.id)
             .order_by(StaffCounseling.counseling_date.desc()).all())
    return jsonify([c.to_dict() for c in items]), 200
