from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import Student, School, TestResult
from eltdash.extensions import db
from eltdash.schemas import StudentCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltutils.access_control import MANAGE_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required
from eltutils.pagination import list_response

students_bp = Blueprint("students", __name__)


def _visible_student(student_id):
    user = current_user_or_401()
    student = db.get_or_404(Student, student_id, description="Student not found")
    check_school_access(user, student.school_id)
    return student


@students_bp.route('', methods=['GET'])
@jwt_required()
def list_students():
    user = current_user_or_401()
    query = Student.query.filter(Student.school_id.in_(scoped_school_ids(user))).order_by(Student.name)
    return list_response(query, Student, ["name", "rank"])


@students_bp.route('/<int:student_id>', methods=['GET'])
@jwt_required()
def get_student(student_id):
    return jsonify(_visible_student(student_id).to_dict()), 200


@students_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def create_student():
    user = current_user_or_401()
    try:
        data = StudentCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("student", e)

    require_reference(School, data.school_id, "School")
    check_school_access(user, data.school_id)

    student = Student(**data.model_dump())
    db.session.add(student)
    record_activity("student_added", f"New student {student.name} enrolled")
    db.session.commit()
    return jsonify(student.to_dict()), 201


@students_bp.route('/<int:student_id>', methods=['PATCH'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def update_student(student_id):
    user = current_user_or_401()
    student = _visible_student(student_id)
    try:
        changes = validate_update(StudentCreate, student, get_json_payload())
    except ValidationError as e:
        return invalid("student", e)

    if "school_id" in changes:
        require_reference(School, changes["school_id"], "School")
        check_school_access(user, changes["school_id"])

    apply_changes(student, changes)
    record_activity("student_updated", f"Student {student.name} updated")
    db.session.commit()
    return jsonify(student.to_dict()), 200


@students_bp.route('/<int:student_id>', methods=['DELETE'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def delete_student(student_id):
    student = _visible_student(student_id)
    db.session.delete(student)
    record_activity("student_deleted", f"Student {student.name} removed")
    db.session.commit()
    return '', 204


@students_bp.route('/<int:student_id>/test-results', methods=['GET'])
@jwt_required()
def student_test_results(student_id):
    student = _visible_student(student_id)
    items = TestResult.query.filter_by(student_id=student.id).order_by(TestResult.test_date.desc()).all()
    return jsonify([r.to_dict() for r in items]), 200
