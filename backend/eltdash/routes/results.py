from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import TestResult, Student, Course
from eltdash.extensions import db
from eltdash.schemas import TestResultCreate
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid
)
from eltutils.access_control import MANAGE_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required

results_bp = Blueprint("test_results", __name__)


@results_bp.route('', methods=['GET'])
@jwt_required()
def list_results():
    user = current_user_or_401()
    items = (TestResult.query.join(Student)
             .filter(Student.school_id.in_(scoped_school_ids(user)))
             .order_by(TestResult.test_date.desc()).all())
    return jsonify([r.to_dict() for r in items]), 200


@results_bp.route('/<int:result_id>', methods=['GET'])
@jwt_required()
def get_result(result_id):
    user = current_user_or_401()
    result = db.get_or_404(TestResult, result_id, description="Test result not found")
    check_school_access(user, result.student.school_id)
    return jsonify(result.to_dict()), 200


@results_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def create_result():
    user = current_user_or_401()
    try:
        data = TestResultCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("test result", e)

    require_reference(Student, data.student_id, "Student")
    require_reference(Course, data.course_id, "Course")
    check_school_access(user, db.session.get(Student, data.student_id).school_id)

    result = TestResult(**data.model_dump())
    db.session.add(result)
    record_activity("test_result_added", f"{data.type} result recorded for student {data.student_id}")
    db.session.commit()
    return jsonify(result.to_dict()), 201
