from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import Course, Instructor, School, TestResult
from eltdash.extensions import db
from eltdash.schemas import CourseCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltutils.access_control import MANAGE_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required
from eltutils.pagination import list_response

courses_bp = Blueprint("courses", __name__)


def _visible_course(course_id):
    user = current_user_or_401()
    course = db.get_or_404(Course, course_id, description="Course not found")
    check_school_access(user, course.school_id)
    return course


def _check_references(user, school_id, instructor_id):
    require_reference(School, school_id, "School")
    require_reference(Instructor, instructor_id, "Instructor")
    check_school_access(user, school_id)


@courses_bp.route('', methods=['GET'])
@jwt_required()
def list_courses():
    user = current_user_or_401()
    query = Course.query.filter(Course.school_id.in_(scoped_school_ids(user)))
    status = request.args.get("status")
    if status:
        query = query.filter(Course.status == status)
    return list_response(query.order_by(Course.start_date.desc()), Course, ["name", "status"])


@courses_bp.route('/<int:course_id>', methods=['GET'])
@jwt_required()
def get_course(course_id):
    return jsonify(_visible_course(course_id).to_dict()), 200


@courses_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def create_course():
    user = current_user_or_401()
    try:
        data = CourseCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("course", e)

    _check_references(user, data.school_id, data.instructor_id)

    course = Course(**data.model_dump())
    db.session.add(course)
    record_activity("course_added", f"New course {course.name} added")
    db.session.commit()
    return jsonify(course.to_dict()), 201


@courses_bp.route('/<int:course_id>', methods=['PATCH'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def update_course(course_id):
    user = current_user_or_401()
    course = _visible_course(course_id)
    try:
        changes = validate_update(CourseCreate, course, get_json_payload())
    except ValidationError as e:
        return invalid("course", e)

    _check_references(user, changes.get("school_id", course.school_id),
                      changes.get("instructor_id", course.instructor_id))

    apply_changes(course, changes)
    record_activity("course_updated", f"Course {course.name} updated")
    db.session.commit()
    return jsonify(course.to_dict()), 200


@courses_bp.route('/<int:course_id>', methods=['DELETE'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def delete_course(course_id):
    course = _visible_course(course_id)
    db.session.delete(course)
    record_activity("course_deleted", f"Course {course.name} deleted")
    db.session.commit()
    return '', 204


@courses_bp.route('/<int:course_id>/test-results', methods=['GET'])
@jwt_required()
def course_test_results(course_id):
    course = _visible_course(course_id)
    items = TestResult.query.filter_by(course_id=course.id).order_by(TestResult.test_date.desc()).all()
    return jsonify([r.to_dict() for r in items]), 200
