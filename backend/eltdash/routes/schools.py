from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import (
    School, Instructor, Course, Student, Document, Event, StaffCounseling,
    TestScore, Candidate, ActionLog, User
)
from eltdash.extensions import db
from eltdash.schemas import SchoolCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    invalid, apply_changes
)
from eltutils.audit import record_activity
from eltutils.decorators import role_required

schools_bp = Blueprint("schools", __name__)

SCHOOL_ADMIN_ROLES = ("superuser", "admin")

SCHOOL_REFERENCES = (
    ("instructors", Instructor), ("courses", Course), ("students", Student),
    ("test scores", TestScore), ("documents", Document), ("events", Event),
    ("staff counseling", StaffCounseling), ("candidates", Candidate),
    ("action logs", ActionLog), ("users", User),
)


def _visible_school(school_id):
    user = current_user_or_401()
    school = db.get_or_404(School, school_id, description="School not found")
    check_school_access(user, school.id)
    return school


@schools_bp.route('', methods=['GET'])
@jwt_required()
def list_schools():
    user = current_user_or_401()
    allowed = scoped_school_ids(user)
    schools = School.query.filter(School.id.in_(allowed)).order_by(School.name).all()
    return jsonify([s.to_dict() for s in schools]), 200


@schools_bp.route('/<int:school_id>', methods=['GET'])
@jwt_required()
def get_school(school_id):
    return jsonify(_visible_school(school_id).to_dict()), 200


@schools_bp.route('/code/<string:code>', methods=['GET'])
@jwt_required()
def get_school_by_code(code):
    user = current_user_or_401()
    school = School.query.filter_by(code=code).first()
    if not school:
        return jsonify({"message": "School not found"}), 404
    check_school_access(user, school.id)
    return jsonify(school.to_dict()), 200


@schools_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*SCHOOL_ADMIN_ROLES)
def create_school():
    try:
        data = SchoolCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("school", e)

    if School.query.filter_by(code=data.code).first():
        return jsonify({"message": f"School code '{data.code}' already exists"}), 409

    school = School(**data.model_dump())
    db.session.add(school)
    record_activity("school_added", f"New school {school.name} added")
    db.session.commit()
    return jsonify(school.to_dict()), 201


@schools_bp.route('/<int:school_id>', methods=['PATCH'])
@jwt_required()
@role_required(*SCHOOL_ADMIN_ROLES)
def update_school(school_id):
    school = db.get_or_404(School, school_id, description="School not found")
    try:
        changes = validate_update(SchoolCreate, school, get_json_payload())
    except ValidationError as e:
        return invalid("school", e)

    code = changes.get("code")
    if code and code != school.code and School.query.filter_by(code=code).first():
        return jsonify({"message": f"School code '{code}' already exists"}), 409

    apply_changes(school, changes)
    record_activity("school_updated", f"School {school.name} updated")
    db.session.commit()
    return jsonify(school.to_dict()), 200


@schools_bp.route('/<int:school_id>', methods=['DELETE'])
@jwt_required()
@role_required(*SCHOOL_ADMIN_ROLES)
def delete_school(school_id):
    school = db.get_or_404(School, school_id, description="School not found")
    linked = [label for label, model in SCHOOL_REFERENCES
              if db.session.query(model.query.filter_by(school_id=school.id).exists()).scalar()]
    if linked:
        return jsonify({"message": "School still has linked records", "linked": linked}), 409

    db.session.delete(school)
    record_activity("school_deleted", f"School {school.name} deleted")
    db.session.commit()
    return '', 204


@schools_bp.route('/<int:school_id>/instructors', methods=['GET'])
@jwt_required()
def school_instructors(school_id):
    school = _visible_school(school_id)
    items = Instructor.query.filter_by(school_id=school.id).order_by(Instructor.name).all()
    return jsonify([i.to_dict() for i in items]), 200


@schools_bp.route('/<int:school_id>/courses', methods=['GET'])
@jwt_required()
def school_courses(school_id):
    school = _visible_school(school_id)
    items = Course.query.filter_by(school_id=school.id).order_by(Course.start_date.desc()).all()
    return jsonify([c.to_dict() for c in items]), 200


@schools_bp.route('/<int:school_id>/students', methods=['GET'])
@jwt_required()
def school_students(school_id):
    school = _visible_school(school_id)
    items = Student.query.filter_by(school_id=school.id).order_by(Student.name).all()
    return jsonify([s.to_dict() for s in items]), 200


@schools_bp.route('/<int:school_id>/documents', methods=['GET'])
@jwt_required()
def school_documents(school_id):
    school = _visible_school(school_id)
    items = Document.query.filter_by(school_id=school.id).order_by(Document.upload_date.desc()).all()
    return jsonify([d.to_dict() for d in items]), 200


@schools_bp.route('/<int:school_id>/events', methods=['GET'])
@jwt_required()
def school_events(school_id):
    school = _visible_school(school_id)
    items = Event.query.filter_by(school_id=school.id).order_by(Event.start).all()
    return jsonify([e.to_dict() for e in items]), 200


@schools_bp.route('/<int:school_id>/staff-counseling', methods=['GET'])
@jwt_required()
def school_counseling(school_id):
    school = _visible_school(school_id)
    items = (StaffCounseling.query.filter_by(school_id=school.id)
             .order_by(StaffCounseling.counseling_date.desc()).all())
    return jsonify([c.to_dict() for c in items]), 200
