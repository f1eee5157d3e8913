import zipfile
from datetime import datetime
from flask import Blueprint, jsonify, request, send_file
from flask_jwt_extended import jwt_required
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError
from sqlalchemy import extract
from eltdash.models import TestScore, TestTypeEnum, School
from eltdash.extensions import db
from eltdash.schemas import TestScoreCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltdash.services import score_tracker
from eltdash.services.spreadsheets import build_score_template, build_score_export, parse_score_upload
from eltutils.access_control import MANAGE_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required
from eltutils.pagination import list_response

scores_bp = Blueprint("test_scores", __name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _school_names():
    return {s.id: s.name for s in School.query.all()}


def _test_type_arg():
    value = request.args.get("testType")
    if not value:
        return None
    try:
        return TestTypeEnum(value)
    except ValueError:
        return False


def _scoped_scores(user):
    """Scores the user may see, narrowed by schoolId, testType, year and a date window."""
    query = TestScore.query.filter(TestScore.school_id.in_(scoped_school_ids(user)))

    test_type = _test_type_arg()
    if test_type is False:
        return None
    if test_type:
        query = query.filter(TestScore.test_type == test_type)

    year = request.args.get("year", type=int)
    if year:
        query = query.filter(extract("year", TestScore.test_date) == year)

    for arg, op in (("startDate", "__ge__"), ("endDate", "__le__")):
        raw = request.args.get(arg)
        if raw:
            try:
                bound = datetime.strptime(raw, "%Y-%m-%d").date()
            except ValueError:
                return None
            query = query.filter(getattr(TestScore.test_date, op)(bound))

    return query.order_by(TestScore.test_date.desc(), TestScore.id)


def _bad_filter():
    return jsonify({"message": "Invalid filter: testType must be one of ALCPT, Book, ECL, OPI "
                               "and dates use YYYY-MM-DD"}), 400


@scores_bp.route('', methods=['GET'])
@jwt_required()
def list_scores():
    query = _scoped_scores(current_user_or_401())
    if query is None:
        return _bad_filter()
    return list_response(query, TestScore, ["student_name", "instructor", "course", "level"])


@scores_bp.route('/<int:score_id>', methods=['GET'])
@jwt_required()
def get_score(score_id):
    user = current_user_or_401()
    score = db.get_or_404(TestScore, score_id, description="Test score not found")
    check_school_access(user, score.school_id)
    return jsonify(score.to_dict()), 200


@scores_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def create_score():
    user = current_user_or_401()
    try:
        data = TestScoreCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("test score", e)

    require_reference(School, data.school_id, "School")
    check_school_access(user, data.school_id)

    score = TestScore(**data.model_dump())
    db.session.add(score)
    record_activity("test_score_added", f"{score.test_type.value} score recorded for {score.student_name}")
    db.session.commit()
    return jsonify(score.to_dict()), 201


@scores_bp.route('/<int:score_id>', methods=['PATCH'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def update_score(score_id):
    user = current_user_or_401()
    score = db.get_or_404(TestScore, score_id, description="Test score not found")
    check_school_access(user, score.school_id)

    payload = get_json_payload()
    rescored = {"score", "maxScore", "max_score"} & set(payload)
    if rescored and "percentage" not in payload:
        payload = dict(payload, percentage=None)
    try:
        changes = validate_update(TestScoreCreate, score, payload)
    except ValidationError as e:
        return invalid("test score", e)

    if "school_id" in changes:
        require_reference(School, changes["school_id"], "School")
        check_school_access(user, changes["school_id"])

    apply_changes(score, changes)
    record_activity("test_score_updated", f"Score for {score.student_name} updated")
    db.session.commit()
    return jsonify(score.to_dict()), 200


@scores_bp.route('/<int:score_id>', methods=['DELETE'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def delete_score(score_id):
    user = current_user_or_401()
    score = db.get_or_404(TestScore, score_id, description="Test score not found")
    check_school_access(user, score.school_id)

    db.session.delete(score)
    record_activity("test_score_deleted", f"Score for {score.student_name} deleted")
    db.session.commit()
    return '', 204


@scores_bp.route('/statistics', methods=['GET'])
@jwt_required()
def score_statistics():
    query = _scoped_scores(current_user_or_401())
    if query is None:
        return _bad_filter()
    return jsonify(score_tracker.statistics(query.all(), _school_names())), 200


@scores_bp.route('/aggregated', methods=['GET'])
@jwt_required()
def aggregated_scores():
    query = _scoped_scores(current_user_or_401())
    if query is None:
        return _bad_filter()

    rows = score_tracker.aggregate(query.all(), _school_names())
    rows = score_tracker.filter_rows(
        rows,
        month=request.args.get("month"),
        cycle=request.args.get("cycle", type=int),
    )
    return jsonify(rows), 200


@scores_bp.route('/compare', methods=['GET'])
@jwt_required()
def compare_scores():
    user = current_user_or_401()
    args = request.args
    test_type = args.get("testType")
    year1, year2 = args.get("year1", type=int), args.get("year2", type=int)
    period1, period2 = args.get("period1"), args.get("period2")

    if test_type not in score_tracker.TEST_TYPES or not all([year1, year2, period1, period2]):
        return jsonify({"message": "testType, year1, period1, year2 and period2 are required"}), 400
    if test_type == "Book" and not (period1.isdigit() and period2.isdigit()):
        return jsonify({"message": "Book periods are cycle numbers 1-4"}), 400

    records = (TestScore.query
               .filter(TestScore.school_id.in_(scoped_school_ids(user)))
               .filter(TestScore.test_type == TestTypeEnum(test_type))
               .all())
    rows = score_tracker.aggregate(records, _school_names())
    result = score_tracker.compare(rows, test_type, year1, period1, year2, period2,
                                   school_id=args.get("schoolId", type=int))
    return jsonify(result), 200


@scores_bp.route('/template', methods=['GET'])
@jwt_required()
def download_template():
    return send_file(build_score_template(), mimetype=XLSX_MIMETYPE,
                     as_attachment=True, download_name="test_scores_template.xlsx")


@scores_bp.route('/export', methods=['GET'])
@jwt_required()
def export_scores():
    query = _scoped_scores(current_user_or_401())
    if query is None:
        return _bad_filter()
    workbook = build_score_export(query.all(), _school_names())
    return send_file(workbook, mimetype=XLSX_MIMETYPE, as_attachment=True,
                     download_name=f"test_scores_{datetime.utcnow():%Y%m%d}.xlsx")


@scores_bp.route('/upload', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def upload_scores():
    user = current_user_or_401()
    file = request.files.get("file")
    if not file or not file.filename.lower().endswith(".xlsx"):
        return jsonify({"message": "An .xlsx file is required"}), 400

    allowed = set(scoped_school_ids(user))
    lookup = {}
    for school in School.query.filter(School.id.in_(allowed)).all():
        lookup[school.name.lower()] = school.id
        lookup[school.code.lower()] = school.id
        lookup[str(school.id)] = school.id

    try:
        rows, errors = parse_score_upload(file.stream, lookup)
    except (zipfile.BadZipFile, InvalidFileException, OSError, KeyError, ValueError) as e:
        return jsonify({"message": f"Could not read workbook: {e}"}), 400

    if not rows:
        return jsonify({"message": "No valid rows found", "errors": errors}), 400

    db.session.add_all(TestScore(**row.model_dump()) for row in rows)
    record_activity("test_scores_imported", f"{len(rows)} test scores imported from {file.filename}")
    db.session.commit()
    return jsonify({"imported": len(rows), "errors": errors}), 201
