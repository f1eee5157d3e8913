from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import Evaluation, Instructor
from eltdash.extensions import db
from eltdash.schemas import EvaluationCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltutils.access_control import HR_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required

evaluations_bp = Blueprint("evaluations", __name__)


def _visible_evaluation(evaluation_id):
    user = current_user_or_401()
    evaluation = db.get_or_404(Evaluation, evaluation_id, description="Evaluation not found")
    check_school_access(user, evaluation.instructor.school_id)
    return user, evaluation


def _check_instructor(user, instructor_id):
    require_reference(Instructor, instructor_id, "Instructor")
    check_school_access(user, db.session.get(Instructor, instructor_id).school_id)


@evaluations_bp.route('', methods=['GET'])
@jwt_required()
def list_evaluations():
    user = current_user_or_401()
    query = Evaluation.query.join(Instructor).filter(Instructor.school_id.in_(scoped_school_ids(user)))
    year = request.args.get("year", type=int)
    if year:
        query = query.filter(Evaluation.year == year)
    quarter = request.args.get("quarter")
    if quarter:
        query = query.filter(Evaluation.quarter == quarter)
    items = query.order_by(Evaluation.year.desc(), Evaluation.quarter.desc()).all()
    return jsonify([e.to_dict() for e in items]), 200


@evaluations_bp.route('/<int:evaluation_id>', methods=['GET'])
@jwt_required()
def get_evaluation(evaluation_id):
    _, evaluation = _visible_evaluation(evaluation_id)
    return jsonify(evaluation.to_dict()), 200


@evaluations_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*HR_ROLES)
def create_evaluation():
    user = current_user_or_401()
    try:
        data = EvaluationCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("evaluation", e)

    _check_instructor(user, data.instructor_id)

    evaluation = Evaluation(**data.model_dump())
    if evaluation.evaluator_id is None:
        evaluation.evaluator_id = user.id
    db.session.add(evaluation)
    record_activity("evaluation_added",
                    f"{data.quarter} {data.year} evaluation recorded for instructor {data.instructor_id}")
    db.session.commit()
    return jsonify(evaluation.to_dict()), 201


@evaluations_bp.route('/<int:evaluation_id>', methods=['PATCH'])
@jwt_required()
@role_required(*HR_ROLES)
def update_evaluation(evaluation_id):
    user, evaluation = _visible_evaluation(evaluation_id)
    try:
        changes = validate_update(EvaluationCreate, evaluation, get_json_payload())
    except ValidationError as e:
        return invalid("evaluation", e)

    if "instructor_id" in changes:
        _check_instructor(user, changes["instructor_id"])

    apply_changes(evaluation, changes)
    record_activity("evaluation_updated", f"Evaluation {evaluation.id} updated")
    db.session.commit()
    return jsonify(evaluation.to_dict()), 200


@evaluations_bp.route('/<int:evaluation_id>', methods=['DELETE'])
@jwt_required()
@role_required(*HR_ROLES)
def delete_evaluation(evaluation_id):
    _, evaluation = _visible_evaluation(evaluation_id)
    db.session.delete(evaluation)
    record_activity("evaluation_deleted", f"Evaluation {evaluation.id} deleted")
    db.session.commit()
    return '', 204
