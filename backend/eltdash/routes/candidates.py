from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from sqlalchemy import or_
from eltdash.models import Candidate, InterviewQuestion, School, CandidateStatusEnum, QuestionCategoryEnum
from eltdash.extensions import db
from eltdash.schemas import CandidateCreate, InterviewQuestionCreate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltdash.routes.uploads import (
    allowed_file, save_file, delete_stored_file, RESUME_EXTENSIONS, RESUME_MIME_TYPES
)
from eltdash.services.ai_client import get_client
from eltdash.services.candidate_ranking import rank_candidates
from eltdash.services.resume_parser import extract_text_from_file, analyze_resume
from eltutils.access_control import HR_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required
from eltutils.formSchema import generate_schema_from_model
from eltutils.pagination import list_response

candidates_bp = Blueprint("candidates", __name__)


def _visible_candidates(user):
    allowed = scoped_school_ids(user)
    return Candidate.query.filter(or_(Candidate.school_id.is_(None), Candidate.school_id.in_(allowed)))


def _visible_candidate(candidate_id):
    user = current_user_or_401()
    candidate = db.get_or_404(Candidate, candidate_id, description="Candidate not found")
    check_school_access(user, candidate.school_id)
    return user, candidate


@candidates_bp.route('/candidates', methods=['GET'])
@jwt_required()
@role_required(*HR_ROLES)
def list_candidates():
    query = _visible_candidates(current_user_or_401())
    status = request.args.get("status")
    if status:
        try:
            query = query.filter(Candidate.status == CandidateStatusEnum(status))
        except ValueError:
            return jsonify({"message": f"Unknown status '{status}'"}), 400
    return list_response(query.order_by(Candidate.created_at.desc()), Candidate,
                         ["name", "email", "nationality", "degree_field"])


@candidates_bp.route('/candidates/form-schema', methods=['GET'])
@jwt_required()
@role_required(*HR_ROLES)
def candidate_form_schema():
    user = current_user_or_401()
    return jsonify(generate_schema_from_model(Candidate, "Candidate", current_user=user)), 200


@candidates_bp.route('/candidates/rank-candidates', methods=['GET'])
@jwt_required()
@role_required(*HR_ROLES)
def rank():
    candidates = (_visible_candidates(current_user_or_401())
                  .filter(Candidate.status != CandidateStatusEnum.rejected)
                  .all())
    result = rank_candidates(candidates, client=get_client("openai"))
    return jsonify({
        "rankedCandidates": [c.to_dict() for c in result["rankedCandidates"]],
        "rationale": result["rationale"],
        "method": result["method"],
    }), 200


@candidates_bp.route('/candidates/parse-resume', methods=['POST'])
@jwt_required()
@role_required(*HR_ROLES)
def parse_resume():
    file = request.files.get("resume")
    if not file or not file.filename:
        return jsonify({"message": "No resume file provided"}), 400
    if not allowed_file(file, RESUME_EXTENSIONS, RESUME_MIME_TYPES):
        return jsonify({"message": "Resume must be a PDF, Word or text file"}), 400

    path = save_file(file, "resumes")
    text = extract_text_from_file(path)
    extracted = analyze_resume(text, filename=file.filename)
    extracted["resumeUrl"] = path

    return jsonify({
        "message": "Resume parsed" if text else "Resume stored but no text could be extracted",
        "extractedData": extracted,
    }), 200


@candidates_bp.route('/candidates/<int:candidate_id>', methods=['GET'])
@jwt_required()
@role_required(*HR_ROLES)
def get_candidate(candidate_id):
    _, candidate = _visible_candidate(candidate_id)
    return jsonify(candidate.to_dict()), 200


@candidates_bp.route('/candidates', methods=['POST'])
@jwt_required()
@role_required(*HR_ROLES)
def create_candidate():
    user = current_user_or_401()
    try:
        data = CandidateCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("candidate", e)

    require_reference(School, data.school_id, "School")
    check_school_access(user, data.school_id)

    candidate = Candidate(**data.model_dump())
    db.session.add(candidate)
    record_activity("candidate_added", f"Candidate {candidate.name} added")
    db.session.commit()
    return jsonify(candidate.to_dict()), 201


@candidates_bp.route('/candidates/<int:candidate_id>', methods=['PATCH'])
@jwt_required()
@role_required(*HR_ROLES)
def update_candidate(candidate_id):
    user, candidate = _visible_candidate(candidate_id)
    try:
        changes = validate_update(CandidateCreate, candidate, get_json_payload())
    except ValidationError as e:
        return invalid("candidate", e)

    if "school_id" in changes:
        require_reference(School, changes["school_id"], "School")
        check_school_access(user, changes["school_id"])

    apply_changes(candidate, changes)
    record_activity("candidate_updated", f"Candidate {candidate.name} updated")
    db.session.commit()
    return jsonify(candidate.to_dict()), 200


@candidates_bp.route('/candidates/<int:candidate_id>', methods=['DELETE'])
@jwt_required()
@role_required(*HR_ROLES)
def delete_candidate(candidate_id):
    _, candidate = _visible_candidate(candidate_id)
    if candidate.resume_url:
        delete_stored_file(candidate.resume_url)
    db.session.delete(candidate)
    record_activity("candidate_deleted", f"Candidate {candidate.name} removed")
    db.session.commit()
    return '', 204


@candidates_bp.route('/interview-questions', methods=['GET'])
@jwt_required()
def list_questions():
    query = InterviewQuestion.query
    category = request.args.get("category")
    if category:
        try:
            query = query.filter(InterviewQuestion.category == QuestionCategoryEnum(category))
        except ValueError:
            return jsonify({"message": f"Unknown category '{category}'"}), 400
    items = query.order_by(InterviewQuestion.category, InterviewQuestion.id).all()
    return jsonify([q.to_dict() for q in items]), 200


@candidates_bp.route('/interview-questions', methods=['POST'])
@jwt_required()
@role_required(*HR_ROLES)
def create_question():
    try:
        data = InterviewQuestionCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("interview question", e)

    question = InterviewQuestion(**data.model_dump())
    db.session.add(question)
    db.session.commit()
    return jsonify(question.to_dict()), 201


@candidates_bp.route('/interview-questions/<int:question_id>', methods=['PATCH'])
@jwt_required()
@role_required(*HR_ROLES)
def update_question(question_id):
    question = db.get_or_404(InterviewQuestion, question_id, description="Interview question not found")
    try:
        changes = validate_update(InterviewQuestionCreate, question, get_json_payload())
    except ValidationError as e:
        return invalid("interview question", e)

    apply_changes(question, changes)
    db.session.commit()
    return jsonify(question.to_dict()), 200


@candidates_bp.route('/interview-questions/<int:question_id>', methods=['DELETE'])
@jwt_required()
@role_required(*HR_ROLES)
def delete_question(question_id):
    question = db.get_or_404(InterviewQuestion, question_id, description="Interview question not found")
    db.session.delete(question)
    db.session.commit()
    return '', 204
