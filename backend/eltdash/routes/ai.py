from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import School
from eltdash.extensions import db, limiter
from eltdash.schemas import AIChatRequest, AssistantQuery
from eltdash.routes.common import get_json_payload, current_user_or_401, check_school_access, invalid
from eltdash.services.ai_client import get_client

ai_bp = Blueprint("ai", __name__)


def school_context(school):
    courses = school.courses
    return {
        "school": school.name,
        "code": school.code,
        "location": school.location,
        "instructorCount": len(school.instructors),
        "courseCount": len(courses),
        "activeCourses": [c.name for c in courses if c.status in ("In Progress", "Active")],
        "studentCount": sum(c.student_count or 0 for c in courses),
    }


@ai_bp.route('/ai/chat', methods=['POST'])
@limiter.limit("20 per minute", override_defaults=False)
@jwt_required()
def ai_chat():
    user = current_user_or_401()
    try:
        data = AIChatRequest.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("chat", e)

    context = dict(data.context or {})
    if data.school_id is not None:
        school = db.get_or_404(School, data.school_id, description="School not found")
        check_school_access(user, school.id)
        context.update(school_context(school))

    reply = get_client("openai").chat(
        data.message,
        history=[m.model_dump() for m in data.messages],
        context=context or None,
    )
    return jsonify({"message": {"role": "assistant", "content": reply}}), 200


@ai_bp.route('/assistant/query', methods=['POST'])
@limiter.limit("20 per minute", override_defaults=False)
@jwt_required()
def assistant_query():
    current_user_or_401()
    try:
        data = AssistantQuery.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("assistant query", e)

    client = get_client(data.provider)
    reply = client.chat(
        data.query,
        history=[m.model_dump() for m in data.conversation_context],
        context=data.context,
    )
    return jsonify({"success": True, "response": reply, "provider": data.provider}), 200
