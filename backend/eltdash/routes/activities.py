from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import Activity
from eltdash.extensions import db
from eltdash.schemas import ActivityCreate
from eltdash.routes.common import get_json_payload, invalid
from eltutils.audit import record_activity

activities_bp = Blueprint("activities", __name__)


@activities_bp.route('/recent', methods=['GET'])
@jwt_required()
def recent_activities():
    limit = request.args.get("limit", 10, type=int)
    items = Activity.query.order_by(Activity.timestamp.desc(), Activity.id.desc()).limit(max(limit, 1)).all()
    return jsonify([a.to_dict() for a in items]), 200


@activities_bp.route('', methods=['POST'])
@jwt_required()
def create_activity():
    try:
        data = ActivityCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("activity", e)

    activity = record_activity(data.type, data.description)
    db.session.commit()
    return jsonify(activity.to_dict()), 201
