from flask import request, abort, jsonify
from pydantic import ValidationError
from eltdash.errors import validation_errors
from eltdash.extensions import db
from eltutils.access_control import get_current_user, get_allowed_site_ids, can_access_school


def get_json_payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, "Request body must be a JSON object")
    return data


def current_user_or_401():
    user = get_current_user()
    if not user:
        abort(401, "User not found")
    return user


def scoped_school_ids(user):
    """School ids visible to the user, narrowed by an optional ?schoolId= filter."""
    requested = request.args.getlist("schoolId", type=int)
    try:
        return get_allowed_site_ids(user, requested)
    except (ValueError, PermissionError) as e:
        abort(403, str(e))


def check_school_access(user, school_id):
    if not can_access_school(user, school_id):
        abort(403, "Access denied to this school")


def require_reference(model, ident, label):
    """Unknown foreign keys are a client error, not a database integrity error."""
    if ident is not None and db.session.get(model, ident) is None:
        abort(400, f"{label} {ident} does not exist")


def invalid(entity, exc):
    return jsonify({"message": f"Invalid {entity} data", "errors": validation_errors(exc)}), 400


def validate(schema_cls, payload, entity):
    """Returns (validated, None) or (None, error_response)."""
    try:
        return schema_cls.model_validate(payload), None
    except ValidationError as exc:
        return None, invalid(entity, exc)


def apply_changes(instance, changes):
    for key, value in changes.items():
        setattr(instance, key, value)
