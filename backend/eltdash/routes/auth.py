from flask import Blueprint, request, jsonify, current_app, make_response
from flask_jwt_extended import (
    create_access_token, create_refresh_token, jwt_required,
    get_jwt_identity, get_jwt
)
from pydantic import ValidationError
from eltdash.models import User, TokenBlocklist
from eltdash.extensions import db, limiter
from eltdash.schemas import LoginRequest
from eltdash.routes.common import invalid
from eltutils.access_control import get_current_user
from eltutils.audit import log_event
from datetime import datetime, timedelta

auth_bp = Blueprint('auth', __name__)

ACCESS_TTL = timedelta(hours=1)
REFRESH_TTL = timedelta(days=7)
REFRESH_COOKIE_PATH = "/api/auth/refresh"


def _access_token_for(user):
    return create_access_token(
        identity=str(user.id),
        expires_delta=ACCESS_TTL,
        additional_claims={"role": user.role.name, "school_id": user.school_id}
    )


def _set_cookie(response, name, value, max_age, path):
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        httponly=True,
        secure=current_app.config["JWT_COOKIE_SECURE"],
        samesite=current_app.config["JWT_COOKIE_SAMESITE"],
        path=path
    )


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def login():
    ip = request.remote_addr
    try:
        credentials = LoginRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return invalid("login", e)

    user = User.query.filter_by(username=credentials.username).first()

    if user and user.check_password(credentials.password):
        access_token = _access_token_for(user)
        refresh_token = create_refresh_token(identity=str(user.id), expires_delta=REFRESH_TTL)

        response = make_response(jsonify({
            "message": "Login successful",
            "accessToken": access_token,
            "user": user.to_dict()
        }))
        _set_cookie(response, "access_token_cookie", access_token, int(ACCESS_TTL.total_seconds()), "/")
        _set_cookie(response, "refresh_token_cookie", refresh_token, int(REFRESH_TTL.total_seconds()),
                    REFRESH_COOKIE_PATH)

        log_event("LOGIN_SUCCESS", user_id=user.id, ip=ip, description=f"{user.username} logged in")
        return response

    log_event("LOGIN_FAILED", ip=ip, description=f"Failed login attempt for {credentials.username}",
              level="WARNING")
    return jsonify({"message": "Invalid username or password"}), 401


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_me():
    user = get_current_user()
    if not user:
        return jsonify({"message": "User not found"}), 404

    data = user.to_dict()
    data["school"] = user.school.name if user.school else None
    return jsonify(data), 200


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh_access_token():
    user = get_current_user()
    if not user:
        return jsonify({"message": "User not found"}), 404

    access_token = _access_token_for(user)
    response = make_response(jsonify({"message": "Token refreshed", "accessToken": access_token}))
    _set_cookie(response, "access_token_cookie", access_token, int(ACCESS_TTL.total_seconds()), "/")

    log_event("REFRESH_TOKEN", user_id=user.id, ip=request.remote_addr)
    return response


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    claims = get_jwt()
    user_id = int(get_jwt_identity())

    db.session.add(TokenBlocklist(
        jti=claims["jti"],
        token_type=claims["type"],
        user_id=user_id,
        expires_at=datetime.utcfromtimestamp(claims["exp"])
    ))
    db.session.commit()

    response = make_response(jsonify({"message": "Successfully logged out"}))
    response.delete_cookie("access_token_cookie", path="/")
    response.delete_cookie("refresh_token_cookie", path=REFRESH_COOKIE_PATH)

    log_event("LOGOUT", user_id=user_id, ip=request.remote_addr)
    return response
