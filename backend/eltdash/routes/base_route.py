from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from eltdash.extensions import db

base_bp = Blueprint("base", __name__)


@base_bp.route("/")
def home():
    return jsonify({"message": "ELT Dashboard API"})


@base_bp.route("/api/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        current_app.logger.error("Health check failed: %s", e)
        return jsonify({"status": "unhealthy", "database": "unreachable"}), 503
    return jsonify({"status": "healthy", "database": "connected"}), 200
