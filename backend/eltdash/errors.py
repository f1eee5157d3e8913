from flask import jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
from eltdash.extensions import db


def validation_errors(exc):
    """Flatten pydantic errors into the JSON-friendly list returned to the client."""
    return [
        {
            "path": [str(p) for p in err["loc"]],
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]


def register_error_handlers(app):

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc):
        return jsonify({"message": "Invalid data", "errors": validation_errors(exc)}), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc):
        return jsonify({"message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", exc)
        return jsonify({"message": "Internal server error"}), 500
