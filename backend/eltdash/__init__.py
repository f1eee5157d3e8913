from flask import Flask
from flask_cors import CORS
from .config import Config
from eltdash.extensions import db, jwt, limiter, migrate


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    jwt.init_app(app)
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)
    limiter.init_app(app)
    migrate.init_app(app, db)

    from eltdash.models import TokenBlocklist
    from eltdash.routes import register_routes
    from eltdash.errors import register_error_handlers

    register_routes(app)
    register_error_handlers(app)

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        jti = jwt_payload["jti"]
        token = db.session.query(TokenBlocklist).filter_by(jti=jti).first()
        return token is not None

    @jwt.unauthorized_loader
    def missing_token(reason):
        return {"message": "Missing or invalid JWT token"}, 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return {"message": f"Invalid token: {reason}"}, 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return {"message": "Token has expired"}, 401

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return {"message": "Token has been revoked"}, 401

    with app.app_context():
        db.create_all()

    return app
