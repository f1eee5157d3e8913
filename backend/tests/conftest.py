from datetime import date

import pytest
from flask_jwt_extended import create_access_token

from eltdash import create_app
from eltdash.config import TestingConfig
from eltdash.extensions import db
from eltdash.models import School, Role, User, Instructor


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        UPLOAD_FOLDER = str(tmp_path / "uploads")
        AUDIT_LOG_FILE = str(tmp_path / "logs" / "audit.log")

    app = create_app(Config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def schools(app):
    kfna = School(name="KFNA", code="KFNA", location="Jubail")
    east = School(name="NFS East", code="NFS_EAST", location="Jubail")
    db.session.add_all([kfna, east])
    db.session.commit()
    return kfna, east


@pytest.fixture
def roles(app):
    created = {}
    for name in ("superuser", "admin", "hr", "viewer", "school_admin", "instructor"):
        role = Role(name=name)
        db.session.add(role)
        created[name] = role
    db.session.commit()
    return created


def make_user(username, role, school=None, password="password123"):
    user = User(username=username, role_id=role.id, school_id=school.id if school else None)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(identity=str(user.id))}"}


@pytest.fixture
def admin(roles):
    return make_user("admin", roles["superuser"])


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def instructor(schools):
    kfna, _ = schools
    row = Instructor(
        name="Sarah Jones", nationality="British", credentials="CELTA",
        start_date=date(2023, 9, 1), compound="Al Fanar",
        school_id=kfna.id, phone="0500000000", accompanied_status="Single",
    )
    db.session.add(row)
    db.session.commit()
    return row
