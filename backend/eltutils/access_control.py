from flask_jwt_extended import get_jwt_identity
from eltdash.extensions import db
from eltdash.models import School, User

ELEVATED_ROLES = {"superuser", "admin", "hr", "viewer"}
MANAGE_ROLES = ("superuser", "admin", "school_admin")
HR_ROLES = ("superuser", "admin", "hr", "school_admin")


def get_current_user():
    identity = get_jwt_identity()
    if not identity:
        return None
    return db.session.get(User, int(identity))


def get_allowed_site_ids(user, requested_ids=None):
    """
    Returns a list of allowed school ids based on the user's role and requested school ids.
    - Elevated roles (superuser, admin, hr, viewer) can access all or any requested schools.
    - School-bound roles (school_admin, instructor) are restricted to their assigned school.
    - Raises PermissionError for invalid access.
    """
    if not user:
        raise ValueError("No user provided")

    role_name = user.role.name

    if isinstance(requested_ids, int):
        requested_ids = [requested_ids]
    elif requested_ids is None:
        requested_ids = []

    if role_name in ELEVATED_ROLES:
        return requested_ids or [school.id for school in School.query.all()]

    if user.school_id is None:
        raise PermissionError("No school assigned to this account")

    if not requested_ids:
        return [user.school_id]

    if any(int(site_id) != user.school_id for site_id in requested_ids):
        raise PermissionError("Access denied to one or more requested schools")

    return [user.school_id]


def can_access_school(user, school_id):
    """True when the user may see rows of ``school_id``; rows without a school are shared."""
    if school_id is None:
        return True
    try:
        get_allowed_site_ids(user, [school_id])
    except (ValueError, PermissionError):
        return False
    return True
