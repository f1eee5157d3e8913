import os
from datetime import datetime
from flask import current_app
from flask_jwt_extended import get_jwt_identity

ACTIVITY_DESCRIPTION_LENGTH = 255


def log_event(event_type, user_id=None, ip=None, description=None, level="INFO"):
    """
    Logs a security or audit-related event to the audit log file.

    Parameters:
        event_type (str): The type of the event (e.g., LOGIN_SUCCESS).
        user_id (int|None): The user ID, if available.
        ip (str|None): IP address, if available.
        description (str|None): Additional context.
        level (str): Log level (e.g., INFO, WARNING, ERROR).
    """
    audit_log_file = current_app.config["AUDIT_LOG_FILE"]
    os.makedirs(os.path.dirname(audit_log_file) or ".", exist_ok=True)

    timestamp = datetime.utcnow().strftime('%Y-%m-%d %H:%M:%S')
    log_entry = (
        f"[{timestamp}] [{level.upper()}] EVENT: {event_type} | "
        f"USER: {user_id or 'N/A'} | IP: {ip or 'N/A'} | DESC: {description or 'N/A'}\n"
    )

    with open(audit_log_file, "a") as log_file:
        log_file.write(log_entry)

    current_app.logger.debug(log_entry.strip())


def record_activity(activity_type, description):
    """Add an entry to the dashboard activity feed. Committed with the caller's session."""
    from eltdash.extensions import db
    from eltdash.models import Activity

    if len(description) > ACTIVITY_DESCRIPTION_LENGTH:
        description = description[:ACTIVITY_DESCRIPTION_LENGTH - 3] + "..."

    identity = get_jwt_identity()
    activity = Activity(
        type=activity_type,
        description=description,
        user_id=int(identity) if identity else None,
    )
    db.session.add(activity)
    return activity
