import calendar
from datetime import datetime, date
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import StaffAttendance, Instructor, AttendanceStatusEnum
from eltdash.extensions import db
from eltdash.schemas import StaffAttendanceCreate, StaffAttendanceBulk, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltutils.access_control import HR_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required

staff_attendance_bp = Blueprint("staff_attendance", __name__)

ABSENCE_STATUSES = {
    AttendanceStatusEnum.absent, AttendanceStatusEnum.sick, AttendanceStatusEnum.paternity,
    AttendanceStatusEnum.pto, AttendanceStatusEnum.bereavement,
}


def parse_date_filter(value):
    """'YYYY-MM' selects a whole month, 'YYYY-MM-DD' a single day. Returns (start, end) or None."""
    try:
        if len(value) == 7:
            month_start = datetime.strptime(value, "%Y-%m").date()
            last_day = calendar.monthrange(month_start.year, month_start.month)[1]
            return month_start, month_start.replace(day=last_day)
        day = datetime.strptime(value, "%Y-%m-%d").date()
        return day, day
    except ValueError:
        return None


def _scoped_attendance(user):
    return (StaffAttendance.query.join(Instructor)
            .filter(Instructor.school_id.in_(scoped_school_ids(user))))


def _visible_record(record_id):
    user = current_user_or_401()
    record = db.get_or_404(StaffAttendance, record_id, description="Attendance record not found")
    check_school_access(user, record.instructor.school_id)
    return user, record


def _check_instructor(user, instructor_id):
    require_reference(Instructor, instructor_id, "Instructor")
    check_school_access(user, db.session.get(Instructor, instructor_id).school_id)


@staff_attendance_bp.route('', methods=['GET'])
@jwt_required()
def list_attendance():
    user = current_user_or_401()
    query = _scoped_attendance(user)

    date_arg = request.args.get("date")
    if date_arg:
        window = parse_date_filter(date_arg)
        if window is None:
            return jsonify({"message": "date must be YYYY-MM or YYYY-MM-DD"}), 400
        query = query.filter(StaffAttendance.date.between(*window))

    instructor_id = request.args.get("instructorId", type=int)
    if instructor_id:
        query = query.filter(StaffAttendance.instructor_id == instructor_id)

    items = query.order_by(StaffAttendance.date.desc(), Instructor.name).all()
    return jsonify([r.to_dict() for r in items]), 200


@staff_attendance_bp.route('/summary', methods=['GET'])
@jwt_required()
def attendance_summary():
    user = current_user_or_401()
    month = request.args.get("month") or date.today().strftime("%Y-%m")
    window = parse_date_filter(month) if len(month) == 7 else None
    if window is None:
        return jsonify({"message": "month must be YYYY-MM"}), 400

    instructors = (Instructor.query.filter(Instructor.school_id.in_(scoped_school_ids(user)))
                   .order_by(Instructor.name).all())
    summary = {
        i.id: {"instructorId": i.id, "instructorName": i.name, "schoolId": i.school_id,
               "present": 0, "late": 0, "absent": 0}
        for i in instructors
    }

    records = StaffAttendance.query.filter(
        StaffAttendance.instructor_id.in_(list(summary)),
        StaffAttendance.date.between(*window)
    ).all()
    for record in records:
        row = summary[record.instructor_id]
        if record.status == AttendanceStatusEnum.present:
            row["present"] += 1
        elif record.status == AttendanceStatusEnum.late:
            row["late"] += 1
        elif record.status in ABSENCE_STATUSES:
            row["absent"] += 1

    return jsonify({"month": month, "instructors": list(summary.values())}), 200


@staff_attendance_bp.route('/<int:record_id>', methods=['GET'])
@jwt_required()
def get_attendance(record_id):
    _, record = _visible_record(record_id)
    return jsonify(record.to_dict()), 200


@staff_attendance_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*HR_ROLES)
def create_attendance():
    user = current_user_or_401()
    try:
        data = StaffAttendanceCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("attendance", e)

    _check_instructor(user, data.instructor_id)
    if StaffAttendance.query.filter_by(instructor_id=data.instructor_id, date=data.date).first():
        return jsonify({"message": "Attendance already recorded for this instructor on this date"}), 409

    record = StaffAttendance(**data.model_dump(), recorded_by=user.id)
    db.session.add(record)
    record_activity("attendance_recorded",
                    f"Attendance for instructor {data.instructor_id} on {data.date} marked {data.status.value}")
    db.session.commit()
    return jsonify(record.to_dict()), 201


@staff_attendance_bp.route('/bulk', methods=['POST'])
@jwt_required()
@role_required(*HR_ROLES)
def bulk_attendance():
    user = current_user_or_401()
    try:
        data = StaffAttendanceBulk.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("attendance", e)

    for entry in data.records:
        _check_instructor(user, entry.instructor_id)

    saved = []
    for entry in data.records:
        values = entry.model_dump()
        existing = StaffAttendance.query.filter_by(instructor_id=entry.instructor_id, date=data.date).first()
        if existing:
            apply_changes(existing, values)
            existing.recorded_by = user.id
            saved.append(existing)
        else:
            record = StaffAttendance(date=data.date, recorded_by=user.id, **values)
            db.session.add(record)
            saved.append(record)

    record_activity("attendance_recorded", f"Attendance saved for {len(saved)} instructors on {data.date}")
    db.session.commit()
    return jsonify([r.to_dict() for r in saved]), 200


@staff_attendance_bp.route('/<int:record_id>', methods=['PATCH'])
@jwt_required()
@role_required(*HR_ROLES)
def update_attendance(record_id):
    user, record = _visible_record(record_id)
    try:
        changes = validate_update(StaffAttendanceCreate, record, get_json_payload())
    except ValidationError as e:
        return invalid("attendance", e)

    instructor_id = changes.get("instructor_id", record.instructor_id)
    day = changes.get("date", record.date)
    if "instructor_id" in changes:
        _check_instructor(user, instructor_id)
    clash = StaffAttendance.query.filter(
        StaffAttendance.instructor_id == instructor_id,
        StaffAttendance.date == day,
        StaffAttendance.id != record.id
    ).first()
    if clash:
        return jsonify({"message": "Attendance already recorded for this instructor on this date"}), 409

    apply_changes(record, changes)
    record.recorded_by = user.id
    record_activity("attendance_updated", f"Attendance record {record.id} updated")
    db.session.commit()
    return jsonify(record.to_dict()), 200


@staff_attendance_bp.route('/<int:record_id>', methods=['DELETE'])
@jwt_required()
@role_required(*HR_ROLES)
def delete_attendance(record_id):
    _, record = _visible_record(record_id)
    db.session.delete(record)
    record_activity("attendance_deleted", f"Attendance record {record.id} deleted")
    db.session.commit()
    return '', 204
