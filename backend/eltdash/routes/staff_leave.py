from datetime import date, datetime
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from eltdash.models import StaffLeave, PtoBalance, Instructor, LeaveStatusEnum
from eltdash.extensions import db
from eltdash.schemas import StaffLeaveCreate, PtoBalanceUpdate, validate_update
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, apply_changes
)
from eltutils.access_control import HR_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required

staff_leave_bp = Blueprint("staff_leave", __name__)

PTO_LEAVE_TYPE = "PTO"


def approved_pto_days(instructor_id, year):
    """Inclusive days of approved PTO leave falling inside ``year``."""
    year_start, year_end = date(year, 1, 1), date(year, 12, 31)
    leaves = StaffLeave.query.filter(
        StaffLeave.instructor_id == instructor_id,
        StaffLeave.status == LeaveStatusEnum.approved,
        db.func.upper(StaffLeave.leave_type) == PTO_LEAVE_TYPE,
        StaffLeave.start_date <= year_end,
        StaffLeave.end_date >= year_start,
    ).all()
    return sum(
        (min(leave.end_date, year_end) - max(leave.start_date, year_start)).days + 1
        for leave in leaves
    )


def refresh_balance(instructor_id, year):
    balance = PtoBalance.query.filter_by(instructor_id=instructor_id, year=year).first()
    if balance is None:
        balance = PtoBalance(instructor_id=instructor_id, year=year, total_days=21, adjustments=0)
        db.session.add(balance)
    balance.recalculate(approved_pto_days(instructor_id, year))
    return balance


def _visible_leave(leave_id):
    user = current_user_or_401()
    leave = db.get_or_404(StaffLeave, leave_id, description="Leave request not found")
    check_school_access(user, db.session.get(Instructor, leave.instructor_id).school_id)
    return user, leave


def _instructor_for(user, instructor_id):
    require_reference(Instructor, instructor_id, "Instructor")
    instructor = db.session.get(Instructor, instructor_id)
    check_school_access(user, instructor.school_id)
    return instructor


def _refresh_years(leave):
    for year in range(leave.start_date.year, leave.end_date.year + 1):
        refresh_balance(leave.instructor_id, year)


@staff_leave_bp.route('/staff-leave', methods=['GET'])
@jwt_required()
def list_leave():
    user = current_user_or_401()
    query = (StaffLeave.query.join(Instructor, Instructor.id == StaffLeave.instructor_id)
             .filter(Instructor.school_id.in_(scoped_school_ids(user))))

    status = request.args.get("status")
    if status:
        try:
            query = query.filter(StaffLeave.status == LeaveStatusEnum(status))
        except ValueError:
            return jsonify({"message": f"Unknown status '{status}'"}), 400
    instructor_id = request.args.get("instructorId", type=int)
    if instructor_id:
        query = query.filter(StaffLeave.instructor_id == instructor_id)

    items = query.order_by(StaffLeave.start_date.desc()).all()
    return jsonify([leave.to_dict() for leave in items]), 200


@staff_leave_bp.route('/staff-leave/<int:leave_id>', methods=['GET'])
@jwt_required()
def get_leave(leave_id):
    _, leave = _visible_leave(leave_id)
    return jsonify(leave.to_dict()), 200


@staff_leave_bp.route('/staff-leave', methods=['POST'])
@jwt_required()
@role_required(*HR_ROLES)
def create_leave():
    user = current_user_or_401()
    try:
        data = StaffLeaveCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("leave", e)

    instructor = _instructor_for(user, data.instructor_id)
    leave = StaffLeave(**data.model_dump())
    leave.instructor_name = data.instructor_name or instructor.name
    db.session.add(leave)
    db.session.flush()
    _refresh_years(leave)
    record_activity("leave_requested", f"{leave.leave_type} leave requested for {leave.instructor_name}")
    db.session.commit()
    return jsonify(leave.to_dict()), 201


@staff_leave_bp.route('/staff-leave/<int:leave_id>', methods=['PATCH'])
@jwt_required()
@role_required(*HR_ROLES)
def update_leave(leave_id):
    user, leave = _visible_leave(leave_id)
    try:
        changes = validate_update(StaffLeaveCreate, leave, get_json_payload())
    except ValidationError as e:
        return invalid("leave", e)

    if "instructor_id" in changes:
        _instructor_for(user, changes["instructor_id"])
    if changes.get("instructor_name") is None:
        changes.pop("instructor_name", None)

    previous = (leave.instructor_id, leave.start_date, leave.end_date)
    apply_changes(leave, changes)
    db.session.flush()
    _refresh_years(leave)
    old_instructor, old_start, old_end = previous
    for year in range(old_start.year, old_end.year + 1):
        refresh_balance(old_instructor, year)

    if "status" in changes:
        record_activity(f"leave_{leave.status.value}", f"Leave for {leave.instructor_name} {leave.status.value}")
    else:
        record_activity("leave_updated", f"Leave for {leave.instructor_name} updated")
    db.session.commit()
    return jsonify(leave.to_dict()), 200


@staff_leave_bp.route('/staff-leave/<int:leave_id>', methods=['DELETE'])
@jwt_required()
@role_required(*HR_ROLES)
def delete_leave(leave_id):
    _, leave = _visible_leave(leave_id)
    db.session.delete(leave)
    db.session.flush()
    _refresh_years(leave)
    record_activity("leave_deleted", f"Leave for {leave.instructor_name} deleted")
    db.session.commit()
    return '', 204


@staff_leave_bp.route('/pto-balance', methods=['GET'])
@jwt_required()
def list_pto_balances():
    user = current_user_or_401()
    year = request.args.get("year", date.today().year, type=int)
    instructors = (Instructor.query.filter(Instructor.school_id.in_(scoped_school_ids(user)))
                   .order_by(Instructor.name).all())

    balances = [refresh_balance(i.id, year) for i in instructors]
    db.session.commit()

    names = {i.id: i.name for i in instructors}
    result = []
    for balance in balances:
        row = balance.to_dict()
        row["instructorName"] = names[balance.instructor_id]
        result.append(row)
    return jsonify(result), 200


@staff_leave_bp.route('/pto-balance/<int:balance_id>', methods=['PATCH'])
@jwt_required()
@role_required(*HR_ROLES)
def update_pto_balance(balance_id):
    user = current_user_or_401()
    balance = db.get_or_404(PtoBalance, balance_id, description="PTO balance not found")
    check_school_access(user, balance.instructor.school_id)
    try:
        changes = validate_update(PtoBalanceUpdate, balance, get_json_payload())
    except ValidationError as e:
        return invalid("PTO balance", e)

    apply_changes(balance, changes)
    balance.recalculate(approved_pto_days(balance.instructor_id, balance.year))
    balance.last_updated = datetime.utcnow()
    record_activity("pto_balance_updated", f"PTO balance {balance.year} updated for instructor {balance.instructor_id}")
    db.session.commit()
    return jsonify(balance.to_dict()), 200
