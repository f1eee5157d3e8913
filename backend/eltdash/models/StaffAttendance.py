from eltdash.extensions import db
from .base import SerializerMixin, AttendanceStatusEnum


class StaffAttendance(db.Model, SerializerMixin):
    __tablename__ = 'staff_attendance'
    __table_args__ = (
        db.UniqueConstraint('instructor_id', 'date', name='uq_staff_attendance_instructor_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey('instructors.id'), nullable=False, index=True)
    status = db.Column(db.Enum(AttendanceStatusEnum), nullable=False)
    time_in = db.Column(db.String(10), nullable=True)
    time_out = db.Column(db.String(10), nullable=True)
    comments = db.Column(db.Text, nullable=True)
    recorded_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
