from datetime import datetime
from eltdash.extensions import db
from .base import SerializerMixin, LeaveStatusEnum


class StaffLeave(db.Model, SerializerMixin):
    __tablename__ = 'staff_leave'

    id = db.Column(db.Integer, primary_key=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey('instructors.id'), nullable=False, index=True)
    instructor_name = db.Column(db.String(120), nullable=False)
    employee_id = db.Column(db.String(40), nullable=True)
    leave_type = db.Column(db.String(40), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    status = db.Column(db.Enum(LeaveStatusEnum), nullable=False, default=LeaveStatusEnum.pending)
    attachment_url = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def days(self):
        return (self.end_date - self.start_date).days + 1


class PtoBalance(db.Model, SerializerMixin):
    __tablename__ = 'pto_balance'
    __table_args__ = (
        db.UniqueConstraint('instructor_id', 'year', name='uq_pto_balance_instructor_year'),
    )

    id = db.Column(db.Integer, primary_key=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey('instructors.id'), nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False)
    total_days = db.Column(db.Integer, nullable=False, default=21)
    used_days = db.Column(db.Integer, nullable=False, default=0)
    remaining_days = db.Column(db.Integer, nullable=False, default=21)
    adjustments = db.Column(db.Integer, nullable=False, default=0)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def recalculate(self, used_days):
        self.used_days = min(self.total_days, used_days)
        self.remaining_days = max(0, self.total_days + self.adjustments - self.used_days)
