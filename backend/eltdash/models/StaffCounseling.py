from eltdash.extensions import db
from .base import SerializerMixin, TimestampMixin, CounselingTypeEnum


class StaffCounseling(db.Model, SerializerMixin, TimestampMixin):
    __tablename__ = 'staff_counseling'

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey('instructors.id'), nullable=False, index=True)
    counseling_type = db.Column(db.Enum(CounselingTypeEnum), nullable=False)
    counseling_date = db.Column(db.Date, nullable=False)
    comments = db.Column(db.Text, nullable=True)
    attachment_url = db.Column(db.String(255), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
