from eltdash.extensions import db
from .base import SerializerMixin


class Instructor(db.Model, SerializerMixin):
    __tablename__ = 'instructors'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    nationality = db.Column(db.String(80), nullable=False, index=True)
    credentials = db.Column(db.String(255), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    compound = db.Column(db.String(80), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    phone = db.Column(db.String(40), nullable=False)
    accompanied_status = db.Column(db.String(40), nullable=False)
    image_url = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(80), nullable=True)
    email = db.Column(db.String(120), nullable=True)

    courses = db.relationship('Course', backref='instructor', lazy=True)
    evaluations = db.relationship('Evaluation', backref='instructor', lazy=True, cascade="all, delete-orphan")
    attendance_records = db.relationship('StaffAttendance', backref='instructor', lazy=True, cascade="all, delete-orphan")
    leave_records = db.relationship('StaffLeave', backref='instructor', lazy=True, cascade="all, delete-orphan")
    counseling_records = db.relationship('StaffCounseling', backref='instructor', lazy=True, cascade="all, delete-orphan")
    pto_balances = db.relationship('PtoBalance', backref='instructor', lazy=True, cascade="all, delete-orphan")
