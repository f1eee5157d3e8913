from eltdash.extensions import db
from .base import SerializerMixin


class Course(db.Model, SerializerMixin):
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    student_count = db.Column(db.Integer, nullable=False, default=0)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey('instructors.id'), nullable=False, index=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    status = db.Column(db.String(40), nullable=False)
    progress = db.Column(db.Integer, nullable=False, default=0)

    test_results = db.relationship('TestResult', backref='course', lazy=True, cascade="all, delete-orphan")
