from eltdash.extensions import db
from .base import SerializerMixin


class Student(db.Model, SerializerMixin):
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    rank = db.Column(db.String(60), nullable=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    enrollment_date = db.Column(db.Date, nullable=False)

    test_results = db.relationship('TestResult', backref='student', lazy=True, cascade="all, delete-orphan")
