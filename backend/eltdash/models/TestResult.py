from eltdash.extensions import db
from .base import SerializerMixin


class TestResult(db.Model, SerializerMixin):
    __tablename__ = 'test_results'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False, index=True)
    test_date = db.Column(db.Date, nullable=False)
    score = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(40), nullable=False)
