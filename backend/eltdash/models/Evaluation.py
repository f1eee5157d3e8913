from eltdash.extensions import db
from .base import SerializerMixin


class Evaluation(db.Model, SerializerMixin):
    __tablename__ = 'evaluations'

    id = db.Column(db.Integer, primary_key=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey('instructors.id'), nullable=False, index=True)
    quarter = db.Column(db.String(10), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    score = db.Column(db.Integer, nullable=False)
    feedback = db.Column(db.Text, nullable=True)
    evaluator_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    evaluation_type = db.Column(db.String(40), nullable=True)
    employee_id = db.Column(db.String(40), nullable=True)
