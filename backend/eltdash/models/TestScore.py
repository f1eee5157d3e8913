from datetime import datetime
from eltdash.extensions import db
from eltdash.services.score_tracker import passing_score
from .base import SerializerMixin, TimestampMixin, TestTypeEnum


class TestScore(db.Model, SerializerMixin, TimestampMixin):
    __tablename__ = 'test_scores'

    id = db.Column(db.Integer, primary_key=True)
    student_name = db.Column(db.String(120), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    test_type = db.Column(db.Enum(TestTypeEnum), nullable=False, index=True)
    score = db.Column(db.Float, nullable=False)
    max_score = db.Column(db.Float, nullable=False, default=100)
    percentage = db.Column(db.Float, nullable=False)
    test_date = db.Column(db.Date, nullable=False, index=True)
    instructor = db.Column(db.String(120), nullable=True)
    course = db.Column(db.String(120), nullable=True)
    level = db.Column(db.String(40), nullable=True)
    upload_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    school = db.relationship('School', backref='test_scores')

    @property
    def passing_score(self):
        return passing_score(self.test_type.value)

    @property
    def passed(self):
        return self.percentage >= self.passing_score

    def to_dict(self):
        data = super().to_dict()
        data["passingScore"] = self.passing_score
        data["status"] = "Pass" if self.passed else "Fail"
        return data
