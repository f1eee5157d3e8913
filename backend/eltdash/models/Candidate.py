from datetime import datetime
from eltdash.extensions import db
from .base import SerializerMixin, CandidateStatusEnum, QuestionCategoryEnum


class Candidate(db.Model, SerializerMixin):
    __tablename__ = 'candidates'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(40), nullable=True)
    resume_url = db.Column(db.String(255), nullable=True)
    native_english_speaker = db.Column(db.Boolean, nullable=False, default=False)
    degree = db.Column(db.String(60), nullable=True)
    degree_field = db.Column(db.String(120), nullable=True)
    years_experience = db.Column(db.Integer, nullable=True)
    has_certifications = db.Column(db.Boolean, nullable=False, default=False)
    certifications = db.Column(db.String(255), nullable=True)
    classroom_management = db.Column(db.Integer, nullable=True)
    military_experience = db.Column(db.Boolean, nullable=False, default=False)
    grammar_proficiency = db.Column(db.Integer, nullable=True)
    vocabulary_proficiency = db.Column(db.Integer, nullable=True)
    nationality = db.Column(db.String(80), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=True, index=True)
    status = db.Column(db.Enum(CandidateStatusEnum), nullable=False, default=CandidateStatusEnum.new)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def overall_score(self):
        scores = [
            s for s in (self.classroom_management, self.grammar_proficiency, self.vocabulary_proficiency)
            if s is not None
        ]
        if not scores:
            return None
        return round(sum(scores) / len(scores) * 10)

    def to_dict(self):
        data = super().to_dict()
        data["overallScore"] = self.overall_score
        return data


class InterviewQuestion(db.Model, SerializerMixin):
    __tablename__ = 'interview_questions'

    id = db.Column(db.Integer, primary_key=True)
    question = db.Column(db.Text, nullable=False)
    category = db.Column(db.Enum(QuestionCategoryEnum), nullable=False, default=QuestionCategoryEnum.general)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
