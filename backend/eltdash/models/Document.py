from datetime import datetime
from eltdash.extensions import db
from .base import SerializerMixin


class Document(db.Model, SerializerMixin):
    __tablename__ = 'documents'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(60), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=True, index=True)
    upload_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    file_url = db.Column(db.String(255), nullable=False)
    original_name = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)

    school = db.relationship('School', backref='documents')
