from eltdash.extensions import db
from .base import SerializerMixin


class School(db.Model, SerializerMixin):
    __tablename__ = 'schools'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), nullable=False)
    code = db.Column(db.String(40), nullable=False, unique=True)
    location = db.Column(db.String(120), nullable=True)

    instructors = db.relationship('Instructor', backref='school', lazy=True)
    courses = db.relationship('Course', backref='school', lazy=True)
    students = db.relationship('Student', backref='school', lazy=True)
    users = db.relationship('User', back_populates='school', lazy=True)
