from datetime import datetime
from eltdash.extensions import db
from .base import SerializerMixin, AccessRequestTypeEnum, AccessRequestStatusEnum


class AccessRequest(db.Model, SerializerMixin):
    __tablename__ = 'access_requests'

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=False, index=True)
    reason = db.Column(db.Text, nullable=False)
    request_type = db.Column(db.Enum(AccessRequestTypeEnum), nullable=False,
                             default=AccessRequestTypeEnum.registration)
    status = db.Column(db.Enum(AccessRequestStatusEnum), nullable=False,
                       default=AccessRequestStatusEnum.pending)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    processed_at = db.Column(db.DateTime, nullable=True)
    processed_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
