from datetime import datetime
from eltdash.extensions import db
from .base import SerializerMixin, ActionLogStatusEnum


class ActionLog(db.Model, SerializerMixin):
    __tablename__ = 'action_logs'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.Enum(ActionLogStatusEnum), nullable=False, default=ActionLogStatusEnum.pending)
    category = db.Column(db.String(60), nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    assigned_to = db.Column(db.String(120), nullable=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    completed_date = db.Column(db.DateTime, nullable=True)

    def set_status(self, status):
        # completed_date tracks the status, it is never set directly
        if status == ActionLogStatusEnum.completed and self.status != ActionLogStatusEnum.completed:
            self.completed_date = datetime.utcnow()
        elif status != ActionLogStatusEnum.completed:
            self.completed_date = None
        self.status = status
