from datetime import datetime
from eltdash.extensions import db
from eltutils.serialization import to_dict
import enum


class SerializerMixin:
    def to_dict(self):
        return to_dict(self)


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class TestTypeEnum(enum.Enum):
    alcpt = "ALCPT"
    book = "Book"
    ecl = "ECL"
    opi = "OPI"


class AttendanceStatusEnum(enum.Enum):
    present = "present"
    absent = "absent"
    late = "late"
    sick = "sick"
    paternity = "paternity"
    pto = "pto"
    bereavement = "bereavement"


class LeaveStatusEnum(enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class CounselingTypeEnum(enum.Enum):
    verbal = "Verbal Warning"
    written = "Written Warning"
    final = "Final Warning"


class CandidateStatusEnum(enum.Enum):
    new = "new"
    reviewed = "reviewed"
    shortlisted = "shortlisted"
    interviewed = "interviewed"
    hired = "hired"
    rejected = "rejected"


class QuestionCategoryEnum(enum.Enum):
    general = "general"
    technical = "technical"
    curriculum = "curriculum"
    behavioral = "behavioral"


class ActionLogStatusEnum(enum.Enum):
    pending = "pending"
    completed = "completed"
    under_review = "under_review"


class AccessRequestTypeEnum(enum.Enum):
    registration = "registration"
    password_reset = "password_reset"


class AccessRequestStatusEnum(enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
