"""
Pydantic schemas for request validation.

Payloads arrive in camelCase; every schema also accepts the snake_case field
names so model rows can be re-validated as-is on partial updates.
"""

import datetime as dt
from datetime import date, datetime
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from eltdash.models.base import (
    TestTypeEnum, AttendanceStatusEnum, LeaveStatusEnum, CounselingTypeEnum,
    CandidateStatusEnum, QuestionCategoryEnum, ActionLogStatusEnum,
    AccessRequestTypeEnum,
)
from eltdash.services.score_tracker import infer_test_type

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


def validate_update(schema_cls, instance, payload):
    """
    Validate a partial update against the full schema.

    The row's current values are merged under the payload so cross-field rules
    still hold, but only the fields the client actually sent are returned.
    """
    current = {name: getattr(instance, name) for name in schema_cls.model_fields if hasattr(instance, name)}
    validated = schema_cls.model_validate({**current, **payload})
    provided = {
        name for name, field in schema_cls.model_fields.items()
        if name in payload or field.alias in payload
    }
    return {name: getattr(validated, name) for name in provided}


# ============================================================
# SCHOOLS / INSTRUCTORS / COURSES / STUDENTS
# ============================================================

class SchoolCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=80)
    code: str = Field(..., min_length=1, max_length=40)
    location: Optional[str] = Field(None, max_length=120)


class InstructorCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=120)
    nationality: str = Field(..., min_length=1, max_length=80)
    credentials: str = Field(..., min_length=1, max_length=255)
    start_date: date
    compound: str = Field(..., min_length=1, max_length=80)
    school_id: int
    phone: str = Field(..., min_length=1, max_length=40)
    accompanied_status: str = Field(..., min_length=1, max_length=40)
    image_url: Optional[str] = Field(None, max_length=255)
    role: Optional[str] = Field(None, max_length=80)
    email: Optional[str] = Field(None, max_length=120, pattern=EMAIL_PATTERN)


class CourseCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=120)
    student_count: int = Field(0, ge=0)
    start_date: date
    end_date: Optional[date] = None
    instructor_id: int
    school_id: int
    status: str = Field(..., min_length=1, max_length=40)
    progress: int = Field(0, ge=0, le=100)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class StudentCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=120)
    rank: Optional[str] = Field(None, max_length=60)
    school_id: int
    enrollment_date: date


class TestResultCreate(ApiModel):
    student_id: int
    course_id: int
    test_date: date
    score: int = Field(..., ge=0)
    type: str = Field(..., min_length=1, max_length=40)


# ============================================================
# TEST SCORES
# ============================================================

class TestScoreCreate(ApiModel):
    student_name: str = Field(..., min_length=1, max_length=120)
    school_id: int
    test_type: Optional[TestTypeEnum] = None
    score: float = Field(..., ge=0)
    max_score: float = Field(100, gt=0)
    percentage: Optional[float] = Field(None, ge=0, le=100)
    test_date: date
    instructor: Optional[str] = Field(None, max_length=120)
    course: Optional[str] = Field(None, max_length=120)
    level: Optional[str] = Field(None, max_length=40)

    @model_validator(mode="after")
    def fill_derived_fields(self):
        if self.test_type is None:
            inferred = infer_test_type(self.course)
            if inferred is None:
                raise ValueError("testType is required when it cannot be inferred from the course")
            self.test_type = TestTypeEnum(inferred)
        if self.score > self.max_score:
            raise ValueError("score must not exceed maxScore")
        if self.percentage is None:
            self.percentage = round(self.score / self.max_score * 100, 2)
        return self


# ============================================================
# EVALUATIONS / DOCUMENTS / EVENTS / ACTIVITIES
# ============================================================

class EvaluationCreate(ApiModel):
    instructor_id: int
    quarter: str = Field(..., pattern=r"^Q[1-4]$")
    year: int = Field(..., ge=2000, le=2100)
    score: int = Field(..., ge=0, le=100)
    feedback: Optional[str] = None
    evaluator_id: Optional[int] = None
    evaluation_type: Optional[str] = Field(None, max_length=40)
    employee_id: Optional[str] = Field(None, max_length=40)


class DocumentCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1, max_length=60)
    school_id: Optional[int] = None
    file_url: str = Field(..., min_length=1, max_length=255)
    original_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class EventCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=255)
    start: datetime
    end: datetime
    school_id: Optional[int] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class ActivityCreate(ApiModel):
    type: str = Field(..., min_length=1, max_length=60)
    description: str = Field(..., min_length=1, max_length=255)


# ============================================================
# STAFF ATTENDANCE / LEAVE / COUNSELING
# ============================================================

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class StaffAttendanceCreate(ApiModel):
    date: dt.date
    instructor_id: int
    status: AttendanceStatusEnum
    time_in: Optional[str] = Field(None, pattern=TIME_PATTERN)
    time_out: Optional[str] = Field(None, pattern=TIME_PATTERN)
    comments: Optional[str] = None


class AttendanceEntry(ApiModel):
    instructor_id: int
    status: AttendanceStatusEnum
    time_in: Optional[str] = Field(None, pattern=TIME_PATTERN)
    time_out: Optional[str] = Field(None, pattern=TIME_PATTERN)
    comments: Optional[str] = None


class StaffAttendanceBulk(ApiModel):
    date: dt.date
    records: List[AttendanceEntry] = Field(..., min_length=1)


class StaffLeaveCreate(ApiModel):
    instructor_id: int
    instructor_name: Optional[str] = Field(None, max_length=120)
    employee_id: Optional[str] = Field(None, max_length=40)
    leave_type: str = Field(..., min_length=1, max_length=40)
    start_date: date
    end_date: date
    reason: Optional[str] = None
    status: LeaveStatusEnum = LeaveStatusEnum.pending
    attachment_url: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class PtoBalanceUpdate(ApiModel):
    total_days: int = Field(..., ge=0)
    adjustments: int = 0


class StaffCounselingCreate(ApiModel):
    school_id: int
    instructor_id: int
    counseling_type: CounselingTypeEnum
    counseling_date: date
    comments: Optional[str] = None
    attachment_url: Optional[str] = Field(None, max_length=255)


# ============================================================
# RECRUITMENT
# ============================================================

class CandidateCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., max_length=120, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(None, max_length=40)
    resume_url: Optional[str] = Field(None, max_length=255)
    native_english_speaker: bool = False
    degree: Optional[str] = Field(None, max_length=60)
    degree_field: Optional[str] = Field(None, max_length=120)
    years_experience: Optional[int] = Field(None, ge=0)
    has_certifications: bool = False
    certifications: Optional[str] = Field(None, max_length=255)
    classroom_management: Optional[int] = Field(None, ge=0, le=10)
    military_experience: bool = False
    grammar_proficiency: Optional[int] = Field(None, ge=0, le=10)
    vocabulary_proficiency: Optional[int] = Field(None, ge=0, le=10)
    nationality: Optional[str] = Field(None, max_length=80)
    notes: Optional[str] = None
    school_id: Optional[int] = None
    status: CandidateStatusEnum = CandidateStatusEnum.new


class InterviewQuestionCreate(ApiModel):
    question: str = Field(..., min_length=1)
    category: QuestionCategoryEnum = QuestionCategoryEnum.general


# ============================================================
# ACTION LOGS / ACCESS REQUESTS / USERS
# ============================================================

class ActionLogCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    status: ActionLogStatusEnum = ActionLogStatusEnum.pending
    category: Optional[str] = Field(None, max_length=60)
    due_date: Optional[date] = None
    assigned_to: Optional[str] = Field(None, max_length=120)
    school_id: Optional[int] = None


class AccessRequestCreate(ApiModel):
    full_name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., max_length=120, pattern=EMAIL_PATTERN)
    reason: str = Field(..., min_length=1)
    request_type: AccessRequestTypeEnum = AccessRequestTypeEnum.registration


class AccessRequestApprove(ApiModel):
    username: str = Field(..., max_length=80, pattern=r"^[\w.@+-]{3,}$")
    password: str = Field(..., min_length=8)
    role: str = "instructor"
    school_id: Optional[int] = None


class LoginRequest(ApiModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class UserCreate(ApiModel):
    username: str = Field(..., max_length=80, pattern=r"^[\w.@+-]{3,}$")
    password: str = Field(..., min_length=8)
    email: Optional[str] = Field(None, max_length=120, pattern=EMAIL_PATTERN)
    role: str = Field(..., min_length=1, max_length=80)
    school_id: Optional[int] = None


# ============================================================
# AI
# ============================================================

class ChatMessage(ApiModel):
    role: Literal["user", "assistant"]
    content: str


class AIChatRequest(ApiModel):
    message: Optional[str] = None
    messages: List[ChatMessage] = []
    context: Optional[dict] = None
    school_id: Optional[int] = None

    @model_validator(mode="after")
    def split_latest_message(self):
        # the chat widget posts the whole conversation, latest user turn last
        if not self.message:
            if not self.messages or self.messages[-1].role != "user":
                raise ValueError("message is required")
            self.message = self.messages[-1].content
            self.messages = self.messages[:-1]
        return self


class AssistantQuery(ApiModel):
    query: str = Field(..., min_length=1)
    provider: Literal["openai", "perplexity"] = "openai"
    conversation_context: List[ChatMessage] = []
    context: Optional[dict] = None
