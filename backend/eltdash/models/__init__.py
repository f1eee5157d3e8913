from .User import User, Role, TokenBlocklist
from .School import School
from .Instructor import Instructor
from .Course import Course
from .Student import Student
from .TestResult import TestResult
from .TestScore import TestScore
from .Evaluation import Evaluation
from .Document import Document
from .Event import Event
from .Activity import Activity
from .StaffAttendance import StaffAttendance
from .StaffLeave import StaffLeave, PtoBalance
from .StaffCounseling import StaffCounseling
from .Candidate import Candidate, InterviewQuestion
from .ActionLog import ActionLog
from .AccessRequest import AccessRequest
from .AuditLog import AuditLog
from .base import (
    TestTypeEnum, AttendanceStatusEnum, LeaveStatusEnum, CounselingTypeEnum,
    CandidateStatusEnum, QuestionCategoryEnum, ActionLogStatusEnum,
    AccessRequestTypeEnum, AccessRequestStatusEnum,
)
