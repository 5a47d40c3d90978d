# models/__init__.py
from .base import BaseModel
from .enrollment import Enrollment, EnrollmentStatus
from .exam import Exam, ExamStatus
from .submission import Submission, SubmissionStatus
from .activity import Activity, ActivityDescription

__all__ = [
    'BaseModel',
    'Enrollment',
    'EnrollmentStatus',
    'Exam',
    'ExamStatus',
    'Submission',
    'SubmissionStatus',
    'Activity',
    'ActivityDescription'
]
