# models/enrollment.py
from sqlalchemy import Index

from coursehub.extensions import db
from .base import BaseModel


class EnrollmentStatus:
    """Enrollment status constants."""
    ACTIVE = 'ACTIVE'
    DROPOUT = 'DROPOUT'
    COMPLETED = 'COMPLETED'


class Enrollment(BaseModel):
    """A student's enrollment in a course, with the deadline after which it may be dropped."""

    __tablename__ = 'enrollments'

    course_id = db.Column(db.Integer, nullable=False)
    student_id = db.Column(db.Integer, nullable=False)
    deadline_at = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), default=EnrollmentStatus.ACTIVE, nullable=False)

    __table_args__ = (
        # Dropout scan: status + deadline filter, keyset paging on id
        Index('idx_enrollment_status_deadline_id', 'status', 'deadline_at', 'id'),
        Index('idx_enrollment_course_student', 'course_id', 'student_id'),
    )

    def __repr__(self):
        return f'<Enrollment {self.id} course={self.course_id} student={self.student_id} - {self.status}>'
