# models/submission.py
from sqlalchemy import Index

from coursehub.extensions import db
from .base import BaseModel


class SubmissionStatus:
    WAITING_REVIEW = 'WAITING_REVIEW'
    REVIEWED = 'REVIEWED'
    REJECTED = 'REJECTED'


class Submission(BaseModel):
    __tablename__ = 'submissions'

    course_id = db.Column(db.Integer, nullable=False)
    student_id = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), default=SubmissionStatus.WAITING_REVIEW, nullable=False)

    __table_args__ = (
        Index('idx_submission_status_course_student', 'status', 'course_id', 'student_id'),
    )

    def __repr__(self):
        return f'<Submission {self.id} course={self.course_id} student={self.student_id} - {self.status}>'
