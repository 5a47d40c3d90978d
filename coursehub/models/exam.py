# models/exam.py
from sqlalchemy import Index

from coursehub.extensions import db
from .base import BaseModel


class ExamStatus:
    IN_PROGRESS = 'IN_PROGRESS'
    FINISHED = 'FINISHED'
    CANCELLED = 'CANCELLED'


class Exam(BaseModel):
    __tablename__ = 'exams'

    course_id = db.Column(db.Integer, nullable=False)
    student_id = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), default=ExamStatus.IN_PROGRESS, nullable=False)

    __table_args__ = (
        Index('idx_exam_status_course_student', 'status', 'course_id', 'student_id'),
    )

    def __repr__(self):
        return f'<Exam {self.id} course={self.course_id} student={self.student_id} - {self.status}>'
