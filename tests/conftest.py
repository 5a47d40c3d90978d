"""Pytest fixtures: a testing app on in-memory SQLite and record factories."""

from datetime import datetime

import pytest

from coursehub import create_app
from coursehub.extensions import db as _db
from coursehub.models import Enrollment, EnrollmentStatus, Exam, Submission


@pytest.fixture
def app():
    """Create a testing application with fresh tables."""
    app = create_app('testing')

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def session(app):
    """The database session the job runs in."""
    return _db.session


@pytest.fixture
def runner(app):
    """CLI runner bound to the testing application."""
    return app.test_cli_runner()


@pytest.fixture
def deadline():
    return datetime(2024, 1, 1)


@pytest.fixture
def make_enrollment(session, deadline):
    """Insert an enrollment and return it."""

    def _make(course_id, student_id, deadline_at=None, status=EnrollmentStatus.ACTIVE):
        enrollment = Enrollment(
            course_id=course_id,
            student_id=student_id,
            deadline_at=deadline_at or deadline,
            status=status
        )
        session.add(enrollment)
        session.commit()
        return enrollment

    return _make


@pytest.fixture
def make_exam(session):
    def _make(course_id, student_id, status):
        exam = Exam(course_id=course_id, student_id=student_id, status=status)
        session.add(exam)
        session.commit()
        return exam

    return _make


@pytest.fixture
def make_submission(session):
    def _make(course_id, student_id, status):
        submission = Submission(course_id=course_id, student_id=student_id, status=status)
        session.add(submission)
        session.commit()
        return submission

    return _make


@pytest.fixture
def bulk_enrollments(session, deadline):
    """Insert ``count`` active enrollments, one student each, in a single statement."""

    def _make(count, course_id=1, deadline_at=None):
        session.execute(
            Enrollment.__table__.insert(),
            [
                {
                    'course_id': course_id,
                    'student_id': student_id,
                    'deadline_at': deadline_at or deadline,
                    'status': EnrollmentStatus.ACTIVE,
                    'created_at': datetime.now(),
                    'updated_at': datetime.now(),
                }
                for student_id in range(1, count + 1)
            ]
        )
        session.commit()

    return _make
