"""Tests for the coursehub CLI commands."""

from datetime import datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from coursehub.extensions import db
from coursehub.models import Activity, Enrollment, EnrollmentStatus, ExamStatus
from coursehub.services import dropout_service
from coursehub.services.exceptions import NoDataError, StorageError


def early_deadline(session):
    """Resolver used through the DROPOUT_DEADLINE_RESOLVER setting."""
    return datetime(2023, 6, 1)


def _status(enrollment_id):
    db.session.expire_all()
    return db.session.get(Enrollment, enrollment_id).status


def _activity_count():
    return db.session.execute(select(func.count()).select_from(Activity)).scalar()


def _dropout_count():
    return db.session.execute(
        select(func.count()).select_from(Enrollment).where(Enrollment.status == EnrollmentStatus.DROPOUT)
    ).scalar()


class TestDropoutCommand:
    """Tests for `flask enrollments:dropout`."""

    def test_reports_counters_and_commits(self, runner, make_enrollment, make_exam):
        e1 = make_enrollment(1, 5)
        e2 = make_enrollment(1, 6)
        make_exam(1, 6, ExamStatus.IN_PROGRESS)

        result = runner.invoke(args=['enrollments:dropout'])

        assert result.exit_code == 0, result.output
        assert "Starting dropout process..." in result.output
        assert "Deadline: 2024-01-01T00:00:00" in result.output
        assert "Enrollments to be dropped out: 2" in result.output
        assert "Excluded from drop out: 1" in result.output
        assert "Final dropped out enrollments: 1" in result.output
        assert "Elapsed: " in result.output

        db.session.rollback()
        assert _status(e1.id) == EnrollmentStatus.DROPOUT
        assert _status(e2.id) == EnrollmentStatus.ACTIVE
        assert _activity_count() == 1

    def test_dry_run_rolls_back(self, app, runner, make_enrollment):
        app.config['DROPOUT_DRY_RUN'] = True
        enrollment = make_enrollment(1, 5)

        result = runner.invoke(args=['enrollments:dropout'])

        assert result.exit_code == 0, result.output
        assert "Final dropped out enrollments: 1" in result.output
        assert "Dry run: changes rolled back." in result.output
        assert _status(enrollment.id) == EnrollmentStatus.ACTIVE
        assert _activity_count() == 0

    def test_empty_store_fails(self, runner):
        result = runner.invoke(args=['enrollments:dropout'])

        assert result.exit_code != 0
        assert isinstance(result.exception, NoDataError)

    def test_uses_configured_deadline_resolver(self, app, runner, make_enrollment):
        app.config['DROPOUT_DEADLINE_RESOLVER'] = 'tests.test_cli.early_deadline'
        before = make_enrollment(1, 5, deadline_at=datetime(2023, 1, 1))
        after = make_enrollment(1, 6, deadline_at=datetime(2024, 1, 1))

        result = runner.invoke(args=['enrollments:dropout'])

        assert result.exit_code == 0, result.output
        assert "Enrollments to be dropped out: 1" in result.output
        assert _status(before.id) == EnrollmentStatus.DROPOUT
        assert _status(after.id) == EnrollmentStatus.ACTIVE

    def test_second_run_drops_nothing(self, runner, make_enrollment):
        make_enrollment(1, 5)

        runner.invoke(args=['enrollments:dropout'])
        result = runner.invoke(args=['enrollments:dropout'])

        assert result.exit_code == 0, result.output
        assert "Final dropped out enrollments: 0" in result.output
        assert _activity_count() == 1

    def test_failure_after_written_chunks_rolls_back_everything(
            self, app, runner, bulk_enrollments, monkeypatch):
        app.config['DROPOUT_CHUNK_SIZE'] = 2
        bulk_enrollments(5)
        original = dropout_service.apply_dropouts
        calls = []

        def fail_on_second_chunk(*args, **kwargs):
            calls.append(1)
            if len(calls) == 2:
                raise OperationalError("UPDATE", {}, Exception("connection lost"))
            return original(*args, **kwargs)

        monkeypatch.setattr(dropout_service, 'apply_dropouts', fail_on_second_chunk)

        result = runner.invoke(args=['enrollments:dropout'])

        assert result.exit_code != 0
        assert isinstance(result.exception, StorageError)
        assert len(calls) == 2
        db.session.expire_all()
        assert _dropout_count() == 0
        assert _activity_count() == 0

    def test_commit_failure_is_reported_as_storage_error(self, runner, make_enrollment, monkeypatch):
        make_enrollment(1, 5)

        def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("disk full"))

        monkeypatch.setattr(db.session, 'commit', broken_commit)

        result = runner.invoke(args=['enrollments:dropout'])

        assert result.exit_code != 0
        assert isinstance(result.exception, StorageError)
        assert isinstance(result.exception.__cause__, OperationalError)
        db.session.expire_all()
        assert _dropout_count() == 0
        assert _activity_count() == 0

    @pytest.mark.parametrize('chunk_size', ['abc', '0', -5])
    def test_invalid_chunk_size_fails_before_any_work(self, app, runner, make_enrollment, chunk_size):
        app.config['DROPOUT_CHUNK_SIZE'] = chunk_size
        make_enrollment(1, 5)

        result = runner.invoke(args=['enrollments:dropout'])

        assert result.exit_code != 0
        assert isinstance(result.exception, ValueError)
        assert "DROPOUT_CHUNK_SIZE must be a positive integer" in str(result.exception)
        assert "Starting dropout process..." not in result.output
        assert _dropout_count() == 0

    def test_chunk_size_given_as_string(self, app, runner, bulk_enrollments):
        app.config['DROPOUT_CHUNK_SIZE'] = '2'
        bulk_enrollments(5)

        result = runner.invoke(args=['enrollments:dropout'])

        assert result.exit_code == 0, result.output
        assert "over 3 chunk(s)" in result.output


class TestInitDbCommand:

    def test_creates_tables(self, runner):
        result = runner.invoke(args=['init-db'])

        assert result.exit_code == 0
        assert "Database tables created." in result.output

    def test_ignores_invalid_chunk_size(self, app, runner):
        app.config['DROPOUT_CHUNK_SIZE'] = 'abc'

        result = runner.invoke(args=['init-db'])

        assert result.exit_code == 0
