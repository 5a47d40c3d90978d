# services/dropout_service.py
"""
Enrollment dropout batch processing.

Marks stale enrollments as DROPOUT and records one COURSE_DROPOUT activity per enrollment.
The run is split into:

- a deadline resolver, a pluggable ``(session) -> datetime`` callable;
- a chunk producer that pages eligible enrollments by ascending id;
- a per-chunk step that loads exclusion keys from exams and submissions,
  decides which enrollments to drop and applies one bulk update plus one bulk insert.

Nothing in here commits or rolls back. The caller owns the transaction and decides
whether the whole run is kept.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Iterator, List, Set, Tuple

from sqlalchemy import select, update, insert
from sqlalchemy.exc import SQLAlchemyError

from coursehub.models.activity import Activity, ActivityDescription
from coursehub.models.enrollment import Enrollment, EnrollmentStatus
from coursehub.models.exam import Exam, ExamStatus
from coursehub.models.submission import Submission, SubmissionStatus
from coursehub.services.exceptions import NoDataError, StorageError

DEFAULT_CHUNK_SIZE = 1000

CompositeKey = Tuple[int, int]
DeadlineResolver = Callable[[Any], datetime]


def _to_datetime(value) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


def latest_enrollment_deadline(session) -> datetime:
    """
    Use the deadline of the most recently created enrollment (highest id) as the cutoff.

    Raises:
        NoDataError: if there are no enrollments at all
    """
    value = session.execute(
        select(Enrollment.deadline_at).order_by(Enrollment.id.desc()).limit(1)
    ).scalar()

    if value is None:
        raise NoDataError("No enrollments found to derive a dropout deadline from")

    return _to_datetime(value)


def fixed_deadline(moment) -> DeadlineResolver:
    """Build a resolver that always returns ``moment`` (a datetime or ISO string)."""
    deadline = _to_datetime(moment)

    def resolve(session):
        return deadline

    return resolve


def iter_enrollment_chunks(session, deadline: datetime,
                           chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[List[Any]]:
    """
    Yield active enrollments with ``deadline_at <= deadline`` as lists of
    ``(id, course_id, student_id)`` rows, at most ``chunk_size`` per list.

    Pages are keyed on the last seen id rather than an offset, so rows updated by an
    earlier chunk never shift later pages.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    last_id = None
    while True:
        query = (
            select(Enrollment.id, Enrollment.course_id, Enrollment.student_id)
            .where(Enrollment.status == EnrollmentStatus.ACTIVE)
            .where(Enrollment.deadline_at <= deadline)
        )
        if last_id is not None:
            query = query.where(Enrollment.id > last_id)

        rows = session.execute(query.order_by(Enrollment.id).limit(chunk_size)).all()
        if not rows:
            return

        yield rows

        if len(rows) < chunk_size:
            return
        last_id = rows[-1].id


def fetch_blocking_keys(session, model, status: str,
                        course_ids: Iterable[int], student_ids: Iterable[int]) -> Set[CompositeKey]:
    """
    Distinct ``(course_id, student_id)`` pairs of ``model`` rows in ``status``,
    restricted to the given courses and students. One query per call.
    """
    course_ids = sorted(set(course_ids))
    student_ids = sorted(set(student_ids))
    if not course_ids or not student_ids:
        return set()

    rows = session.execute(
        select(model.course_id, model.student_id)
        .where(model.status == status)
        .where(model.course_id.in_(course_ids))
        .where(model.student_id.in_(student_ids))
        .distinct()
    ).all()

    return {(row.course_id, row.student_id) for row in rows}


def evaluate_chunk(rows: Iterable, blocked_keys: Set[CompositeKey],
                   now: datetime) -> Tuple[List[int], List[Dict[str, Any]]]:
    """
    Split a chunk into enrollments to drop and the activity rows recording them.

    Args:
        rows: ``(id, course_id, student_id)`` rows
        blocked_keys: composite keys that must not be dropped
        now: timestamp stamped on every activity row of the chunk

    Returns:
        tuple: (ids to drop, activity rows to insert)
    """
    ids_to_drop = []
    activity_rows = []

    for enrollment_id, course_id, student_id in rows:
        if (course_id, student_id) in blocked_keys:
            continue

        ids_to_drop.append(enrollment_id)
        activity_rows.append({
            'resource_id': enrollment_id,
            'user_id': student_id,
            'description': ActivityDescription.COURSE_DROPOUT,
            'created_at': now,
            'updated_at': now,
        })

    return ids_to_drop, activity_rows


def apply_dropouts(session, enrollment_ids: List[int], activity_rows: List[Dict[str, Any]],
                   now: datetime):
    """Bulk update the enrollments to DROPOUT and bulk insert their activity rows."""
    if enrollment_ids:
        session.execute(
            update(Enrollment)
            .where(Enrollment.id.in_(enrollment_ids))
            .values(status=EnrollmentStatus.DROPOUT, updated_at=now)
        )

    if activity_rows:
        session.execute(insert(Activity), activity_rows)


class DropoutService:
    """Runs the enrollment dropout job inside a caller-owned session."""

    @staticmethod
    def process_chunk(session, rows, clock: Callable[[], datetime] = datetime.now) -> Tuple[int, int]:
        """
        Evaluate and mutate one chunk.

        Returns:
            tuple: (checked, dropped) for the chunk
        """
        course_ids = {row[1] for row in rows}
        student_ids = {row[2] for row in rows}

        exam_keys = fetch_blocking_keys(
            session, Exam, ExamStatus.IN_PROGRESS, course_ids, student_ids
        )
        submission_keys = fetch_blocking_keys(
            session, Submission, SubmissionStatus.WAITING_REVIEW, course_ids, student_ids
        )

        # One timestamp per chunk for every update and activity row in it
        now = clock()

        ids_to_drop, activity_rows = evaluate_chunk(rows, exam_keys | submission_keys, now)
        apply_dropouts(session, ids_to_drop, activity_rows, now)

        return len(rows), len(ids_to_drop)

    @staticmethod
    def drop_out_enrollments_before(session, deadline: datetime,
                                    chunk_size: int = DEFAULT_CHUNK_SIZE,
                                    clock: Callable[[], datetime] = datetime.now) -> Dict[str, Any]:
        """
        Drop every eligible active enrollment whose deadline is at or before ``deadline``.

        Returns:
            dict: checked, dropped, excluded and chunks counters
        """
        logger = logging.getLogger('dropout_service')

        results = {
            'checked': 0,
            'dropped': 0,
            'excluded': 0,
            'chunks': 0,
        }

        for rows in iter_enrollment_chunks(session, deadline, chunk_size):
            checked, dropped = DropoutService.process_chunk(session, rows, clock)

            results['chunks'] += 1
            results['checked'] += checked
            results['dropped'] += dropped

            logger.debug(f"Chunk {results['chunks']} (ids {rows[0][0]}-{rows[-1][0]}): "
                         f"{checked} checked, {dropped} dropped, {checked - dropped} excluded")

        results['excluded'] = results['checked'] - results['dropped']
        return results

    @staticmethod
    def run(session, deadline_resolver: DeadlineResolver = latest_enrollment_deadline,
            chunk_size: int = DEFAULT_CHUNK_SIZE,
            clock: Callable[[], datetime] = datetime.now) -> Dict[str, Any]:
        """
        Resolve the deadline and run the dropout over all chunks.

        Args:
            session: SQLAlchemy session holding the transaction for the whole run
            deadline_resolver: callable returning the cutoff for the run
            chunk_size: maximum enrollments per chunk
            clock: timestamp source, called once per chunk

        Returns:
            dict: counters, deadline, started_at, completed_at and duration in seconds

        Raises:
            NoDataError: no enrollment exists to derive a deadline from
            StorageError: any database failure, wrapping the SQLAlchemy error
        """
        logger = logging.getLogger('dropout_service')

        try:
            deadline = deadline_resolver(session)

            started_at = datetime.now()
            logger.info(f"Starting dropout process for enrollments due by {deadline.isoformat()}")

            results = DropoutService.drop_out_enrollments_before(
                session, deadline, chunk_size=chunk_size, clock=clock
            )

        except NoDataError as e:
            logger.error(f"Dropout process aborted: {str(e)}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Dropout process failed on storage: {str(e)}")
            raise StorageError(f"Dropout process failed: {str(e)}") from e

        results['deadline'] = deadline
        results['started_at'] = started_at
        results['completed_at'] = datetime.now()
        results['duration'] = (results['completed_at'] - results['started_at']).total_seconds()

        logger.info(f"Dropout process completed: {results['checked']} checked, "
                    f"{results['excluded']} excluded, {results['dropped']} dropped "
                    f"in {results['duration']:.2f}s")

        DropoutService._audit_dropout_operation(results)

        return results

    @staticmethod
    def _audit_dropout_operation(results: Dict[str, Any]):
        logger = logging.getLogger('dropout_audit')

        audit_entry = {
            'operation': 'enrollments_dropout',
            'timestamp': datetime.now().isoformat(),
            'deadline': results['deadline'].isoformat(),
            'summary': {
                'checked': results['checked'],
                'dropped': results['dropped'],
                'excluded': results['excluded'],
                'chunks': results['chunks']
            },
            'duration': results['duration']
        }

        logger.info(f"Dropout audit: {audit_entry}")
