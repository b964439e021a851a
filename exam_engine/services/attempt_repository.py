"""
Attempt Repository
Persistence boundary for Attempt rows
"""
from sqlalchemy import select, update

from exam_engine.models import Attempt, AttemptStatus


class AttemptRepository:
    """Attempt queries and forward-only status writes"""

    def __init__(self, session):
        self.session = session

    def get(self, attempt_id):
        """Load an attempt fresh from the store"""
        return self.session.scalars(
            select(Attempt)
            .where(Attempt.id == attempt_id)
            .execution_options(populate_existing=True)
        ).first()

    def find_active(self, exam_id, user_id):
        """Latest in_progress attempt for an exam and user"""
        return self.session.scalars(
            select(Attempt)
            .where(
                Attempt.exam_id == exam_id,
                Attempt.user_id == user_id,
                Attempt.status == AttemptStatus.IN_PROGRESS,
            )
            .order_by(Attempt.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        ).first()

    def find_submitted(self, exam_id, user_id):
        """Latest submitted attempt for an exam and user"""
        return self.session.scalars(
            select(Attempt)
            .where(
                Attempt.exam_id == exam_id,
                Attempt.user_id == user_id,
                Attempt.status == AttemptStatus.SUBMITTED,
            )
            .order_by(Attempt.finished_at.desc(), Attempt.id.desc())
            .limit(1)
        ).first()

    def list_by_exam(self, exam_id, user_id=None):
        """Attempts for an exam, newest first, optionally for one user"""
        stmt = select(Attempt).where(Attempt.exam_id == exam_id)
        if user_id is not None:
            stmt = stmt.where(Attempt.user_id == user_id)
        stmt = stmt.order_by(Attempt.started_at.desc(), Attempt.id.desc())
        return self.session.scalars(stmt).all()

    def create(self, exam_id, user_id, started_at, expires_at):
        """Insert a new in_progress attempt (flushes, does not commit)"""
        attempt = Attempt(
            exam_id=exam_id,
            user_id=user_id,
            status=AttemptStatus.IN_PROGRESS,
            started_at=started_at,
            expires_at=expires_at,
        )
        self.session.add(attempt)
        self.session.flush()
        return attempt

    def claim_in_progress(self, attempt_id):
        """
        No-op write on an in_progress attempt

        Takes the row's write lock (the database write lock on SQLite) for the
        rest of the transaction, so status cannot change under the caller.

        Returns:
            bool: True if the attempt is still in_progress
        """
        result = self.session.execute(
            update(Attempt)
            .where(
                Attempt.id == attempt_id,
                Attempt.status == AttemptStatus.IN_PROGRESS,
            )
            .values(status=Attempt.status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_expired(self, attempt_id, finished_at):
        """
        in_progress -> expired

        Returns:
            bool: True if this call made the transition
        """
        result = self.session.execute(
            update(Attempt)
            .where(
                Attempt.id == attempt_id,
                Attempt.status == AttemptStatus.IN_PROGRESS,
            )
            .values(status=AttemptStatus.EXPIRED, finished_at=finished_at)
        )
        return result.rowcount == 1

    def set_submitted(self, attempt_id, finished_at, score, max_score):
        """
        in_progress -> submitted, with score fields in the same statement

        Returns:
            bool: True if this call made the transition
        """
        result = self.session.execute(
            update(Attempt)
            .where(
                Attempt.id == attempt_id,
                Attempt.status == AttemptStatus.IN_PROGRESS,
            )
            .values(
                status=AttemptStatus.SUBMITTED,
                finished_at=finished_at,
                score=score,
                max_score=max_score,
            )
        )
        return result.rowcount == 1
