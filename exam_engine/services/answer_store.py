"""
Answer Store
Durable (attempt, question) -> choice mapping, last write wins
"""
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from exam_engine.models import AttemptAnswer

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    'postgresql': postgresql_insert,
    'sqlite': sqlite_insert,
}


class AnswerStore:
    """At most one row per (attempt, question); every write is a replace"""

    def __init__(self, session, clock):
        self.session = session
        self.clock = clock

    def upsert(self, attempt_id, question_id, choice_id):
        """Replace the selection for a key, stamping answered_at with server time"""
        values = {
            'attempt_id': attempt_id,
            'question_id': question_id,
            'choice_id': choice_id,
            'answered_at': self.clock.now(),
        }

        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)

        if insert is not None:
            stmt = insert(AttemptAnswer).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=['attempt_id', 'question_id'],
                set_={
                    'choice_id': stmt.excluded.choice_id,
                    'answered_at': stmt.excluded.answered_at,
                },
            )
            self.session.execute(stmt)
            return

        existing = self.session.scalars(
            select(AttemptAnswer)
            .where(
                AttemptAnswer.attempt_id == attempt_id,
                AttemptAnswer.question_id == question_id,
            )
            .with_for_update()
        ).first()

        if existing is None:
            self.session.add(AttemptAnswer(**values))
        else:
            existing.choice_id = choice_id
            existing.answered_at = values['answered_at']
        self.session.flush()

    def clear(self, attempt_id, question_id):
        """Forget the selection for a key"""
        self.upsert(attempt_id, question_id, None)

    def list_selections(self, attempt_id):
        """
        Current selections for an attempt

        Returns:
            dict: question_id -> choice_id, one entry per answered question,
            latest answered_at (then highest id) winning
        """
        rows = self.session.execute(
            select(AttemptAnswer.question_id, AttemptAnswer.choice_id)
            .where(
                AttemptAnswer.attempt_id == attempt_id,
                AttemptAnswer.choice_id.is_not(None),
            )
            .order_by(AttemptAnswer.answered_at.desc(), AttemptAnswer.id.desc())
        ).all()

        selections = {}
        for question_id, choice_id in rows:
            selections.setdefault(question_id, choice_id)
        return selections

    def count_answered(self, attempt_id):
        """Number of questions with a non-null selection"""
        count = self.session.scalar(
            select(func.count(AttemptAnswer.id)).where(
                AttemptAnswer.attempt_id == attempt_id,
                AttemptAnswer.choice_id.is_not(None),
            )
        )
        return int(count or 0)
