"""
Attempt Model
One test-taker's single timed pass at an exam
"""
from exam_engine.extensions import db
from exam_engine.utils.helpers import ensure_utc


class AttemptStatus:
    IN_PROGRESS = 'in_progress'
    SUBMITTED = 'submitted'
    EXPIRED = 'expired'

    ALL = (IN_PROGRESS, SUBMITTED, EXPIRED)


class Attempt(db.Model):
    """Attempt model"""
    __tablename__ = 'attempts'

    id = db.Column(db.Integer, primary_key=True)
    exam_id = db.Column(db.Integer, db.ForeignKey('exams.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=AttemptStatus.IN_PROGRESS)

    started_at = db.Column(db.DateTime(timezone=True), nullable=False)
    # NULL means unlimited duration
    expires_at = db.Column(db.DateTime(timezone=True), nullable=True)
    finished_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Written together with the submitted transition
    score = db.Column(db.Float, nullable=True)
    max_score = db.Column(db.Float, nullable=True)

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('in_progress', 'submitted', 'expired')",
            name='ck_attempts_status'
        ),
        db.Index('ix_attempts_exam_user_status', 'exam_id', 'user_id', 'status'),
        # At most one running attempt per (exam, user)
        db.Index(
            'uq_attempts_active_exam_user',
            'exam_id', 'user_id',
            unique=True,
            sqlite_where=db.text("status = 'in_progress'"),
            postgresql_where=db.text("status = 'in_progress'"),
        ),
    )

    def __repr__(self):
        return f'<Attempt {self.id} exam={self.exam_id} user={self.user_id} {self.status}>'

    @property
    def is_in_progress(self):
        return self.status == AttemptStatus.IN_PROGRESS

    def is_past_deadline(self, now):
        """True once now has reached expires_at; unlimited attempts never are"""
        if self.expires_at is None:
            return False
        return ensure_utc(self.expires_at) <= ensure_utc(now)
