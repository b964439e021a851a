"""
Exam Model
Exam metadata owned by the authoring side; read-only to the attempt engine
"""
from exam_engine.extensions import db
from exam_engine.utils.helpers import now_utc


class ExamStatus:
    DRAFT = 'draft'
    PUBLISHED = 'published'


class Exam(db.Model):
    """Exam model"""
    __tablename__ = 'exams'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)

    # Seconds, 0 = unlimited
    duration_seconds = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default=ExamStatus.DRAFT, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    # Relationships
    questions = db.relationship('Question', backref='exam', lazy=True, order_by='Question.position')

    def __repr__(self):
        return f'<Exam {self.title}>'

    @property
    def is_published(self):
        return self.status == ExamStatus.PUBLISHED
