"""
AttemptAnswer Model
Stores the current selection for each (attempt, question) key
"""
from exam_engine.extensions import db


class AttemptAnswer(db.Model):
    """Attempt answer model"""
    __tablename__ = 'attempt_answers'

    id = db.Column(db.Integer, primary_key=True)
    attempt_id = db.Column(db.Integer, db.ForeignKey('attempts.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, nullable=False, index=True)
    # NULL means the selection was cleared
    choice_id = db.Column(db.Integer, nullable=True)
    answered_at = db.Column(db.DateTime(timezone=True), nullable=False)

    __table_args__ = (
        db.UniqueConstraint(
            'attempt_id', 'question_id',
            name='unique_answer_per_question'
        ),
    )

    def __repr__(self):
        return f'<AttemptAnswer Q{self.question_id} of attempt {self.attempt_id}>'
