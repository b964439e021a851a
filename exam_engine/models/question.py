"""
Question and Choice Models
Single-correct-choice items, ordered by position on the paper
"""
from exam_engine.extensions import db

DEFAULT_POINTS = 1.0


class Question(db.Model):
    """Question model"""
    __tablename__ = 'questions'

    id = db.Column(db.Integer, primary_key=True)
    exam_id = db.Column(db.Integer, db.ForeignKey('exams.id'), nullable=False, index=True)
    prompt = db.Column(db.Text, nullable=False)
    points = db.Column(db.Float, nullable=False, default=DEFAULT_POINTS)
    position = db.Column(db.Integer, nullable=False, default=0)

    choices = db.relationship('Choice', backref='question', lazy=True, order_by='Choice.position')

    __table_args__ = (
        db.Index('ix_questions_exam_position', 'exam_id', 'position'),
    )

    def __repr__(self):
        return f'<Question {self.id}: {self.prompt[:50]}>'


class Choice(db.Model):
    """Choice model"""
    __tablename__ = 'choices'

    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey('questions.id'), nullable=False, index=True)
    text = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<Choice {self.id} of Q{self.question_id}>'
