"""
Exam Catalog
Read-only access to exams, questions and choices
"""
from sqlalchemy import select

from exam_engine.models import Exam, Question, Choice


class ExamCatalog:
    """Exam content as seen by the attempt engine"""

    def __init__(self, session):
        self.session = session

    def get_exam(self, exam_id):
        return self.session.get(Exam, exam_id)

    def get_question(self, question_id):
        return self.session.get(Question, question_id)

    def get_choice(self, choice_id):
        return self.session.get(Choice, choice_id)

    def get_questions(self, exam_id):
        """Questions of an exam in paper order"""
        stmt = (
            select(Question)
            .where(Question.exam_id == exam_id)
            .order_by(Question.position, Question.id)
        )
        return self.session.scalars(stmt).all()

    def get_choices(self, question_ids):
        """Choices for the given questions, in position order per question"""
        question_ids = list(question_ids)
        if not question_ids:
            return []
        stmt = (
            select(Choice)
            .where(Choice.question_id.in_(question_ids))
            .order_by(Choice.question_id, Choice.position, Choice.id)
        )
        return self.session.scalars(stmt).all()
