from collections import namedtuple
from datetime import datetime, timedelta, timezone

import pytest

from exam_engine import create_app
from exam_engine.extensions import db
from exam_engine.models import Attempt, Choice, Exam, ExamStatus, Question
from exam_engine.services import StaticAuthority, build_attempt_service
from exam_engine.services.clock import Clock

T0 = datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc)

TEACHER = 1
STUDENT = 10
OTHER_STUDENT = 11

SeededQuestion = namedtuple('SeededQuestion', 'id correct wrong')
SeededExam = namedtuple('SeededExam', 'id questions')


class FrozenClock(Clock):
    """Clock that only moves when told to"""

    def __init__(self, start=T0):
        self.current = start

    def now(self):
        return self.current

    def advance(self, seconds):
        self.current = self.current + timedelta(seconds=seconds)


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'exam_engine.db'}",
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def authority():
    return StaticAuthority(authority_ids={TEACHER})


@pytest.fixture
def service(app, authority, clock):
    return build_attempt_service(authority=authority, clock=clock)


@pytest.fixture
def make_exam(app):
    """Insert an exam with one right and one wrong choice per question"""

    def _make(duration_seconds=600, status=ExamStatus.PUBLISHED, points=(2.0, 1.0), title='Algebra basics'):
        exam = Exam(title=title, duration_seconds=duration_seconds, status=status)
        db.session.add(exam)
        db.session.flush()

        questions = []
        for position, value in enumerate(points):
            question = Question(
                exam_id=exam.id,
                prompt=f'Question {position + 1}',
                points=value,
                position=position,
            )
            db.session.add(question)
            db.session.flush()

            # Inserted out of paper order on purpose
            wrong = Choice(question_id=question.id, text='Wrong', is_correct=False, position=1)
            right = Choice(question_id=question.id, text='Right', is_correct=True, position=0)
            db.session.add_all([wrong, right])
            db.session.flush()
            questions.append(SeededQuestion(question.id, right.id, wrong.id))

        seeded = SeededExam(exam.id, questions)
        db.session.commit()
        return seeded

    return _make


def fetch_attempt(attempt_id):
    """Re-read an attempt row, bypassing the identity map"""
    db.session.expire_all()
    return db.session.get(Attempt, attempt_id)
