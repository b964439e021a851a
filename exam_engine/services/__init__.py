"""
Services Package
"""
from flask import current_app

from exam_engine.extensions import db
from exam_engine.services.access import AuthorityCheck, SessionAuthority, StaticAuthority
from exam_engine.services.answer_store import AnswerStore
from exam_engine.services.attempt_repository import AttemptRepository
from exam_engine.services.attempt_service import AttemptService
from exam_engine.services.catalog import ExamCatalog
from exam_engine.services.clock import Clock, SystemClock
from exam_engine.services.scoring_service import ScoringService, ScoreResult


def build_attempt_service(session=None, authority=None, clock=None):
    """
    Wire an AttemptService for the current app context

    Defaults: the Flask-SQLAlchemy session, session-cookie authority,
    and the system clock.
    """
    session = session if session is not None else db.session
    clock = clock if clock is not None else SystemClock()
    if authority is None:
        authority = SessionAuthority(current_app.config.get('AUTHORITY_ROLES', ('admin', 'teacher')))

    return AttemptService(
        session=session,
        catalog=ExamCatalog(session),
        answers=AnswerStore(session, clock),
        attempts=AttemptRepository(session),
        authority=authority,
        clock=clock,
        start_retry_limit=current_app.config.get('START_RETRY_LIMIT', 3),
    )


__all__ = [
    'AuthorityCheck',
    'SessionAuthority',
    'StaticAuthority',
    'AnswerStore',
    'AttemptRepository',
    'AttemptService',
    'ExamCatalog',
    'Clock',
    'SystemClock',
    'ScoringService',
    'ScoreResult',
    'build_attempt_service',
]
