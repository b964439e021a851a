"""
Attempt Service
State machine for exam attempts: start/resume, lazy expiry, answer saving,
submission and reports.

    in_progress --submit--> submitted
    in_progress --deadline observed--> expired

submitted and expired are terminal. Expiry is never scheduled; it is
detected by reconcile_expiry() at the top of every operation that reads an
attempt.
"""
import logging
from contextlib import contextmanager
from datetime import timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from exam_engine.errors import (
    AlreadySubmitted,
    ExamError,
    Expired,
    Forbidden,
    InvalidAnswer,
    NotAuthenticated,
    NotFound,
    NotInProgress,
    NotPublished,
    NotSubmitted,
    PersistenceFailure,
)
from exam_engine.models import AttemptStatus
from exam_engine.services.scoring_service import ScoringService
from exam_engine.utils.helpers import isoformat, seconds_until

logger = logging.getLogger(__name__)


def dedupe_answers(answers):
    """Keep the last entry per question id"""
    deduped = {}
    for entry in answers:
        deduped[entry.question_id] = entry
    return list(deduped.values())


class AttemptService:
    """Attempt lifecycle driven by injected collaborators"""

    def __init__(self, session, catalog, answers, attempts, authority, clock, start_retry_limit=3):
        self.session = session
        self.catalog = catalog
        self.answers = answers
        self.attempts = attempts
        self.authority = authority
        self.clock = clock
        self.start_retry_limit = max(1, int(start_retry_limit))

    # ================= START / ELIGIBILITY =================

    def start(self, exam_id, caller_id):
        """
        Start a new attempt or resume the running one

        Returns:
            dict: attempt view with resumed=True when an unexpired
            in_progress attempt already existed
        """
        user_id = self._require_caller(caller_id)
        exam = self._require_exam(exam_id, user_id)
        duration = int(exam.duration_seconds or 0)

        for _ in range(self.start_retry_limit):
            now = self.clock.now()

            submitted = self.attempts.find_submitted(exam_id, user_id)
            if submitted is not None:
                submitted_id = submitted.id
                lingering = self.attempts.find_active(exam_id, user_id)
                if lingering is not None:
                    # Only the deadline may close it
                    self.reconcile_expiry(lingering, now)
                raise AlreadySubmitted(
                    'You already submitted this exam.',
                    attempt_id=submitted_id,
                )

            active = self.attempts.find_active(exam_id, user_id)
            if active is not None:
                active_id = active.id
                status = self.reconcile_expiry(active, now)
                if status == AttemptStatus.IN_PROGRESS:
                    logger.info('Resuming attempt %s (exam %s, user %s)', active_id, exam_id, user_id)
                    return self._attempt_view(active, AttemptStatus.IN_PROGRESS, now, resumed=True)
                if status == AttemptStatus.SUBMITTED:
                    # Submitted by a concurrent request while we were looking
                    raise AlreadySubmitted('You already submitted this exam.', attempt_id=active_id)

            expires_at = now + timedelta(seconds=duration) if duration > 0 else None

            try:
                attempt = self.attempts.create(exam_id, user_id, now, expires_at)
                self.session.commit()
            except IntegrityError:
                # Another request inserted the in_progress row first
                self.session.rollback()
                logger.warning('Concurrent start for exam %s, user %s; retrying as resume', exam_id, user_id)
                continue
            except SQLAlchemyError as exc:
                self.session.rollback()
                logger.exception('Unable to start attempt for exam %s, user %s', exam_id, user_id)
                raise PersistenceFailure('Unable to start attempt.', code='attempt_create_failed') from exc

            logger.info('Created attempt %s (exam %s, user %s)', attempt.id, exam_id, user_id)
            return self._attempt_view(attempt, AttemptStatus.IN_PROGRESS, now, resumed=False)

        raise PersistenceFailure('Unable to start attempt.', code='attempt_create_failed')

    def get_eligibility(self, exam_id, caller_id, user_id=None):
        """Whether the user should start, resume, or go to the report"""
        current_id = self._require_caller(caller_id)
        self._require_exam(exam_id, current_id)
        target_id = self._resolve_target_user(current_id, user_id)

        now = self.clock.now()
        submitted = self.attempts.find_submitted(exam_id, target_id)
        active = self.attempts.find_active(exam_id, target_id)

        if active is not None and self.reconcile_expiry(active, now) != AttemptStatus.IN_PROGRESS:
            active = None

        if submitted is not None:
            action = 'report'
        elif active is not None:
            action = 'resume'
        else:
            action = 'start'

        return {
            'exam_id': exam_id,
            'user_id': target_id,
            'can_start': submitted is None,
            'has_active': active is not None,
            'active_attempt': (
                self._attempt_view(active, AttemptStatus.IN_PROGRESS, now) if active is not None else None
            ),
            'action': action,
            'submitted_attempt_id': submitted.id if submitted is not None else None,
        }

    def get_active_attempt(self, exam_id, caller_id, user_id=None):
        """The running attempt for the caller (or, for authorities, a given user)"""
        current_id = self._require_caller(caller_id)
        target_id = self._resolve_target_user(current_id, user_id)
        if self.catalog.get_exam(exam_id) is None:
            raise NotFound('Exam not found.', code='exam_not_found')

        now = self.clock.now()
        active = self.attempts.find_active(exam_id, target_id)

        if active is None or self.reconcile_expiry(active, now) != AttemptStatus.IN_PROGRESS:
            raise NotFound('No active attempt found.', code='no_active_attempt')

        return self._attempt_view(active, AttemptStatus.IN_PROGRESS, now, resumed=True)

    def list_exam_attempts(self, exam_id, caller_id, user_id=None):
        """Attempts of an exam; non-authorities only ever see their own"""
        current_id = self._require_caller(caller_id)
        if self.catalog.get_exam(exam_id) is None:
            raise NotFound('Exam not found.', code='exam_not_found')

        if not self.authority.is_authority(current_id):
            user_id = current_id

        now = self.clock.now()
        attempts = []

        for attempt in self.attempts.list_by_exam(exam_id, user_id):
            status = self.reconcile_expiry(attempt, now)
            view = self._attempt_view(attempt, status, now)
            view['answered_count'] = self.answers.count_answered(view['id'])
            attempts.append(view)

        response = {'exam_id': exam_id, 'attempts': attempts}
        if user_id is not None:
            response['user_id'] = user_id
        return response

    # ================= ATTEMPT READS =================

    def get(self, attempt_id, caller_id):
        """Attempt status, timing and current selections"""
        attempt = self._load_attempt(attempt_id, caller_id)
        now = self.clock.now()
        status = self.reconcile_expiry(attempt, now)

        view = self._attempt_view(attempt, status, now)
        view['answered_count'] = self.answers.count_answered(attempt_id)
        view['answers'] = self._selection_list(attempt_id)
        return view

    def get_paper(self, attempt_id, caller_id, reveal_answers=False):
        """
        Questions and choices for a running attempt

        Choice correctness is included only for authorities that asked for it.
        """
        attempt = self._load_attempt(attempt_id, caller_id)
        now = self.clock.now()
        self._require_in_progress(self.reconcile_expiry(attempt, now))

        reveal = bool(reveal_answers) and self.authority.is_authority(caller_id)

        questions = self.catalog.get_questions(attempt.exam_id)
        choices_by_question = {}
        for choice in self.catalog.get_choices([question.id for question in questions]):
            item = {
                'id': choice.id,
                'text': choice.text,
                'position': choice.position,
            }
            if reveal:
                item['is_correct'] = bool(choice.is_correct)
            choices_by_question.setdefault(choice.question_id, []).append(item)

        selections = self.answers.list_selections(attempt_id)

        return {
            'attempt': {
                'id': attempt.id,
                'exam_id': attempt.exam_id,
                'status': AttemptStatus.IN_PROGRESS,
                'started_at': isoformat(attempt.started_at),
                'expires_at': isoformat(attempt.expires_at),
                'remaining_seconds': seconds_until(attempt.expires_at, now),
            },
            'questions': [
                {
                    'id': question.id,
                    'prompt': question.prompt,
                    'points': float(question.points) if question.points is not None else 0.0,
                    'position': question.position,
                    'selected_choice_id': selections.get(question.id),
                    'choices': choices_by_question.get(question.id, []),
                }
                for question in questions
            ],
        }

    # ================= ANSWERS =================

    def save_answers(self, attempt_id, caller_id, answers):
        """
        Record a batch of selections, all or nothing

        Entries need question_id and choice_id (None clears the selection).
        Repeated question ids in one batch keep only the last entry.
        """
        attempt = self._load_attempt(attempt_id, caller_id)
        now = self.clock.now()
        self._require_in_progress(self.reconcile_expiry(attempt, now))

        batch = dedupe_answers(answers)
        self._validate_batch(attempt.exam_id, batch)
        expires_at = attempt.expires_at

        with self._transaction('save answers for attempt %s' % attempt_id):
            self._claim(attempt_id)

            for entry in batch:
                self.answers.upsert(attempt_id, entry.question_id, entry.choice_id)

        logger.debug('Saved %d answer(s) for attempt %s', len(batch), attempt_id)

        return {
            'attempt_id': attempt_id,
            'saved_count': len(batch),
            'answered_count': self.answers.count_answered(attempt_id),
            'remaining_seconds': seconds_until(expires_at, now),
            'answers': self._selection_list(attempt_id),
        }

    # ================= SUBMISSION / REPORT =================

    def submit(self, attempt_id, caller_id):
        """Score the stored answers and close the attempt"""
        attempt = self._load_attempt(attempt_id, caller_id)
        now = self.clock.now()
        self._require_in_progress(self.reconcile_expiry(attempt, now))

        with self._transaction('submit attempt %s' % attempt_id):
            self._claim(attempt_id)

            result = self._score(attempt.exam_id, attempt_id)

            if not self.attempts.set_submitted(attempt_id, now, result.score, result.max_score):
                raise PersistenceFailure('Unable to submit attempt.', code='attempt_submit_failed')

        logger.info('Submitted attempt %s: %.2f / %.2f', attempt_id, result.score, result.max_score)
        return self._report(attempt_id, caller_id, result.score, result.max_score, now, result.breakdown)

    def get_report(self, attempt_id, caller_id):
        """
        Report for a submitted attempt

        The breakdown is recomputed from stored answers; the persisted score
        stays authoritative.
        """
        attempt = self._load_attempt(attempt_id, caller_id)
        now = self.clock.now()

        if self.reconcile_expiry(attempt, now) != AttemptStatus.SUBMITTED:
            raise NotSubmitted()

        result = self._score(attempt.exam_id, attempt_id)
        score = attempt.score if attempt.score is not None else result.score
        max_score = attempt.max_score if attempt.max_score is not None else result.max_score

        return self._report(attempt_id, caller_id, score, max_score, attempt.finished_at, result.breakdown)

    # ================= EXPIRY =================

    def reconcile_expiry(self, attempt, now):
        """
        Persist in_progress -> expired once the deadline has passed

        Idempotent: terminal attempts and attempts still inside their window
        are left alone. A failed write is logged and the attempt is still
        reported as expired.

        Returns:
            str: the attempt status as observed after reconciliation
        """
        status = attempt.status
        if not attempt.is_in_progress or not attempt.is_past_deadline(now):
            return status

        attempt_id = attempt.id
        try:
            changed = self.attempts.mark_expired(attempt_id, now)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.warning('Could not persist expiry of attempt %s', attempt_id, exc_info=True)
            return AttemptStatus.EXPIRED

        if changed:
            logger.info('Attempt %s expired', attempt_id)
            return AttemptStatus.EXPIRED

        # Lost a race with another writer; report what it wrote
        current = self.attempts.get(attempt_id)
        return current.status if current is not None else AttemptStatus.EXPIRED

    # ================= HELPERS =================

    @contextmanager
    def _transaction(self, action):
        try:
            yield
            self.session.commit()
        except ExamError:
            self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception('Unable to %s', action)
            raise PersistenceFailure() from exc

    def _require_caller(self, caller_id):
        if caller_id is None:
            raise NotAuthenticated()
        return caller_id

    def _require_exam(self, exam_id, caller_id):
        exam = self.catalog.get_exam(exam_id)
        if exam is None:
            raise NotFound('Exam not found.', code='exam_not_found')
        if not exam.is_published and not self.authority.is_authority(caller_id):
            raise NotPublished()
        return exam

    def _resolve_target_user(self, current_id, user_id):
        if user_id is None or user_id == current_id:
            return current_id
        if not self.authority.is_authority(current_id):
            raise Forbidden()
        return user_id

    def _load_attempt(self, attempt_id, caller_id):
        caller_id = self._require_caller(caller_id)
        attempt = self.attempts.get(attempt_id)
        if attempt is None:
            raise NotFound('Attempt not found.', code='attempt_not_found')
        if attempt.user_id != caller_id and not self.authority.is_authority(caller_id):
            raise Forbidden()
        return attempt

    def _claim(self, attempt_id):
        """Lock the attempt for this transaction or raise its terminal state"""
        if self.attempts.claim_in_progress(attempt_id):
            return
        current = self.attempts.get(attempt_id)
        self._require_in_progress(current.status if current is not None else None)

    @staticmethod
    def _require_in_progress(status):
        if status == AttemptStatus.SUBMITTED:
            raise AlreadySubmitted()
        if status == AttemptStatus.EXPIRED:
            raise Expired()
        if status != AttemptStatus.IN_PROGRESS:
            raise NotInProgress()

    def _validate_batch(self, exam_id, batch):
        exam_questions = {question.id for question in self.catalog.get_questions(exam_id)}

        for entry in batch:
            if entry.question_id not in exam_questions:
                if self.catalog.get_question(entry.question_id) is None:
                    raise NotFound('Question not found.', code='question_not_found', question_id=entry.question_id)
                raise InvalidAnswer(
                    'Question does not belong to this exam.',
                    code='question_mismatch',
                    question_id=entry.question_id,
                )

            if entry.choice_id is None:
                continue

            choice = self.catalog.get_choice(entry.choice_id)
            if choice is None or choice.question_id != entry.question_id:
                raise InvalidAnswer(
                    'Choice does not belong to this question.',
                    code='choice_not_found',
                    question_id=entry.question_id,
                    choice_id=entry.choice_id,
                )

    def _score(self, exam_id, attempt_id):
        questions = self.catalog.get_questions(exam_id)
        choices = {
            choice.id: choice
            for choice in self.catalog.get_choices([question.id for question in questions])
        }
        return ScoringService.score(questions, choices, self.answers.list_selections(attempt_id))

    def _report(self, attempt_id, caller_id, score, max_score, submitted_at, breakdown):
        return {
            'attempt_id': attempt_id,
            'score': float(score),
            'max_score': float(max_score),
            'submitted_at': isoformat(submitted_at),
            'breakdown': ScoringService.filter_breakdown(
                breakdown, include_correctness=self.authority.is_authority(caller_id)
            ),
        }

    def _selection_list(self, attempt_id):
        selections = self.answers.list_selections(attempt_id)
        return [
            {'question_id': question_id, 'choice_id': selections[question_id]}
            for question_id in sorted(selections)
        ]

    @staticmethod
    def _remaining_seconds(attempt, status, now):
        if status == AttemptStatus.EXPIRED:
            return 0
        if status == AttemptStatus.SUBMITTED:
            return None
        return seconds_until(attempt.expires_at, now)

    def _attempt_view(self, attempt, status, now, resumed=None):
        view = {
            'id': attempt.id,
            'exam_id': attempt.exam_id,
            'user_id': attempt.user_id,
            'status': status,
            'started_at': isoformat(attempt.started_at),
            'expires_at': isoformat(attempt.expires_at),
            'finished_at': isoformat(attempt.finished_at),
            'remaining_seconds': self._remaining_seconds(attempt, status, now),
        }
        if resumed is not None:
            view['resumed'] = resumed
        return view
