"""
Engine Errors
Typed failures returned to the request layer
"""


class ExamError(Exception):
    """Base error: a machine code, a human message, an HTTP-equivalent status"""

    code = 'exam_error'
    status = 400
    message = 'Request could not be completed.'

    def __init__(self, message=None, code=None, **data):
        self.message = message or self.message
        self.code = code or self.code
        self.data = data
        super().__init__(self.message)

    def to_dict(self):
        payload = {'status': self.status}
        payload.update(self.data)
        return {
            'code': self.code,
            'message': self.message,
            'data': payload,
        }


class NotFound(ExamError):
    code = 'not_found'
    status = 404
    message = 'Resource not found.'


class Forbidden(ExamError):
    code = 'attempt_forbidden'
    status = 403
    message = 'You cannot access this attempt.'


class NotAuthenticated(Forbidden):
    code = 'not_logged_in'
    status = 401
    message = 'Authentication required.'


class NotPublished(ExamError):
    code = 'exam_not_published'
    status = 403
    message = 'The exam is not available for attempts.'


class AlreadySubmitted(ExamError):
    """Raised by start with the submitted attempt id so clients can open the report"""
    code = 'attempt_already_submitted'
    status = 409
    message = 'Attempt has already been submitted.'


class Expired(ExamError):
    code = 'attempt_expired'
    status = 403
    message = 'The attempt has expired.'


class NotInProgress(ExamError):
    code = 'attempt_not_in_progress'
    status = 400
    message = 'Attempt is not in progress.'


class NotSubmitted(ExamError):
    code = 'attempt_not_submitted'
    status = 400
    message = 'Attempt has not been submitted yet.'


class InvalidAnswer(ExamError):
    code = 'invalid_answer'
    status = 400
    message = 'Answer does not match this exam.'


class PersistenceFailure(ExamError):
    """Store write failed; safe for the client to retry"""
    code = 'persistence_failure'
    status = 500
    message = 'Unable to save changes, please retry.'

    def __init__(self, message=None, code=None, **data):
        data.setdefault('retryable', True)
        super().__init__(message, code, **data)
