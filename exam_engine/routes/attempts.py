"""
Attempt Routes
JSON mapping of the attempt lifecycle
"""
from flask import Blueprint, jsonify, request

from exam_engine.schemas import PaperQuery, SaveAnswersRequest, UserScopeQuery
from exam_engine.services import build_attempt_service

attempts_bp = Blueprint('attempts', __name__)


def _service_and_caller():
    service = build_attempt_service()
    return service, service.authority.current_user()


@attempts_bp.route('/exams/<int:exam_id>/attempts', methods=['POST'])
def start_attempt(exam_id):
    """Start or resume; 201 for a new attempt, 200 for a resume"""
    service, caller_id = _service_and_caller()
    attempt = service.start(exam_id, caller_id)
    return jsonify(attempt), 200 if attempt['resumed'] else 201


@attempts_bp.route('/exams/<int:exam_id>/attempts', methods=['GET'])
def list_exam_attempts(exam_id):
    service, caller_id = _service_and_caller()
    query = UserScopeQuery.parse_args(request.args)
    return jsonify(service.list_exam_attempts(exam_id, caller_id, query.user_id))


@attempts_bp.route('/exams/<int:exam_id>/attempts/active')
def get_active_attempt(exam_id):
    service, caller_id = _service_and_caller()
    query = UserScopeQuery.parse_args(request.args)
    return jsonify(service.get_active_attempt(exam_id, caller_id, query.user_id))


@attempts_bp.route('/exams/<int:exam_id>/attempts/eligibility')
def get_attempt_eligibility(exam_id):
    service, caller_id = _service_and_caller()
    query = UserScopeQuery.parse_args(request.args)
    return jsonify(service.get_eligibility(exam_id, caller_id, query.user_id))


@attempts_bp.route('/attempts/<int:attempt_id>')
def get_attempt(attempt_id):
    service, caller_id = _service_and_caller()
    return jsonify(service.get(attempt_id, caller_id))


@attempts_bp.route('/attempts/<int:attempt_id>/paper')
def get_attempt_paper(attempt_id):
    service, caller_id = _service_and_caller()
    query = PaperQuery.parse_args(request.args)
    return jsonify(service.get_paper(attempt_id, caller_id, reveal_answers=query.reveal_answers))


@attempts_bp.route('/attempts/<int:attempt_id>/answers', methods=['POST'])
def save_attempt_answers(attempt_id):
    service, caller_id = _service_and_caller()
    payload = SaveAnswersRequest.parse_payload(request.get_json(silent=True))
    return jsonify(service.save_answers(attempt_id, caller_id, payload.answers))


@attempts_bp.route('/attempts/<int:attempt_id>/submit', methods=['POST'])
def submit_attempt(attempt_id):
    service, caller_id = _service_and_caller()
    return jsonify(service.submit(attempt_id, caller_id))


@attempts_bp.route('/attempts/<int:attempt_id>/report')
def get_attempt_report(attempt_id):
    service, caller_id = _service_and_caller()
    return jsonify(service.get_report(attempt_id, caller_id))
