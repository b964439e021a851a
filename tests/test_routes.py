import pytest

from exam_engine.models import ExamStatus

from conftest import STUDENT, TEACHER


def login(client, user_id, role='student'):
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
        sess['role'] = role


@pytest.fixture
def exam(make_exam):
    return make_exam(duration_seconds=600)


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json() == {'ok': True}


def test_start_requires_login(client, exam):
    response = client.post(f'/exams/{exam.id}/attempts')

    assert response.status_code == 401
    assert response.get_json()['code'] == 'not_logged_in'


def test_start_then_resume(client, exam):
    login(client, STUDENT)

    created = client.post(f'/exams/{exam.id}/attempts')
    assert created.status_code == 201
    assert created.get_json()['resumed'] is False

    resumed = client.post(f'/exams/{exam.id}/attempts')
    assert resumed.status_code == 200
    assert resumed.get_json()['id'] == created.get_json()['id']


def test_unpublished_exam_is_forbidden_for_students(client, make_exam):
    draft = make_exam(status=ExamStatus.DRAFT)
    login(client, STUDENT)

    response = client.post(f'/exams/{draft.id}/attempts')

    assert response.status_code == 403
    assert response.get_json()['code'] == 'exam_not_published'


def test_answer_aliases_and_submit_flow(client, exam):
    q1, q2 = exam.questions
    login(client, STUDENT)
    attempt_id = client.post(f'/exams/{exam.id}/attempts').get_json()['id']

    saved = client.post(f'/attempts/{attempt_id}/answers', json={'answers': [
        {'question_id': q1.id, 'selected_choice_id': q1.correct},
        {'question_id': q2.id, 'choice_id': q2.wrong},
    ]})
    assert saved.status_code == 200
    assert saved.get_json()['answered_count'] == 2

    # A missing choice key clears the selection
    cleared = client.post(f'/attempts/{attempt_id}/answers', json={'answers': [{'question_id': q2.id}]})
    assert cleared.get_json()['answers'] == [{'question_id': q1.id, 'choice_id': q1.correct}]

    report = client.post(f'/attempts/{attempt_id}/submit').get_json()
    assert report['score'] == 2.0
    assert report['max_score'] == 3.0
    assert all('is_correct' not in item for item in report['breakdown'])

    again = client.post(f'/attempts/{attempt_id}/submit')
    assert again.status_code == 409
    assert again.get_json()['code'] == 'attempt_already_submitted'

    restart = client.post(f'/exams/{exam.id}/attempts')
    assert restart.status_code == 409
    assert restart.get_json()['data']['attempt_id'] == attempt_id

    assert client.get(f'/attempts/{attempt_id}/report').get_json()['score'] == 2.0
    eligibility = client.get(f'/exams/{exam.id}/attempts/eligibility').get_json()
    assert eligibility['action'] == 'report'


def test_malformed_answers_body(client, exam):
    login(client, STUDENT)
    attempt_id = client.post(f'/exams/{exam.id}/attempts').get_json()['id']

    response = client.post(f'/attempts/{attempt_id}/answers', json={'answers': [{'choice_id': 3}]})

    assert response.status_code == 400
    body = response.get_json()
    assert body['code'] == 'invalid_answers'
    assert body['data']['errors']


def test_paper_edit_context_for_teachers(client, exam):
    q1 = exam.questions[0]
    login(client, STUDENT)
    attempt_id = client.post(f'/exams/{exam.id}/attempts').get_json()['id']

    student_paper = client.get(f'/attempts/{attempt_id}/paper?context=edit').get_json()
    assert 'is_correct' not in student_paper['questions'][0]['choices'][0]

    login(client, TEACHER, role='teacher')
    teacher_paper = client.get(f'/attempts/{attempt_id}/paper?context=edit').get_json()
    flags = {choice['id']: choice['is_correct'] for choice in teacher_paper['questions'][0]['choices']}
    assert flags[q1.correct] is True

    bad = client.get(f'/attempts/{attempt_id}/paper?context=print')
    assert bad.status_code == 400


def test_other_students_cannot_read_attempt(client, exam):
    login(client, STUDENT)
    attempt_id = client.post(f'/exams/{exam.id}/attempts').get_json()['id']

    login(client, STUDENT + 1)
    response = client.get(f'/attempts/{attempt_id}')
    assert response.status_code == 403

    missing = client.get('/attempts/99999')
    assert missing.status_code == 404
    assert missing.get_json()['code'] == 'attempt_not_found'


def test_teacher_lists_attempts_for_a_user(client, exam):
    login(client, STUDENT)
    attempt_id = client.post(f'/exams/{exam.id}/attempts').get_json()['id']

    login(client, TEACHER, role='admin')
    listing = client.get(f'/exams/{exam.id}/attempts?user_id={STUDENT}').get_json()
    assert [row['id'] for row in listing['attempts']] == [attempt_id]

    active = client.get(f'/exams/{exam.id}/attempts/active?user_id={STUDENT}')
    assert active.status_code == 200
    assert active.get_json()['id'] == attempt_id
