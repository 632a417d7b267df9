from datetime import timedelta

import pytest

from factories import make_exam, make_course, assign, enrol, exam_answers
from models import db
from models.exam_attempts import ExamAttempt
from models.exam_assignments import ExamAssignment
from models.exam_sessions import ExamSession
from classes.exam_session_manager import ExamSessionManager
from classes.assignment_manager import AssignmentManager
from classes.progress_manager import CourseProgressionManager
from classes.errors import Ineligible, DuplicateSubmission, AccessDenied, NotFound
from utils.helpers import utcnow

EMPLOYEE = 11
DEPARTMENT = 3


def take(exam_id, correct_count, employee_id=EMPLOYEE, department_id=None):
    started = ExamSessionManager.start_attempt(employee_id, exam_id, department_id)
    return ExamSessionManager.submit_attempt(
        employee_id, started["session_id"], exam_answers(started["questions"], correct_count)
    )


def backdate(session_id, minutes, time_limit_minutes=10):
    session = db.session.get(ExamSession, session_id)
    session.started_at = utcnow() - timedelta(minutes=minutes)
    session.deadline_at = session.started_at + timedelta(minutes=time_limit_minutes)
    db.session.commit()


class TestEligibility:
    def test_unassigned_exam(self, app):
        exam = make_exam()
        eligibility = ExamSessionManager.check_eligibility(EMPLOYEE, exam.id)
        assert eligibility["can_take"] is False
        assert eligibility["reason"] == "no_assignment"
        assert eligibility["assignment_id"] is None

    def test_direct_assignment(self, app):
        exam = make_exam(max_attempts=3)
        assignment = assign(exam, employee_id=EMPLOYEE)

        eligibility = ExamSessionManager.check_eligibility(EMPLOYEE, exam.id)

        assert eligibility == {
            "exam_id": exam.id,
            "can_take": True,
            "reason": None,
            "assignment_id": assignment.id,
            "max_attempts": 3,
            "attempts_used": 0,
            "attempts_remaining": 3,
            "has_passed": False,
        }

    def test_department_assignment(self, app):
        exam = make_exam()
        assignment = assign(exam, department_id=DEPARTMENT)

        assert ExamSessionManager.check_eligibility(EMPLOYEE, exam.id)["can_take"] is False
        eligibility = ExamSessionManager.check_eligibility(EMPLOYEE, exam.id, DEPARTMENT)
        assert eligibility["can_take"] is True
        assert eligibility["assignment_id"] == assignment.id

    def test_direct_assignment_wins_over_department(self, app):
        exam = make_exam()
        assign(exam, department_id=DEPARTMENT, max_attempts=1)
        direct = assign(exam, employee_id=EMPLOYEE, max_attempts=5)

        eligibility = ExamSessionManager.check_eligibility(EMPLOYEE, exam.id, DEPARTMENT)
        assert eligibility["assignment_id"] == direct.id
        assert eligibility["max_attempts"] == 5

    def test_withdrawn_assignment_grants_nothing(self, app):
        exam = make_exam()
        assign(exam, employee_id=EMPLOYEE, status="withdrawn")
        assert ExamSessionManager.check_eligibility(EMPLOYEE, exam.id)["reason"] == "no_assignment"

    def test_quota_per_employee_on_department_assignment(self, app):
        exam = make_exam(max_attempts=1)
        assign(exam, department_id=DEPARTMENT)
        take(exam.id, 0, employee_id=EMPLOYEE, department_id=DEPARTMENT)

        mine = ExamSessionManager.check_eligibility(EMPLOYEE, exam.id, DEPARTMENT)
        colleague = ExamSessionManager.check_eligibility(12, exam.id, DEPARTMENT)

        assert mine["reason"] == "no_attempts_remaining"
        assert colleague["can_take"] is True

    def test_prerequisite_course(self, app):
        course = make_course(section_types=("ARTICLE",))
        exam = make_exam(prerequisite_course_id=course.id, exam_type="POST_ASSESSMENT")
        assign(exam, employee_id=EMPLOYEE)
        enrol(EMPLOYEE, course)

        assert ExamSessionManager.check_eligibility(EMPLOYEE, exam.id)["reason"] == "prerequisite_incomplete"

        CourseProgressionManager.complete_section(EMPLOYEE, course.id, course.sections[0].id)
        assert ExamSessionManager.check_eligibility(EMPLOYEE, exam.id)["can_take"] is True

    def test_unknown_exam(self, app):
        with pytest.raises(NotFound):
            ExamSessionManager.check_eligibility(EMPLOYEE, 404)


class TestStartAttempt:
    def test_questions_are_ordered_and_answers_hidden(self, app):
        exam = make_exam(question_count=4, reverse_insert=True)
        assign(exam, employee_id=EMPLOYEE)

        started = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)

        assert [q["order_index"] for q in started["questions"]] == [0, 1, 2, 3]
        assert all("correct_answer" not in q for q in started["questions"])
        again = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        assert [q["id"] for q in again["questions"]] == [q["id"] for q in started["questions"]]

    def test_deadline_follows_time_limit(self, app):
        exam = make_exam(time_limit_minutes=25)
        assign(exam, employee_id=EMPLOYEE)

        started = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        session = db.session.get(ExamSession, started["session_id"])

        assert session.status == "IN_PROGRESS"
        assert session.deadline_at - session.started_at == timedelta(minutes=25)

    def test_ineligible_start_raises(self, app):
        exam = make_exam()
        with pytest.raises(Ineligible) as exc:
            ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        assert exc.value.reason == "no_assignment"

    def test_starting_does_not_consume_quota(self, app):
        exam = make_exam(max_attempts=1)
        assign(exam, employee_id=EMPLOYEE)
        for _ in range(5):
            ExamSessionManager.start_attempt(EMPLOYEE, exam.id)

        eligibility = ExamSessionManager.check_eligibility(EMPLOYEE, exam.id)
        assert eligibility["attempts_used"] == 0
        assert eligibility["can_take"] is True


class TestSubmitAttempt:
    def test_records_immutable_attempt(self, app):
        exam = make_exam(question_count=10, passing_score=60)
        assignment = assign(exam, employee_id=EMPLOYEE)

        attempt = take(exam.id, 7)

        assert attempt.score == 7
        assert attempt.total_questions == 10
        assert attempt.percentage == 70
        assert attempt.passed is True
        assert attempt.auto_submitted is False
        assert attempt.assignment_id == assignment.id
        assert attempt.attempt_number == 1
        assert len(attempt.answers) == 10

    def test_passing_boundary_is_inclusive(self, app):
        exam = make_exam(question_count=10, passing_score=70)
        assign(exam, employee_id=EMPLOYEE)
        assert take(exam.id, 7).passed is True

    def test_just_below_passing_fails(self, app):
        exam = make_exam(question_count=10, passing_score=70)
        assign(exam, employee_id=EMPLOYEE)
        assert take(exam.id, 6).passed is False

    def test_unanswered_questions_count_as_incorrect(self, app):
        exam = make_exam(question_count=4)
        assign(exam, employee_id=EMPLOYEE)
        started = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        first = started["questions"][0]["id"]

        attempt = ExamSessionManager.submit_attempt(EMPLOYEE, started["session_id"], {str(first): "a"})

        assert attempt.score == 1
        assert attempt.percentage == 25
        assert attempt.answers[1]["selected_answer"] is None
        assert attempt.answers[1]["is_correct"] is False

    def test_percentage_rounds_half_up(self, app):
        exam = make_exam(question_count=8)
        assign(exam, employee_id=EMPLOYEE)
        assert take(exam.id, 1).percentage == 13

    def test_second_submit_is_duplicate(self, app):
        exam = make_exam()
        assign(exam, employee_id=EMPLOYEE)
        started = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        answers = exam_answers(started["questions"], 2)
        ExamSessionManager.submit_attempt(EMPLOYEE, started["session_id"], answers)

        with pytest.raises(DuplicateSubmission):
            ExamSessionManager.submit_attempt(EMPLOYEE, started["session_id"], answers)
        assert ExamAttempt.query.count() == 1

    def test_quota_boundary(self, app):
        exam = make_exam(max_attempts=3)
        assign(exam, employee_id=EMPLOYEE)
        sessions = [ExamSessionManager.start_attempt(EMPLOYEE, exam.id) for _ in range(5)]

        for started in sessions[:3]:
            ExamSessionManager.submit_attempt(EMPLOYEE, started["session_id"], exam_answers(started["questions"], 0))

        with pytest.raises(Ineligible) as exc:
            ExamSessionManager.submit_attempt(EMPLOYEE, sessions[3]["session_id"], {})
        assert exc.value.reason == "no_attempts_remaining"
        assert ExamAttempt.query.count() == 3

        with pytest.raises(Ineligible):
            ExamSessionManager.start_attempt(EMPLOYEE, exam.id)

    def test_late_submission_is_accepted_and_flagged(self, app):
        exam = make_exam(time_limit_minutes=10)
        assign(exam, employee_id=EMPLOYEE)
        started = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        backdate(started["session_id"], 11)

        attempt = ExamSessionManager.submit_attempt(
            EMPLOYEE, started["session_id"], exam_answers(started["questions"], 10)
        )

        assert attempt.auto_submitted is True
        assert attempt.passed is True

    def test_client_auto_submit_flag_is_kept(self, app):
        exam = make_exam()
        assign(exam, employee_id=EMPLOYEE)
        started = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        attempt = ExamSessionManager.submit_attempt(EMPLOYEE, started["session_id"], {}, auto_submitted=True)
        assert attempt.auto_submitted is True

    def test_session_belongs_to_its_employee(self, app):
        exam = make_exam()
        assign(exam, employee_id=EMPLOYEE)
        started = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)

        with pytest.raises(AccessDenied):
            ExamSessionManager.submit_attempt(99, started["session_id"], {})
        with pytest.raises(AccessDenied):
            ExamSessionManager.submit_attempt(EMPLOYEE, started["session_id"], {}, assignment_id=started["assignment_id"] + 1)
        with pytest.raises(NotFound):
            ExamSessionManager.submit_attempt(EMPLOYEE, 404, {})

    def test_withdrawn_assignment_rejects_open_session(self, app):
        exam = make_exam()
        assignment = assign(exam, employee_id=EMPLOYEE)
        started = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        AssignmentManager.withdraw(assignment.id)

        with pytest.raises(Ineligible) as exc:
            ExamSessionManager.submit_attempt(EMPLOYEE, started["session_id"], exam_answers(started["questions"], 10))

        assert exc.value.reason == "no_assignment"
        assert ExamAttempt.query.count() == 0
        assert db.session.get(ExamSession, started["session_id"]).is_submitted is False

    def test_pass_completes_direct_assignment_only(self, app):
        exam = make_exam()
        direct = assign(exam, employee_id=EMPLOYEE)
        department = assign(exam, department_id=DEPARTMENT)

        take(exam.id, 10)
        take(exam.id, 10, employee_id=12, department_id=DEPARTMENT)

        assert db.session.get(ExamAssignment, direct.id).status == "completed"
        assert db.session.get(ExamAssignment, department.id).status == "active"

    def test_attempt_slot_conflict_is_retried(self, app, monkeypatch):
        exam = make_exam(max_attempts=3)
        assign(exam, employee_id=EMPLOYEE)
        first = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        second = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
        ExamSessionManager.submit_attempt(EMPLOYEE, first["session_id"], {})

        real_attempts_used = ExamSessionManager.attempts_used
        calls = []

        def stale_attempts_used(assignment_id, employee_id):
            calls.append(assignment_id)
            if len(calls) == 1:
                return 0
            return real_attempts_used(assignment_id, employee_id)

        monkeypatch.setattr(ExamSessionManager, "attempts_used", staticmethod(stale_attempts_used))
        attempt = ExamSessionManager.submit_attempt(EMPLOYEE, second["session_id"], {})

        assert attempt.attempt_number == 2
        assert ExamAttempt.query.count() == 2


def test_scenario_two_attempts_then_locked(app):
    exam = make_exam(question_count=10, passing_score=60, time_limit_minutes=10, max_attempts=2)
    assign(exam, employee_id=EMPLOYEE)

    first = take(exam.id, 5)
    assert first.percentage == 50
    assert first.passed is False
    assert ExamSessionManager.check_eligibility(EMPLOYEE, exam.id)["attempts_remaining"] == 1

    started = ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
    backdate(started["session_id"], 11)
    second = ExamSessionManager.submit_attempt(
        EMPLOYEE, started["session_id"], exam_answers(started["questions"], 8)
    )
    assert second.percentage == 80
    assert second.passed is True
    assert second.auto_submitted is True
    assert ExamSessionManager.check_eligibility(EMPLOYEE, exam.id)["attempts_remaining"] == 0

    with pytest.raises(Ineligible) as exc:
        ExamSessionManager.start_attempt(EMPLOYEE, exam.id)
    assert exc.value.eligibility["has_passed"] is True
    assert exc.value.reason == "already_passed"

    history = ExamSessionManager.list_attempts(EMPLOYEE, exam.id)
    assert [a.id for a in history] == [second.id, first.id]
