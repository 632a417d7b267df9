import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.exams import Exam
from models.exam_questions import ExamQuestion
from models.exam_assignments import ExamAssignment, OPEN_ASSIGNMENT_STATUSES
from models.exam_sessions import ExamSession
from models.exam_attempts import ExamAttempt
from models.enrolments import CourseEnrolment
from classes.errors import NotFound, AccessDenied, Ineligible, DuplicateSubmission, StorageFailure
from classes.validators import validate_answers
from utils.helpers import utcnow, percentage
from utils.storage import storage_guard

logger = logging.getLogger(__name__)

INELIGIBLE_MESSAGES = {
    "no_assignment": "This exam is not assigned to you.",
    "already_passed": "You have already passed this exam.",
    "no_attempts_remaining": "You have used all your attempts for this exam. Contact your admin for more.",
    "prerequisite_incomplete": "Complete the prerequisite course before taking this exam.",
}


class ExamSessionManager:
    """Exam eligibility, timed sessions, scoring and attempt quotas.

    Quota is counted per (assignment, employee) from submitted ExamAttempt
    rows only; starting a session never consumes an attempt.
    """

    @staticmethod
    def _get_exam(exam_id):
        exam = db.session.get(Exam, exam_id)
        if not exam:
            raise NotFound("Exam not found", reason="exam_not_found")
        return exam

    @staticmethod
    def find_assignment(employee_id, exam_id, department_id=None):
        """A direct assignment wins over a department-wide one."""
        direct = ExamAssignment.query.filter(
            ExamAssignment.exam_id == exam_id,
            ExamAssignment.employee_id == employee_id,
            ExamAssignment.status.in_(OPEN_ASSIGNMENT_STATUSES),
        ).first()
        if direct or department_id is None:
            return direct

        return ExamAssignment.query.filter(
            ExamAssignment.exam_id == exam_id,
            ExamAssignment.department_id == department_id,
            ExamAssignment.status.in_(OPEN_ASSIGNMENT_STATUSES),
        ).first()

    @staticmethod
    def attempts_used(assignment_id, employee_id):
        return ExamAttempt.query.filter_by(assignment_id=assignment_id, employee_id=employee_id).count()

    @staticmethod
    def has_passed(employee_id, exam_id):
        return db.session.query(
            ExamAttempt.query.filter_by(employee_id=employee_id, exam_id=exam_id, passed=True).exists()
        ).scalar()

    @staticmethod
    def _prerequisite_met(employee_id, exam):
        if not exam.prerequisite_course_id:
            return True
        enrolment = CourseEnrolment.query.filter_by(
            employee_id=employee_id, course_id=exam.prerequisite_course_id
        ).first()
        return bool(enrolment and enrolment.is_completed)

    @staticmethod
    def assignment_state(employee_id, exam, assignment):
        """Eligibility of one employee against one assignment of ``exam``."""
        if assignment is None:
            return {
                "exam_id": exam.id,
                "can_take": False,
                "reason": "no_assignment",
                "assignment_id": None,
                "max_attempts": 0,
                "attempts_used": 0,
                "attempts_remaining": 0,
                "has_passed": ExamSessionManager.has_passed(employee_id, exam.id),
            }

        used = ExamSessionManager.attempts_used(assignment.id, employee_id)
        passed = ExamSessionManager.has_passed(employee_id, exam.id)

        reason = None
        if passed:
            reason = "already_passed"
        elif used >= assignment.max_attempts:
            reason = "no_attempts_remaining"
        elif not ExamSessionManager._prerequisite_met(employee_id, exam):
            reason = "prerequisite_incomplete"

        return {
            "exam_id": exam.id,
            "can_take": reason is None,
            "reason": reason,
            "assignment_id": assignment.id,
            "max_attempts": assignment.max_attempts,
            "attempts_used": used,
            "attempts_remaining": max(0, assignment.max_attempts - used),
            "has_passed": passed,
        }

    @staticmethod
    @storage_guard
    def check_eligibility(employee_id, exam_id, department_id=None):
        exam = ExamSessionManager._get_exam(exam_id)
        assignment = ExamSessionManager.find_assignment(employee_id, exam_id, department_id)
        return ExamSessionManager.assignment_state(employee_id, exam, assignment)

    @staticmethod
    def ordered_questions(exam_id):
        return (
            ExamQuestion.query
            .filter_by(exam_id=exam_id)
            .order_by(ExamQuestion.order_index, ExamQuestion.id)
            .all()
        )

    @staticmethod
    @storage_guard
    def start_attempt(employee_id, exam_id, department_id=None):
        """Open a timed session. Raises Ineligible when the exam cannot be taken."""
        eligibility = ExamSessionManager.check_eligibility(employee_id, exam_id, department_id)
        if not eligibility["can_take"]:
            logger.warning("Employee %s ineligible for exam %s: %s", employee_id, exam_id, eligibility["reason"])
            raise Ineligible(INELIGIBLE_MESSAGES[eligibility["reason"]], eligibility)

        exam = ExamSessionManager._get_exam(exam_id)
        now = utcnow()
        session = ExamSession(
            employee_id=employee_id,
            exam_id=exam_id,
            assignment_id=eligibility["assignment_id"],
            status="IN_PROGRESS",
            started_at=now,
            deadline_at=now + timedelta(minutes=exam.time_limit_minutes),
        )
        db.session.add(session)
        db.session.commit()

        return {
            "session_id": session.id,
            "assignment_id": session.assignment_id,
            "exam": exam.to_dict(),
            "questions": [q.to_dict() for q in ExamSessionManager.ordered_questions(exam_id)],
            "started_at": session.started_at.isoformat(),
            "deadline_at": session.deadline_at.isoformat(),
            "time_limit_minutes": exam.time_limit_minutes,
            "attempts_remaining": eligibility["attempts_remaining"],
        }

    @staticmethod
    def grade(questions, answers):
        """Exact-match grading; unanswered questions count as incorrect."""
        correct = 0
        graded = []
        for question in questions:
            selected = answers.get(str(question.id))
            if selected is None:
                selected = answers.get(question.id)
            is_correct = selected is not None and selected == question.correct_answer
            if is_correct:
                correct += 1
            graded.append({
                "question_id": question.id,
                "question": question.question,
                "selected_answer": selected,
                "correct_answer": question.correct_answer,
                "is_correct": is_correct,
            })
        return correct, graded

    @staticmethod
    @storage_guard
    def submit_attempt(employee_id, session_id, answers, assignment_id=None, auto_submitted=False):
        """Score a session and record its single immutable ExamAttempt.

        Late submissions are accepted and flagged ``auto_submitted``. A second
        submit for the same session raises DuplicateSubmission.
        """
        answers = validate_answers(answers)

        session = db.session.get(ExamSession, session_id)
        if not session:
            raise NotFound("Exam session not found", reason="session_not_found")
        if session.employee_id != employee_id:
            raise AccessDenied("This exam session belongs to another employee", reason="session_not_owned")
        if assignment_id is not None and assignment_id != session.assignment_id:
            raise AccessDenied("Assignment does not match this exam session", reason="assignment_mismatch")
        if session.is_submitted:
            raise DuplicateSubmission("This exam session was already submitted", reason="already_submitted")

        exam = ExamSessionManager._get_exam(session.exam_id)
        questions = ExamSessionManager.ordered_questions(exam.id)
        correct, graded = ExamSessionManager.grade(questions, answers)
        score = percentage(correct, len(questions))
        passed = score >= exam.passing_score

        now = utcnow()
        late = now > session.deadline_at

        for _ in range(current_app.config.get("ATTEMPT_SUBMIT_RETRIES", 3)):
            assignment = db.session.get(ExamAssignment, session.assignment_id)
            if not assignment:
                raise NotFound("Exam assignment not found", reason="assignment_not_found")

            state = ExamSessionManager.assignment_state(employee_id, exam, assignment)
            if assignment.status not in OPEN_ASSIGNMENT_STATUSES:
                # Withdrawn or expired after the session started
                state.update(can_take=False, reason="no_assignment")
            if state["reason"] in ("no_assignment", "already_passed", "no_attempts_remaining"):
                logger.warning("Rejected submission of session %s: %s", session_id, state["reason"])
                raise Ineligible(INELIGIBLE_MESSAGES[state["reason"]], state)

            attempt = ExamAttempt(
                employee_id=employee_id,
                exam_id=exam.id,
                assignment_id=assignment.id,
                session_id=session.id,
                attempt_number=state["attempts_used"] + 1,
                answers=graded,
                score=correct,
                total_questions=len(questions),
                percentage=score,
                passed=passed,
                auto_submitted=bool(auto_submitted) or late,
                started_at=session.started_at,
                completed_at=now,
            )
            db.session.add(attempt)
            session.status = "SUBMITTED"
            session.submitted_at = now
            if passed and assignment.employee_id == employee_id and assignment.status == "active":
                assignment.status = "completed"

            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                if ExamAttempt.query.filter_by(session_id=session_id).first():
                    raise DuplicateSubmission("This exam session was already submitted", reason="already_submitted")
                # Another session took this attempt slot; recount and retry
                logger.warning("Attempt slot conflict for session %s, retrying", session_id)
                continue

            logger.info(
                "Recorded attempt %s for employee %s on exam %s: %s%% (%s)",
                attempt.attempt_number, employee_id, exam.id, score, "passed" if passed else "failed",
            )
            return attempt

        raise StorageFailure("Could not record the exam attempt, please retry", reason="attempt_conflict")

    @staticmethod
    def list_attempts(employee_id, exam_id):
        return (
            ExamAttempt.query
            .filter_by(employee_id=employee_id, exam_id=exam_id)
            .order_by(ExamAttempt.completed_at.desc(), ExamAttempt.id.desc())
            .all()
        )
