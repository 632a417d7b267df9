import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from models import db
from models.exams import Exam
from models.exam_assignments import ExamAssignment
from classes.errors import NotFound, DuplicateAssignment
from classes.exam_session_manager import ExamSessionManager
from classes.validators import validate_max_attempts
from utils.helpers import utcnow
from utils.storage import storage_guard

logger = logging.getLogger(__name__)


class AssignmentManager:
    @staticmethod
    @storage_guard
    def assign_exam(exam_id, employee_id=None, department_id=None, max_attempts=None,
                    due_date=None, is_mandatory=True, assigned_by=None):
        """Grant an employee or a whole department access to an exam."""
        if (employee_id is None) == (department_id is None):
            raise ValueError("Assign the exam to exactly one employee or department.")
        max_attempts = validate_max_attempts(max_attempts)

        exam = db.session.get(Exam, exam_id)
        if not exam:
            raise NotFound("Exam not found", reason="exam_not_found")

        assignment = ExamAssignment(
            exam_id=exam_id,
            employee_id=employee_id,
            department_id=department_id,
            max_attempts=max_attempts or exam.max_attempts,
            due_date=due_date,
            is_mandatory=is_mandatory,
            status="active",
            assigned_by=assigned_by,
            assigned_at=utcnow(),
        )
        db.session.add(assignment)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateAssignment(
                "This exam is already assigned to the selected employee/department.",
                reason="already_assigned",
            )

        logger.info("Assigned exam %s to %s", exam_id,
                    f"employee {employee_id}" if employee_id is not None else f"department {department_id}")
        return assignment

    @staticmethod
    @storage_guard
    def withdraw(assignment_id, withdrawn_by=None):
        """Hide the exam from its assignees; attempt history is kept.

        Sessions already started against the assignment can no longer be submitted.
        """
        assignment = db.session.get(ExamAssignment, assignment_id)
        if not assignment:
            raise NotFound("Exam assignment not found", reason="assignment_not_found")

        if assignment.status != "withdrawn":
            assignment.status = "withdrawn"
            assignment.withdrawn_at = utcnow()
            assignment.withdrawn_by = withdrawn_by
            db.session.commit()
            logger.info("Withdrew exam assignment %s", assignment_id)
        return assignment

    @staticmethod
    @storage_guard
    def available_exams(employee_id, department_id=None):
        """The employee's visible assignments with attempt and pass state, soonest due first."""
        targets = [ExamAssignment.employee_id == employee_id]
        if department_id is not None:
            targets.append(ExamAssignment.department_id == department_id)

        assignments = ExamAssignment.query.filter(
            or_(*targets),
            ExamAssignment.status != "withdrawn",
        ).all()

        direct_exam_ids = {a.exam_id for a in assignments if a.employee_id == employee_id}
        available = []
        for assignment in assignments:
            if assignment.employee_id is None and assignment.exam_id in direct_exam_ids:
                continue
            exam = assignment.exam
            state = ExamSessionManager.assignment_state(employee_id, exam, assignment)
            if assignment.status == "expired":
                state.update(can_take=False, reason="assignment_expired")
            available.append({
                **exam.to_dict(),
                "exam_id": exam.id,
                "assignment_id": assignment.id,
                "assignment_status": assignment.status,
                "due_date": assignment.due_date.isoformat() if assignment.due_date else None,
                "is_mandatory": assignment.is_mandatory,
                "max_attempts": state["max_attempts"],
                "attempts_used": state["attempts_used"],
                "attempts_remaining": state["attempts_remaining"],
                "has_passed": state["has_passed"],
                "can_take": state["can_take"],
                "reason": state["reason"],
                "_due": assignment.due_date,
            })

        available.sort(key=lambda e: (e["_due"] is None, e["_due"] or datetime.max, e["assignment_id"]))
        for entry in available:
            del entry["_due"]
        return available
