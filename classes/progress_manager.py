import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.courses import Course
from models.course_sections import CourseSection
from models.enrolments import CourseEnrolment
from models.section_progress import SectionProgress
from classes.certificate_issuer import CertificateIssuer
from classes.errors import NotFound, AccessDenied
from classes.validators import normalise_quiz_answers, validate_questions
from utils.helpers import utcnow, percentage
from utils.storage import storage_guard

logger = logging.getLogger(__name__)


class CourseProgressionManager:
    """Sequential section gating, enrolment state and course completion.

    Enrolment status only moves forward: ASSIGNED -> IN_PROGRESS -> COMPLETED.
    Progress is always re-counted from stored SectionProgress rows.
    """

    @staticmethod
    def _get_course(course_id):
        course = db.session.get(Course, course_id)
        if not course:
            raise NotFound("Course not found", reason="course_not_found")
        return course

    @staticmethod
    def _load_section(course_id, section_id):
        """Return (course, section, position) where position is the 0-based gating index."""
        course = CourseProgressionManager._get_course(course_id)
        for position, section in enumerate(course.sections):
            if section.id == section_id:
                return course, section, position
        raise NotFound("Section not found in this course", reason="section_not_found")

    @staticmethod
    def _get_enrolment(employee_id, course_id):
        return CourseEnrolment.query.filter_by(employee_id=employee_id, course_id=course_id).first()

    @staticmethod
    def _require_enrolment(employee_id, course_id):
        enrolment = CourseProgressionManager._get_enrolment(employee_id, course_id)
        if not enrolment:
            raise AccessDenied("Course is not assigned to this employee", reason="not_enrolled")
        return enrolment

    @staticmethod
    def _completed_section_ids(employee_id, section_ids):
        if not section_ids:
            return set()
        rows = (
            db.session.query(SectionProgress.section_id)
            .filter(
                SectionProgress.employee_id == employee_id,
                SectionProgress.completed.is_(True),
                SectionProgress.section_id.in_(section_ids),
            )
            .all()
        )
        return {row.section_id for row in rows}

    @staticmethod
    def _is_unlocked(employee_id, sections, position):
        if position == 0:
            return True
        previous = sections[position - 1]
        return bool(CourseProgressionManager._completed_section_ids(employee_id, [previous.id]))

    @staticmethod
    def can_access_section(employee_id, course_id, section_index):
        """True iff the section at ``section_index`` is first or its predecessor is complete."""
        course = CourseProgressionManager._get_course(course_id)
        sections = course.sections
        if section_index < 0 or section_index >= len(sections):
            raise NotFound("Section not found in this course", reason="section_not_found")
        return CourseProgressionManager._is_unlocked(employee_id, sections, section_index)

    @staticmethod
    def _recompute(enrolment, course, now):
        section_ids = [s.id for s in course.sections]
        completed = len(CourseProgressionManager._completed_section_ids(enrolment.employee_id, section_ids))
        total = len(section_ids)

        if total and completed == total:
            enrolment.progress_percentage = 100
            enrolment.status = "COMPLETED"
            enrolment.completed_at = now
            if not enrolment.started_at:
                enrolment.started_at = now
            return

        # 199 of 200 rounds to 100; only a full count completes the course
        enrolment.progress_percentage = min(percentage(completed, total), 99)
        if completed > 0 and enrolment.status == "ASSIGNED":
            enrolment.status = "IN_PROGRESS"
            if not enrolment.started_at:
                enrolment.started_at = now

    @staticmethod
    def _certificate_score(employee_id, course):
        quiz_ids = [s.id for s in course.sections if s.is_quiz]
        if not quiz_ids:
            return None
        scores = [
            row.score for row in SectionProgress.query.filter(
                SectionProgress.employee_id == employee_id,
                SectionProgress.section_id.in_(quiz_ids),
            ).all()
            if row.score is not None
        ]
        if not scores:
            return None
        return round(sum(scores) / len(scores), 1)

    @staticmethod
    def _issue_certificate(employee_id, course):
        score = CourseProgressionManager._certificate_score(employee_id, course)
        return CertificateIssuer.issue(employee_id, course.id, score)

    @staticmethod
    @storage_guard
    def complete_section(employee_id, course_id, section_id, score=None):
        """Mark a section complete and return the updated enrolment.

        Raises AccessDenied when the previous section is not complete yet.
        Completing an already-complete section, or any section of a completed
        course, leaves the enrolment unchanged.
        """
        course, section, position = CourseProgressionManager._load_section(course_id, section_id)
        enrolment = CourseProgressionManager._require_enrolment(employee_id, course_id)

        if enrolment.is_completed:
            # Idempotent; also covers a certificate issue that failed after completion
            CourseProgressionManager._issue_certificate(employee_id, course)
            return enrolment

        if not CourseProgressionManager._is_unlocked(employee_id, course.sections, position):
            required = course.sections[position - 1]
            logger.warning(
                "Employee %s tried to complete locked section %s of course %s",
                employee_id, section_id, course_id,
            )
            raise AccessDenied(
                "Complete the previous section first",
                reason="section_locked",
                details={"section_id": section_id, "required_section_id": required.id},
            )

        progress = SectionProgress.query.filter_by(employee_id=employee_id, section_id=section_id).first()
        if progress and progress.completed:
            return enrolment

        now = utcnow()
        if progress:
            progress.completed = True
            progress.completed_at = now
            progress.score = score
        else:
            db.session.add(SectionProgress(
                employee_id=employee_id,
                course_id=course_id,
                section_id=section_id,
                completed=True,
                completed_at=now,
                score=score,
            ))

        try:
            db.session.flush()
        except IntegrityError:
            # Another request completed the same section first
            db.session.rollback()
            return CourseProgressionManager._get_enrolment(employee_id, course_id)

        CourseProgressionManager._recompute(enrolment, course, now)
        db.session.commit()

        if enrolment.is_completed:
            logger.info("Employee %s completed course %s", employee_id, course_id)
            CourseProgressionManager._issue_certificate(employee_id, course)

        return enrolment

    @staticmethod
    @storage_guard
    def submit_quiz_section(employee_id, course_id, section_id, answers):
        """Grade an in-course quiz; a pass completes the section.

        ``answers`` maps question index to the selected option. Retries are
        unlimited; a failed quiz leaves the section incomplete.
        """
        course, section, position = CourseProgressionManager._load_section(course_id, section_id)
        if not section.is_quiz:
            raise ValueError("Section is not a quiz.")

        enrolment = CourseProgressionManager._require_enrolment(employee_id, course_id)
        if not enrolment.is_completed and not CourseProgressionManager._is_unlocked(employee_id, course.sections, position):
            raise AccessDenied(
                "Complete the previous section first",
                reason="section_locked",
                details={"section_id": section_id, "required_section_id": course.sections[position - 1].id},
            )

        questions = section.questions
        validate_questions(questions)
        if not questions:
            raise ValueError("Quiz has no questions.")
        answers = normalise_quiz_answers(answers)

        correct = 0
        feedback = []
        for index, question in enumerate(questions):
            selected = answers.get(index)
            is_correct = selected is not None and selected == question["correct_answer"]
            if is_correct:
                correct += 1
            feedback.append({
                "question_index": index,
                "question": question["question"],
                "selected_answer": selected,
                "is_correct": is_correct,
            })

        score = percentage(correct, len(questions))
        passed = score >= current_app.config.get("QUIZ_PASSING_SCORE", 60)

        result = {
            "section_id": section_id,
            "score": score,
            "passed": passed,
            "correct_count": correct,
            "total_questions": len(questions),
            "feedback": feedback,
        }

        if passed:
            enrolment = CourseProgressionManager.complete_section(employee_id, course_id, section_id, score=score)
            result["enrolment"] = enrolment.to_dict()
        else:
            logger.info("Employee %s failed quiz section %s with %s%%", employee_id, section_id, score)

        return result

    @staticmethod
    def enrolment_status(employee_id, course_id):
        course = CourseProgressionManager._get_course(course_id)
        enrolment = CourseProgressionManager._get_enrolment(employee_id, course_id)
        if not enrolment:
            raise NotFound("Course is not assigned to this employee", reason="not_enrolled")

        sections = course.sections
        completed = CourseProgressionManager._completed_section_ids(employee_id, [s.id for s in sections])

        section_states = []
        for position, section in enumerate(sections):
            accessible = position == 0 or sections[position - 1].id in completed
            state = section.to_dict()
            if not accessible:
                # Locked sections only reveal their outline
                state["content_data"] = None
            state.update(
                section_id=section.id,
                completed=section.id in completed,
                accessible=accessible,
            )
            section_states.append(state)

        return {
            **enrolment.to_dict(),
            "course": course.to_dict(),
            "total_sections": len(sections),
            "completed_sections": len(completed),
            "sections": section_states,
        }
