import logging

from sqlalchemy.exc import IntegrityError

from models import db
from models.courses import Course
from models.enrolments import CourseEnrolment
from classes.errors import NotFound, AccessDenied
from utils.helpers import utcnow
from utils.storage import storage_guard

logger = logging.getLogger(__name__)


class EnrolmentManager:
    @staticmethod
    def get(employee_id, course_id):
        return CourseEnrolment.query.filter_by(employee_id=employee_id, course_id=course_id).first()

    @staticmethod
    @storage_guard
    def assign_course(employee_id, course_id, assigned_by=None, due_date=None):
        """Enrol an employee in a course. Re-assigning returns the existing enrolment."""
        course = db.session.get(Course, course_id)
        if not course:
            raise NotFound("Course not found", reason="course_not_found")
        if not course.is_published:
            raise AccessDenied("Course is not published", reason="course_unpublished")

        existing = EnrolmentManager.get(employee_id, course_id)
        if existing:
            return existing

        enrolment = CourseEnrolment(
            employee_id=employee_id,
            course_id=course_id,
            status="ASSIGNED",
            progress_percentage=0,
            assigned_by=assigned_by,
            assigned_at=utcnow(),
            due_date=due_date,
        )
        db.session.add(enrolment)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return EnrolmentManager.get(employee_id, course_id)

        logger.info("Assigned course %s to employee %s", course_id, employee_id)
        return enrolment

    @staticmethod
    @storage_guard
    def start_course(employee_id, course_id):
        enrolment = EnrolmentManager.get(employee_id, course_id)
        if not enrolment:
            raise NotFound("Course is not assigned to this employee", reason="not_enrolled")

        if enrolment.status == "ASSIGNED":
            enrolment.status = "IN_PROGRESS"
            enrolment.started_at = utcnow()
            db.session.commit()
        return enrolment

    @staticmethod
    def list_for_employee(employee_id):
        return (
            CourseEnrolment.query
            .filter_by(employee_id=employee_id)
            .order_by(CourseEnrolment.assigned_at.desc(), CourseEnrolment.id.desc())
            .all()
        )
