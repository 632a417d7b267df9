import logging
import secrets

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.courses import Course
from models.certificates import Certificate
from classes.errors import NotFound, StorageFailure
from utils.helpers import utcnow
from utils.storage import storage_guard

logger = logging.getLogger(__name__)


class CertificateIssuer:
    @staticmethod
    def generate_number(year):
        return f"CERT-{year}-{secrets.randbelow(1000000):06d}"

    @staticmethod
    def find(employee_id, course_id):
        return Certificate.query.filter_by(employee_id=employee_id, course_id=course_id).first()

    @staticmethod
    @storage_guard
    def issue(employee_id, course_id, score=None):
        """Return the employee's certificate for the course, minting it on first call.

        Uniqueness per (employee, course) and per certificate number is held by
        the store's unique constraints, so concurrent callers converge on one row.
        """
        existing = CertificateIssuer.find(employee_id, course_id)
        if existing:
            return existing

        if not db.session.get(Course, course_id):
            raise NotFound("Course not found", reason="course_not_found")

        retries = current_app.config.get("CERTIFICATE_NUMBER_RETRIES", 5)
        for _ in range(retries):
            now = utcnow()
            number = CertificateIssuer.generate_number(now.year)
            if Certificate.query.filter_by(certificate_number=number).first():
                continue

            certificate = Certificate(
                certificate_number=number,
                employee_id=employee_id,
                course_id=course_id,
                score=score,
                issued_at=now,
                completion_date=now.date(),
            )
            db.session.add(certificate)
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                existing = CertificateIssuer.find(employee_id, course_id)
                if existing:
                    logger.warning("Concurrent certificate issue for employee %s course %s", employee_id, course_id)
                    return existing
                # Number taken between the check and the insert
                continue

            logger.info("Issued certificate %s to employee %s for course %s", number, employee_id, course_id)
            return certificate

        raise StorageFailure("Could not allocate a unique certificate number", reason="certificate_number_exhausted")

    @staticmethod
    def list_for_employee(employee_id):
        return (
            Certificate.query
            .filter_by(employee_id=employee_id)
            .order_by(Certificate.issued_at.desc(), Certificate.id.desc())
            .all()
        )
