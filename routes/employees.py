from flask import Blueprint, jsonify, g, request, current_app

from utils.utils import login_required
from classes.progress_manager import CourseProgressionManager
from classes.enrolment_manager import EnrolmentManager
from classes.exam_session_manager import ExamSessionManager
from classes.assignment_manager import AssignmentManager
from classes.certificate_issuer import CertificateIssuer
from classes.validators import validate_id, validate_flag

# Employees' blueprint
employee_bp = Blueprint("employee", __name__)


def current_principal():
    return g.user.get("user_id"), g.user.get("department_id")


#                                                         COURSES
#_____________________________________________________________________________________________________________
@employee_bp.route("/courses", methods=["GET"])
@login_required
def get_my_courses():
    employee_id, _ = current_principal()
    enrolments = EnrolmentManager.list_for_employee(employee_id)
    return jsonify({"courses": [e.to_dict() for e in enrolments]}), 200


@employee_bp.route("/courses/<int:course_id>", methods=["GET"])
@login_required
def get_enrolment_status(course_id):
    employee_id, _ = current_principal()
    return jsonify(CourseProgressionManager.enrolment_status(employee_id, course_id)), 200


@employee_bp.route("/courses/<int:course_id>/start", methods=["POST"])
@login_required
def start_course(course_id):
    employee_id, _ = current_principal()
    enrolment = EnrolmentManager.start_course(employee_id, course_id)
    return jsonify(enrolment.to_dict()), 200


@employee_bp.route("/courses/<int:course_id>/sections/<int:section_index>/access", methods=["GET"])
@login_required
def can_access_section(course_id, section_index):
    employee_id, _ = current_principal()
    allowed = CourseProgressionManager.can_access_section(employee_id, course_id, section_index)
    return jsonify({"section_index": section_index, "can_access": allowed}), 200


@employee_bp.route("/courses/<int:course_id>/sections/<int:section_id>/complete", methods=["POST"])
@login_required
def complete_section(course_id, section_id):
    employee_id, _ = current_principal()
    enrolment = CourseProgressionManager.complete_section(employee_id, course_id, section_id)
    return jsonify(enrolment.to_dict()), 200


@employee_bp.route("/courses/<int:course_id>/sections/<int:section_id>/quiz", methods=["POST"])
@login_required
def submit_quiz_section(course_id, section_id):
    """Grades an in-course quiz; passing completes the section."""
    employee_id, _ = current_principal()
    data = request.get_json(silent=True) or {}

    try:
        result = CourseProgressionManager.submit_quiz_section(
            employee_id, course_id, section_id, data.get("answers", {})
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(result), 200


#                                                         EXAMS
#_____________________________________________________________________________________________________________
@employee_bp.route("/exams", methods=["GET"])
@login_required
def get_my_exams():
    employee_id, department_id = current_principal()
    return jsonify({"exams": AssignmentManager.available_exams(employee_id, department_id)}), 200


@employee_bp.route("/exams/<int:exam_id>/eligibility", methods=["GET"])
@login_required
def get_exam_eligibility(exam_id):
    employee_id, department_id = current_principal()
    return jsonify(ExamSessionManager.check_eligibility(employee_id, exam_id, department_id)), 200


@employee_bp.route("/exams/<int:exam_id>/start", methods=["POST"])
@login_required
def start_exam(exam_id):
    employee_id, department_id = current_principal()
    session = ExamSessionManager.start_attempt(employee_id, exam_id, department_id)
    return jsonify(session), 201


@employee_bp.route("/exams/sessions/<int:session_id>/submit", methods=["POST"])
@login_required
def submit_exam(session_id):
    employee_id, _ = current_principal()
    data = request.get_json(silent=True) or {}

    try:
        attempt = ExamSessionManager.submit_attempt(
            employee_id,
            session_id,
            data.get("answers", {}),
            assignment_id=validate_id(data.get("assignment_id"), "assignment_id"),
            auto_submitted=validate_flag(data.get("auto_submitted"), "auto_submitted"),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    current_app.logger.debug("Session %s submitted by employee %s", session_id, employee_id)
    return jsonify(attempt.to_dict()), 201


@employee_bp.route("/exams/<int:exam_id>/attempts", methods=["GET"])
@login_required
def get_exam_attempts(exam_id):
    employee_id, _ = current_principal()
    attempts = ExamSessionManager.list_attempts(employee_id, exam_id)
    return jsonify({"attempts": [a.to_dict() for a in attempts]}), 200


#                                                      CERTIFICATES
#_____________________________________________________________________________________________________________
@employee_bp.route("/certificates", methods=["GET"])
@login_required
def get_my_certificates():
    employee_id, _ = current_principal()
    certificates = CertificateIssuer.list_for_employee(employee_id)
    return jsonify({"certificates": [c.to_dict() for c in certificates]}), 200
