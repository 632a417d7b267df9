from flask import Blueprint, jsonify, g, request

from utils.utils import role_required
from utils.helpers import parse_datetime
from classes.enrolment_manager import EnrolmentManager
from classes.assignment_manager import AssignmentManager
from classes.validators import validate_flag

# Company admins' blueprint
admin_bp = Blueprint("admin", __name__)

ADMIN_ROLES = ("company_admin", "platform_admin")


@admin_bp.route("/courses/<int:course_id>/assign", methods=["POST"])
@role_required(*ADMIN_ROLES)
def assign_course(course_id):
    data = request.get_json(silent=True) or {}
    employee_id = data.get("employee_id")
    if employee_id is None:
        return jsonify({"error": "employee_id is required"}), 400

    try:
        due_date = parse_datetime(data.get("due_date"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    enrolment = EnrolmentManager.assign_course(
        employee_id, course_id, assigned_by=g.user.get("user_id"), due_date=due_date
    )
    return jsonify(enrolment.to_dict()), 201


@admin_bp.route("/exams/<int:exam_id>/assign", methods=["POST"])
@role_required(*ADMIN_ROLES)
def assign_exam(exam_id):
    data = request.get_json(silent=True) or {}

    try:
        assignment = AssignmentManager.assign_exam(
            exam_id,
            employee_id=data.get("employee_id"),
            department_id=data.get("department_id"),
            max_attempts=data.get("max_attempts"),
            due_date=parse_datetime(data.get("due_date")),
            is_mandatory=validate_flag(data.get("is_mandatory"), "is_mandatory", default=True),
            assigned_by=g.user.get("user_id"),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(assignment.to_dict()), 201


@admin_bp.route("/exam-assignments/<int:assignment_id>/withdraw", methods=["POST"])
@role_required(*ADMIN_ROLES)
def withdraw_exam_assignment(assignment_id):
    assignment = AssignmentManager.withdraw(assignment_id, withdrawn_by=g.user.get("user_id"))
    return jsonify(assignment.to_dict()), 200
