from models import db
from sqlalchemy.orm import relationship, validates
from sqlalchemy import CheckConstraint

ASSIGNMENT_STATUSES = ("active", "completed", "withdrawn", "expired")
OPEN_ASSIGNMENT_STATUSES = ("active", "completed")


class ExamAssignment(db.Model):
    __tablename__ = "exam_assignments"

    id = db.Column(db.Integer, primary_key=True)
    exam_id = db.Column(db.Integer, db.ForeignKey("exams.id"), nullable=False)
    employee_id = db.Column(db.Integer, nullable=True, index=True)
    department_id = db.Column(db.Integer, nullable=True, index=True)
    max_attempts = db.Column(db.Integer, nullable=False, default=1)
    due_date = db.Column(db.DateTime, nullable=True)
    is_mandatory = db.Column(db.Boolean, nullable=False, default=True)
    status = db.Column(db.String(20), nullable=False, default="active")
    assigned_by = db.Column(db.Integer, nullable=True)
    assigned_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    withdrawn_at = db.Column(db.DateTime, nullable=True)
    withdrawn_by = db.Column(db.Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "(employee_id IS NULL) <> (department_id IS NULL)",
            name="check_single_assignment_target"
        ),
        db.UniqueConstraint("exam_id", "employee_id", name="unique_exam_employee"),
        db.UniqueConstraint("exam_id", "department_id", name="unique_exam_department"),
    )

    exam = relationship("Exam")

    @validates("status")
    def validate_status(self, key, value):
        if value not in ASSIGNMENT_STATUSES:
            raise ValueError(f"Unknown assignment status: {value}")
        return value

    def __repr__(self):
        target = f"Employee {self.employee_id}" if self.employee_id else f"Department {self.department_id}"
        return f"<ExamAssignment Exam {self.exam_id} -> {target} ({self.status})>"

    def to_dict(self):
        return {
            "id": self.id,
            "exam_id": self.exam_id,
            "employee_id": self.employee_id,
            "department_id": self.department_id,
            "max_attempts": self.max_attempts,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "is_mandatory": self.is_mandatory,
            "status": self.status,
            "assigned_by": self.assigned_by,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "withdrawn_at": self.withdrawn_at.isoformat() if self.withdrawn_at else None,
        }
