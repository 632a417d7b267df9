from models import db
from sqlalchemy.orm import relationship, validates

ENROLMENT_STATUSES = ("ASSIGNED", "IN_PROGRESS", "COMPLETED")


class CourseEnrolment(db.Model):
    __tablename__ = 'course_enrolments'

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="ASSIGNED")
    progress_percentage = db.Column(db.Integer, default=0, nullable=False)
    assigned_by = db.Column(db.Integer, nullable=True)
    assigned_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    due_date = db.Column(db.DateTime, nullable=True)
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "course_id", name="unique_employee_course"),
    )

    course = relationship("Course")

    @validates("status")
    def validate_status(self, key, value):
        if value not in ENROLMENT_STATUSES:
            raise ValueError(f"Unknown enrolment status: {value}")
        return value

    @property
    def is_completed(self):
        return self.status == "COMPLETED"

    def __repr__(self):
        return f"<CourseEnrolment Employee {self.employee_id} Course {self.course_id} {self.status}>"

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "course_id": self.course_id,
            "course_title": self.course.title if self.course else None,
            "status": self.status,
            "progress_percentage": self.progress_percentage,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
