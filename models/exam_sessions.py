from models import db

class ExamSession(db.Model):
    """A started, not necessarily submitted, exam attempt.

    Sessions never count against the attempt quota; only the ExamAttempt
    written on submission does.
    """
    __tablename__ = "exam_sessions"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, nullable=False, index=True)
    exam_id = db.Column(db.Integer, db.ForeignKey("exams.id"), nullable=False)
    assignment_id = db.Column(db.Integer, db.ForeignKey("exam_assignments.id"), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="IN_PROGRESS")
    started_at = db.Column(db.DateTime, nullable=False)
    deadline_at = db.Column(db.DateTime, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=True)

    @property
    def is_submitted(self):
        return self.status == "SUBMITTED"
