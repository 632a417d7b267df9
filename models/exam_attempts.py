from models import db

class ExamAttempt(db.Model):
    __tablename__ = "exam_attempts"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, nullable=False, index=True)
    exam_id = db.Column(db.Integer, db.ForeignKey("exams.id"), nullable=False)
    assignment_id = db.Column(db.Integer, db.ForeignKey("exam_assignments.id"), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey("exam_sessions.id"), nullable=False, unique=True)
    attempt_number = db.Column(db.Integer, nullable=False)
    answers = db.Column(db.JSON, nullable=False)
    score = db.Column(db.Integer, nullable=False)
    total_questions = db.Column(db.Integer, nullable=False)
    percentage = db.Column(db.Integer, nullable=False)
    passed = db.Column(db.Boolean, nullable=False)
    auto_submitted = db.Column(db.Boolean, nullable=False, default=False)
    started_at = db.Column(db.DateTime, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("assignment_id", "employee_id", "attempt_number", name="unique_assignment_attempt_slot"),
    )

    exam = db.relationship("Exam")

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "exam_id": self.exam_id,
            "assignment_id": self.assignment_id,
            "session_id": self.session_id,
            "attempt_number": self.attempt_number,
            "answers": self.answers,
            "score": self.score,
            "total_questions": self.total_questions,
            "percentage": self.percentage,
            "passed": self.passed,
            "auto_submitted": self.auto_submitted,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
        }
