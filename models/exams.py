from models import db
from sqlalchemy.orm import relationship, validates

EXAM_TYPES = ("GENERAL", "PRE_ASSESSMENT", "POST_ASSESSMENT", "CUSTOM")


class Exam(db.Model):
    __tablename__ = "exams"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    exam_type = db.Column(db.String(30), nullable=False, default="GENERAL")
    time_limit_minutes = db.Column(db.Integer, nullable=False, default=30)
    passing_score = db.Column(db.Integer, nullable=False, default=70)
    max_attempts = db.Column(db.Integer, nullable=False, default=1)
    prerequisite_course_id = db.Column(db.Integer, db.ForeignKey("courses.id"), nullable=True)

    questions = relationship(
        "ExamQuestion",
        back_populates="exam",
        order_by="ExamQuestion.order_index",
        cascade="all, delete-orphan",
    )
    prerequisite_course = relationship("Course")

    __table_args__ = (
        db.CheckConstraint("passing_score >= 0 AND passing_score <= 100", name="check_passing_score_range"),
    )

    @validates("exam_type")
    def validate_exam_type(self, key, value):
        if value not in EXAM_TYPES:
            raise ValueError(f"Unknown exam type: {value}")
        return value

    @property
    def total_questions(self):
        return len(self.questions)

    def __repr__(self):
        return f"<Exam {self.title} ({self.exam_type})>"

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "exam_type": self.exam_type,
            "time_limit_minutes": self.time_limit_minutes,
            "passing_score": self.passing_score,
            "max_attempts": self.max_attempts,
            "prerequisite_course_id": self.prerequisite_course_id,
            "total_questions": self.total_questions,
        }
