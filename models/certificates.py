from models import db

class Certificate(db.Model):
    __tablename__ = "certificates"

    id = db.Column(db.Integer, primary_key=True)
    certificate_number = db.Column(db.String(32), nullable=False, unique=True)
    employee_id = db.Column(db.Integer, nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id"), nullable=False)
    score = db.Column(db.Float, nullable=True)
    issued_at = db.Column(db.DateTime, nullable=False)
    completion_date = db.Column(db.Date, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "course_id", name="unique_employee_certificate"),
    )

    course = db.relationship("Course")

    def __repr__(self):
        return f"<Certificate {self.certificate_number}>"

    def to_dict(self):
        return {
            "id": self.id,
            "certificate_number": self.certificate_number,
            "employee_id": self.employee_id,
            "course_id": self.course_id,
            "course_title": self.course.title if self.course else None,
            "score": self.score,
            "issued_at": self.issued_at.isoformat(),
            "completion_date": self.completion_date.isoformat(),
        }
