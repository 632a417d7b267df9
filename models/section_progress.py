from models import db

class SectionProgress(db.Model):
    __tablename__ = "section_progress"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id"), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey("course_sections.id"), nullable=False)
    completed = db.Column(db.Boolean, nullable=False, default=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    score = db.Column(db.Integer, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("employee_id", "section_id", name="unique_employee_section"),
    )
