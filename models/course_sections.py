from models import db
from sqlalchemy.orm import relationship, validates

SECTION_TYPES = ("VIDEO", "ARTICLE", "QUIZ")


class CourseSection(db.Model):
    __tablename__ = "course_sections"

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    section_type = db.Column(db.String(20), nullable=False, default="ARTICLE")
    order_index = db.Column(db.Integer, nullable=False)
    content_data = db.Column(db.JSON, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("course_id", "order_index", name="unique_course_section_order"),
    )

    course = relationship("Course", back_populates="sections")

    @validates("section_type")
    def validate_section_type(self, key, value):
        if value not in SECTION_TYPES:
            raise ValueError(f"Unknown section type: {value}")
        return value

    @property
    def is_quiz(self):
        return self.section_type == "QUIZ"

    @property
    def questions(self):
        """Quiz questions stored in the content payload, in display order."""
        if not self.is_quiz or not self.content_data:
            return []
        return self.content_data.get("questions", [])

    def __repr__(self):
        return f"<CourseSection {self.title} (Course ID {self.course_id}, #{self.order_index})>"

    def to_dict(self, include_answers=False):
        content = dict(self.content_data or {})
        if self.is_quiz and not include_answers:
            content["questions"] = [
                {"question": q.get("question"), "options": q.get("options", [])}
                for q in self.questions
            ]
        return {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "section_type": self.section_type,
            "order_index": self.order_index,
            "content_data": content,
        }
