from models import db
from sqlalchemy.orm import relationship

class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    duration_minutes = db.Column(db.Integer, nullable=True)
    is_published = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    sections = relationship(
        "CourseSection",
        back_populates="course",
        order_by="CourseSection.order_index",
        cascade="all, delete-orphan",
    )

    @property
    def total_sections(self):
        return len(self.sections)

    def __repr__(self):
        return f"<Course {self.title}>"

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "is_published": self.is_published,
            "total_sections": self.total_sections,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
