from models import db

class ExamQuestion(db.Model):
    __tablename__ = "exam_questions"

    id = db.Column(db.Integer, primary_key=True)
    exam_id = db.Column(db.Integer, db.ForeignKey("exams.id"), nullable=False)
    question = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=False)
    correct_answer = db.Column(db.Text, nullable=False)
    order_index = db.Column(db.Integer, nullable=False, default=0)

    exam = db.relationship("Exam", back_populates="questions")

    def to_dict(self, include_answer=False):
        data = {
            "id": self.id,
            "exam_id": self.exam_id,
            "question": self.question,
            "options": self.options,
            "order_index": self.order_index,
        }
        if include_answer:
            data["correct_answer"] = self.correct_answer
        return data
