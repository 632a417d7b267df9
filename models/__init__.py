from flask_sqlalchemy import SQLAlchemy

# Initialize SQLAlchemy
db = SQLAlchemy()

# Import models
from models.courses import Course
from models.course_sections import CourseSection
from models.enrolments import CourseEnrolment
from models.section_progress import SectionProgress

from models.exams import Exam
from models.exam_questions import ExamQuestion
from models.exam_assignments import ExamAssignment
from models.exam_sessions import ExamSession
from models.exam_attempts import ExamAttempt

from models.certificates import Certificate
