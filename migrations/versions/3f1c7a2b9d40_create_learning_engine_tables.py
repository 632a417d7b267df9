from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c7a2b9d40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False)
    )

    op.create_table(
        'course_sections',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('section_type', sa.String(length=20), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('content_data', sa.JSON(), nullable=True),
        sa.UniqueConstraint('course_id', 'order_index', name='unique_course_section_order')
    )

    op.create_table(
        'course_enrolments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), nullable=False, index=True),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('progress_percentage', sa.Integer(), nullable=False),
        sa.Column('assigned_by', sa.Integer(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('employee_id', 'course_id', name='unique_employee_course')
    )

    op.create_table(
        'section_progress',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), nullable=False, index=True),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('section_id', sa.Integer(), sa.ForeignKey('course_sections.id'), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.UniqueConstraint('employee_id', 'section_id', name='unique_employee_section')
    )

    op.create_table(
        'exams',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('exam_type', sa.String(length=30), nullable=False),
        sa.Column('time_limit_minutes', sa.Integer(), nullable=False),
        sa.Column('passing_score', sa.Integer(), nullable=False),
        sa.Column('max_attempts', sa.Integer(), nullable=False),
        sa.Column('prerequisite_course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=True),
        sa.CheckConstraint('passing_score >= 0 AND passing_score <= 100', name='check_passing_score_range')
    )

    op.create_table(
        'exam_questions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('correct_answer', sa.Text(), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False)
    )

    op.create_table(
        'exam_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=True, index=True),
        sa.Column('department_id', sa.Integer(), nullable=True, index=True),
        sa.Column('max_attempts', sa.Integer(), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('is_mandatory', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('assigned_by', sa.Integer(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False),
        sa.Column('withdrawn_at', sa.DateTime(), nullable=True),
        sa.Column('withdrawn_by', sa.Integer(), nullable=True),
        sa.CheckConstraint('(employee_id IS NULL) <> (department_id IS NULL)', name='check_single_assignment_target'),
        sa.UniqueConstraint('exam_id', 'employee_id', name='unique_exam_employee'),
        sa.UniqueConstraint('exam_id', 'department_id', name='unique_exam_department')
    )

    op.create_table(
        'exam_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), nullable=False, index=True),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('assignment_id', sa.Integer(), sa.ForeignKey('exam_assignments.id'), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('deadline_at', sa.DateTime(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=True)
    )

    op.create_table(
        'exam_attempts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), nullable=False, index=True),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('assignment_id', sa.Integer(), sa.ForeignKey('exam_assignments.id'), nullable=False),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('exam_sessions.id'), nullable=False, unique=True),
        sa.Column('attempt_number', sa.Integer(), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('percentage', sa.Integer(), nullable=False),
        sa.Column('passed', sa.Boolean(), nullable=False),
        sa.Column('auto_submitted', sa.Boolean(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('assignment_id', 'employee_id', 'attempt_number', name='unique_assignment_attempt_slot')
    )

    op.create_table(
        'certificates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('certificate_number', sa.String(length=32), nullable=False, unique=True),
        sa.Column('employee_id', sa.Integer(), nullable=False, index=True),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('score', sa.Float(), nullable=True),
        sa.Column('issued_at', sa.DateTime(), nullable=False),
        sa.Column('completion_date', sa.Date(), nullable=False),
        sa.UniqueConstraint('employee_id', 'course_id', name='unique_employee_certificate')
    )


def downgrade():
    op.drop_table('certificates')
    op.drop_table('exam_attempts')
    op.drop_table('exam_sessions')
    op.drop_table('exam_assignments')
    op.drop_table('exam_questions')
    op.drop_table('exams')
    op.drop_table('section_progress')
    op.drop_table('course_enrolments')
    op.drop_table('course_sections')
    op.drop_table('courses')
