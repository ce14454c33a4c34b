"""create portal tables

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create identity, catalog, admission and billing tables."""

    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('roles_csv', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('must_change_password', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    # Catalog
    op.create_table('programs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('program_code', sa.String(length=32), nullable=False),
        sa.Column('program_name', sa.String(length=255), nullable=False),
        sa.Column('total_units', sa.Integer(), nullable=False),
        sa.Column('years_to_complete', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('program_code')
    )

    op.create_table('years',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('program_id', sa.Integer(), nullable=False),
        sa.Column('year_level', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('year_level >= 1', name='ck_year_level_positive'),
        sa.ForeignKeyConstraint(['program_id'], ['programs.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_years_program_id'), 'years', ['program_id'], unique=False)
    op.create_index('uq_year_program_level', 'years', ['program_id', 'year_level'], unique=True)

    op.create_table('courses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('year_id', sa.Integer(), nullable=False),
        sa.Column('course_code', sa.String(length=32), nullable=False),
        sa.Column('course_name', sa.String(length=255), nullable=False),
        sa.Column('units', sa.Integer(), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('semester IN (1, 2)', name='ck_course_semester'),
        sa.CheckConstraint('units >= 0', name='ck_course_units'),
        sa.CheckConstraint("status IN ('Active','Inactive','Removed')", name='ck_course_status'),
        sa.ForeignKeyConstraint(['year_id'], ['years.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_courses_year_id'), 'courses', ['year_id'], unique=False)
    op.create_index('ix_courses_year_semester', 'courses', ['year_id', 'semester'], unique=False)

    # Admissions
    op.create_table('registrations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(length=128), nullable=False),
        sa.Column('middle_name', sa.String(length=128), nullable=True),
        sa.Column('last_name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('contact_number', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=512), nullable=True),
        sa.Column('program_id', sa.Integer(), nullable=False),
        sa.Column('year_level', sa.Integer(), nullable=False),
        sa.Column('is_returning_student', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('remarks', sa.String(length=512), nullable=True),
        sa.Column('reviewed_by', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('Pending','Approved','Rejected')", name='ck_registration_status'),
        sa.CheckConstraint('year_level >= 1', name='ck_registration_year_level'),
        sa.ForeignKeyConstraint(['program_id'], ['programs.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_registrations_email'), 'registrations', ['email'], unique=False)
    op.create_index(op.f('ix_registrations_program_id'), 'registrations', ['program_id'], unique=False)
    op.create_index(
        'uq_registration_pending_email', 'registrations', ['email'], unique=True,
        postgresql_where=sa.text("status = 'Pending'"),
        sqlite_where=sa.text("status = 'Pending'"),
    )

    op.create_table('students',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('student_number', sa.String(length=32), nullable=False),
        sa.Column('registration_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('first_name', sa.String(length=128), nullable=False),
        sa.Column('middle_name', sa.String(length=128), nullable=True),
        sa.Column('last_name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('contact_number', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=512), nullable=True),
        sa.Column('program_id', sa.Integer(), nullable=False),
        sa.Column('year_level', sa.Integer(), nullable=False),
        sa.Column('is_returning_student', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['program_id'], ['programs.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['registration_id'], ['registrations.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('registration_id'),
        sa.UniqueConstraint('student_number')
    )
    op.create_index(op.f('ix_students_program_id'), 'students', ['program_id'], unique=False)
    op.create_index(op.f('ix_students_user_id'), 'students', ['user_id'], unique=False)

    # Enrollment and billing
    op.create_table('enrollments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('academic_year', sa.String(length=9), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('enrollment_status', sa.String(length=16), nullable=False),
        sa.Column('documents_submitted', sa.Boolean(), nullable=False),
        sa.Column('payment_status', sa.String(length=16), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('billing_cycle', sa.Integer(), nullable=False),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('semester IN (1, 2)', name='ck_enrollment_semester'),
        sa.CheckConstraint(
            "enrollment_status IN ('Draft','For Review','Approved','Rejected')", name='ck_enrollment_status'
        ),
        sa.CheckConstraint("payment_status IN ('Unpaid','Partial','Paid')", name='ck_enrollment_payment_status'),
        sa.CheckConstraint('total_amount >= 0', name='ck_enrollment_total_nonneg'),
        sa.CheckConstraint('amount_paid >= 0', name='ck_enrollment_paid_nonneg'),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_enrollments_student_id'), 'enrollments', ['student_id'], unique=False)
    op.create_index(
        'uq_enrollment_student_period', 'enrollments', ['student_id', 'academic_year', 'semester'], unique=True
    )

    op.create_table('enrollment_courses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('enrollment_id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['enrollment_id'], ['enrollments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_enrollment_courses_enrollment_id'), 'enrollment_courses', ['enrollment_id'], unique=False)
    op.create_index('uq_enrollment_course', 'enrollment_courses', ['enrollment_id', 'course_id'], unique=True)

    op.create_table('enrollment_documents',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('enrollment_id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('file_url', sa.String(length=1024), nullable=False),
        sa.Column('storage_path', sa.String(length=512), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(), nullable=False),
        sa.Column('verified_by', sa.Integer(), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('Pending','Verified','Rejected')", name='ck_document_status'),
        sa.ForeignKeyConstraint(['enrollment_id'], ['enrollments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['verified_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        op.f('ix_enrollment_documents_enrollment_id'), 'enrollment_documents', ['enrollment_id'], unique=False
    )

    op.create_table('payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('enrollment_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('reference_number', sa.String(length=128), nullable=True),
        sa.Column('billing_cycle', sa.Integer(), nullable=False),
        sa.Column('payment_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount >= 0', name='ck_payment_amount_nonneg'),
        sa.ForeignKeyConstraint(['enrollment_id'], ['enrollments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_payments_enrollment_id'), 'payments', ['enrollment_id'], unique=False)
    op.create_index(
        'uq_payment_placeholder', 'payments', ['enrollment_id'], unique=True,
        postgresql_where=sa.text("payment_method = 'Pending'"),
        sqlite_where=sa.text("payment_method = 'Pending'"),
    )

    op.create_table('notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('channel', sa.String(length=16), nullable=False),
        sa.Column('recipient', sa.String(length=255), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('error', sa.String(length=512), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('SENT','FAILED','SKIPPED')", name='ck_notification_status'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_recipient'), 'notifications', ['recipient'], unique=False)


def downgrade() -> None:
    """Drop all portal tables."""
    op.drop_index(op.f('ix_notifications_recipient'), table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('uq_payment_placeholder', table_name='payments')
    op.drop_index(op.f('ix_payments_enrollment_id'), table_name='payments')
    op.drop_table('payments')
    op.drop_index(op.f('ix_enrollment_documents_enrollment_id'), table_name='enrollment_documents')
    op.drop_table('enrollment_documents')
    op.drop_index('uq_enrollment_course', table_name='enrollment_courses')
    op.drop_index(op.f('ix_enrollment_courses_enrollment_id'), table_name='enrollment_courses')
    op.drop_table('enrollment_courses')
    op.drop_index('uq_enrollment_student_period', table_name='enrollments')
    op.drop_index(op.f('ix_enrollments_student_id'), table_name='enrollments')
    op.drop_table('enrollments')
    op.drop_index(op.f('ix_students_user_id'), table_name='students')
    op.drop_index(op.f('ix_students_program_id'), table_name='students')
    op.drop_table('students')
    op.drop_index('uq_registration_pending_email', table_name='registrations')
    op.drop_index(op.f('ix_registrations_program_id'), table_name='registrations')
    op.drop_index(op.f('ix_registrations_email'), table_name='registrations')
    op.drop_table('registrations')
    op.drop_index('ix_courses_year_semester', table_name='courses')
    op.drop_index(op.f('ix_courses_year_id'), table_name='courses')
    op.drop_table('courses')
    op.drop_index('uq_year_program_level', table_name='years')
    op.drop_index(op.f('ix_years_program_id'), table_name='years')
    op.drop_table('years')
    op.drop_table('programs')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
