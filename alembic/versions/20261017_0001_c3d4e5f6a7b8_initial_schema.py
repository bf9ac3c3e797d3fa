"""initial schema

Revision ID: c3d4e5f6a7b8
Revises:
Create Date: 2026-10-17

Creates:
  users           — accounts (PENDING until the emailed code is verified)
  otp_challenges  — at most one outstanding verification code per user
  courses         — instructor catalogue; price 0 = free
  enrollments     — unique per (user, course)
  payments        — one row per checkout; provider_order_id unique
  audit_logs      — append-only admin trail
"""
from alembic import op
import sqlalchemy as sa

revision = 'c3d4e5f6a7b8'
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum('STUDENT', 'INSTRUCTOR', 'ADMIN', name='user_role')
user_status = sa.Enum('PENDING', 'ACTIVE', name='user_status')
enrollment_status = sa.Enum('ACTIVE', 'PENDING', 'CANCELLED', name='enrollment_status')
payment_status = sa.Enum('PENDING', 'COMPLETED', 'FAILED', name='payment_status')


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text('now()') if not nullable else None,
        nullable=nullable,
    )


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('status', user_status, nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'otp_challenges',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code_hash', sa.String(), nullable=False),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('issued_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('ix_otp_challenges_user_id', 'otp_challenges', ['user_id'], unique=True)

    op.create_table(
        'courses',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('instructor_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint('price >= 0', name='ck_courses_price_non_negative'),
        sa.CheckConstraint('capacity IS NULL OR capacity > 0', name='ck_courses_capacity_positive'),
    )
    op.create_index('ix_courses_instructor_id', 'courses', ['instructor_id'])
    op.create_index('ix_courses_category', 'courses', ['category'])

    op.create_table(
        'enrollments',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', enrollment_status, nullable=False),
        _timestamp('created_at'),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_enrollments_user_course'),
    )
    op.create_index('ix_enrollments_user_id', 'enrollments', ['user_id'])
    op.create_index('ix_enrollments_course_id', 'enrollments', ['course_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('enrollment_id', sa.Uuid(), sa.ForeignKey('enrollments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('provider', sa.String(30), nullable=False),
        sa.Column('provider_order_id', sa.String(100), nullable=False),
        sa.Column('status', payment_status, nullable=False),
        sa.Column('failure_reason', sa.String(255), nullable=True),
        _timestamp('created_at'),
        _timestamp('completed_at', nullable=True),
    )
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index('ix_payments_course_id', 'payments', ['course_id'])
    op.create_index('ix_payments_enrollment_id', 'payments', ['enrollment_id'])
    op.create_index('ix_payments_provider_order_id', 'payments', ['provider_order_id'], unique=True)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('admin_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('target_type', sa.String(50), nullable=True),
        sa.Column('target_id', sa.String(100), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        _timestamp('created_at'),
    )
    op.create_index('ix_audit_logs_admin_id', 'audit_logs', ['admin_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_target_id', 'audit_logs', ['target_id'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('payments')
    op.drop_table('enrollments')
    op.drop_table('courses')
    op.drop_table('otp_challenges')
    op.drop_table('users')
    for enum_type in (payment_status, enrollment_status, user_status, user_role):
        enum_type.drop(op.get_bind(), checkfirst=True)
