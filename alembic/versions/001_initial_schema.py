"""Initial classroom schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

WHY: Creates the tenant root (organizations), users, and the academic
catalog (departments -> subjects -> classes) with teacher assignments and
enrollments. Referential rules:
- Everything below an organization cascades with it
- departments -> subjects and subjects -> classes RESTRICT deletion
- A teacher assigned to classes cannot be deleted (RESTRICT)
- Enrollments and teacher assignments cascade with either side
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


organization_type = sa.Enum('school', 'college', 'university', 'coaching', name='organization_type')
subscription_status = sa.Enum('trial', 'active', 'inactive', 'expired', name='subscription_status')
user_role = sa.Enum('admin', 'teacher', 'student', name='user_role')
class_status = sa.Enum('active', 'inactive', 'archived', name='class_status')


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade() -> None:
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', organization_type, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('logo', sa.Text(), nullable=True),
        sa.Column('logo_cld_pub_id', sa.String(length=255), nullable=True),
        sa.Column('subscription_status', subscription_status, nullable=False, server_default='trial'),
        sa.Column('subscription_start_date', sa.DateTime(), nullable=True),
        sa.Column('subscription_end_date', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_organizations_email', 'organizations', ['email'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('image', sa.Text(), nullable=True),
        sa.Column('image_cld_pub_id', sa.String(length=255), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('role', user_role, nullable=False, server_default='student'),
        sa.Column('organization_id', sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_organization_id', 'users', ['organization_id'])

    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.String(length=32), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', 'organization_id', name='dept_code_org_unique'),
    )
    op.create_index('ix_departments_id', 'departments', ['id'])
    op.create_index('ix_departments_organization_id', 'departments', ['organization_id'])

    op.create_table(
        'teacher_departments',
        sa.Column('teacher_id', sa.String(length=32), nullable=False),
        sa.Column('department_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['teacher_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('teacher_id', 'department_id'),
    )
    op.create_index('ix_teacher_departments_teacher_id', 'teacher_departments', ['teacher_id'])
    op.create_index('ix_teacher_departments_department_id', 'teacher_departments', ['department_id'])

    op.create_table(
        'subjects',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('department_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.String(length=32), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', 'organization_id', name='subject_code_org_unique'),
    )
    op.create_index('ix_subjects_id', 'subjects', ['id'])
    op.create_index('ix_subjects_department_id', 'subjects', ['department_id'])
    op.create_index('ix_subjects_organization_id', 'subjects', ['organization_id'])

    op.create_table(
        'classes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('subject_id', sa.Integer(), nullable=False),
        sa.Column('teacher_id', sa.String(length=32), nullable=False),
        sa.Column('organization_id', sa.String(length=32), nullable=False),
        sa.Column('invite_code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('banner_url', sa.Text(), nullable=True),
        sa.Column('banner_cld_pub_id', sa.String(length=255), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('status', class_status, nullable=False, server_default='active'),
        sa.Column('schedules', sa.JSON(), nullable=False, server_default='[]'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['teacher_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invite_code'),
        sa.CheckConstraint('capacity > 0', name='class_capacity_positive'),
    )
    op.create_index('ix_classes_id', 'classes', ['id'])
    op.create_index('ix_classes_subject_id', 'classes', ['subject_id'])
    op.create_index('ix_classes_teacher_id', 'classes', ['teacher_id'])
    op.create_index('ix_classes_organization_id', 'classes', ['organization_id'])

    op.create_table(
        'enrollments',
        sa.Column('student_id', sa.String(length=32), nullable=False),
        sa.Column('class_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['student_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('student_id', 'class_id'),
    )
    op.create_index('ix_enrollments_student_id', 'enrollments', ['student_id'])
    op.create_index('ix_enrollments_class_id', 'enrollments', ['class_id'])


def downgrade() -> None:
    op.drop_table('enrollments')
    op.drop_table('classes')
    op.drop_table('subjects')
    op.drop_table('teacher_departments')
    op.drop_table('departments')
    op.drop_table('users')
    op.drop_table('organizations')

    bind = op.get_bind()
    for enum_type in (class_status, user_role, subscription_status, organization_type):
        enum_type.drop(bind, checkfirst=True)
