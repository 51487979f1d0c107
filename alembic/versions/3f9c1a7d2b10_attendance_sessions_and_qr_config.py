"""attendance sessions and qr config

Revision ID: 3f9c1a7d2b10
Revises: 
Create Date: 2026-10-18 09:12:40.118532

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1a7d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


OPEN_SESSION_WHERE = sa.text("status = 'in' AND check_out_time IS NULL")


def upgrade() -> None:
    op.create_table(
        'gyms',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_gyms_id', 'gyms', ['id'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='member'),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'gym_id', name='uq_member_user_gym'),
    )
    op.create_index('ix_members_id', 'members', ['id'])
    op.create_index('ix_members_gym_id', 'members', ['gym_id'])

    op.create_table(
        'attendance',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id'), nullable=False),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id'), nullable=False),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('check_out_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(3), nullable=False, server_default='in'),
        sa.Column('exit_type', sa.String(6), nullable=True),
        sa.Column('source', sa.String(10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_attendance_id', 'attendance', ['id'])
    op.create_index('ix_attendance_check_in_time', 'attendance', ['check_in_time'])
    op.create_index(
        'ix_attendance_gym_member_check_in', 'attendance', ['gym_id', 'member_id', 'check_in_time']
    )
    # Only one open session per member per gym; concurrent check-ins lose here
    op.create_index(
        'attendance_unique_open_session',
        'attendance',
        ['gym_id', 'member_id'],
        unique=True,
        postgresql_where=OPEN_SESSION_WHERE,
        sqlite_where=OPEN_SESSION_WHERE,
    )

    op.create_table(
        'attendance_qr_config',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id'), nullable=False, unique=True),
        sa.Column('secret', sa.String(), nullable=False),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_rotated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_attendance_qr_config_id', 'attendance_qr_config', ['id'])


def downgrade() -> None:
    op.drop_table('attendance_qr_config')
    op.drop_index('attendance_unique_open_session', table_name='attendance')
    op.drop_table('attendance')
    op.drop_table('members')
    op.drop_table('users')
    op.drop_table('gyms')
