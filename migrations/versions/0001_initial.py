"""initial tables

Revision ID: 0001
Revises: 
Create Date: 2025-01-01

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    schedule_type = sa.Enum('CURRENT', 'NEXT', name='schedule_type')
    club_night_type = sa.Enum('NORMAL', 'FIFTH_WEEK', name='club_night_type')

    bind = op.get_bind()
    if bind.dialect.name != "sqlite":
        schedule_type.create(bind, checkfirst=True)
        club_night_type.create(bind, checkfirst=True)

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('role', sa.String(16), nullable=False, server_default='MEMBER'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('schedules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('schedule_type', schedule_type, nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_schedules_schedule_type', 'schedules', ['schedule_type'])
    # at most one active schedule per type
    op.create_index('uq_schedules_active_type', 'schedules', ['schedule_type'], unique=True,
                    sqlite_where=sa.text('is_active = 1'),
                    postgresql_where=sa.text('is_active'))

    op.create_table('schedule_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('schedule_id', sa.Integer(), sa.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('dance_date', sa.Date(), nullable=False),
        sa.Column('club_night_type', club_night_type, nullable=False),
        sa.Column('squarehead1_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('squarehead2_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('schedule_id', 'dance_date', name='uq_assignment_schedule_date'),
    )
    op.create_index('ix_schedule_assignments_schedule_id', 'schedule_assignments', ['schedule_id'])
    op.create_index('ix_schedule_assignments_dance_date', 'schedule_assignments', ['dance_date'])

    op.create_table('settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_settings_key', 'settings', ['key'], unique=True)

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

def downgrade():
    op.drop_table('audit_logs')
    op.drop_index('ix_settings_key', table_name='settings')
    op.drop_table('settings')
    op.drop_table('schedule_assignments')
    op.drop_index('uq_schedules_active_type', table_name='schedules')
    op.drop_table('schedules')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    if bind.dialect.name != "sqlite":
        sa.Enum(name='club_night_type').drop(bind, checkfirst=True)
        sa.Enum(name='schedule_type').drop(bind, checkfirst=True)
