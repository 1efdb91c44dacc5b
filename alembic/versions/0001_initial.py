"""Initial migration

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


user_language = postgresql.ENUM('en', 'ar', name='user_language', create_type=False)
attendance_status = postgresql.ENUM(
    'registered', 'approved', 'attended', 'no-show', 'rejected',
    name='attendance_status', create_type=False
)
admin_role = postgresql.ENUM('admin', 'super_admin', name='admin_role', create_type=False)
reward_type = postgresql.ENUM('scarf', 'vipTicket', 'jersey', name='reward_type', create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in (user_language, attendance_status, admin_role, reward_type):
        enum_type.create(bind, checkfirst=True)

    # Create users table
    op.create_table('users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=32), nullable=False),
        sa.Column('country_code', sa.String(length=8), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('favorite_games', sa.JSON(), nullable=False),
        sa.Column('language', user_language, nullable=False, server_default='en'),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verification_code', sa.String(length=16), nullable=True),
        sa.Column('verification_expires', sa.DateTime(), nullable=True),
        sa.Column('loyalty_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reward_scarf', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reward_vip_ticket', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reward_jersey', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('phone_number')
    )

    # Create tournaments table
    op.create_table('tournaments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('game', sa.String(length=128), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('loyalty_points_value', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_priority_event', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('venue_information', sa.Text(), nullable=True),
        sa.Column('participating_teams', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tournaments_date', 'tournaments', ['date'])

    # Create attendances table
    op.create_table('attendances',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tournament_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('registration_date', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.Column('attendance_status', attendance_status, nullable=False, server_default='registered'),
        sa.Column('checked_in_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('checked_in_at', sa.DateTime(), nullable=True),
        sa.Column('loyalty_points_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['tournament_id'], ['tournaments.id']),
        sa.ForeignKeyConstraint(['checked_in_by'], ['users.id']),
        sa.UniqueConstraint('user_id', 'tournament_id', name='uq_attendance_user_tournament')
    )
    op.create_index('ix_attendances_user_id', 'attendances', ['user_id'])
    op.create_index('ix_attendances_tournament_id', 'attendances', ['tournament_id'])
    op.create_index('ix_attendances_attendance_status', 'attendances', ['attendance_status'])

    # Create admins table
    op.create_table('admins',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role', admin_role, nullable=False, server_default='admin'),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('manage_users', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('manage_attendance', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('manage_tournaments', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('view_analytics', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('export_data', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.UniqueConstraint('user_id')
    )

    # Create loyalty_credits table
    op.create_table('loyalty_credits',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reward', reward_type, nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('admin_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['admin_id'], ['admins.id'])
    )
    op.create_index('ix_loyalty_credits_user_id', 'loyalty_credits', ['user_id'])

    # Create audit_logs table
    op.create_table('audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('admin_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(length=128), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text("(now() at time zone 'utc')")),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_audit_logs_created_at', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('ix_loyalty_credits_user_id', table_name='loyalty_credits')
    op.drop_table('loyalty_credits')
    op.drop_table('admins')
    op.drop_index('ix_attendances_attendance_status', table_name='attendances')
    op.drop_index('ix_attendances_tournament_id', table_name='attendances')
    op.drop_index('ix_attendances_user_id', table_name='attendances')
    op.drop_table('attendances')
    op.drop_index('ix_tournaments_date', table_name='tournaments')
    op.drop_table('tournaments')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (reward_type, admin_role, attendance_status, user_language):
        enum_type.drop(bind, checkfirst=True)
