from alembic import op
import sqlalchemy as sa

revision = '3c1f9a7d2b10'
down_revision = None
branch_labels = None
depends_on = None

scanstatus_enum = sa.Enum('valid', 'duplicate', 'invalid', name='scanstatus')


def upgrade():
    op.create_table(
        'passes',
        sa.Column('id', sa.String(length=128), primary_key=True),
        sa.Column('pass_id', sa.String(length=128), nullable=True),
        sa.Column('pass_type', sa.String(length=64), nullable=True),
        sa.Column('user_name', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('amount', sa.Float(), nullable=True),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('team_snapshot', sa.JSON(), nullable=True),
        sa.Column('checked_in', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_passes_pass_id', 'passes', ['pass_id'])

    op.create_table(
        'scans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('pass_id', sa.String(length=128), nullable=False),
        sa.Column('member_id', sa.String(length=128), nullable=True),
        sa.Column('scanner_id', sa.String(length=128), nullable=False),
        sa.Column('status', scanstatus_enum, nullable=False),
        sa.Column('scanned_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_offline_sync', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_scans_id', 'scans', ['id'])
    op.create_index('ix_scans_pass_status', 'scans', ['pass_id', 'status'])

    op.create_table(
        'event_attendance',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('pass_id', sa.String(length=128), nullable=False),
        sa.Column('member_id', sa.String(length=128), nullable=True),
        sa.Column('event_id', sa.String(length=128), nullable=False),
        sa.Column('event_name', sa.String(length=255), nullable=True),
        sa.Column('pass_category', sa.String(length=64), nullable=True),
        sa.Column('attendance_date', sa.String(length=10), nullable=False),
        sa.Column('scanned_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_offline_sync', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('pass_id', 'event_id', 'attendance_date', name='uq_attendance_pass_event_date'),
    )
    op.create_index('ix_event_attendance_id', 'event_attendance', ['id'])
    op.create_index('ix_event_attendance_pass_id', 'event_attendance', ['pass_id'])
    op.create_index('ix_event_attendance_event_id', 'event_attendance', ['event_id'])


def downgrade():
    op.drop_table('event_attendance')
    op.drop_table('scans')
    op.drop_table('passes')
    scanstatus_enum.drop(op.get_bind(), checkfirst=True)
