from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='USER'),
        sa.Column('instrument', sa.String()),
        sa.Column('profile_image_url', sa.String()),
        sa.Column('last_login_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'bands',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('genre', sa.String()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_bands_id', 'bands', ['id'])

    op.create_table(
        'band_members',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('band_id', sa.Integer(), sa.ForeignKey('bands.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='MEMBER'),
        sa.Column('status', sa.String(), nullable=False, server_default='ACTIVE'),
        sa.Column('joined_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('band_id', 'user_id', name='uq_band_members_band_user'),
    )
    op.create_index('ix_band_members_id', 'band_members', ['id'])
    op.create_index('ix_band_members_band_id', 'band_members', ['band_id'])
    op.create_index('ix_band_members_user_id', 'band_members', ['user_id'])

    op.create_table(
        'rehearsals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('band_id', sa.Integer(), sa.ForeignKey('bands.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('location', sa.String(), nullable=False),
        sa.Column('start_datetime', sa.DateTime(), nullable=False),
        sa.Column('end_datetime', sa.DateTime(), nullable=False),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurrence_pattern', sa.String()),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_rehearsals_id', 'rehearsals', ['id'])
    op.create_index('ix_rehearsals_band_start', 'rehearsals', ['band_id', 'start_datetime'])

    op.create_table(
        'rehearsal_attendance',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rehearsal_id', sa.Integer(), sa.ForeignKey('rehearsals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('reason', sa.Text()),
        sa.Column('response_time', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('rehearsal_id', 'user_id', name='uq_attendance_rehearsal_user'),
    )
    op.create_index('ix_rehearsal_attendance_id', 'rehearsal_attendance', ['id'])
    op.create_index('ix_rehearsal_attendance_rehearsal_id', 'rehearsal_attendance', ['rehearsal_id'])
    op.create_index('ix_rehearsal_attendance_user_id', 'rehearsal_attendance', ['user_id'])

    op.create_table(
        'rehearsal_materials',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rehearsal_id', sa.Integer(), sa.ForeignKey('rehearsals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False, server_default='OTHER'),
        sa.Column('file_name', sa.String()),
        sa.Column('url', sa.String()),
        sa.Column('content', sa.Text()),
        sa.Column('uploaded_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_rehearsal_materials_id', 'rehearsal_materials', ['id'])
    op.create_index('ix_rehearsal_materials_rehearsal_id', 'rehearsal_materials', ['rehearsal_id'])

    op.create_table(
        'availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_availability_id', 'availability', ['id'])
    op.create_index('ix_availability_user_id', 'availability', ['user_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('related_id', sa.Integer()),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('availability')
    op.drop_table('rehearsal_materials')
    op.drop_table('rehearsal_attendance')
    op.drop_table('rehearsals')
    op.drop_table('band_members')
    op.drop_table('bands')
    op.drop_table('users')
