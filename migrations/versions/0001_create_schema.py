"""
Alembic migration: users, resources and the engagement tables (tags,
ratings, favorites, notifications, download history).
"""

from alembic import op
import sqlalchemy as sa

revision = '0001_create_schema'
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum('student', 'admin', name='user_role')
file_type = sa.Enum('pdf', 'image', 'doc', 'ppt', name='file_type')
resource_status = sa.Enum('pending', 'approved', 'rejected', name='resource_status')
notification_type = sa.Enum('approval', 'rejection', 'comment', 'rating', 'announcement', 'new_resource',
                            name='notification_type')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'resources',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('file_url', sa.Text(), nullable=False),
        sa.Column('public_id', sa.String(255), nullable=False),
        sa.Column('file_type', file_type, nullable=False),
        sa.Column('file_size', sa.BigInteger()),
        sa.Column('uploaded_by', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', resource_status, nullable=False),
        sa.Column('uploaded_at', sa.DateTime(), nullable=False),
        sa.Column('reviewed_at', sa.DateTime()),
        sa.Column('reviewed_by', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('download_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_rating', sa.Numeric(3, 2), nullable=False, server_default='0'),
        sa.Column('rating_count', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_resources_status', 'resources', ['status'])
    op.create_index('ix_resources_uploaded_by', 'resources', ['uploaded_by'])
    op.create_index('ix_resources_file_type', 'resources', ['file_type'])

    op.create_table(
        'tags',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('color', sa.String(7), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_tags_slug', 'tags', ['slug'])

    op.create_table(
        'resource_tags',
        sa.Column('resource_id', sa.String(36), sa.ForeignKey('resources.id', ondelete='CASCADE'),
                  primary_key=True),
        sa.Column('tag_id', sa.String(36), sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'ratings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('resource_id', sa.String(36), sa.ForeignKey('resources.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('review', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'resource_id', name='unique_user_resource_rating'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='rating_range'),
    )
    op.create_index('ix_ratings_resource_id', 'ratings', ['resource_id'])
    op.create_index('ix_ratings_user_id', 'ratings', ['user_id'])

    op.create_table(
        'favorites',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('resource_id', sa.String(36), sa.ForeignKey('resources.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'resource_id', name='unique_user_favorite'),
    )
    op.create_index('ix_favorites_user_id', 'favorites', ['user_id'])
    op.create_index('ix_favorites_resource_id', 'favorites', ['resource_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('resource_id', sa.String(36), sa.ForeignKey('resources.id', ondelete='SET NULL')),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'download_history',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('resource_id', sa.String(36), sa.ForeignKey('resources.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('downloaded_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_download_history_resource_id', 'download_history', ['resource_id'])
    op.create_index('ix_download_history_user_id', 'download_history', ['user_id'])
    op.create_index('ix_download_history_downloaded_at', 'download_history', ['downloaded_at'])


def downgrade():
    for table in ('download_history', 'notifications', 'favorites', 'ratings', 'resource_tags', 'tags',
                  'resources', 'users'):
        op.drop_table(table)
    bind = op.get_bind()
    for enum in (notification_type, resource_status, file_type, user_role):
        enum.drop(bind, checkfirst=True)
