"""initial schema

Revision ID: 3f1a9c0d2b7e
Revises:
Create Date: 2026-10-19 09:12:44.120871

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = '3f1a9c0d2b7e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('user', 'moderator', 'admin', name='user_role')
notification_type = sa.Enum('like', 'comment', name='notification_type')
content_status = sa.Enum('pending', 'approved', 'rejected', name='content_status')
video_category = sa.Enum('Meditação', 'Relaxamento', 'Saúde', name='video_category')


def _ts(name: str, nullable: bool = False, index: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, index=index)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(40), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('photo_url', sa.String(500), nullable=True),
        sa.Column('role', user_role, nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('device_token', sa.String(255), nullable=True),
        sa.Column('custom_emojis', sa.JSON(), nullable=False),
        sa.Column('reset_code_hash', sa.String(255), nullable=True),
        _ts('reset_code_expires_at', nullable=True),
        sa.Column('reset_attempts', sa.Integer(), nullable=False, server_default='0'),
        _ts('reset_locked_until', nullable=True),
        _ts('deletion_requested_at', nullable=True),
        _ts('created_at'),
        _ts('updated_at'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'geo_cache',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('cache_key', sa.String(600), nullable=False, index=True),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('queries', sa.JSON(), nullable=False),
        sa.Column('results', sa.JSON(), nullable=False),
        _ts('created_at', index=True),
    )

    op.create_table(
        'diary_entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('mood_emoji', sa.String(16), nullable=False),
        sa.Column('entry', sa.Text(), nullable=False),
        _ts('created_at', index=True),
    )

    op.create_table(
        'posts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        _ts('created_at'),
        _ts('updated_at'),
    )
    op.create_table(
        'post_comments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('post_id', sa.Integer(), sa.ForeignKey('posts.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('comment', sa.Text(), nullable=False),
        _ts('created_at'),
    )
    op.create_table(
        'post_likes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('post_id', sa.Integer(), sa.ForeignKey('posts.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        _ts('created_at'),
        sa.UniqueConstraint('post_id', 'user_id', name='uq_post_likes_post_user'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('content', sa.String(500), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts('created_at'),
    )

    op.create_table(
        'challenges',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('condition', sa.String(255), nullable=False),
        sa.Column('icon', sa.String(500), nullable=True),
    )
    op.create_table(
        'rewards',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('points_required', sa.Integer(), nullable=False),
    )
    op.create_table(
        'progress',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('tasks_completed', sa.JSON(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        _ts('last_updated'),
    )
    op.create_index('ix_progress_user_id', 'progress', ['user_id'], unique=True)

    op.create_table(
        'videos',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('url', sa.String(500), nullable=False, unique=True),
        sa.Column('thumbnail', sa.String(500), nullable=True),
        sa.Column('channel_name', sa.String(255), nullable=True),
        sa.Column('status', content_status, nullable=False, index=True),
        sa.Column('category', video_category, nullable=False),
        _ts('created_at'),
        _ts('reviewed_at', nullable=True),
    )
    op.create_table(
        'articles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('author', sa.String(255), nullable=False),
        sa.Column('url', sa.String(500), nullable=False, unique=True),
        sa.Column('source', sa.String(255), nullable=True),
        sa.Column('status', content_status, nullable=False, index=True),
        _ts('created_at'),
        _ts('reviewed_at', nullable=True),
    )


def downgrade() -> None:
    for table in (
        'articles', 'videos', 'progress', 'rewards', 'challenges',
        'notifications', 'post_likes', 'post_comments', 'posts',
        'diary_entries', 'geo_cache', 'users',
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_type in (video_category, content_status, notification_type, user_role):
        enum_type.drop(bind, checkfirst=True)
