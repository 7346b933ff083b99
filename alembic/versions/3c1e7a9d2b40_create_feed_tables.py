#
# Alembic migration script
#
"""
Revision ID: 3c1e7a9d2b40
Revises:
Create Date: 2026-10-19 11:20:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1e7a9d2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ### Create tables ###
    op.create_table(
        'user_preferences',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('score', sa.Float(), server_default=sa.text('1'), nullable=False),
        sa.UniqueConstraint('user_id', 'category', name='uq_user_preferences_user_category'),
    )
    op.create_index('ix_user_preferences_id', 'user_preferences', ['id'], unique=False)
    op.create_index('ix_user_preferences_user_id', 'user_preferences', ['user_id'], unique=False)

    op.create_table(
        'viewed_videos',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('video_path', sa.String(), nullable=False),
        # NULL for algorithmic mode, category name for category mode
        sa.Column('mode', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'video_path', 'mode', name='uq_viewed_videos_user_path_mode'),
    )
    op.create_index('ix_viewed_videos_id', 'viewed_videos', ['id'], unique=False)
    op.create_index('ix_viewed_videos_user_mode', 'viewed_videos', ['user_id', 'mode'], unique=False)

    op.create_table(
        'video_interactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('video_path', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('interaction_type', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_video_interactions_id', 'video_interactions', ['id'], unique=False)
    op.create_index('ix_video_interactions_user_id', 'video_interactions', ['user_id'], unique=False)


def downgrade() -> None:
    # ### Drop tables in reverse order ###
    op.drop_index('ix_video_interactions_user_id', table_name='video_interactions')
    op.drop_index('ix_video_interactions_id', table_name='video_interactions')
    op.drop_table('video_interactions')
    op.drop_index('ix_viewed_videos_user_mode', table_name='viewed_videos')
    op.drop_index('ix_viewed_videos_id', table_name='viewed_videos')
    op.drop_table('viewed_videos')
    op.drop_index('ix_user_preferences_user_id', table_name='user_preferences')
    op.drop_index('ix_user_preferences_id', table_name='user_preferences')
    op.drop_table('user_preferences')
