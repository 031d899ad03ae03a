"""Initial schema: users, study profiles, matches and their history.

Revision ID: 001
Revises:
Create Date: 2026-10-16 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all initial tables."""

    # Users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('auth_subject', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('avatar', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default='true'),
        sa.Column('average_rating', sa.Float(), nullable=True, server_default='0'),
        sa.Column('total_ratings', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('last_active_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_auth_subject', 'users', ['auth_subject'], unique=True)

    # Profiles table
    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('subjects', sa.JSON(), nullable=True),
        sa.Column('learning_style', sa.Integer(), nullable=False),
        sa.Column('availability', sa.JSON(), nullable=True),
        sa.Column('performance_level', sa.Integer(), nullable=False),
        sa.Column('goals', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    # Normalised subjects, used for candidate search
    op.create_table(
        'profile_subjects',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('profile_id', 'name', name='uq_profile_subject'),
    )
    op.create_index('ix_profile_subjects_profile_id', 'profile_subjects', ['profile_id'])
    op.create_index('ix_profile_subjects_user_id', 'profile_subjects', ['user_id'])
    op.create_index('ix_profile_subjects_name', 'profile_subjects', ['name'])

    # Matches table
    op.create_table(
        'matches',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('matched_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('compatibility', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('match_type', sa.String(20), nullable=False, server_default='suggested'),
        sa.Column('user_liked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('matched_user_liked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('mutual_like', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('session_count', sa.Integer(), nullable=False, server_default='0'),

        # One rating per side
        sa.Column('user_rating_score', sa.Integer(), nullable=True),
        sa.Column('user_rating_comment', sa.String(300), nullable=True),
        sa.Column('user_rated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('matched_user_rating_score', sa.Integer(), nullable=True),
        sa.Column('matched_user_rating_comment', sa.String(300), nullable=True),
        sa.Column('matched_user_rated_at', sa.DateTime(timezone=True), nullable=True),

        sa.Column('last_interaction_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['matched_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'matched_user_id', name='uq_match_pair'),
        sa.CheckConstraint('user_id < matched_user_id', name='match_user_order_check'),
        sa.CheckConstraint(
            'compatibility >= 0 AND compatibility <= 100',
            name='match_compatibility_range',
        ),
    )
    op.create_index('ix_matches_user_id', 'matches', ['user_id'])
    op.create_index('ix_matches_matched_user_id', 'matches', ['matched_user_id'])
    op.create_index('ix_matches_user_status', 'matches', ['user_id', 'status'])
    op.create_index('ix_matches_matched_user_status', 'matches', ['matched_user_id', 'status'])

    # Append-only match history
    op.create_table(
        'match_interactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('match_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['match_id'], ['matches.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_match_interactions_match_id', 'match_interactions', ['match_id'])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table('match_interactions')
    op.drop_table('matches')
    op.drop_table('profile_subjects')
    op.drop_table('profiles')
    op.drop_table('users')
