"""Baseline migration - users, children, tracking, sharing and calendar tables

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # ==========================================================================
    # Children & tracking data
    # ==========================================================================
    op.create_table(
        'children',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('gender', sa.String(20)),
        sa.Column('avatar_url', sa.Text()),
        *_timestamps(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_children_user_id', 'children', ['user_id'])

    op.create_table(
        'growth_measurements',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('child_id', sa.Uuid(), sa.ForeignKey('children.id', ondelete='CASCADE'), nullable=False),
        sa.Column('measurement_date', sa.Date(), nullable=False),
        sa.Column('height_cm', sa.Numeric(5, 1)),
        sa.Column('weight_kg', sa.Numeric(5, 2)),
        sa.Column('bmi', sa.Numeric(4, 1)),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
    )
    op.create_index('ix_growth_measurements_child_id', 'growth_measurements', ['child_id'])

    op.create_table(
        'milestones',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('child_id', sa.Uuid(), sa.ForeignKey('children.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category', sa.String(30), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('age_range_months', sa.String(20)),
        sa.Column('is_achieved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('achieved_date', sa.Date()),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_milestones_child_id', 'milestones', ['child_id'])

    op.create_table(
        'daily_activities',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('child_id', sa.Uuid(), sa.ForeignKey('children.id', ondelete='CASCADE'), nullable=False),
        sa.Column('activity_date', sa.Date(), nullable=False),
        sa.Column('activity_type', sa.String(30), nullable=False),
        sa.Column('value', sa.Numeric(8, 2)),
        sa.Column('unit', sa.String(30)),
        sa.Column('mood_rating', sa.Integer()),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.CheckConstraint(
            'mood_rating IS NULL OR (mood_rating >= 1 AND mood_rating <= 5)',
            name='ck_daily_activities_mood_rating',
        ),
    )
    op.create_index('ix_daily_activities_child_id', 'daily_activities', ['child_id'])

    # ==========================================================================
    # Share links
    # ==========================================================================
    op.create_table(
        'share_links',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('child_id', sa.Uuid(), sa.ForeignKey('children.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('share_token', sa.String(64), nullable=False, unique=True),
        sa.Column('access_code', sa.String(6), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('access_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_accessed_at', sa.DateTime(timezone=True)),
        sa.Column('doctor_name', sa.String(255)),
        sa.Column('doctor_email', sa.String(255)),
        *_timestamps(),
    )
    op.create_index('ix_share_links_child_id', 'share_links', ['child_id'])
    op.create_index('idx_share_links_token_code', 'share_links', ['share_token', 'access_code'])

    # ==========================================================================
    # Calendar credentials (one per user)
    # ==========================================================================
    op.create_table(
        'calendar_credentials',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('access_token_encrypted', sa.Text(), nullable=False),
        sa.Column('refresh_token_encrypted', sa.Text()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('calendar_credentials')
    op.drop_index('idx_share_links_token_code', table_name='share_links')
    op.drop_index('ix_share_links_child_id', table_name='share_links')
    op.drop_table('share_links')
    op.drop_index('ix_daily_activities_child_id', table_name='daily_activities')
    op.drop_table('daily_activities')
    op.drop_index('ix_milestones_child_id', table_name='milestones')
    op.drop_table('milestones')
    op.drop_index('ix_growth_measurements_child_id', table_name='growth_measurements')
    op.drop_table('growth_measurements')
    op.drop_index('ix_children_user_id', table_name='children')
    op.drop_table('children')
    op.drop_table('users')
