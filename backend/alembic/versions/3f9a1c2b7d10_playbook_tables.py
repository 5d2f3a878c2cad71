"""Playbook tables (teams, users, channels, groups, playbooks, members, metrics, favorites)

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-18T09:12:44.518203
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '3f9a1c2b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- teams / users ---
    op.create_table(
        'teams',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_teams_name', 'teams', ['name'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=False, server_default=''),
        sa.Column('role', sa.Enum('SYSTEM_ADMIN', 'USER', name='userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default='true'),
        sa.Column('is_bot', sa.Boolean(), nullable=True, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_is_active', 'users', ['is_active'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'team_members',
        sa.Column('team_id', sa.String(), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('is_team_admin', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('team_id', 'user_id'),
    )
    op.create_index('ix_team_members_user_id', 'team_members', ['user_id'])

    # --- channels / groups ---
    op.create_table(
        'channels',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('team_id', sa.String(), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('channel_type', sa.Enum('OPEN', 'PRIVATE', name='channeltype'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('team_id', 'name', name='uq_channel_team_name'),
    )
    op.create_index('ix_channels_team_id', 'channels', ['team_id'])

    op.create_table(
        'channel_members',
        sa.Column('channel_id', sa.String(), sa.ForeignKey('channels.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.PrimaryKeyConstraint('channel_id', 'user_id'),
    )
    op.create_index('ix_channel_members_user_id', 'channel_members', ['user_id'])

    op.create_table(
        'user_groups',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=False, server_default=''),
        sa.Column('allow_reference', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('delete_at', sa.BigInteger(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    # --- playbooks ---
    op.create_table(
        'playbooks',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('team_id', sa.String(), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('public', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('create_public_playbook_run', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('create_at', sa.BigInteger(), nullable=False),
        sa.Column('update_at', sa.BigInteger(), nullable=False),
        sa.Column('delete_at', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('checklists_json', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('reminder_message_template', sa.Text(), nullable=False, server_default=''),
        sa.Column('reminder_timer_default_seconds', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('status_update_enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('concatenated_invited_user_ids', sa.Text(), nullable=False, server_default=''),
        sa.Column('concatenated_invited_group_ids', sa.Text(), nullable=False, server_default=''),
        sa.Column('invite_users_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('default_owner_id', sa.String(), nullable=False, server_default=''),
        sa.Column('default_owner_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('concatenated_broadcast_channel_ids', sa.Text(), nullable=False, server_default=''),
        sa.Column('broadcast_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('concatenated_webhook_on_creation_urls', sa.Text(), nullable=False, server_default=''),
        sa.Column('webhook_on_creation_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('message_on_join', sa.Text(), nullable=False, server_default=''),
        sa.Column('message_on_join_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('retrospective_reminder_interval_seconds', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('retrospective_template', sa.Text(), nullable=False, server_default=''),
        sa.Column('retrospective_enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('concatenated_webhook_on_status_update_urls', sa.Text(), nullable=False, server_default=''),
        sa.Column('webhook_on_status_update_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('concatenated_signal_any_keywords', sa.Text(), nullable=False, server_default=''),
        sa.Column('signal_any_keywords_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('categorize_channel_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('category_name', sa.String(), nullable=False, server_default=''),
        sa.Column('run_summary_template_enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('run_summary_template', sa.Text(), nullable=False, server_default=''),
        sa.Column('channel_name_template', sa.String(), nullable=False, server_default=''),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_playbooks_team_id', 'playbooks', ['team_id'])
    op.create_index('ix_playbooks_delete_at', 'playbooks', ['delete_at'])
    op.create_index('idx_playbook_team_archived', 'playbooks', ['team_id', 'delete_at'])

    op.create_table(
        'playbook_members',
        sa.Column('playbook_id', sa.String(), sa.ForeignKey('playbooks.id'), nullable=False),
        sa.Column('member_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('role', sa.Enum('ADMIN', 'MEMBER', name='playbookrole'), nullable=False),
        sa.PrimaryKeyConstraint('playbook_id', 'member_id'),
    )
    op.create_index('ix_playbook_members_member_id', 'playbook_members', ['member_id'])

    op.create_table(
        'playbook_metric_configs',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('playbook_id', sa.String(), sa.ForeignKey('playbooks.id'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('type', sa.Enum('DURATION', 'CURRENCY', 'INTEGER', name='metrictype'), nullable=False),
        sa.Column('target', sa.BigInteger(), nullable=True),
        sa.Column('ordering', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('delete_at', sa.BigInteger(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_playbook_metric_configs_playbook_id', 'playbook_metric_configs', ['playbook_id'])

    # --- favorites ---
    op.create_table(
        'categories',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('team_id', sa.String(), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('collapsed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('create_at', sa.BigInteger(), nullable=False),
        sa.Column('update_at', sa.BigInteger(), nullable=False),
        sa.Column('delete_at', sa.BigInteger(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_category_team_user', 'categories', ['team_id', 'user_id'])

    op.create_table(
        'category_items',
        sa.Column('category_id', sa.String(), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('item_id', sa.String(), nullable=False),
        sa.Column('type', sa.Enum('PLAYBOOK', 'RUN', name='categoryitemtype'), nullable=False),
        sa.PrimaryKeyConstraint('category_id', 'item_id', 'type'),
    )


def downgrade() -> None:
    op.drop_table('category_items')
    op.drop_index('idx_category_team_user', table_name='categories')
    op.drop_table('categories')
    op.drop_index('ix_playbook_metric_configs_playbook_id', table_name='playbook_metric_configs')
    op.drop_table('playbook_metric_configs')
    op.drop_index('ix_playbook_members_member_id', table_name='playbook_members')
    op.drop_table('playbook_members')
    op.drop_index('idx_playbook_team_archived', table_name='playbooks')
    op.drop_index('ix_playbooks_delete_at', table_name='playbooks')
    op.drop_index('ix_playbooks_team_id', table_name='playbooks')
    op.drop_table('playbooks')
    op.drop_table('user_groups')
    op.drop_index('ix_channel_members_user_id', table_name='channel_members')
    op.drop_table('channel_members')
    op.drop_index('ix_channels_team_id', table_name='channels')
    op.drop_table('channels')
    op.drop_index('ix_team_members_user_id', table_name='team_members')
    op.drop_table('team_members')
    op.drop_index('ix_users_created_at', table_name='users')
    op.drop_index('ix_users_is_active', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_teams_name', table_name='teams')
    op.drop_table('teams')
    for enum_name in ('categoryitemtype', 'metrictype', 'playbookrole', 'channeltype', 'userrole'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
