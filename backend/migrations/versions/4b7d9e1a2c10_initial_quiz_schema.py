"""initial quiz schema: admin, game_state, problem, team, submission

Revision ID: 4b7d9e1a2c10
Revises:
Create Date: 2025-09-02 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4b7d9e1a2c10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'admin',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
    )
    op.create_index('ix_admin_username', 'admin', ['username'], unique=True)

    op.create_table(
        'game_state',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=False, server_default='600000'),
        sa.Column('is_paused', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('paused_time_remaining', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'problem',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quote', sa.Text(), nullable=True),
        sa.Column('expected_answer', sa.String(length=256), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('time_limit', sa.Integer(), nullable=False, server_default='180'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'team',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('team_name', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=256), nullable=False),
        sa.Column('enrolled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_blocked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('assigned_problem_id', sa.Integer(),
                  sa.ForeignKey('problem.id', ondelete='SET NULL'), nullable=True),
        sa.Column('qualified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('win', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('lose', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('submission_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_team_team_name', 'team', ['team_name'], unique=True)

    op.create_table(
        'submission',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('team.id'), nullable=False),
        sa.Column('problem_id', sa.Integer(),
                  sa.ForeignKey('problem.id', ondelete='SET NULL'), nullable=True),
        sa.Column('answer', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade():
    op.drop_table('submission')
    op.drop_index('ix_team_team_name', table_name='team')
    op.drop_table('team')
    op.drop_table('problem')
    op.drop_table('game_state')
    op.drop_index('ix_admin_username', table_name='admin')
    op.drop_table('admin')
