"""initial quiz schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_questions_created_at', 'questions', ['created_at'])

    op.create_table(
        'choices',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('question_id', sa.String(36), sa.ForeignKey('questions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(500), nullable=False),
        sa.Column('is_correct', sa.Boolean(), server_default=sa.false(), nullable=False),
    )
    op.create_index('ix_choices_question_id', 'choices', ['question_id'])

    op.create_table(
        'groups',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_groups_created_at', 'groups', ['created_at'])

    op.create_table(
        'question_groups',
        sa.Column('question_id', sa.String(36), sa.ForeignKey('questions.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('group_id', sa.String(36), sa.ForeignKey('groups.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_index('ix_question_groups_group_id', 'question_groups', ['group_id'])

    op.create_table(
        'settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('num_questions', sa.Integer(), server_default='10', nullable=False),
        sa.Column('randomize', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.CheckConstraint('num_questions >= 1 AND num_questions <= 200', name='ck_settings_num_questions_range'),
    )

    op.create_table(
        'attempts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('player_name', sa.String(100), nullable=False),
        sa.Column('score', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total', sa.Integer(), nullable=False),
        sa.Column('question_ids', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_attempts_created_at', 'attempts', ['created_at'])
    # Leaderboard ordering
    op.create_index('idx_attempts_score_created', 'attempts', [sa.text('score DESC'), 'created_at'])

    op.create_table(
        'attempt_answers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('attempt_id', sa.String(36), sa.ForeignKey('attempts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.String(36), sa.ForeignKey('questions.id'), nullable=False),
        sa.Column('selected_choice_ids', sa.JSON(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        # One answer per question per attempt
        sa.UniqueConstraint('attempt_id', 'question_id', name='uq_attempt_answers_attempt_question'),
    )
    op.create_index('ix_attempt_answers_attempt_id', 'attempt_answers', ['attempt_id'])
    op.create_index('ix_attempt_answers_question_id', 'attempt_answers', ['question_id'])
    op.create_index('ix_attempt_answers_created_at', 'attempt_answers', ['created_at'])


def downgrade() -> None:
    op.drop_table('attempt_answers')
    op.drop_table('attempts')
    op.drop_table('settings')
    op.drop_table('question_groups')
    op.drop_table('groups')
    op.drop_table('choices')
    op.drop_table('questions')
