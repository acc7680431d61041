"""Initial repertoire schema

Revision ID: 20261016_initial_schema
Revises:
Create Date: 2026-10-16 09:00:00

Creates users, repertoires, openings, positions and repertoire_entries.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261016_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=80), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('last_seen', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'repertoires',
        sa.Column('repertoire_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('color', sa.String(length=5), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('repertoire_id'),
        sa.UniqueConstraint('user_id', 'color', name='uq_repertoire_user_color'),
    )
    with op.batch_alter_table('repertoires', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_repertoires_user_id'), ['user_id'], unique=False)

    op.create_table(
        'openings',
        sa.Column('opening_id', sa.Integer(), nullable=False),
        sa.Column('repertoire_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['repertoire_id'], ['repertoires.repertoire_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('opening_id'),
    )
    with op.batch_alter_table('openings', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_openings_repertoire_id'), ['repertoire_id'], unique=False)

    op.create_table(
        'positions',
        sa.Column('position_id', sa.Integer(), nullable=False),
        sa.Column('fen', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('position_id'),
        sa.UniqueConstraint('fen'),
    )

    op.create_table(
        'repertoire_entries',
        sa.Column('entry_id', sa.Integer(), nullable=False),
        sa.Column('repertoire_id', sa.Integer(), nullable=False),
        sa.Column('opening_id', sa.Integer(), nullable=True),
        sa.Column('position_id', sa.Integer(), nullable=False),
        sa.Column('expected_move', sa.String(length=5), nullable=False),
        sa.Column('interval', sa.Float(), nullable=False),
        sa.Column('ease_factor', sa.Float(), nullable=False),
        sa.Column('repetitions', sa.Integer(), nullable=False),
        sa.Column('phase', sa.String(length=20), nullable=False),
        sa.Column('learning_step_index', sa.Integer(), nullable=False),
        sa.Column('next_review_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_review_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['repertoire_id'], ['repertoires.repertoire_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['opening_id'], ['openings.opening_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['position_id'], ['positions.position_id']),
        sa.PrimaryKeyConstraint('entry_id'),
        sa.UniqueConstraint(
            'repertoire_id', 'position_id', 'expected_move', name='uq_entry_repertoire_position_move'
        ),
    )
    with op.batch_alter_table('repertoire_entries', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_repertoire_entries_repertoire_id'), ['repertoire_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_repertoire_entries_opening_id'), ['opening_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_repertoire_entries_position_id'), ['position_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_repertoire_entries_next_review_date'), ['next_review_date'], unique=False)


def downgrade():
    op.drop_table('repertoire_entries')
    op.drop_table('positions')
    op.drop_table('openings')
    op.drop_table('repertoires')
    op.drop_table('users')
