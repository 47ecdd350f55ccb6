"""create game_record and game_participant

Revision ID: 5c2d9e7a1b40
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    # create_all() at startup may already have made these
    if 'game_record' not in existing_tables:
        op.create_table(
            'game_record',
            sa.Column('game_id', sa.Integer(), autoincrement=False, nullable=False),
            sa.Column('winner', sa.String(length=8), nullable=False),
            sa.Column('timestamp', sa.Float(), nullable=False),
            sa.Column('red_count', sa.Integer(), nullable=False),
            sa.Column('blue_count', sa.Integer(), nullable=False),
            sa.Column('board_history', sa.Text(), nullable=False),
            sa.Column('thumbnail', sa.String(length=512), nullable=True),
            sa.PrimaryKeyConstraint('game_id'),
        )
    if 'game_participant' not in existing_tables:
        op.create_table(
            'game_participant',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('game_id', sa.Integer(), nullable=False),
            sa.Column('account', sa.String(length=64), nullable=False),
            sa.ForeignKeyConstraint(['game_id'], ['game_record.game_id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('game_id', 'account', name='uq_game_participant'),
        )
        op.create_index('ix_game_participant_game_id', 'game_participant', ['game_id'])
        op.create_index('ix_game_participant_account', 'game_participant', ['account'])


def downgrade():
    op.drop_index('ix_game_participant_account', table_name='game_participant')
    op.drop_index('ix_game_participant_game_id', table_name='game_participant')
    op.drop_table('game_participant')
    op.drop_table('game_record')
