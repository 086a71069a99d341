"""create territory, territory_log, track_channel and channel_format

Revision ID: 3a7c91d0b2e4
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c91d0b2e4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'territory',
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('guild_name', sa.String(length=64), nullable=False),
        sa.Column('acquired', sa.DateTime(), nullable=False),
        sa.Column('attacker', sa.String(length=64), nullable=True),
        sa.Column('start_x', sa.Integer(), nullable=False),
        sa.Column('start_z', sa.Integer(), nullable=False),
        sa.Column('end_x', sa.Integer(), nullable=False),
        sa.Column('end_z', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('name'),
    )
    op.create_index('ix_territory_guild_name', 'territory', ['guild_name'])

    # log ids are read back in ranges, sqlite must not reuse them
    op.create_table(
        'territory_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('territory_name', sa.String(length=100), nullable=False),
        sa.Column('old_guild_name', sa.String(length=64), nullable=False),
        sa.Column('old_guild_terr_amt', sa.Integer(), nullable=False),
        sa.Column('new_guild_name', sa.String(length=64), nullable=False),
        sa.Column('new_guild_terr_amt', sa.Integer(), nullable=False),
        sa.Column('acquired', sa.DateTime(), nullable=False),
        sa.Column('time_diff', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_territory_log_territory_name', 'territory_log', ['territory_name'])

    op.create_table(
        'track_channel',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('guild_id', sa.BigInteger(), nullable=False),
        sa.Column('channel_id', sa.BigInteger(), nullable=False),
        sa.Column('guild_name', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('type', 'guild_id', 'channel_id', 'guild_name', name='uq_track_channel'),
    )
    op.create_index('ix_track_channel_type', 'track_channel', ['type'])
    op.create_index('ix_track_channel_guild_name', 'track_channel', ['guild_name'])

    op.create_table(
        'channel_format',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('guild_id', sa.BigInteger(), nullable=False),
        sa.Column('channel_id', sa.BigInteger(), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=True),
        sa.Column('date_format', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('guild_id', 'channel_id', name='uq_channel_format'),
    )


def downgrade():
    op.drop_table('channel_format')
    op.drop_index('ix_track_channel_guild_name', table_name='track_channel')
    op.drop_index('ix_track_channel_type', table_name='track_channel')
    op.drop_table('track_channel')
    op.drop_index('ix_territory_log_territory_name', table_name='territory_log')
    op.drop_table('territory_log')
    op.drop_index('ix_territory_guild_name', table_name='territory')
    op.drop_table('territory')
