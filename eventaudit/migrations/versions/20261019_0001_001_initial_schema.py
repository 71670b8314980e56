"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create live-state events table
    op.create_table(
        'tb_event',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('event_date', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Create revision info table, one row per committing transaction
    op.create_table(
        'revinfo',
        sa.Column('rev', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('committed_at', sa.DateTime(), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('rev'),
        sqlite_autoincrement=True
    )
    op.create_index('idx_revinfo_committed', 'revinfo', ['committed_at'])

    # Create events audit table
    op.create_table(
        'tb_event_aud',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('rev', sa.Integer(), nullable=False),
        sa.Column('revtype', sa.SmallInteger(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('event_date', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['rev'], ['revinfo.rev']),
        sa.PrimaryKeyConstraint('id', 'rev')
    )
    op.create_index('idx_event_aud_rev', 'tb_event_aud', ['rev'])


def downgrade() -> None:
    op.drop_table('tb_event_aud')
    op.drop_table('revinfo')
    op.drop_table('tb_event')
