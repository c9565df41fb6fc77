"""Keyword glossary

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'keywords',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('term', sa.String(255), nullable=False),
        sa.Column('definition', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_keywords_term', 'keywords', ['term'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_keywords_term', table_name='keywords')
    op.drop_table('keywords')
