"""create table language and role permission

Revision ID: 1a7c3e5d9b20
Revises: 
Create Date: 2026-09-14 11:02:41.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1a7c3e5d9b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('languages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=8), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_languages_code'), 'languages', ['code'], unique=True)

    role_permissions = op.create_table('role_permissions',
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('permission', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('role', 'permission')
    )
    op.bulk_insert(role_permissions, [
        {'role': 'ADMIN', 'permission': 'pending:review'},
        {'role': 'CHIEF_EDITOR', 'permission': 'pending:review'},
        {'role': 'CHIEF_EDITOR_PLUS', 'permission': 'pending:review'},
    ])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('role_permissions')
    op.drop_index(op.f('ix_languages_code'), table_name='languages')
    op.drop_table('languages')
