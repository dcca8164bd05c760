"""create table word and definition

Revision ID: 5d2e8f4a6c13
Revises: 1a7c3e5d9b20
Create Date: 2026-09-14 11:20:07.904516

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5d2e8f4a6c13'
down_revision: Union[str, None] = '1a7c3e5d9b20'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('word_v',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('word_text', sa.String(length=255), nullable=False),
        sa.Column('length', sa.Integer(), nullable=False),
        sa.Column('lang_id', sa.Integer(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('create_by', sa.Integer(), nullable=True),
        sa.Column('update_by', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['lang_id'], ['languages.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('word_text', 'lang_id', name='uq_word_v_text_lang')
    )
    op.create_index(op.f('ix_word_v_word_text'), 'word_v', ['word_text'], unique=False)

    op.create_table('opred_v',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('word_id', sa.BigInteger(), nullable=False),
        sa.Column('text_opr', sa.Text(), nullable=False),
        sa.Column('length', sa.Integer(), nullable=False),
        sa.Column('lang_id', sa.Integer(), nullable=False),
        sa.Column('difficulty', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('text_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('create_by', sa.Integer(), nullable=True),
        sa.Column('update_by', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['word_id'], ['word_v.id']),
        sa.ForeignKeyConstraint(['lang_id'], ['languages.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_opred_v_word_id'), 'opred_v', ['word_id'], unique=False)

    op.create_table('tags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table('opred_tags',
        sa.Column('opred_id', sa.BigInteger(), nullable=False),
        sa.Column('tag_id', sa.Integer(), nullable=False),
        sa.Column('added_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['opred_id'], ['opred_v.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('opred_id', 'tag_id')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('opred_tags')
    op.drop_table('tags')
    op.drop_index(op.f('ix_opred_v_word_id'), table_name='opred_v')
    op.drop_table('opred_v')
    op.drop_index(op.f('ix_word_v_word_text'), table_name='word_v')
    op.drop_table('word_v')
