"""create table pending words and descriptions

Revision ID: 9b41f0c7e2d8
Revises: 5d2e8f4a6c13
Create Date: 2026-09-14 11:48:55.127733

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9b41f0c7e2d8'
down_revision: Union[str, None] = '5d2e8f4a6c13'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('pending_words',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('word_text', sa.String(length=255), nullable=False),
        sa.Column('length', sa.Integer(), nullable=False),
        sa.Column('lang_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('note', sa.Text(), nullable=False, server_default=''),
        sa.Column('target_word_id', sa.BigInteger(), nullable=True),
        sa.Column('create_by', sa.Integer(), nullable=True),
        sa.Column('update_by', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['lang_id'], ['languages.id']),
        sa.ForeignKeyConstraint(['target_word_id'], ['word_v.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_pending_words_status'), 'pending_words', ['status'], unique=False)
    op.create_index(op.f('ix_pending_words_create_by'), 'pending_words', ['create_by'], unique=False)
    op.create_index(op.f('ix_pending_words_created_at'), 'pending_words', ['created_at'], unique=False)

    op.create_table('pending_descriptions',
        sa.Column('id', sa.BigInteger(), nullable=False),
        sa.Column('pending_word_id', sa.BigInteger(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('difficulty', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('note', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('approved_opred_id', sa.BigInteger(), nullable=True),
        sa.Column('lang_id', sa.Integer(), nullable=True),
        sa.Column('create_by', sa.Integer(), nullable=True),
        sa.Column('update_by', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['pending_word_id'], ['pending_words.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_opred_id'], ['opred_v.id']),
        sa.ForeignKeyConstraint(['lang_id'], ['languages.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_pending_descriptions_pending_word_id'), 'pending_descriptions',
                    ['pending_word_id'], unique=False)
    op.create_index(op.f('ix_pending_descriptions_create_by'), 'pending_descriptions',
                    ['create_by'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_pending_descriptions_create_by'), table_name='pending_descriptions')
    op.drop_index(op.f('ix_pending_descriptions_pending_word_id'), table_name='pending_descriptions')
    op.drop_table('pending_descriptions')
    op.drop_index(op.f('ix_pending_words_created_at'), table_name='pending_words')
    op.drop_index(op.f('ix_pending_words_create_by'), table_name='pending_words')
    op.drop_index(op.f('ix_pending_words_status'), table_name='pending_words')
    op.drop_table('pending_words')
