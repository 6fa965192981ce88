"""create eav tables

Revision ID: 4c2e9a1b7d10
Revises:
Create Date: 2025-10-02 09:14:37.218410

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c2e9a1b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'eav_entities',
        sa.Column('entity_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('entity_id'),
    )
    op.create_index('idx_eav_entities_type_created', 'eav_entities', ['entity_type', 'created_at'], unique=False)

    op.create_table(
        'eav_attributes',
        sa.Column('attribute_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('attribute_name', sa.String(length=255), nullable=False),
        sa.Column('data_type', sa.String(length=20), server_default='string', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.CheckConstraint(
            "data_type in ('string','number','text','boolean','date')",
            name='ck_eav_attributes_data_type',
        ),
        sa.PrimaryKeyConstraint('attribute_id'),
        sa.UniqueConstraint('attribute_name', name='uq_eav_attributes_attribute_name'),
    )

    op.create_table(
        'eav_values',
        sa.Column('value_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('attribute_id', sa.Integer(), nullable=False),
        sa.Column('value_string', sa.String(length=255), nullable=True),
        sa.Column('value_number', sa.Float(), nullable=True),
        sa.Column('value_text', sa.Text(), nullable=True),
        sa.Column('value_boolean', sa.Boolean(), nullable=True),
        sa.Column('value_date', sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(['entity_id'], ['eav_entities.entity_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['attribute_id'], ['eav_attributes.attribute_id']),
        sa.PrimaryKeyConstraint('value_id'),
        sa.UniqueConstraint('entity_id', 'attribute_id', name='uq_eav_values_entity_attribute'),
    )
    op.create_index('idx_eav_values_attribute_string', 'eav_values', ['attribute_id', 'value_string'], unique=False)
    op.create_index('idx_eav_values_attribute_number', 'eav_values', ['attribute_id', 'value_number'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_eav_values_attribute_number', table_name='eav_values')
    op.drop_index('idx_eav_values_attribute_string', table_name='eav_values')
    op.drop_table('eav_values')
    op.drop_table('eav_attributes')
    op.drop_index('idx_eav_entities_type_created', table_name='eav_entities')
    op.drop_table('eav_entities')
