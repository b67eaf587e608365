"""Create categories, brands, sub_categories and products tables.

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


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create the taxonomy and product tables."""
    # Taxonomy: parents hold ordered JSON arrays of child ids
    op.create_table(
        'categories',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('is_main_category', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('subcategories', sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'brands',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('sub_sub_categories', sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'sub_categories',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        *_timestamps(),
    )

    # Products reference taxonomy nodes by id without foreign keys
    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(500), nullable=False, index=True),
        sa.Column('category_id', sa.String(255), nullable=False, index=True),
        sa.Column('brand_id', sa.String(255), nullable=True, index=True),
        sa.Column('sub_category_id', sa.String(255), nullable=True),
        sa.Column('specifications', sa.Text(), nullable=True),
        sa.Column('main_image_url', sa.String(1000), nullable=True),
        sa.Column('secondary_image_urls', sa.JSON(), nullable=False),
        sa.Column('technical_sheet', sa.JSON(), nullable=True),
        sa.Column('manuals', sa.JSON(), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    """Drop the catalog tables."""
    op.drop_table('products')
    op.drop_table('sub_categories')
    op.drop_table('brands')
    op.drop_table('categories')
