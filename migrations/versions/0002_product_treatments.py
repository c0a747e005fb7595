"""product treatments

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 16:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, Sequence[str], None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "product_treatments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("product_id", sa.String(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("treatment_id", sa.String(), nullable=False),
        sa.Column("additional_cost", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("product_id", "treatment_id", name="uq_product_treatments_product_treatment"),
    )
    op.create_index("ix_product_treatments_id", "product_treatments", ["id"])
    op.create_index("ix_product_treatments_product_id", "product_treatments", ["product_id"])


def downgrade():
    op.drop_index("ix_product_treatments_product_id", table_name="product_treatments")
    op.drop_index("ix_product_treatments_id", table_name="product_treatments")
    op.drop_table("product_treatments")
