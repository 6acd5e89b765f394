"""Create nashville_rentals table.

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "nashville_rentals",
        sa.Column("record_id", sa.Text(), nullable=False),
        sa.Column("detail_url", sa.Text(), nullable=False),
        sa.Column("longitude", sa.Numeric(precision=10, scale=6), nullable=True),
        sa.Column("latitude", sa.Numeric(precision=10, scale=6), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("price", sa.Integer(), nullable=True),
        sa.Column("bedrooms", sa.Numeric(precision=4, scale=1), nullable=True),
        sa.Column("bathrooms", sa.Numeric(precision=4, scale=1), nullable=True),
        sa.Column("living_area", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("property_type", sa.Text(), nullable=True),
        sa.Column("units", postgresql.JSONB(), nullable=True),
        sa.Column("ingestion_date", sa.Date(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("record_id", name="pk_nashville_rentals"),
        sa.UniqueConstraint("detail_url", name="uq_rentals_detail_url"),
    )
    op.create_index(
        "idx_rentals_ingestion_date",
        "nashville_rentals",
        ["ingestion_date"],
        unique=False,
    )
    op.create_index("idx_rentals_price", "nashville_rentals", ["price"], unique=False)
    op.create_index(
        "idx_rentals_property_type",
        "nashville_rentals",
        ["property_type"],
        unique=False,
    )

    # Keep updated_at current for writers that bypass the ORM (SQL console, imports).
    op.execute(
        """
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = NOW();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """
    )
    op.execute(
        """
        CREATE TRIGGER update_rentals_updated_at
          BEFORE UPDATE ON nashville_rentals
          FOR EACH ROW
          EXECUTE FUNCTION update_updated_at_column()
        """
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.execute("DROP TRIGGER IF EXISTS update_rentals_updated_at ON nashville_rentals")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")
    op.drop_index("idx_rentals_property_type", table_name="nashville_rentals")
    op.drop_index("idx_rentals_price", table_name="nashville_rentals")
    op.drop_index("idx_rentals_ingestion_date", table_name="nashville_rentals")
    op.drop_table("nashville_rentals")
