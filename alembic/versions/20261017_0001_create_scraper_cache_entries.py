"""create scraper_cache_entries table

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 10:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scraper_cache_entries",
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("source", sa.String(length=8), nullable=False),
        sa.Column("query", sa.String(length=200), nullable=False),
        sa.Column(
            "entities_json",
            sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql"),
            nullable=False,
        ),
        sa.Column("total_found", sa.Integer(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("key", name="pk_scraper_cache_entries"),
    )
    op.create_index("ix_scraper_cache_entries_source", "scraper_cache_entries", ["source"], unique=False)
    op.create_index("ix_scraper_cache_entries_expires_at", "scraper_cache_entries", ["expires_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_scraper_cache_entries_expires_at", table_name="scraper_cache_entries")
    op.drop_index("ix_scraper_cache_entries_source", table_name="scraper_cache_entries")
    op.drop_table("scraper_cache_entries")
