"""marketplace feed tables

Revision ID: 0001_initial
Revises:
Create Date: 2024-03-01 00:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "raw_listings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("external_id", sa.String(), nullable=False),
        sa.Column("raw_payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("source", "external_id", name="uq_raw_listing_source_external"),
    )
    op.create_index("ix_raw_listings_source", "raw_listings", ["source"])
    op.create_table(
        "businesses",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("plan", sa.String()),
        sa.Column("address", sa.JSON()),
        sa.Column("lat", sa.Float()),
        sa.Column("lon", sa.Float()),
    )
    op.create_table(
        "user_marketplace_searches",
        sa.Column("user_id", sa.String(), primary_key=True),
        sa.Column("searches", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_table(
        "marketplace_search_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String()),
        sa.Column("search_term", sa.String(), nullable=False),
        sa.Column("radius_miles", sa.Float()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "user_marketplace_favorites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("item_key", sa.String(), nullable=False),
        sa.Column("item_snapshot", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "item_key", name="uq_favorite_user_item"),
    )
    op.create_index("ix_user_marketplace_favorites_user_id", "user_marketplace_favorites", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_user_marketplace_favorites_user_id", table_name="user_marketplace_favorites")
    op.drop_table("user_marketplace_favorites")
    op.drop_table("marketplace_search_log")
    op.drop_table("user_marketplace_searches")
    op.drop_table("businesses")
    op.drop_index("ix_raw_listings_source", table_name="raw_listings")
    op.drop_table("raw_listings")
