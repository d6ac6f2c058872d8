"""rewards ledger, redemptions and pricing tables

Revision ID: 0001_rewards_ledger
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001_rewards_ledger"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "point_balances",
        sa.Column("account_id", sa.String(64), primary_key=True),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tier", sa.String(), nullable=False, server_default="bronze"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("total_points >= 0", name="ck_point_balances_non_negative"),
    )

    op.create_table(
        "points_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("account_id", sa.String(64), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("action_type", sa.String(), nullable=False),
        sa.Column("action_details", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expired", sa.Boolean(), nullable=False, server_default="false"),
    )
    op.create_index("ix_points_history_id", "points_history", ["id"])
    op.create_index("ix_points_history_account_id", "points_history", ["account_id"])
    op.create_index("ix_points_history_due", "points_history", ["expired", "expires_at"])

    op.create_table(
        "rewards_catalog",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("points_cost", sa.Integer(), nullable=False),
        sa.Column("reward_type", sa.String(), nullable=False),
        sa.Column("reward_value", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_rewards_catalog_id", "rewards_catalog", ["id"])

    op.create_table(
        "redemptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("account_id", sa.String(64), nullable=False),
        sa.Column("reward_id", sa.Integer(), sa.ForeignKey("rewards_catalog.id"), nullable=False),
        sa.Column("points_spent", sa.Integer(), nullable=False),
        sa.Column("reward_details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('pending','applied','failed')", name="ck_redemptions_status"),
    )
    op.create_index("ix_redemptions_id", "redemptions", ["id"])
    op.create_index("ix_redemptions_account_id", "redemptions", ["account_id"])
    op.create_index("ix_redemptions_status", "redemptions", ["status"])

    op.create_table(
        "vendor_permissions",
        sa.Column("account_id", sa.String(64), primary_key=True),
        sa.Column("max_products", sa.Integer(), nullable=True),
        sa.Column("max_share_links", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "vendor_profiles",
        sa.Column("account_id", sa.String(64), primary_key=True),
        sa.Column("business_name", sa.String(), nullable=True),
        sa.Column("gold_rate_24k_per_gram", sa.Numeric(12, 2), nullable=True),
        sa.Column("gold_rate_updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("account_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sku", sa.String(), nullable=True),
        sa.Column("product_type", sa.String(), nullable=True),
        sa.Column("net_weight", sa.Numeric(10, 3), nullable=True),
        sa.Column("weight_grams", sa.Numeric(10, 3), nullable=True),
        sa.Column("purity_fraction_used", sa.Numeric(7, 3), nullable=True),
        sa.Column("d_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("mkg", sa.Numeric(12, 2), nullable=True),
        sa.Column("certification_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("gemstone_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("cost_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("retail_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("gold_per_gram_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_products_id", "products", ["id"])
    op.create_index("ix_products_account_id", "products", ["account_id"])


def downgrade() -> None:
    op.drop_table("products")
    op.drop_table("vendor_profiles")
    op.drop_table("vendor_permissions")
    op.drop_table("redemptions")
    op.drop_table("rewards_catalog")
    op.drop_table("points_history")
    op.drop_table("point_balances")
