"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Shop profile
    op.create_table(
        "shops",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("shop_name", sa.String(200), nullable=False),
        sa.Column("shop_name_english", sa.String(200), nullable=False),
        sa.Column("owner_name", sa.String(100), nullable=False),
        sa.Column("owner_name_english", sa.String(100), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("address_english", sa.String(500), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("whatsapp", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("website", sa.Text(), server_default=""),
        sa.Column("description", sa.Text(), server_default=""),
        sa.Column("description_english", sa.Text(), server_default=""),
        sa.Column("timings", sa.JSON()),
        sa.Column("social_media", sa.JSON()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Categories
    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("name_english", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(120), nullable=False),
        sa.Column("description", sa.String(500), server_default=""),
        sa.Column("icon", sa.String(20), server_default="📦"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("shop_id", "slug", name="uq_category_shop_slug"),
    )
    op.create_index("idx_categories_shop", "categories", ["shop_id"])

    # Products
    op.create_table(
        "products",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("categories.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("name_english", sa.String(200), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("original_price", sa.Numeric(10, 2)),
        sa.Column("unit", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), server_default=""),
        sa.Column("usage_instructions", sa.Text(), server_default=""),
        sa.Column("benefits", sa.JSON()),
        sa.Column("precautions", sa.JSON()),
        sa.Column("images", sa.JSON()),
        sa.Column("in_stock", sa.Boolean(), server_default=sa.text("true")),
        sa.Column("stock_quantity", sa.Integer(), server_default="0"),
        sa.Column("featured", sa.Boolean(), server_default=sa.text("false")),
        sa.Column("views", sa.Integer(), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_products_shop", "products", ["shop_id"])
    op.create_index("idx_products_category", "products", ["category_id"])
    op.create_index("idx_products_in_stock", "products", ["in_stock"])
    op.create_index("idx_products_featured", "products", ["featured"])

    # Offers
    op.create_table(
        "offers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("discount_type", sa.String(20), server_default="percentage"),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("minimum_order_amount", sa.Numeric(10, 2), server_default="0"),
        sa.Column("maximum_discount_amount", sa.Numeric(10, 2)),
        sa.Column("applicable_to_all", sa.Boolean(), server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true")),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("usage_limit", sa.Integer()),
        sa.Column("used_count", sa.Integer(), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_offers_shop", "offers", ["shop_id"])
    op.create_index("idx_offers_window", "offers", ["is_active", "start_date", "end_date"])

    # Offer targets
    op.create_table(
        "offer_products",
        sa.Column("offer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("offers.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "offer_categories",
        sa.Column("offer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("offers.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    )

    # Admin users
    op.create_table(
        "admin_users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("shop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), server_default="admin"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("email", "shop_id", name="uq_admin_email_shop"),
    )
    op.create_index("idx_admin_users_shop", "admin_users", ["shop_id"])


def downgrade() -> None:
    op.drop_index("idx_admin_users_shop", "admin_users")
    op.drop_table("admin_users")
    op.drop_table("offer_categories")
    op.drop_table("offer_products")
    op.drop_index("idx_offers_window", "offers")
    op.drop_index("idx_offers_shop", "offers")
    op.drop_table("offers")
    op.drop_index("idx_products_featured", "products")
    op.drop_index("idx_products_in_stock", "products")
    op.drop_index("idx_products_category", "products")
    op.drop_index("idx_products_shop", "products")
    op.drop_table("products")
    op.drop_index("idx_categories_shop", "categories")
    op.drop_table("categories")
    op.drop_table("shops")
