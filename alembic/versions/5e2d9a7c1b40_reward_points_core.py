"""reward points core tables

Revision ID: 5e2d9a7c1b40
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5e2d9a7c1b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _create_index_if_missing(insp, name: str, table: str, columns: list[str], unique: bool = False) -> None:
    existing = {ix["name"] for ix in insp.get_indexes(table)}
    if name not in existing:
        op.create_index(name, table, columns, unique=unique)


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if not insp.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False, unique=True),
            sa.Column("display_name", sa.String(length=150), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
        )

    if not insp.has_table("points_accounts"):
        op.create_table(
            "points_accounts",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), nullable=False, unique=True),
            sa.Column("current_balance", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_earned", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_redeemed", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.Column("last_updated_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.CheckConstraint("current_balance >= 0", name="ck_points_accounts_balance_non_negative"),
            sa.CheckConstraint("total_earned >= 0", name="ck_points_accounts_earned_non_negative"),
            sa.CheckConstraint("total_redeemed >= 0", name="ck_points_accounts_redeemed_non_negative"),
            sa.CheckConstraint(
                "current_balance = total_earned - total_redeemed",
                name="ck_points_accounts_balance_consistent",
            ),
        )

    if not insp.has_table("point_transactions"):
        op.create_table(
            "point_transactions",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("amount", sa.Integer(), nullable=False),
            sa.Column("kind", sa.String(length=20), nullable=False),
            sa.Column("origin_kind", sa.String(length=20), nullable=False),
            sa.Column("origin_id", _uuid(), nullable=True),
            sa.Column("balance_after", sa.Integer(), nullable=False),
            sa.Column("description", sa.String(length=500), nullable=False, server_default=""),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
        )

    if not insp.has_table("products"):
        op.create_table(
            "products",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.String(length=1000), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
        )

    if not insp.has_table("product_prices"):
        op.create_table(
            "product_prices",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("product_id", _uuid(), sa.ForeignKey("products.id"), nullable=False),
            sa.Column("points_cost", sa.Integer(), nullable=False),
            sa.Column("effective_from", sa.TIMESTAMP(), nullable=False),
            sa.Column("effective_to", sa.TIMESTAMP(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.CheckConstraint("points_cost > 0", name="ck_product_prices_points_positive"),
        )

    if not insp.has_table("inventory_items"):
        op.create_table(
            "inventory_items",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("product_id", _uuid(), sa.ForeignKey("products.id"), nullable=False, unique=True),
            sa.Column("available", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("reserved", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("reorder_level", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("last_restocked_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("last_updated_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.Column("updated_by", _uuid(), nullable=True),
            sa.CheckConstraint("available >= 0", name="ck_inventory_items_available_non_negative"),
            sa.CheckConstraint("reserved >= 0", name="ck_inventory_items_reserved_non_negative"),
            sa.CheckConstraint("reorder_level >= 0", name="ck_inventory_items_reorder_level_non_negative"),
        )

    if not insp.has_table("redemptions"):
        op.create_table(
            "redemptions",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("product_id", _uuid(), sa.ForeignKey("products.id"), nullable=False),
            sa.Column("unit_cost", sa.Integer(), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("total_cost", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
            sa.Column("requested_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.Column("decided_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("decided_by", _uuid(), nullable=True),
            sa.Column("delivered_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("delivered_by", _uuid(), nullable=True),
            sa.Column("cancelled_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("cancelled_by", _uuid(), nullable=True),
            sa.Column("cancel_reason", sa.String(length=500), nullable=True),
            sa.CheckConstraint("quantity >= 1", name="ck_redemptions_quantity_positive"),
            sa.CheckConstraint("unit_cost > 0", name="ck_redemptions_unit_cost_positive"),
            sa.CheckConstraint("total_cost = unit_cost * quantity", name="ck_redemptions_total_cost"),
        )

    if not insp.has_table("events"):
        op.create_table(
            "events",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("event_date", sa.TIMESTAMP(), nullable=True),
            sa.Column("total_pool", sa.Integer(), nullable=False),
            sa.Column("allocated", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_by", _uuid(), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.CheckConstraint("total_pool > 0", name="ck_events_total_pool_positive"),
            sa.CheckConstraint("allocated >= 0", name="ck_events_allocated_non_negative"),
            sa.CheckConstraint("allocated <= total_pool", name="ck_events_allocated_within_pool"),
        )

    if not insp.has_table("event_participants"):
        op.create_table(
            "event_participants",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("event_id", _uuid(), sa.ForeignKey("events.id"), nullable=False),
            sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("registered_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
        )

    if not insp.has_table("event_awards"):
        op.create_table(
            "event_awards",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("event_id", _uuid(), sa.ForeignKey("events.id"), nullable=False),
            sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("points", sa.Integer(), nullable=False),
            sa.Column("rank", sa.Integer(), nullable=True),
            sa.Column("awarded_by", _uuid(), nullable=True),
            sa.Column("awarded_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.UniqueConstraint("event_id", "user_id", name="uq_event_awards_event_user"),
            sa.CheckConstraint("points > 0", name="ck_event_awards_points_positive"),
        )

    if not insp.has_table("admin_budgets"):
        op.create_table(
            "admin_budgets",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("admin_id", _uuid(), nullable=False),
            sa.Column("period_key", sa.String(length=7), nullable=False),
            sa.Column("budget_limit", sa.Integer(), nullable=False),
            sa.Column("is_hard_limit", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("warning_threshold_pct", sa.Integer(), nullable=False, server_default="80"),
            sa.Column("consumed", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.Column("updated_at", sa.TIMESTAMP(), nullable=False, server_default=sa.text("now()")),
            sa.UniqueConstraint("admin_id", "period_key", name="uq_admin_budgets_admin_period"),
            sa.CheckConstraint("budget_limit > 0", name="ck_admin_budgets_limit_positive"),
            sa.CheckConstraint("consumed >= 0", name="ck_admin_budgets_consumed_non_negative"),
            sa.CheckConstraint(
                "warning_threshold_pct >= 0 AND warning_threshold_pct <= 100",
                name="ck_admin_budgets_warning_threshold_range",
            ),
            sa.CheckConstraint("NOT is_hard_limit OR consumed <= budget_limit", name="ck_admin_budgets_hard_limit"),
        )

    insp = sa.inspect(bind)
    _create_index_if_missing(insp, "ix_point_transactions_user_created", "point_transactions", ["user_id", "created_at"])
    _create_index_if_missing(insp, "ix_product_prices_product_effective", "product_prices", ["product_id", "effective_from"])
    _create_index_if_missing(insp, "ix_redemptions_user_requested", "redemptions", ["user_id", "requested_at"])
    _create_index_if_missing(insp, "ix_redemptions_status", "redemptions", ["status"])


def downgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # children first
    for table in (
        "admin_budgets",
        "event_awards",
        "event_participants",
        "events",
        "redemptions",
        "inventory_items",
        "product_prices",
        "products",
        "point_transactions",
        "points_accounts",
        "users",
    ):
        if insp.has_table(table):
            op.drop_table(table)
