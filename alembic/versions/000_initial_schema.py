"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all initial tables."""

    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(100), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("admin", "operator", name="userrole"), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # Per-operator commission rates
    op.create_table(
        "commission_rates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sub_category", sa.String(50), nullable=False),
        sa.Column("rate_value", sa.Numeric(10, 4), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.UniqueConstraint("user_id", "sub_category", name="uq_commission_rates_user_sub"),
    )
    op.create_index("ix_commission_rates_user_id", "commission_rates", ["user_id"])

    # Contract entries
    op.create_table(
        "contract_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("managed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("customer_name", sa.String(200), nullable=False),
        sa.Column("customer_firstname", sa.String(200), nullable=True),
        sa.Column("policy_number", sa.String(100), nullable=True),
        sa.Column("category", sa.Enum(
            "life", "health", "property", "vehicle", "legal", "other",
            name="productcategory"
        ), nullable=False),
        sa.Column("sub_category", sa.String(50), nullable=False),
        sa.Column("status", sa.Enum(
            "submitted", "policed", "cancelled",
            name="contractstatus"
        ), nullable=False, server_default="submitted"),
        sa.Column("submission_date", sa.Date(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("policing_date", sa.Date(), nullable=True),
        sa.Column("commission_received_date", sa.Date(), nullable=True),
        sa.Column("payment_frequency", sa.Enum(
            "monthly", "quarterly", "half_yearly", "yearly", "one_time",
            name="paymentfrequency"
        ), nullable=False, server_default="monthly"),
        sa.Column("duration_years", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("net_premium", sa.Numeric(14, 2), nullable=False),
        sa.Column("gross_premium", sa.Numeric(14, 2), nullable=False),
        sa.Column("net_premium_yearly", sa.Numeric(16, 2), nullable=False),
        sa.Column("gross_premium_yearly", sa.Numeric(16, 2), nullable=False),
        sa.Column("valuation_sum", sa.Numeric(18, 2), nullable=False),
        sa.Column("commission_rate", sa.Numeric(10, 4), nullable=False),
        sa.Column("commission_amount", sa.Numeric(26, 9), nullable=False),
        sa.Column("reserve_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reserve_percent", sa.Numeric(6, 2), nullable=True),
        sa.Column("reserve_amount", sa.Numeric(30, 13), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )
    op.create_index("ix_contract_entries_user_id", "contract_entries", ["user_id"])
    op.create_index("ix_contract_entries_managed_by", "contract_entries", ["managed_by"])
    op.create_index("ix_contract_entries_policy_number", "contract_entries", ["policy_number"])
    op.create_index("ix_contract_entries_category", "contract_entries", ["category"])
    op.create_index("ix_contract_entries_status", "contract_entries", ["status"])
    op.create_index("ix_contract_entries_submission_date", "contract_entries", ["submission_date"])

    # Audit logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", sa.Enum(
            "login", "logout", "create_contract", "update_contract",
            "change_contract_status", "delete_contract", "export_contracts",
            "update_rates", "create_operator",
            name="auditaction"
        ), nullable=False),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("audit_logs")
    op.drop_table("contract_entries")
    op.drop_table("commission_rates")
    op.drop_table("users")
    sa.Enum(name="auditaction").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="paymentfrequency").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="contractstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="productcategory").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="userrole").drop(op.get_bind(), checkfirst=True)
