"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("customer_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("customer_email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("customer_phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("event_type", sa.String(length=40), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("event_time", sa.String(length=5), nullable=False, server_default=""),
        sa.Column("guest_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location", sa.JSON(), nullable=True),
        sa.Column("service_type", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("special_requests", sa.Text(), nullable=False, server_default=""),
        sa.Column("dietary_restrictions", sa.Text(), nullable=False, server_default=""),
        sa.Column("package_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("package_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("base_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("food_addons_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("services_addons_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("discount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("final_price", sa.Float(), nullable=True),
        sa.Column("price_notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("downpayment", sa.Float(), nullable=False, server_default="0"),
        sa.Column("budget", sa.Float(), nullable=False, server_default="0"),
        sa.Column("reschedule_fee", sa.Float(), nullable=False, server_default="0"),
        sa.Column("reschedule_history", sa.JSON(), nullable=True),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("amount_paid", sa.Float(), nullable=False, server_default="0"),
        sa.Column("final_payment", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("cancel_reason", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("cancelled_by", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assigned_staff", sa.JSON(), nullable=True),
        sa.Column("expenses", sa.JSON(), nullable=True),
        sa.Column("manager_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("created_by_manager", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_customer_email", "bookings", ["customer_email"])
    op.create_index("ix_bookings_event_type", "bookings", ["event_type"])
    op.create_index("ix_bookings_event_date", "bookings", ["event_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("manager_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("customer_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("customer_email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("event_type", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("package_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("downpayment", sa.Float(), nullable=False, server_default="0"),
        sa.Column("remaining_balance", sa.Float(), nullable=False, server_default="0"),
        sa.Column("expenses", sa.JSON(), nullable=True),
        sa.Column("total_expenses", sa.Float(), nullable=False, server_default="0"),
        sa.Column("profit", sa.Float(), nullable=False, server_default="0"),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="completed"),
        sa.Column("event_date", sa.Date(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_transactions_booking_id", "transactions", ["booking_id"])
    op.create_index("ix_transactions_manager_id", "transactions", ["manager_id"])
    op.create_index("ix_transactions_completed_at", "transactions", ["completed_at"])

    op.create_table(
        "closed_days",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(length=300), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    # not unique: duplicates are rejected by the service before insert
    op.create_index("ix_closed_days_date", "closed_days", ["date"])

    op.create_table(
        "packages",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("features", sa.JSON(), nullable=True),
        sa.Column("icon", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("gradient", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("image_url", sa.String(length=1024), nullable=False, server_default=""),
        sa.Column("gallery", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "settings",
        sa.Column("key", sa.String(length=80), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "cash_flow_entries",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("manager_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("description", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("category", sa.String(length=60), nullable=False, server_default=""),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("related_booking_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_cash_flow_entries_manager_id", "cash_flow_entries", ["manager_id"])
    op.create_index("ix_cash_flow_entries_date", "cash_flow_entries", ["date"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_user_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=80), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

def downgrade() -> None:
    for table in ("audit_logs", "cash_flow_entries", "settings", "packages", "closed_days",
                  "transactions", "bookings", "users"):
        op.drop_table(table)
