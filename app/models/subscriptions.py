"""Subscription records (data shape only, no payment logic)."""

from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, String, Table, Text, Uuid, text

from app.models.base import UTCDateTime, metadata, utcnow

subscriptions = Table(
    "subscriptions",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "user_id",
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("plan", String(20), nullable=False, default="free"),
    Column("start_date", UTCDateTime, nullable=False, default=utcnow),
    Column("end_date", UTCDateTime),
    Column("is_active", Boolean, nullable=False, default=True, server_default=text("true")),
    Column("status", String(20), nullable=False, default="active"),
    Column("payment_method", String(20), nullable=False, default="stripe"),
    Column("stripe_customer_id", Text),
    Column("stripe_subscription_id", Text),
    Column("stripe_price_id", Text),
    Column("session_id", Text),
    Column("last_payment_date", UTCDateTime),
    Column("last_transaction_id", Text),
    Column("payment_status", String(20)),
    Column("payment_failure_reason", Text),
    Column("last_failure_date", UTCDateTime),
    Column("created_at", UTCDateTime, nullable=False, default=utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=utcnow),
    CheckConstraint(
        "plan IN ('free', 'monthly', 'annual', 'premium')",
        name="subscriptions_plan_check",
    ),
    CheckConstraint(
        "status IN ('active', 'cancelled', 'suspended', 'trialing', 'incomplete')",
        name="subscriptions_status_check",
    ),
    CheckConstraint(
        "payment_method IN ('stripe', 'paypal', 'manual')",
        name="subscriptions_payment_method_check",
    ),
)
