from sqlalchemy import String, Float, Date, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone, date
from catering.db.session import Base

class Transaction(Base):
    """Financial snapshot of a completed booking. Never re-synced from the booking."""
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), index=True)
    manager_id: Mapped[str] = mapped_column(String(36), index=True, default="")

    customer_name: Mapped[str] = mapped_column(String(200), default="")
    customer_email: Mapped[str] = mapped_column(String(320), default="")
    event_type: Mapped[str] = mapped_column(String(40), default="")
    package_name: Mapped[str] = mapped_column(String(200), default="")

    amount: Mapped[float] = mapped_column(Float, default=0)
    downpayment: Mapped[float] = mapped_column(Float, default=0)
    remaining_balance: Mapped[float] = mapped_column(Float, default=0)
    expenses: Mapped[list] = mapped_column(JSON, default=list)
    total_expenses: Mapped[float] = mapped_column(Float, default=0)
    profit: Mapped[float] = mapped_column(Float, default=0)  # amount - total_expenses
    payment_method: Mapped[str] = mapped_column(String(20), default="")

    status: Mapped[str] = mapped_column(String(20), default="completed")  # completed, pending
    event_date: Mapped[date] = mapped_column(Date, nullable=True)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
