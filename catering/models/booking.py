from typing import Any
from sqlalchemy import String, Integer, Float, Date, DateTime, Boolean, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone, date
from catering.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # customer
    user_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)  # back-filled for legacy rows
    customer_name: Mapped[str] = mapped_column(String(200), default="")
    customer_email: Mapped[str] = mapped_column(String(320), default="", index=True)
    customer_phone: Mapped[str] = mapped_column(String(40), default="")

    # event
    event_type: Mapped[str] = mapped_column(String(40), index=True)  # wedding, corporate, birthday, ...
    event_date: Mapped[date] = mapped_column(Date, index=True)
    event_time: Mapped[str] = mapped_column(String(5), default="")  # HH:MM
    guest_count: Mapped[int] = mapped_column(Integer, default=0)
    location: Mapped[dict] = mapped_column(JSON, default=dict)  # {address, lat?, lng?}
    service_type: Mapped[str] = mapped_column(String(40), default="")
    special_requests: Mapped[str] = mapped_column(Text, default="")
    dietary_restrictions: Mapped[str] = mapped_column(Text, default="")

    # commercial
    package_id: Mapped[str] = mapped_column(String(36), default="")
    package_name: Mapped[str] = mapped_column(String(200), default="")
    base_price: Mapped[float] = mapped_column(Float, default=0)
    food_addons_price: Mapped[float] = mapped_column(Float, default=0)
    services_addons_price: Mapped[float] = mapped_column(Float, default=0)
    discount: Mapped[float] = mapped_column(Float, default=0)
    total_price: Mapped[float] = mapped_column(Float, default=0)
    final_price: Mapped[float | None] = mapped_column(Float, nullable=True)  # post-event adjustment
    price_notes: Mapped[str] = mapped_column(Text, default="")
    downpayment: Mapped[float] = mapped_column(Float, default=0)
    budget: Mapped[float] = mapped_column(Float, default=0)
    reschedule_fee: Mapped[float] = mapped_column(Float, default=0)
    reschedule_history: Mapped[list] = mapped_column(JSON, default=list)

    payment_status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, partial, paid, refunded
    payment_method: Mapped[str] = mapped_column(String(20), default="")  # cash, card, check, bank_transfer
    amount_paid: Mapped[float] = mapped_column(Float, default=0)
    final_payment: Mapped[float] = mapped_column(Float, default=0)

    # operational
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, confirmed, completed, cancelled
    cancel_reason: Mapped[str] = mapped_column(String(500), default="")
    cancelled_by: Mapped[str] = mapped_column(String(36), default="")
    cancelled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    assigned_staff: Mapped[list] = mapped_column(JSON, default=list)  # staff user ids
    expenses: Mapped[Any] = mapped_column(JSON, nullable=True)  # number (legacy) or list of items

    manager_id: Mapped[str] = mapped_column(String(36), default="")
    created_by_manager: Mapped[bool] = mapped_column(Boolean, default=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __mapper_args__ = {"version_id_col": version}
