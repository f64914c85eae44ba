import datetime as dt
from sqlalchemy import String, Float, Date, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from catering.db.session import Base

class CashFlowEntry(Base):
    """Manual income/expense entry kept next to the automatic booking rows."""
    __tablename__ = "cash_flow_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    manager_id: Mapped[str] = mapped_column(String(36), index=True, default="")
    type: Mapped[str] = mapped_column(String(10))  # income, expense
    amount: Mapped[float] = mapped_column(Float)
    description: Mapped[str] = mapped_column(String(300), default="")
    category: Mapped[str] = mapped_column(String(60), default="")
    notes: Mapped[str] = mapped_column(Text, default="")
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    related_booking_id: Mapped[str] = mapped_column(String(36), default="")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=lambda: dt.datetime.now(dt.timezone.utc))
