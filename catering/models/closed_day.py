import datetime as dt
from sqlalchemy import String, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from catering.db.session import Base

class ClosedDay(Base):
    __tablename__ = "closed_days"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # one row per date; enforced by the service before insert
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    reason: Mapped[str] = mapped_column(String(300))
    created_by: Mapped[str] = mapped_column(String(36), default="")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=lambda: dt.datetime.now(dt.timezone.utc))
