from sqlalchemy import String, Float, DateTime, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from catering.db.session import Base

class Package(Base):
    __tablename__ = "packages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    price: Mapped[float] = mapped_column(Float, default=0)
    features: Mapped[list] = mapped_column(JSON, default=list)
    icon: Mapped[str] = mapped_column(String(40), default="")
    gradient: Mapped[str] = mapped_column(String(80), default="")
    image_url: Mapped[str] = mapped_column(String(1024), default="")  # legacy single image, mirrors gallery[0]
    gallery: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
