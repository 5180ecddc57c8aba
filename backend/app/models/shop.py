"""Shop profile model (contact page and admin settings)."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.database import Base


def default_timings() -> dict[str, str]:
    return {
        "weekdays": "सुबह 9:00 - शाम 7:00",
        "weekdays_english": "9:00 AM - 7:00 PM",
        "weekends": "सुबह 9:00 - दोपहर 2:00",
        "weekends_english": "9:00 AM - 2:00 PM",
    }


def default_social_media() -> dict[str, str]:
    return {"facebook": "", "instagram": "", "youtube": ""}


class Shop(Base):
    __tablename__ = "shops"

    # Same value as Settings.shop_id
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    shop_name: Mapped[str] = mapped_column(String(200), nullable=False)
    shop_name_english: Mapped[str] = mapped_column(String(200), nullable=False)
    owner_name: Mapped[str] = mapped_column(String(100), nullable=False)
    owner_name_english: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    address_english: Mapped[str] = mapped_column(String(500), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    whatsapp: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    website: Mapped[str] = mapped_column(Text, default="")
    description: Mapped[str] = mapped_column(Text, default="")
    description_english: Mapped[str] = mapped_column(Text, default="")
    timings: Mapped[dict] = mapped_column(JSON, default=default_timings)
    social_media: Mapped[dict] = mapped_column(JSON, default=default_social_media)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
