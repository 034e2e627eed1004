from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from .db import Base


class AppSettings(Base):
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, index=True)
    sportsdb_api_key_enc = Column(Text, nullable=True)
    updated_at_utc = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class WidgetSnapshot(Base):
    """Key/value rows read by the widget, which has no network access."""

    __tablename__ = "widget_snapshots"

    key = Column(String, primary_key=True)
    payload_json = Column(Text, nullable=False, default="")
    updated_at_utc = Column(DateTime(timezone=True), nullable=True)
