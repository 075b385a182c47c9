"""
Server-owned key-value configuration records.
"""

from sqlalchemy import Column, String, DateTime, JSON

from ceart_api.models.event import Base, utcnow

EVENT_CATEGORIES_KEY = "event_categories"


class ConfigRecord(Base):
    """A named JSON value, e.g. the list of event categories."""

    __tablename__ = "config_records"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<ConfigRecord(key='{self.key}')>"
