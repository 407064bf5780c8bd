"""Shared model utilities and mixins."""

from datetime import datetime

from sqlalchemy import Column, DateTime


class TimestampMixin:
    """Provides ``created_at`` / ``updated_at`` columns."""

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
