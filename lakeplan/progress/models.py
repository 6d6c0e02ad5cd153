"""
SQLAlchemy ORM model for the progress byte store.

One row per storage key; values are opaque JSON strings.
"""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class KeyValueEntry(Base):
    """
    A single persisted value (root progress state or a tool-scoped blob).
    """
    __tablename__ = 'kv_entries'

    key = Column(String(255), primary_key=True, nullable=False)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<KeyValueEntry({self.key}, {len(self.value or '')} chars)>"
