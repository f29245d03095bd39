from typing import Any

from sqlalchemy import String, JSON
from sqlalchemy.orm import Mapped, mapped_column

from lifelink.db.base import Base


class KeyValue(Base):
    """Schemaless key-value rows. Notifications are stored here."""

    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<KeyValue(key={self.key})>"
