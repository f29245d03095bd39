import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lifelink.db.base import Base, UUID, UTCDateTime, utcnow


class Donation(Base):
    """Append-only record of a completed donation."""

    __tablename__ = "donations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(),
        primary_key=True,
        default=uuid.uuid4,
    )
    donor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    hospital_id: Mapped[uuid.UUID] = mapped_column(
        UUID(),
        ForeignKey("hospitals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    request_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(),
        ForeignKey("blood_requests.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    donation_date: Mapped[date] = mapped_column(Date, default=date.today, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, nullable=False
    )

    donor = relationship("Profile", back_populates="donations")
    hospital = relationship("Hospital", back_populates="donations")
    request = relationship("BloodRequest", back_populates="donations")

    def __repr__(self) -> str:
        return f"<Donation(id={self.id}, donor_id={self.donor_id}, date={self.donation_date})>"
