import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import String, Date, Float, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lifelink.db.base import Base, UUID, UTCDateTime, utcnow, value_enum
from lifelink.schemas.base_schema import HospitalStatus


class Hospital(Base):
    __tablename__ = "hospitals"

    # --- Columns ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    contact_person_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_info: Mapped[str] = mapped_column(String(255), nullable=False)
    license_number: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, index=True
    )
    application_date: Mapped[date] = mapped_column(
        Date, default=date.today, nullable=False
    )
    status: Mapped[str] = mapped_column(
        value_enum(HospitalStatus, "hospital_status"),
        default=HospitalStatus.PENDING_REVIEW.value,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False
    )

    # --- Relationships ---
    staff = relationship("Profile", back_populates="hospital", passive_deletes=True)
    blood_requests = relationship(
        "BloodRequest",
        back_populates="hospital",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    donations = relationship(
        "Donation",
        back_populates="hospital",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def location(self) -> Optional[dict]:
        if self.latitude is None or self.longitude is None:
            return None
        return {"lat": self.latitude, "lng": self.longitude}

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<Hospital(id={self.id}, name={self.name}, status={self.status})>"
