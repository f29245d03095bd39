import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import String, Boolean, Date, Float, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lifelink.db.base import Base, UUID, UTCDateTime, utcnow, value_enum
from lifelink.schemas.base_schema import AvailabilityStatus, BloodGroup, UserRole


class Profile(Base):
    """Public-facing record for an account: donor data, role and hospital affiliation."""

    __tablename__ = "profiles"

    # --- Columns ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    blood_group: Mapped[str] = mapped_column(
        value_enum(BloodGroup, "blood_group"),
        default=BloodGroup.NOT_SET.value,
        nullable=False,
        index=True,
    )
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    availability_status: Mapped[str] = mapped_column(
        value_enum(AvailabilityStatus, "availability_status"),
        default=AvailabilityStatus.AVAILABLE.value,
        nullable=False,
        index=True,
    )
    profile_complete: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(
        value_enum(UserRole, "user_role"),
        default=UserRole.INDIVIDUAL.value,
        nullable=False,
        index=True,
    )
    hospital_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(),
        ForeignKey("hospitals.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False
    )

    # --- Relationships ---
    user = relationship("User", back_populates="profile")
    hospital = relationship("Hospital", back_populates="staff")
    blood_requests = relationship(
        "BloodRequest",
        back_populates="requester",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    donations = relationship(
        "Donation",
        back_populates="donor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_profiles_location", "latitude", "longitude"),
        Index("idx_profiles_donor_match", "role", "profile_complete", "availability_status", "blood_group"),
    )

    @property
    def location(self) -> Optional[dict]:
        if self.latitude is None or self.longitude is None:
            return None
        return {"lat": self.latitude, "lng": self.longitude}

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role}, blood_group={self.blood_group})>"
