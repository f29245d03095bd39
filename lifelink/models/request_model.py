import uuid
from datetime import datetime

from sqlalchemy import String, Integer, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from lifelink.db.base import Base, UUID, UTCDateTime, utcnow, value_enum
from lifelink.schemas.base_schema import BloodType, RequestStatus, Urgency


class BloodRequest(Base):
    """A patient's need for blood at a specific hospital."""

    __tablename__ = "blood_requests"

    # --- Columns ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(),
        primary_key=True,
        default=uuid.uuid4,
    )
    patient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    patient_age: Mapped[int] = mapped_column(Integer, nullable=False)
    blood_group_needed: Mapped[str] = mapped_column(
        value_enum(BloodType, "blood_type"), nullable=False, index=True
    )
    urgency: Mapped[str] = mapped_column(
        value_enum(Urgency, "urgency_level"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        value_enum(RequestStatus, "request_status"),
        default=RequestStatus.PENDING_VERIFICATION.value,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False
    )

    # --- Relationships ---
    requester_id: Mapped[uuid.UUID] = mapped_column(
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

    requester = relationship("Profile", back_populates="blood_requests")
    hospital = relationship("Hospital", back_populates="blood_requests")
    donations = relationship("Donation", back_populates="request", passive_deletes=True)

    __table_args__ = (
        CheckConstraint(
            "patient_age >= 0 AND patient_age <= 150", name="ck_blood_requests_patient_age"
        ),
        Index("idx_blood_requests_hospital_status", "hospital_id", "status"),
    )

    @validates("patient_age")
    def validate_patient_age(self, key, value):
        if value is None or value < 0 or value > 150:
            raise ValueError("patient_age must be between 0 and 150")
        return value

    def __repr__(self) -> str:
        return (
            f"<BloodRequest(id={self.id}, blood_group_needed={self.blood_group_needed}, "
            f"urgency={self.urgency}, status={self.status})>"
        )
