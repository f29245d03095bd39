from datetime import date
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lifelink.models.donation_model import Donation
from lifelink.models.profile_model import Profile
from lifelink.models.request_model import BloodRequest
from lifelink.schemas.base_schema import UserRole
from lifelink.schemas.donation_schema import DonationCreate


class DonationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_donation(self, data: DonationCreate) -> Donation:
        """Record a completed donation. Availability stays under the donor's control."""
        donor = await self.db.get(Profile, data.donor_id)
        if donor is None:
            raise HTTPException(status_code=404, detail="Donor not found")
        if getattr(donor.role, "value", donor.role) != UserRole.INDIVIDUAL.value:
            raise HTTPException(
                status_code=400, detail="Donations can only be recorded for individuals"
            )

        if data.request_id is not None:
            blood_request = await self.db.get(BloodRequest, data.request_id)
            if blood_request is None:
                raise HTTPException(status_code=404, detail="Blood request not found")
            if blood_request.hospital_id != data.hospital_id:
                raise HTTPException(
                    status_code=400,
                    detail="Blood request belongs to a different hospital",
                )

        donation = Donation(
            donor_id=data.donor_id,
            hospital_id=data.hospital_id,
            request_id=data.request_id,
            donation_date=data.donation_date or date.today(),
        )
        self.db.add(donation)

        await self.db.commit()
        await self.db.refresh(donation)
        return donation

    async def get_donor_donations(self, donor_id: UUID) -> list[Donation]:
        result = await self.db.execute(
            select(Donation)
            .where(Donation.donor_id == donor_id)
            .order_by(Donation.donation_date.desc(), Donation.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_hospital_donations(self, hospital_id: UUID) -> list[Donation]:
        result = await self.db.execute(
            select(Donation)
            .where(Donation.hospital_id == hospital_id)
            .order_by(Donation.donation_date.desc(), Donation.created_at.desc())
        )
        return list(result.scalars().all())
