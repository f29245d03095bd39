from typing import Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lifelink.models.hospital_model import Hospital
from lifelink.schemas.base_schema import HospitalStatus
from lifelink.schemas.hospital_schema import HospitalApplication

DUPLICATE_LICENSE_DETAIL = "A hospital with this license number already exists"


class HospitalService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply(self, application: HospitalApplication) -> Hospital:
        """Register a hospital for review. License numbers are unique."""
        result = await self.db.execute(
            select(Hospital.id).where(
                Hospital.license_number == application.license_number
            )
        )
        if result.scalar_one_or_none():
            raise HTTPException(status_code=400, detail=DUPLICATE_LICENSE_DETAIL)

        hospital = Hospital(
            **application.model_dump(exclude={"location"}),
            latitude=application.location.lat if application.location else None,
            longitude=application.location.lng if application.location else None,
            status=HospitalStatus.PENDING_REVIEW.value,
        )
        self.db.add(hospital)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent application for the same license
            await self.db.rollback()
            raise HTTPException(status_code=400, detail=DUPLICATE_LICENSE_DETAIL) from e

        await self.db.refresh(hospital)
        return hospital

    async def get_hospital(self, hospital_id: UUID) -> Optional[Hospital]:
        result = await self.db.execute(select(Hospital).where(Hospital.id == hospital_id))
        return result.scalar_one_or_none()

    async def get_hospital_or_404(self, hospital_id: UUID) -> Hospital:
        hospital = await self.get_hospital(hospital_id)
        if hospital is None:
            raise HTTPException(status_code=404, detail="Hospital not found")
        return hospital

    async def list_hospitals(self, status: Optional[str] = None) -> list[Hospital]:
        query = select(Hospital)
        if status:
            query = query.where(Hospital.status == status)
        query = query.order_by(Hospital.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_pending(self) -> list[Hospital]:
        result = await self.db.execute(
            select(Hospital)
            .where(Hospital.status == HospitalStatus.PENDING_REVIEW.value)
            .order_by(Hospital.application_date, Hospital.created_at)
        )
        return list(result.scalars().all())

    async def _transition(
        self, hospital_id: UUID, allowed_from: tuple[HospitalStatus, ...], to: HospitalStatus
    ) -> Hospital:
        hospital = await self.get_hospital_or_404(hospital_id)
        if hospital.status not in [s.value for s in allowed_from]:
            raise HTTPException(
                status_code=400,
                detail=f"Hospital cannot move from {_value(hospital.status)} to {to.value}",
            )
        hospital.status = to.value
        await self.db.commit()
        await self.db.refresh(hospital)
        return hospital

    async def approve(self, hospital_id: UUID) -> Hospital:
        return await self._transition(
            hospital_id,
            (HospitalStatus.PENDING_REVIEW, HospitalStatus.SUSPENDED),
            HospitalStatus.APPROVED,
        )

    async def suspend(self, hospital_id: UUID) -> Hospital:
        return await self._transition(
            hospital_id, (HospitalStatus.APPROVED,), HospitalStatus.SUSPENDED
        )

    async def reject(self, hospital_id: UUID) -> Hospital:
        """Rejection deletes the application outright"""
        hospital = await self.get_hospital_or_404(hospital_id)
        await self.db.delete(hospital)
        await self.db.commit()
        return hospital


def _value(status) -> str:
    return getattr(status, "value", status)
