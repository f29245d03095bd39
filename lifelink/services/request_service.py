from typing import Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lifelink.config import settings
from lifelink.models.hospital_model import Hospital
from lifelink.models.request_model import BloodRequest
from lifelink.schemas.base_schema import HospitalStatus, RequestStatus, UserRole
from lifelink.schemas.request_schema import BloodRequestCreate
from lifelink.utils.authorization import AuthContext, can_manage_blood_requests, has_role

NOT_FOUND_FOR_HOSPITAL = "Blood request not found or does not belong to your hospital"

# Allowed moves for the status endpoint; verification is handled separately
STATUS_TRANSITIONS = {
    RequestStatus.FULFILLED.value: (RequestStatus.ACTIVE.value,),
    RequestStatus.CANCELLED.value: (
        RequestStatus.PENDING_VERIFICATION.value,
        RequestStatus.ACTIVE.value,
    ),
}


def _value(status) -> str:
    return getattr(status, "value", status)


class BloodRequestService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_request(
        self, data: BloodRequestCreate, requester_id: UUID
    ) -> BloodRequest:
        hospital = await self.db.get(Hospital, data.hospital_id)
        if hospital is None:
            raise HTTPException(status_code=404, detail="Hospital not found")
        if _value(hospital.status) != HospitalStatus.APPROVED.value:
            raise HTTPException(
                status_code=400,
                detail="Blood requests can only be raised at approved hospitals",
            )

        blood_request = BloodRequest(
            **data.model_dump(),
            requester_id=requester_id,
            status=RequestStatus.PENDING_VERIFICATION.value,
        )
        self.db.add(blood_request)
        await self.db.commit()
        await self.db.refresh(blood_request)
        return blood_request

    async def get_request(self, request_id: UUID) -> Optional[BloodRequest]:
        result = await self.db.execute(
            select(BloodRequest).where(BloodRequest.id == request_id)
        )
        return result.scalar_one_or_none()

    async def list_requests(
        self, ctx: AuthContext, status: Optional[str] = None
    ) -> list[BloodRequest]:
        """
        Requests visible to the caller, newest first.

        Hospital admins see their hospital's requests (nothing when
        unaffiliated). Individuals see their own requests plus active ones.
        Platform admins see everything.
        """
        query = select(BloodRequest)

        if has_role(ctx, UserRole.HOSPITAL_ADMIN):
            if ctx.hospital_id is None:
                return []
            query = query.where(BloodRequest.hospital_id == ctx.hospital_id)
        elif not has_role(ctx, UserRole.PLATFORM_ADMIN):
            query = query.where(
                (BloodRequest.requester_id == ctx.user_id)
                | (BloodRequest.status == RequestStatus.ACTIVE.value)
            )

        if status:
            query = query.where(BloodRequest.status == status)

        result = await self.db.execute(query.order_by(BloodRequest.created_at.desc()))
        return list(result.scalars().all())

    async def get_community_requests(self, limit: Optional[int] = None) -> list[BloodRequest]:
        result = await self.db.execute(
            select(BloodRequest)
            .where(BloodRequest.status == RequestStatus.ACTIVE.value)
            .order_by(BloodRequest.created_at.desc())
            .limit(limit or settings.COMMUNITY_FEED_LIMIT)
        )
        return list(result.scalars().all())

    async def get_user_requests(self, requester_id: UUID) -> list[BloodRequest]:
        result = await self.db.execute(
            select(BloodRequest)
            .where(BloodRequest.requester_id == requester_id)
            .order_by(BloodRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_hospital_requests(
        self, hospital_id: UUID, status: Optional[str] = None
    ) -> list[BloodRequest]:
        query = select(BloodRequest).where(BloodRequest.hospital_id == hospital_id)
        if status:
            query = query.where(BloodRequest.status == status)
        result = await self.db.execute(query.order_by(BloodRequest.created_at.desc()))
        return list(result.scalars().all())

    async def verify_request(self, request_id: UUID, ctx: AuthContext) -> BloodRequest:
        """
        Move a request from pending_verification to active.

        A request outside the caller's hospital is reported as not found so
        its existence is not disclosed.
        """
        blood_request = await self.get_request(request_id)
        if blood_request is None or not can_manage_blood_requests(
            ctx, blood_request.hospital_id
        ):
            raise HTTPException(status_code=404, detail=NOT_FOUND_FOR_HOSPITAL)

        if _value(blood_request.status) != RequestStatus.PENDING_VERIFICATION.value:
            raise HTTPException(
                status_code=400,
                detail=f"Only requests pending verification can be verified "
                f"(current status: {_value(blood_request.status)})",
            )

        blood_request.status = RequestStatus.ACTIVE.value
        await self.db.commit()
        await self.db.refresh(blood_request)
        return blood_request

    async def update_status(
        self, request_id: UUID, new_status: str, ctx: AuthContext
    ) -> tuple[BloodRequest, str]:
        blood_request = await self.get_request(request_id)
        if blood_request is None:
            raise HTTPException(status_code=404, detail="Blood request not found")
        if not can_manage_blood_requests(ctx, blood_request.hospital_id):
            raise HTTPException(
                status_code=403,
                detail="Only the hospital's admins can change this request",
            )

        old_status = _value(blood_request.status)
        if old_status not in STATUS_TRANSITIONS.get(new_status, ()):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot move a request from {old_status} to {new_status}",
            )

        blood_request.status = new_status
        await self.db.commit()
        await self.db.refresh(blood_request)
        return blood_request, old_status
