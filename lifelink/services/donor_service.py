from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lifelink.models.profile_model import Profile
from lifelink.schemas.base_schema import AvailabilityStatus, GeoPoint, UserRole
from lifelink.utils.blood_compatibility import get_compatible_donor_types
from lifelink.utils.logging_config import get_logger

logger = get_logger(__name__)


class DonorService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_donors(
        self,
        blood_group_needed: str,
        hospital_location: Optional[GeoPoint] = None,
        radius_km: Optional[float] = None,
    ) -> tuple[list[Profile], list[str]]:
        """
        Available, complete individual profiles whose blood type the recipient
        can receive. Location and radius are recorded but do not filter.
        """
        compatible_types = get_compatible_donor_types(blood_group_needed)

        logger.info(
            "Donor search",
            extra={
                "event_type": "donor_search",
                "blood_group_needed": blood_group_needed,
                "compatible_types": compatible_types,
                "hospital_location": hospital_location.model_dump()
                if hospital_location
                else None,
                "radius_km": radius_km,
            },
        )

        if not compatible_types:
            return [], compatible_types

        result = await self.db.execute(
            select(Profile)
            .where(
                Profile.role == UserRole.INDIVIDUAL.value,
                Profile.profile_complete.is_(True),
                Profile.availability_status == AvailabilityStatus.AVAILABLE.value,
                Profile.blood_group.in_(compatible_types),
            )
            .order_by(Profile.created_at)
        )
        return list(result.scalars().all()), compatible_types
