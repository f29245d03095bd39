from uuid import uuid4

import pytest
from fastapi import HTTPException

from lifelink.models.profile_model import Profile
from lifelink.schemas.base_schema import UserRole
from lifelink.utils.authorization import (
    AuthContext,
    can_access_hospital,
    can_manage_blood_requests,
    has_any_role,
    has_role,
    require_hospital_access,
)
from tests.conftest import context_for


def make_profile(role: str, hospital_id=None) -> Profile:
    return Profile(id=uuid4(), email="someone@lifelink.test", role=role, hospital_id=hospital_id)


class TestRoleChecks:
    def test_has_role(self):
        ctx = context_for(make_profile("individual"))
        assert has_role(ctx, UserRole.INDIVIDUAL)
        assert has_role(ctx, "individual")
        assert not has_role(ctx, UserRole.PLATFORM_ADMIN)

    def test_missing_context_has_no_role(self):
        assert not has_role(None, UserRole.INDIVIDUAL)
        assert not has_role(context_for(None), UserRole.INDIVIDUAL)

    def test_missing_profile_has_no_role(self):
        ctx = context_for(make_profile("platform_admin"))
        ctx = AuthContext(user=ctx.user, profile=None)
        assert not has_role(ctx, UserRole.PLATFORM_ADMIN)
        assert not has_any_role(ctx, [UserRole.PLATFORM_ADMIN])

    def test_has_any_role(self):
        ctx = context_for(make_profile("hospital_admin"))
        assert has_any_role(ctx, [UserRole.HOSPITAL_ADMIN, UserRole.PLATFORM_ADMIN])
        assert not has_any_role(ctx, [UserRole.INDIVIDUAL])
        assert not has_any_role(ctx, [])


class TestHospitalScoping:
    def setup_method(self):
        self.hospital_id = uuid4()
        self.other_hospital_id = uuid4()

    def test_platform_admin_reaches_every_hospital(self):
        ctx = context_for(make_profile("platform_admin"))
        assert can_access_hospital(ctx, self.hospital_id)
        assert can_access_hospital(ctx, self.other_hospital_id)
        assert can_manage_blood_requests(ctx)

    def test_hospital_admin_reaches_only_own_hospital(self):
        ctx = context_for(make_profile("hospital_admin", self.hospital_id))
        assert can_access_hospital(ctx, self.hospital_id)
        assert not can_access_hospital(ctx, self.other_hospital_id)
        assert can_manage_blood_requests(ctx, self.hospital_id)
        assert not can_manage_blood_requests(ctx, self.other_hospital_id)
        assert not can_manage_blood_requests(ctx)

    def test_unaffiliated_hospital_admin_reaches_nothing(self):
        ctx = context_for(make_profile("hospital_admin", None))
        assert not can_access_hospital(ctx, self.hospital_id)
        assert not can_access_hospital(ctx, None)

    def test_individual_reaches_nothing(self):
        ctx = context_for(make_profile("individual"))
        assert not can_access_hospital(ctx, self.hospital_id)
        assert not can_manage_blood_requests(ctx, self.hospital_id)

    def test_require_hospital_access_raises_403(self):
        ctx = context_for(make_profile("hospital_admin", self.hospital_id))
        require_hospital_access(ctx, self.hospital_id)

        with pytest.raises(HTTPException) as exc_info:
            require_hospital_access(ctx, self.other_hospital_id)
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Unauthorized"
