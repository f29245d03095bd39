from datetime import date, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from lifelink.models.profile_model import Profile
from lifelink.models.user_model import User


COMPLETION = {
    "full_name": "Efua Sarpong",
    "phone_number": "+233244123456",
    "date_of_birth": "1994-03-12",
    "blood_group": "B-",
    "location": {"lat": 6.6885, "lng": -1.6244},
}


class TestProfileCompletion:
    async def test_complete_makes_donor_matchable(self, client, factory, auth_headers):
        newcomer = await factory.create_profile()
        headers = auth_headers(newcomer)

        response = await client.post("/profiles/me/complete", json=COMPLETION, headers=headers)
        assert response.status_code == 200
        assert response.json()["profile_complete"] is True
        assert response.json()["blood_group"] == "B-"

        response = await client.post(
            "/find-donors", json={"blood_group_needed": "AB-"}, headers=headers
        )
        assert str(newcomer.id) in [d["id"] for d in response.json()["donors"]]

    async def test_blood_group_must_be_set(self, client, factory, auth_headers):
        newcomer = await factory.create_profile()

        response = await client.post(
            "/profiles/me/complete",
            json={**COMPLETION, "blood_group": "Not Set"},
            headers=auth_headers(newcomer),
        )

        assert response.status_code == 422

    async def test_future_birth_date_is_rejected(self, client, factory, auth_headers):
        newcomer = await factory.create_profile()
        tomorrow = (date.today() + timedelta(days=1)).isoformat()

        response = await client.post(
            "/profiles/me/complete",
            json={**COMPLETION, "date_of_birth": tomorrow},
            headers=auth_headers(newcomer),
        )

        assert response.status_code == 422


class TestProfileUpdate:
    async def test_update_availability(self, client, individual, auth_headers):
        response = await client.put(
            "/profiles/me",
            json={"availability_status": "Unavailable"},
            headers=auth_headers(individual),
        )

        assert response.status_code == 200
        assert response.json()["availability_status"] == "Unavailable"
        assert response.json()["blood_group"] == "O+"

    async def test_clearing_blood_group_marks_incomplete(self, client, individual, auth_headers):
        response = await client.put(
            "/profiles/me", json={"blood_group": "Not Set"}, headers=auth_headers(individual)
        )

        assert response.status_code == 200
        assert response.json()["profile_complete"] is False

    @pytest.mark.parametrize("field", ["full_name", "phone_number", "date_of_birth"])
    async def test_clearing_required_field_marks_incomplete(
        self, client, individual, auth_headers, field
    ):
        response = await client.put(
            "/profiles/me", json={field: None}, headers=auth_headers(individual)
        )

        assert response.status_code == 200
        assert response.json()["profile_complete"] is False

        response = await client.post(
            "/find-donors",
            json={"blood_group_needed": "O+"},
            headers=auth_headers(individual),
        )
        assert str(individual.id) not in [d["id"] for d in response.json()["donors"]]

    async def test_optional_change_keeps_profile_complete(
        self, client, individual, auth_headers
    ):
        response = await client.put(
            "/profiles/me",
            json={"location": {"lat": 5.6, "lng": -0.19}},
            headers=auth_headers(individual),
        )

        assert response.status_code == 200
        assert response.json()["profile_complete"] is True

    async def test_invalid_location(self, client, individual, auth_headers):
        response = await client.put(
            "/profiles/me",
            json={"location": {"lat": 91, "lng": 0}},
            headers=auth_headers(individual),
        )
        assert response.status_code == 422


class TestProfileStats:
    async def test_stats(self, client, factory, individual, approved_hospital, auth_headers):
        await factory.create_donation(individual, approved_hospital, donation_date=date(2026, 1, 5))
        await factory.create_donation(individual, approved_hospital, donation_date=date(2026, 6, 1))
        await factory.create_blood_request(individual, approved_hospital)
        await factory.create_blood_request(individual, approved_hospital, status="active")
        await factory.create_blood_request(individual, approved_hospital, status="cancelled")

        response = await client.get("/profiles/me/stats", headers=auth_headers(individual))

        assert response.status_code == 200
        assert response.json() == {
            "total_donations": 2,
            "active_requests": 2,
            "last_donation": "2026-06-01",
        }


class TestProfileAdministration:
    async def test_hospital_admin_sees_only_individuals(
        self, client, individual, hospital_admin, platform_admin, auth_headers
    ):
        response = await client.get(
            "/profiles", params={"role": "platform_admin"}, headers=auth_headers(hospital_admin)
        )

        assert response.status_code == 200
        roles = {p["role"] for p in response.json()}
        assert roles == {"individual"}

    async def test_individual_cannot_list(self, client, individual, auth_headers):
        response = await client.get("/profiles", headers=auth_headers(individual))
        assert response.status_code == 403

    async def test_assign_hospital_admin(
        self, client, factory, approved_hospital, platform_admin, auth_headers
    ):
        target = await factory.create_profile()

        response = await client.put(
            f"/profiles/{target.id}/role",
            json={"role": "hospital_admin", "hospital_id": str(approved_hospital.id)},
            headers=auth_headers(platform_admin),
        )

        assert response.status_code == 200
        assert response.json()["role"] == "hospital_admin"
        assert response.json()["hospital_id"] == str(approved_hospital.id)

    async def test_assign_requires_approved_hospital(
        self, client, factory, platform_admin, auth_headers
    ):
        target = await factory.create_profile()
        pending = await factory.create_hospital(status="pending_review")

        response = await client.put(
            f"/profiles/{target.id}/role",
            json={"role": "hospital_admin", "hospital_id": str(pending.id)},
            headers=auth_headers(platform_admin),
        )
        assert response.status_code == 400

        response = await client.put(
            f"/profiles/{target.id}/role",
            json={"role": "hospital_admin"},
            headers=auth_headers(platform_admin),
        )
        assert response.status_code == 400

    async def test_demotion_clears_affiliation(
        self, client, hospital_admin, platform_admin, auth_headers
    ):
        response = await client.put(
            f"/profiles/{hospital_admin.id}/role",
            json={"role": "individual", "hospital_id": str(uuid4())},
            headers=auth_headers(platform_admin),
        )

        assert response.status_code == 200
        assert response.json()["hospital_id"] is None


class TestDeleteAccount:
    async def test_delete_cascades_to_profile(
        self, client, db_session, individual, approved_hospital, factory, auth_headers
    ):
        await factory.create_blood_request(individual, approved_hospital)

        response = await client.delete("/profiles/me", headers=auth_headers(individual))
        assert response.status_code == 204

        db_session.expunge_all()
        assert await db_session.get(User, individual.id) is None
        assert await db_session.scalar(
            select(func.count()).select_from(Profile).where(Profile.id == individual.id)
        ) == 0
