"""In-app donor notifications kept in the key-value store."""

import json
import logging
from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from lifelink.models.kv_store_model import KeyValue
from lifelink.services.kv_store import KeyValueStore
from lifelink.services.notification_service import (
    NotificationService,
    donor_index_key,
    donor_index_prefix,
    notification_key,
)
from lifelink.utils.logging_config import ContextualJsonFormatter, LogContext


async def count_keys(db_session, prefix: str) -> int:
    return await db_session.scalar(
        select(func.count()).select_from(KeyValue).where(KeyValue.key.startswith(prefix))
    )


@pytest.fixture
async def active_request(factory, individual, approved_hospital):
    return await factory.create_blood_request(
        individual, approved_hospital, blood_group_needed="B+", urgency="Critical", status="active"
    )


class TestKeyValueStore:
    async def test_set_get_and_overwrite(self, db_session):
        store = KeyValueStore(db_session)
        await store.set("alpha", {"n": 1})
        await store.set("alpha", {"n": 2})

        assert await store.get("alpha") == {"n": 2}
        assert await store.get("missing") is None

    async def test_prefix_is_literal(self, db_session):
        store = KeyValueStore(db_session)
        await store.set("donor_notifications:a:1", "1")
        await store.set("donor_notifications:ab:2", "2")
        await store.set("donor_notifications_x", "3")

        entries = await store.get_by_prefix("donor_notifications:a:")

        assert entries == [("donor_notifications:a:1", "1")]


class TestNotificationService:
    async def test_fan_out_writes_record_and_index_per_donor(
        self, db_session, factory, active_request
    ):
        donors = [await factory.create_donor("B-") for _ in range(3)]

        count = await NotificationService(db_session).notify_donors(
            active_request.id, [d.id for d in donors]
        )

        assert count == 3
        assert await count_keys(db_session, "notification:") == 3
        assert await count_keys(db_session, "donor_notifications:") == 3

        store = KeyValueStore(db_session)
        for donor in donors:
            entries = await store.get_by_prefix(donor_index_prefix(donor.id))
            assert len(entries) == 1
            key, notification_id = entries[0]
            assert key == donor_index_key(donor.id, notification_id)

            record = await store.get(notification_key(notification_id))
            assert record["donor_id"] == str(donor.id)
            assert record["request_id"] == str(active_request.id)
            assert record["urgency"] == "Critical"
            assert record["read"] is False
            assert record["message"] == (
                "New blood donation request: B+ needed at Korle Bu Teaching Hospital"
            )

    async def test_unknown_request_is_404(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            await NotificationService(db_session).notify_donors(uuid4(), [uuid4()])
        assert exc_info.value.status_code == 404
        assert await count_keys(db_session, "notification:") == 0

    async def test_repeat_calls_create_duplicates(self, db_session, factory, active_request):
        donor = await factory.create_donor("O-")
        service = NotificationService(db_session)

        await service.notify_donors(active_request.id, [donor.id])
        await service.notify_donors(active_request.id, [donor.id])

        assert len(await service.get_donor_notifications(donor.id)) == 2

    async def test_reader_sees_only_own_notifications(
        self, db_session, factory, active_request
    ):
        alice = await factory.create_donor("O-")
        bob = await factory.create_donor("O-")
        service = NotificationService(db_session)
        await service.notify_donors(active_request.id, [alice.id, alice.id, bob.id])

        alice_notes = await service.get_donor_notifications(alice.id)
        bob_notes = await service.get_donor_notifications(bob.id)

        assert len(alice_notes) == 2
        assert all(n.donor_id == alice.id for n in alice_notes)
        assert len(bob_notes) == 1

    async def test_newest_first(self, db_session, factory, active_request):
        donor = await factory.create_donor("O-")
        service = NotificationService(db_session)
        await service.notify_donors(active_request.id, [donor.id])
        await service.notify_donors(active_request.id, [donor.id])

        notes = await service.get_donor_notifications(donor.id)

        assert notes[0].created_at >= notes[1].created_at

    async def test_dangling_index_entry_is_skipped(self, db_session, factory, active_request):
        donor = await factory.create_donor("O-")
        service = NotificationService(db_session)
        await service.notify_donors(active_request.id, [donor.id])
        await KeyValueStore(db_session).set(donor_index_key(donor.id, "ghost"), str(uuid4()))

        notes = await service.get_donor_notifications(donor.id)

        assert len(notes) == 1

    async def test_mark_as_read(self, db_session, factory, active_request):
        donor = await factory.create_donor("O-")
        service = NotificationService(db_session)
        await service.notify_donors(active_request.id, [donor.id])
        (note,) = await service.get_donor_notifications(donor.id)

        updated = await service.mark_as_read(note.id, donor.id)

        assert updated.read is True
        stored = await service.get_notification(note.id)
        assert stored.read is True
        assert stored.message == note.message

    async def test_mark_as_read_checks_owner(self, db_session, factory, active_request):
        donor = await factory.create_donor("O-")
        service = NotificationService(db_session)
        await service.notify_donors(active_request.id, [donor.id])
        (note,) = await service.get_donor_notifications(donor.id)

        with pytest.raises(HTTPException) as exc_info:
            await service.mark_as_read(note.id, uuid4())
        assert exc_info.value.status_code == 403

        with pytest.raises(HTTPException) as exc_info:
            await service.mark_as_read(uuid4(), donor.id)
        assert exc_info.value.status_code == 404


class TestNotificationEndpoints:
    async def test_notify_then_read(
        self, client, factory, active_request, hospital_admin, auth_headers
    ):
        donor = await factory.create_donor("O-")

        response = await client.post(
            "/notify-donors",
            json={"request_id": str(active_request.id), "donor_ids": [str(donor.id)]},
            headers=auth_headers(hospital_admin),
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Notifications sent to 1 donors"
        assert response.json()["notifications_count"] == 1

        response = await client.get(
            f"/notifications/{donor.id}", headers=auth_headers(donor)
        )
        assert response.status_code == 200
        body = response.json()
        assert body["unread_count"] == 1
        notification_id = body["notifications"][0]["id"]

        response = await client.put(
            f"/notifications/{notification_id}/read", headers=auth_headers(donor)
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Notification marked as read"

        response = await client.get(
            f"/notifications/{donor.id}", headers=auth_headers(donor)
        )
        assert response.json()["unread_count"] == 0

    async def test_notify_requires_fields(self, client, hospital_admin, auth_headers):
        response = await client.post(
            "/notify-donors", json={"donor_ids": []}, headers=auth_headers(hospital_admin)
        )
        assert response.status_code == 400

    async def test_notify_unknown_request(self, client, hospital_admin, auth_headers):
        response = await client.post(
            "/notify-donors",
            json={"request_id": str(uuid4()), "donor_ids": [str(uuid4())]},
            headers=auth_headers(hospital_admin),
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Request not found"

    async def test_cannot_read_another_donors_notifications(
        self, client, factory, individual, auth_headers
    ):
        other = await factory.create_donor("A+")

        response = await client.get(
            f"/notifications/{other.id}", headers=auth_headers(individual)
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Unauthorized"

    async def test_cannot_mark_another_donors_notification(
        self, client, db_session, factory, active_request, individual, auth_headers
    ):
        donor = await factory.create_donor("O-")
        await NotificationService(db_session).notify_donors(active_request.id, [donor.id])
        (note,) = await NotificationService(db_session).get_donor_notifications(donor.id)

        response = await client.put(
            f"/notifications/{note.id}/read", headers=auth_headers(individual)
        )

        assert response.status_code == 403

    async def test_non_uuid_donor_path_is_forbidden(self, client, individual, auth_headers):
        response = await client.get(
            "/notifications/not-a-donor", headers=auth_headers(individual)
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Unauthorized"


def failing_on_write(n: int):
    """A KeyValueStore.set that raises on its n-th call and stores everything before it."""
    original_set = KeyValueStore.set
    calls = []

    async def set_(self, key, value):
        calls.append(key)
        if len(calls) == n:
            raise RuntimeError("storage unavailable")
        await original_set(self, key, value)

    return set_


class TestPartialFanOut:
    async def test_earlier_donors_keep_their_notifications(
        self, db_session, factory, active_request
    ):
        first, second, third = [await factory.create_donor("B-") for _ in range(3)]

        with patch.object(KeyValueStore, "set", failing_on_write(3)):
            with pytest.raises(RuntimeError):
                await NotificationService(db_session).notify_donors(
                    active_request.id, [first.id, second.id, third.id]
                )

        assert await count_keys(db_session, "notification:") == 1
        (kept,) = await NotificationService(db_session).get_donor_notifications(first.id)
        assert kept.request_id == active_request.id
        assert await count_keys(db_session, donor_index_prefix(second.id)) == 0
        assert await count_keys(db_session, donor_index_prefix(third.id)) == 0

    async def test_endpoint_reports_failure(
        self, client, db_session, factory, active_request, hospital_admin, auth_headers
    ):
        first, second = [await factory.create_donor("B-") for _ in range(2)]

        with patch.object(KeyValueStore, "set", failing_on_write(3)):
            response = await client.post(
                "/notify-donors",
                json={
                    "request_id": str(active_request.id),
                    "donor_ids": [str(first.id), str(second.id)],
                },
                headers=auth_headers(hospital_admin),
            )

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to notify donors"
        assert await count_keys(db_session, donor_index_prefix(first.id)) == 1
        assert await count_keys(db_session, donor_index_prefix(second.id)) == 0

    async def test_fan_out_log_keeps_blood_request_id(
        self, db_session, factory, active_request, caplog
    ):
        donor = await factory.create_donor("O-")
        formatter = ContextualJsonFormatter("%(message)s")

        with caplog.at_level(logging.INFO, logger="lifelink.services.notification_service"):
            with LogContext(req_id="http-req-abc"):
                await NotificationService(db_session).notify_donors(
                    active_request.id, [donor.id]
                )
                (record,) = [
                    r
                    for r in caplog.records
                    if getattr(r, "event_type", None) == "donor_notification_fanout"
                ]
                formatted = json.loads(formatter.format(record))

        assert formatted["request_id"] == "http-req-abc"
        assert formatted["blood_request_id"] == str(active_request.id)
