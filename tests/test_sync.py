import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from api.passes.pass_repository import SqlPassRepository
from api.scans.scans_model import ScanStatus
from api.sync.sync_service import SyncService, resolve_check_in_time
from helpers.qr_helper import encrypt_qr_payload
from utils.exceptions import StoreUnavailableError, ValidationError
from utils.time_utils import ensure_utc, from_epoch_millis

T1 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
T2 = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)


class UnavailableRepository(SqlPassRepository):
    async def get_pass(self, doc_id):
        raise StoreUnavailableError()


def _millis(value: datetime) -> float:
    return value.timestamp() * 1000


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _get(repository, doc_id):
    return asyncio.run(repository.get_pass(doc_id))


def test_earlier_persisted_check_in_wins(client, add_pass, repository):
    add_pass("p1", checked_in=True, checked_in_at=T1)

    res = client.post("/api/sync", json={"passId": "p1", "scannedAt": _millis(T2)})

    body = res.json()
    assert res.status_code == 200
    assert body["success"] is True
    assert body["status"] == "duplicate"
    assert _parse(body["checkedInAt"]) == T1
    assert ensure_utc(_get(repository, "p1").checked_in_at) == T1


def test_earlier_offline_scan_replaces_persisted_time(client, add_pass, repository):
    add_pass("p1", checked_in=True, checked_in_at=T2)

    res = client.post("/api/sync", json={"passId": "p1", "scannedAt": _millis(T1)})

    body = res.json()
    assert body["status"] == "valid"
    assert _parse(body["checkedInAt"]) == T1
    assert ensure_utc(_get(repository, "p1").checked_in_at) == T1


def test_sync_checks_in_a_fresh_pass(client, add_pass, repository, cache):
    add_pass("p1")

    res = client.post("/api/sync", json={"passId": "p1", "scannerId": "gate-2", "scannedAt": _millis(T2)})

    assert res.json()["status"] == "valid"
    doc = _get(repository, "p1")
    assert doc.checked_in is True
    assert ensure_utc(doc.checked_in_at) == T2
    assert cache.has("p1")

    scans = asyncio.run(repository.list_scans("p1"))
    assert len(scans) == 1
    assert scans[0].is_offline_sync is True
    assert scans[0].scanner_id == "gate-2"
    assert ensure_utc(scans[0].scanned_at) == T2


def test_sync_without_client_time_uses_now(client, add_pass):
    add_pass("p1")
    before = datetime.now(timezone.utc) - timedelta(seconds=1)

    res = client.post("/api/sync", json={"passId": "p1"})

    checked_in_at = _parse(res.json()["checkedInAt"])
    assert before <= checked_in_at <= datetime.now(timezone.utc) + timedelta(seconds=1)


def test_synced_pass_then_scans_as_duplicate(client, add_pass):
    add_pass("p1")
    client.post("/api/sync", json={"passId": "p1", "scannedAt": _millis(T1)})

    res = client.post("/api/scan", json={"passId": "p1"})

    assert res.json()["status"] == "duplicate"


def test_sync_unknown_pass(client):
    res = client.post("/api/sync", json={"passId": "ghost", "scannedAt": _millis(T1)})

    assert res.status_code == 200
    assert res.json() == {
        "success": False,
        "status": "invalid",
        "error": "Ticket not found in database",
    }


def test_sync_missing_pass_id(client):
    res = client.post("/api/sync", json={"scannedAt": _millis(T1)})
    assert res.status_code == 400
    assert res.json()["error"] == "Missing Pass ID"


def test_sync_corrupted_token(client, exploding_repository, use_repository):
    use_repository(exploding_repository)

    res = client.post("/api/sync", json={"passId": "00" * 16 + ":" + "ff" * 16})

    assert res.json() == {
        "success": False,
        "status": "invalid",
        "error": "Invalid or corrupted QR code",
    }


def test_sync_accepts_encrypted_token(client, add_pass, repository):
    add_pass("p-enc")
    token = encrypt_qr_payload({"id": "p-enc", "passType": "day_pass"})

    res = client.post("/api/sync", json={"passId": token, "scannedAt": _millis(T1)})

    assert res.json()["status"] == "valid"
    assert _get(repository, "p-enc").checked_in is True


def test_sync_records_attendance_once(client, add_pass, repository):
    add_pass("p1", pass_type="day_pass")
    payload = {
        "passId": "p1",
        "scannedAt": _millis(T1),
        "eventId": "robowars",
        "eventName": "Robo Wars",
        "attendanceDate": "2026-03-01",
    }

    first = client.post("/api/sync", json=payload).json()
    second = client.post("/api/sync", json=payload).json()

    assert first["attendanceRecorded"] is True
    assert second["attendanceRecorded"] is False
    records = asyncio.run(repository.list_attendance(pass_id="p1"))
    assert len(records) == 1
    assert records[0].is_offline_sync is True
    assert records[0].pass_category == "day_pass"


def test_sync_attendance_day_follows_client_time(client, add_pass, repository):
    add_pass("p1")
    client.post("/api/sync", json={"passId": "p1", "scannedAt": _millis(T1), "eventId": "quiz"})

    records = asyncio.run(repository.list_attendance(pass_id="p1"))
    assert records[0].attendance_date == "2026-03-01"


def test_sync_member_keeps_earlier_member_time(client, add_pass, repository):
    members = [
        {"memberId": "m1", "checkedIn": True, "checkedInAt": "2026-03-01T09:00:00Z"},
        {"memberId": "m2", "checkedIn": False, "checkedInAt": None},
    ]
    add_pass("team-1", team_snapshot={"members": members})

    res = client.post("/api/sync", json={"passId": "team-1", "memberId": "m1", "scannedAt": _millis(T2)})

    body = res.json()
    assert body["status"] == "duplicate"
    assert _parse(body["checkedInAt"]) == T1
    doc = _get(repository, "team-1")
    assert doc.checked_in is False
    assert doc.members[1]["checkedIn"] is False


def test_sync_unknown_member(client, add_pass):
    add_pass("team-2", team_snapshot={"members": [{"memberId": "m1", "checkedIn": False}]})

    res = client.post("/api/sync", json={"passId": "team-2", "memberId": "nope"})

    body = res.json()
    assert body["success"] is False
    assert body["status"] == "invalid"
    assert "nope" in body["error"]


def test_scan_status_logged_for_kept_time(client, add_pass, repository):
    add_pass("p1", checked_in=True, checked_in_at=T1)
    client.post("/api/sync", json={"passId": "p1", "scannedAt": _millis(T2)})

    scans = asyncio.run(repository.list_scans("p1"))
    assert scans[0].status == ScanStatus.duplicate


def test_resolve_check_in_time_rules():
    assert resolve_check_in_time(True, T1, T2) == T1
    assert resolve_check_in_time(True, T2, T1) == T1
    assert resolve_check_in_time(False, T1, T2) == T2
    assert resolve_check_in_time(True, None, T2) == T2
    # ties go to the client time
    assert resolve_check_in_time(True, T1, T1) == T1
    naive = T1.replace(tzinfo=None)
    assert resolve_check_in_time(True, naive, T2) == T1


@pytest.mark.parametrize("scanned_at", [1e20, -1, 253402300800000])
def test_sync_rejects_out_of_range_timestamp(client, add_pass, repository, scanned_at):
    add_pass("p3")

    res = client.post("/api/sync", json={"passId": "p3", "scannedAt": scanned_at})

    assert res.status_code == 422
    assert _get(repository, "p3").checked_in is False


@pytest.mark.parametrize("millis", [float("nan"), float("inf"), 1e20, -5])
def test_from_epoch_millis_rejects_unusable_values(millis):
    with pytest.raises(ValidationError):
        from_epoch_millis(millis)


def test_service_rejects_bad_timestamp(add_pass, repository, cache):
    add_pass("p3")
    with pytest.raises(ValidationError):
        asyncio.run(SyncService(repository, cache).sync("p3", scanned_at_millis=1e20))
    assert _get(repository, "p3").checked_in is False


def test_sync_store_unavailable(client, add_pass, session_factory, use_repository):
    add_pass("p1")
    use_repository(UnavailableRepository(session_factory))

    res = client.post("/api/sync", json={"passId": "p1", "scannedAt": _millis(T1)})

    assert res.status_code == 503
    assert res.json() == {
        "success": False,
        "status": "invalid",
        "error": "Database unavailable",
    }
