import asyncio

from api.passes.pass_repository import SqlPassRepository
from api.scan.checkin_service import SCAN_LOG_WARNING, CheckInService, mark_member
from api.scans.scans_model import ScanStatus
from utils.exceptions import StoreUnavailableError


class BrokenScanLogRepository(SqlPassRepository):
    async def append_scan(self, scan):
        raise StoreUnavailableError()


class UnavailableRepository(SqlPassRepository):
    async def update_pass(self, doc_id, changes):
        raise StoreUnavailableError()


def _get(repository, doc_id):
    return asyncio.run(repository.get_pass(doc_id))


def test_confirm_marks_pass_and_logs_scan(client, add_pass, repository, cache):
    add_pass("p-1", name="Solo")

    res = client.post("/api/scan/confirm", json={"passId": "p-1", "scannerId": "gate-3"})

    assert res.json() == {"success": True}
    doc = _get(repository, "p-1")
    assert doc.checked_in is True
    assert doc.checked_in_at is not None
    scans = asyncio.run(repository.list_scans("p-1"))
    assert len(scans) == 1
    assert scans[0].status == ScanStatus.valid
    assert scans[0].scanner_id == "gate-3"
    assert scans[0].is_offline_sync is False
    assert cache.has("p-1")


def test_confirm_uses_default_scanner_id(client, add_pass, repository):
    add_pass("p-default")

    client.post("/api/scan/confirm", json={"passId": "p-default"})

    scans = asyncio.run(repository.list_scans("p-default"))
    assert scans[0].scanner_id == "device-id-placeholder"


def test_confirm_falls_back_to_pass_id_field(client, add_pass, repository, cache):
    add_pass("doc-9", pass_id="TK-9")

    res = client.post("/api/scan/confirm", json={"passId": "TK-9"})

    assert res.json()["success"] is True
    assert _get(repository, "doc-9").checked_in is True
    assert cache.has("TK-9")


def test_confirm_unknown_pass_only_logs(client, repository, cache):
    res = client.post("/api/scan/confirm", json={"passId": "ghost"})

    assert res.json() == {"success": True}
    assert len(asyncio.run(repository.list_scans("ghost"))) == 1
    assert not cache.has("ghost")


def test_confirm_missing_pass_id(client):
    res = client.post("/api/scan/confirm", json={})
    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Missing Pass ID"}


def test_member_check_in_touches_only_that_member(client, add_pass, repository, cache):
    members = [
        {"memberId": "m1", "name": "Ada", "checkedIn": False, "checkedInAt": None},
        {"memberId": "m2", "name": "Grace", "checkedIn": False, "checkedInAt": None},
    ]
    add_pass("team-7", name="Team Seven", team_snapshot={"teamName": "Seven", "members": members})

    res = client.post("/api/scan/confirm", json={"passId": "team-7", "memberId": "m2"})

    assert res.json() == {"success": True}
    doc = _get(repository, "team-7")
    roster = {m["memberId"]: m for m in doc.members}
    assert roster["m2"]["checkedIn"] is True
    assert roster["m2"]["checkedInAt"]
    assert roster["m1"]["checkedIn"] is False
    assert doc.team_snapshot["teamName"] == "Seven"
    assert doc.checked_in is False
    assert not cache.has("team-7")

    scans = asyncio.run(repository.list_scans("team-7"))
    assert [s.member_id for s in scans] == ["m2"]


def test_last_member_flips_pass_level_flag(client, add_pass, repository):
    members = [
        {"memberId": "m1", "checkedIn": True, "checkedInAt": "2026-03-01T09:00:00Z"},
        {"memberId": "m2", "checkedIn": False, "checkedInAt": None},
    ]
    add_pass("team-8", team_snapshot={"members": members})

    client.post("/api/scan/confirm", json={"passId": "team-8", "memberId": "m2"})

    doc = _get(repository, "team-8")
    assert doc.checked_in is True
    assert doc.checked_in_at is not None

    # still verifiable per member
    res = client.post("/api/scan", json={"passId": "team-8"})
    assert res.json()["status"] == "valid"


def test_unknown_member_is_tolerated(client, add_pass, repository):
    add_pass("team-9", team_snapshot={"members": [{"memberId": "m1", "checkedIn": False}]})

    res = client.post("/api/scan/confirm", json={"passId": "team-9", "memberId": "zz"})

    assert res.json() == {"success": True}
    assert _get(repository, "team-9").members[0]["checkedIn"] is False


def test_scan_log_failure_is_a_warning(client, add_pass, use_repository, session_factory, repository, cache):
    add_pass("p-warn")
    use_repository(BrokenScanLogRepository(session_factory))

    res = client.post("/api/scan/confirm", json={"passId": "p-warn"})

    body = res.json()
    assert res.status_code == 200
    assert body["success"] is True
    assert body["warning"] == SCAN_LOG_WARNING
    assert _get(repository, "p-warn").checked_in is True
    assert cache.has("p-warn")


def test_confirm_records_attendance_once_per_event(client, add_pass, repository):
    add_pass("p-ev")
    payload = {
        "passId": "p-ev",
        "eventId": "robowars",
        "eventName": "Robo Wars",
        "passCategory": "day_pass",
        "attendanceDate": "2026-03-01",
    }

    first = client.post("/api/scan/confirm", json=payload)
    second = client.post("/api/scan/confirm", json=payload)

    assert first.json()["attendanceRecorded"] is True
    assert second.json()["attendanceRecorded"] is False
    records = asyncio.run(repository.list_attendance(pass_id="p-ev"))
    assert len(records) == 1
    assert records[0].event_name == "Robo Wars"
    assert records[0].attendance_date == "2026-03-01"


def test_confirm_rejects_malformed_attendance_date(client, add_pass):
    add_pass("p-date")
    res = client.post(
        "/api/scan/confirm",
        json={"passId": "p-date", "eventId": "e1", "attendanceDate": "03/01/2026"},
    )
    assert res.status_code == 422


def test_mark_member_returns_none_for_unknown_member():
    assert mark_member([{"memberId": "a"}], "b", "2026-03-01T00:00:00Z") is None


def test_service_reports_pass_update(add_pass, repository, cache):
    add_pass("svc-1")
    outcome = asyncio.run(CheckInService(repository, cache).confirm("svc-1"))
    assert outcome.pass_updated is True
    assert outcome.warning is None


def test_confirm_store_unavailable(client, add_pass, session_factory, use_repository, cache):
    add_pass("p-down")
    use_repository(UnavailableRepository(session_factory))

    res = client.post("/api/scan/confirm", json={"passId": "p-down"})

    assert res.status_code == 503
    assert res.json() == {"success": False, "error": "Database unavailable"}
    assert not cache.has("p-down")
