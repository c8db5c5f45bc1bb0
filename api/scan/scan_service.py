# api/scan/scan_service.py

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from api.passes.pass_repository import PassRepository
from api.scan.scan_schema import (
    DuplicateScan,
    DuplicateStudent,
    InvalidScan,
    ScanResult,
    ValidScan,
    ValidStudent,
)
from helpers.qr_helper import decrypt_qr_payload, is_encrypted_payload
from utils.cache_utils import DuplicateCache
from utils.exceptions import DecryptionError, ValidationError
from utils.time_utils import ensure_utc, utcnow

logger = logging.getLogger("ScanService")

# the store addresses documents by path, so ids cannot contain a separator
PATH_SEPARATOR = "/"
INVALID_MARKER = "invalid"


@dataclass
class ResolvedPass:
    pass_id: str
    pass_type: Optional[str] = None
    decrypted: bool = False


class ScanService:
    """
    Classifies a scan as valid, duplicate or invalid.

    Verification never writes to the store. The only mutation is adding an
    already-checked-in pass to the duplicate cache.
    """

    def __init__(self, repository: PassRepository, cache: DuplicateCache):
        self.repository = repository
        self.cache = cache

    def resolve_identifier(self, raw_id: str, pass_type: Optional[str] = None) -> ResolvedPass:
        """
        Decrypt QR payloads and run the format checks that need no store access.

        Raises DecryptionError for corrupt payloads and ValidationError for
        identifiers the store cannot address or that carry the invalid marker.
        """
        resolved = ResolvedPass(pass_id=raw_id, pass_type=pass_type)

        if is_encrypted_payload(raw_id):
            payload = decrypt_qr_payload(raw_id)
            payload_type = payload.passType if isinstance(payload.passType, str) else None
            resolved = ResolvedPass(
                pass_id=payload.id,
                pass_type=pass_type or payload_type,
                decrypted=True,
            )
            logger.info("Decrypted QR payload for pass %s", payload.id)

        if PATH_SEPARATOR in resolved.pass_id:
            raise ValidationError("Invalid Ticket Format")

        if INVALID_MARKER in resolved.pass_id:
            raise ValidationError("Ticket explicitly marked invalid")

        return resolved

    async def verify(self, raw_id: str, pass_type: Optional[str] = None) -> ScanResult:
        start_time = time.perf_counter()

        try:
            resolved = self.resolve_identifier(raw_id, pass_type)
        except DecryptionError as exc:
            logger.warning("QR decryption failed: %s", exc)
            return InvalidScan(error="Invalid or corrupted QR code")
        except ValidationError as exc:
            logger.info("Rejected identifier %r: %s", raw_id, exc.message)
            return InvalidScan(error=exc.message)

        pass_id = resolved.pass_id

        # Zero store round trips for passes we already know are used
        if self.cache.has(pass_id):
            logger.info("Scan result: duplicate (cache hit) pass=%s duration=%.1fms",
                        pass_id, _elapsed_ms(start_time))
            return DuplicateScan(
                student=DuplicateStudent(
                    name="Cached Passenger",
                    pass_type=resolved.pass_type or "General",
                    checked_in=True,
                    first_check_in_time=utcnow(),
                )
            )

        doc, first_scan = await asyncio.gather(
            self.repository.find_pass(pass_id),
            self.repository.first_valid_scan(pass_id),
        )

        if doc is None:
            logger.info("Scan failed: ticket not found pass=%s duration=%.1fms",
                        pass_id, _elapsed_ms(start_time))
            return InvalidScan(error="Ticket not found in database")

        student = dict(
            name=doc.display_name,
            pass_type=doc.pass_type or resolved.pass_type or "General",
            amount_paid=doc.amount_paid,
            members=doc.members,
            checked_in=doc.checked_in,
            checked_in_at=doc.checked_in_at_utc,
        )

        already_checked_in = first_scan is not None or doc.checked_in
        # group passes are tracked per member at confirmation time
        if already_checked_in and not doc.is_group:
            self.cache.add(pass_id)

            first_check_in = doc.checked_in_at_utc or utcnow()
            if first_scan is not None:
                first_check_in = ensure_utc(first_scan.scanned_at)

            logger.info("Scan result: duplicate pass=%s duration=%.1fms",
                        pass_id, _elapsed_ms(start_time))
            return DuplicateScan(
                student=DuplicateStudent(**student, first_check_in_time=first_check_in)
            )

        logger.info("Scan result: valid pass=%s duration=%.1fms", pass_id, _elapsed_ms(start_time))
        return ValidScan(student=ValidStudent(**student, id=pass_id))


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * 1000
