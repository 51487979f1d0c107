"""Member self check-in by scanning the gym's QR code.

Malformed payloads, unknown gyms and wrong secrets are all reported as the same
INVALID_QR outcome, so a caller cannot tell which check failed. Scanning only
ever checks in; leaving is the explicit checkout button.
"""
import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidQrCode, QrDisabled
from app.models.attendance import AttendanceSession, SOURCE_QR_SCAN
from app.services.attendance import check_in
from app.services.eligibility import ensure_active, resolve_member
from app.services.qr_config import QR_PAYLOAD_TYPE, get_config

logger = logging.getLogger(__name__)

# Largest value an INTEGER primary key holds on PostgreSQL
MAX_GYM_ID = 2**31 - 1


@dataclass
class QrPayload:
    gym_id: int
    secret: str


def parse_qr_payload(raw: str) -> QrPayload:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, RecursionError):
        raise InvalidQrCode("Invalid QR code.")

    if not isinstance(data, dict) or data.get("type") != QR_PAYLOAD_TYPE:
        raise InvalidQrCode("Invalid QR code.")

    gym_id = data.get("gymId")
    secret = data.get("secret")
    if isinstance(gym_id, bool) or not isinstance(secret, str) or not secret:
        raise InvalidQrCode("Invalid QR code.")
    if isinstance(gym_id, float) and not gym_id.is_integer():
        raise InvalidQrCode("Invalid QR code.")
    try:
        gym_id = int(gym_id)
    except (TypeError, ValueError, OverflowError):
        raise InvalidQrCode("Invalid QR code.")
    if not 0 < gym_id <= MAX_GYM_ID:
        raise InvalidQrCode("Invalid QR code.")
    return QrPayload(gym_id=gym_id, secret=secret)


def secrets_match(stored: str, scanned: str) -> bool:
    if len(stored) != len(scanned):
        return False
    return hmac.compare_digest(stored.encode(), scanned.encode())


async def scan_check_in(
    db: AsyncSession, user_id: int, raw_payload: str, now: datetime | None = None
) -> AttendanceSession:
    payload = parse_qr_payload(raw_payload)

    config = await get_config(db, payload.gym_id)
    if config is None or not secrets_match(config.secret or "", payload.secret):
        logger.warning("Rejected QR scan by user %s for gym %s", user_id, payload.gym_id)
        raise InvalidQrCode()

    if not config.is_enabled:
        raise QrDisabled()

    member = ensure_active(await resolve_member(db, user_id, payload.gym_id))
    return await check_in(db, payload.gym_id, member.id, SOURCE_QR_SCAN, now)
