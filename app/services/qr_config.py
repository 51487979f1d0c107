"""Per-gym QR credential: a rotating shared secret plus an on/off switch.

The QR payload carries no expiry; rotating the secret is the only revocation
mechanism and invalidates every previously displayed code at once.
"""
import json
import logging
import secrets
import string

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.qr_config import QrConfig
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

QR_PAYLOAD_TYPE = "gym_attendance"
_SECRET_ALPHABET = string.ascii_letters + string.digits


def generate_secret(length: int | None = None) -> str:
    length = length or settings.QR_SECRET_LENGTH
    return "".join(secrets.choice(_SECRET_ALPHABET) for _ in range(length))


def build_qr_payload(config: QrConfig) -> str:
    return json.dumps({
        "type": QR_PAYLOAD_TYPE,
        "gymId": config.gym_id,
        "secret": config.secret,
    })


async def get_config(db: AsyncSession, gym_id: int) -> QrConfig | None:
    result = await db.execute(
        select(QrConfig)
        .where(QrConfig.gym_id == gym_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_config(db: AsyncSession, gym_id: int) -> QrConfig:
    config = await get_config(db, gym_id)
    if config:
        return config

    now = utcnow()
    config = QrConfig(
        gym_id=gym_id,
        secret=generate_secret(),
        is_enabled=True,
        last_rotated_at=now,
        created_at=now,
    )
    try:
        async with db.begin_nested():
            db.add(config)
    except IntegrityError:
        # Another request created it first (gym_id is unique)
        await db.commit()
        config = await get_config(db, gym_id)
        if config is None:
            raise
        return config
    await db.commit()
    await db.refresh(config)
    logger.info("Created QR attendance config for gym %s", gym_id)
    return config


async def regenerate_secret(db: AsyncSession, gym_id: int) -> QrConfig:
    config = await get_or_create_config(db, gym_id)
    config.secret = generate_secret()
    config.last_rotated_at = utcnow()
    config.is_enabled = True
    db.add(config)
    await db.commit()
    await db.refresh(config)
    logger.info("Rotated QR attendance secret for gym %s", gym_id)
    return config


async def set_enabled(db: AsyncSession, gym_id: int, enabled: bool) -> QrConfig:
    config = await get_or_create_config(db, gym_id)
    config.is_enabled = enabled
    db.add(config)
    await db.commit()
    await db.refresh(config)
    logger.info("QR attendance %s for gym %s", "enabled" if enabled else "disabled", gym_id)
    return config
