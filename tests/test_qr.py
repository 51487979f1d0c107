import json

import pytest

from app.core.errors import AlreadyInGym, InvalidQrCode, MemberNotFound, MembershipInactive, QrDisabled
from app.services.attendance import check_out, get_status_today, IN_GYM
from app.services.qr_config import (
    QR_PAYLOAD_TYPE,
    build_qr_payload,
    generate_secret,
    get_config,
    get_or_create_config,
    regenerate_secret,
    set_enabled,
)
from app.services.qr_scan import parse_qr_payload, scan_check_in, secrets_match
from tests.conftest import at


def payload_for(gym_id, secret):
    return json.dumps({"type": QR_PAYLOAD_TYPE, "gymId": gym_id, "secret": secret})


def test_generated_secrets_are_32_alphanumeric_characters():
    secret = generate_secret()
    assert len(secret) == 32
    assert secret.isalnum()
    assert generate_secret() != secret


async def test_config_is_created_once_and_enabled(db, seed):
    assert await get_config(db, seed.gym.id) is None

    config = await get_or_create_config(db, seed.gym.id)
    again = await get_or_create_config(db, seed.gym.id)

    assert config.is_enabled is True
    assert again.id == config.id
    assert again.secret == config.secret


async def test_payload_carries_type_gym_and_secret(db, seed):
    config = await get_or_create_config(db, seed.gym.id)
    data = json.loads(build_qr_payload(config))
    assert data == {"type": "gym_attendance", "gymId": seed.gym.id, "secret": config.secret}


async def test_regenerate_replaces_secret_and_re_enables(db, seed):
    config = await get_or_create_config(db, seed.gym.id)
    old_secret, old_rotated = config.secret, config.last_rotated_at
    await set_enabled(db, seed.gym.id, False)

    rotated = await regenerate_secret(db, seed.gym.id)

    assert rotated.secret != old_secret
    assert rotated.last_rotated_at >= old_rotated
    assert rotated.is_enabled is True


async def test_toggle_keeps_secret(db, seed):
    config = await get_or_create_config(db, seed.gym.id)
    secret = config.secret

    disabled = await set_enabled(db, seed.gym.id, False)
    assert disabled.is_enabled is False
    assert disabled.secret == secret

    enabled = await set_enabled(db, seed.gym.id, True)
    assert enabled.is_enabled is True
    assert enabled.secret == secret


@pytest.mark.parametrize("raw", [
    "",
    "not json",
    "[1, 2]",
    '{"type": "payment", "gymId": 1, "secret": "abc"}',
    '{"type": "gym_attendance", "secret": "abc"}',
    '{"type": "gym_attendance", "gymId": 1}',
    '{"type": "gym_attendance", "gymId": 1, "secret": ""}',
    '{"type": "gym_attendance", "gymId": "one", "secret": "abc"}',
    '{"type": "gym_attendance", "gymId": true, "secret": "abc"}',
    '{"type": "gym_attendance", "gymId": 1.5, "secret": "abc"}',
    '{"type": "gym_attendance", "gymId": 0, "secret": "abc"}',
    '{"type": "gym_attendance", "gymId": -3, "secret": "abc"}',
    '{"type": "gym_attendance", "gymId": 1e30, "secret": "abc"}',
    '{"type": "gym_attendance", "gymId": Infinity, "secret": "abc"}',
    '{"type": "gym_attendance", "gymId": ' + str(10**30) + ', "secret": "abc"}',
    pytest.param("[" * 200000 + "]" * 200000, id="deeply-nested"),
])
def test_malformed_payloads_are_invalid_qr(raw):
    with pytest.raises(InvalidQrCode) as exc:
        parse_qr_payload(raw)
    assert exc.value.code == "INVALID_QR"


def test_parse_accepts_numeric_string_gym_id():
    payload = parse_qr_payload('{"type": "gym_attendance", "gymId": "7", "secret": "abc"}')
    assert payload.gym_id == 7
    assert payload.secret == "abc"


def test_secrets_match():
    assert secrets_match("abc123", "abc123")
    assert not secrets_match("abc123", "abc124")
    assert not secrets_match("abc123", "abc12")
    assert not secrets_match("abc123", "")


async def test_scan_with_current_code_checks_member_in(db, seed):
    user = seed.users["member"]
    member = seed.members["member"]
    config = await get_or_create_config(db, seed.gym.id)

    record = await scan_check_in(db, user.id, build_qr_payload(config), now=at(9))

    assert record.member_id == member.id
    assert record.gym_id == seed.gym.id
    assert record.source == "qr_scan"
    today = await get_status_today(db, seed.gym.id, member.id, now=at(9, 5))
    assert today.status == IN_GYM


async def test_second_scan_while_inside_is_already_in_gym(db, seed):
    user = seed.users["member"]
    config = await get_or_create_config(db, seed.gym.id)
    await scan_check_in(db, user.id, build_qr_payload(config), now=at(9))

    with pytest.raises(AlreadyInGym):
        await scan_check_in(db, user.id, build_qr_payload(config), now=at(9, 10))


async def test_scan_after_checkout_opens_a_new_session(db, seed):
    user = seed.users["member"]
    member = seed.members["member"]
    config = await get_or_create_config(db, seed.gym.id)
    first = await scan_check_in(db, user.id, build_qr_payload(config), now=at(9))
    await check_out(db, seed.gym.id, member.id, now=at(10))

    second = await scan_check_in(db, user.id, build_qr_payload(config), now=at(17))
    assert second.id != first.id


async def test_old_code_is_rejected_after_rotation(db, seed):
    user = seed.users["member"]
    member = seed.members["member"]
    old = build_qr_payload(await get_or_create_config(db, seed.gym.id))
    await regenerate_secret(db, seed.gym.id)

    with pytest.raises(InvalidQrCode) as exc:
        await scan_check_in(db, user.id, old, now=at(9))
    assert exc.value.message == "Invalid QR code. The code may have been updated."

    today = await get_status_today(db, seed.gym.id, member.id, now=at(9))
    assert today.record is None


async def test_unknown_gym_is_indistinguishable_from_wrong_secret(db, seed):
    user = seed.users["member"]
    config = await get_or_create_config(db, seed.gym.id)

    with pytest.raises(InvalidQrCode) as wrong_secret:
        await scan_check_in(db, user.id, payload_for(seed.gym.id, "x" * 32), now=at(9))
    with pytest.raises(InvalidQrCode) as unknown_gym:
        await scan_check_in(db, user.id, payload_for(9999, config.secret), now=at(9))

    assert wrong_secret.value.code == unknown_gym.value.code == "INVALID_QR"
    assert wrong_secret.value.message == unknown_gym.value.message


async def test_disabled_qr_rejects_scan_but_not_checkout(db, seed):
    user = seed.users["member"]
    member = seed.members["member"]
    config = await get_or_create_config(db, seed.gym.id)
    await scan_check_in(db, user.id, build_qr_payload(config), now=at(9))
    await set_enabled(db, seed.gym.id, False)

    with pytest.raises(QrDisabled) as exc:
        await scan_check_in(db, user.id, build_qr_payload(config), now=at(9, 30))
    assert exc.value.code == "INVALID_QR"

    closed = await check_out(db, seed.gym.id, member.id, now=at(10))
    assert closed.exit_type == "manual"


async def test_scan_by_user_without_membership_is_member_not_found(db, seed):
    config = await get_or_create_config(db, seed.gym.id)

    with pytest.raises(MemberNotFound):
        await scan_check_in(db, seed.users["no_profile"].id, build_qr_payload(config), now=at(9))
    # a member of another gym scanning this gym's code
    with pytest.raises(MemberNotFound):
        await scan_check_in(db, seed.users["outsider"].id, build_qr_payload(config), now=at(9))


async def test_scan_by_inactive_member_is_rejected(db, seed):
    member = seed.members["member"]
    member.status = "inactive"
    await db.commit()
    config = await get_or_create_config(db, seed.gym.id)

    with pytest.raises(MembershipInactive):
        await scan_check_in(db, seed.users["member"].id, build_qr_payload(config), now=at(9))

    today = await get_status_today(db, seed.gym.id, member.id, now=at(9))
    assert today.record is None
