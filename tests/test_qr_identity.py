import re
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from helmet_reservations.core.errors import StorageFailure
from helmet_reservations.core.qr import make_qr_token, render_qr_image
from helmet_reservations.models import UserQRCode
from helmet_reservations.services import qr_identity


def test_token_embeds_user_and_creation_millis():
    at = datetime(2026, 3, 9, 18, 0, tzinfo=timezone.utc)
    assert make_qr_token("u1", at) == "USER_u1_1773079200000"


def test_rendered_image_is_png_data_url():
    url = render_qr_image("USER_u1_1773079200000")
    assert url.startswith("data:image/png;base64,")
    assert len(url) > 100


@pytest.mark.asyncio
async def test_resolve_or_create_is_idempotent(db):
    first = await qr_identity.resolve_or_create(db, "u1")
    second = await qr_identity.resolve_or_create(db, "u1")

    assert first.qr_code_data == second.qr_code_data
    assert first.id == second.id
    assert re.fullmatch(r"USER_u1_\d+", first.qr_code_data)


@pytest.mark.asyncio
async def test_tokens_differ_between_users(db):
    a = await qr_identity.resolve_or_create(db, "u1")
    b = await qr_identity.resolve_or_create(db, "u2")
    assert a.qr_code_data != b.qr_code_data


@pytest.mark.asyncio
async def test_lookup_by_token(db):
    issued = await qr_identity.resolve_or_create(db, "u1")

    found = await qr_identity.lookup_by_token(db, issued.qr_code_data)
    assert found is not None and found.user_id == "u1"
    assert await qr_identity.lookup_by_token(db, "USER_nobody_0") is None
    assert await qr_identity.get_for_user(db, "u2") is None


@pytest.mark.asyncio
async def test_losing_a_concurrent_issue_returns_the_winners_identity(db, monkeypatch):
    db.add(UserQRCode(user_id="u1", qr_code_data="USER_u1_1000", qr_code_image="data:image/png;base64,"))
    await db.commit()
    real_get = qr_identity.get_for_user
    calls = []

    async def not_yet_visible(session, user_id):
        calls.append(user_id)
        if len(calls) == 1:
            return None
        return await real_get(session, user_id)

    monkeypatch.setattr(qr_identity, "get_for_user", not_yet_visible)
    identity = await qr_identity.resolve_or_create(db, "u1")

    assert identity.qr_code_data == "USER_u1_1000"
    rows = (await db.execute(select(UserQRCode).where(UserQRCode.user_id == "u1"))).scalars().all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_token_collision_without_a_winner_is_a_storage_failure(db, monkeypatch):
    db.add(UserQRCode(user_id="u2", qr_code_data="USER_u1_1000", qr_code_image="data:image/png;base64,"))
    await db.commit()
    monkeypatch.setattr(qr_identity, "make_qr_token", lambda user_id: "USER_u1_1000")

    with pytest.raises(StorageFailure, match="Failed to generate QR code"):
        await qr_identity.resolve_or_create(db, "u1")
    assert await qr_identity.get_for_user(db, "u1") is None
