from __future__ import annotations
import logging
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import StorageFailure
from ..core.qr import make_qr_token, render_qr_image
from ..models import UserQRCode

logger = logging.getLogger(__name__)

async def get_for_user(db: AsyncSession, user_id: str) -> UserQRCode | None:
    return (await db.execute(select(UserQRCode).where(UserQRCode.user_id == user_id))).scalar_one_or_none()

async def lookup_by_token(db: AsyncSession, token: str) -> UserQRCode | None:
    """Owner of a scanned token, or None when nobody was ever issued it."""
    return (await db.execute(select(UserQRCode).where(UserQRCode.qr_code_data == token))).scalar_one_or_none()

async def resolve_or_create(db: AsyncSession, user_id: str) -> UserQRCode:
    # idempotent: if exists, return existing
    existing = await get_for_user(db, user_id)
    if existing:
        return existing

    token = make_qr_token(user_id)
    obj = UserQRCode(user_id=user_id, qr_code_data=token, qr_code_image=render_qr_image(token))
    db.add(obj)
    try:
        await db.commit()
    except IntegrityError:
        # another request issued this user's identity first; theirs is the one
        await db.rollback()
        winner = await get_for_user(db, user_id)
        if winner is None:
            raise StorageFailure("Failed to generate QR code")
        return winner
    await db.refresh(obj)
    logger.info("Issued QR identity for user %s", user_id)
    return obj
