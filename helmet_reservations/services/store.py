"""
Reads and single-row writes on helmet reservations.

Status writes are conditional updates (``WHERE status = 'booked'``) so two
concurrent transitions on the same reservation cannot both apply; the caller
learns from the return value whether its write won.
"""
from __future__ import annotations
import uuid
from datetime import datetime

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import HelmetReservation, ReservationStatus, utcnow

async def get_by_id(db: AsyncSession, reservation_id: uuid.UUID) -> HelmetReservation | None:
    return (await db.execute(
        select(HelmetReservation)
        .where(HelmetReservation.id == reservation_id)
        .execution_options(populate_existing=True)
    )).scalar_one_or_none()

async def get_by_user_and_schedule(db: AsyncSession, user_id: str, schedule_id: str) -> HelmetReservation | None:
    # cancelled rows may sit next to a newer active one; the active one wins
    inactive_last = case((HelmetReservation.status == ReservationStatus.CANCELLED, 1), else_=0)
    return (await db.execute(
        select(HelmetReservation)
        .where(HelmetReservation.user_id == user_id, HelmetReservation.schedule_id == schedule_id)
        .order_by(inactive_last, HelmetReservation.reservation_date.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )).scalars().first()

async def list_by_user(db: AsyncSession, user_id: str) -> list[HelmetReservation]:
    rows = (await db.execute(
        select(HelmetReservation)
        .where(HelmetReservation.user_id == user_id)
        .order_by(HelmetReservation.class_date.desc(), HelmetReservation.reservation_date.desc())
        .execution_options(populate_existing=True)
    )).scalars().all()
    return list(rows)

async def list_by_schedule(db: AsyncSession, schedule_id: str) -> list[HelmetReservation]:
    rows = (await db.execute(
        select(HelmetReservation)
        .where(HelmetReservation.schedule_id == schedule_id)
        .order_by(HelmetReservation.reservation_date.asc())
        .execution_options(populate_existing=True)
    )).scalars().all()
    return list(rows)

async def add(db: AsyncSession, reservation: HelmetReservation) -> HelmetReservation:
    db.add(reservation)
    await db.commit()
    await db.refresh(reservation)
    return reservation

async def _transition_from_booked(db: AsyncSession, reservation_id: uuid.UUID, **values) -> bool:
    result = await db.execute(
        update(HelmetReservation)
        .where(HelmetReservation.id == reservation_id, HelmetReservation.status == ReservationStatus.BOOKED)
        .values(updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount == 1

async def mark_checked_in(db: AsyncSession, reservation_id: uuid.UUID, at: datetime) -> bool:
    return await _transition_from_booked(
        db, reservation_id, status=ReservationStatus.CHECKED_IN, checkin_time=at
    )

async def mark_cancelled(db: AsyncSession, reservation_id: uuid.UUID, at: datetime) -> bool:
    return await _transition_from_booked(
        db, reservation_id, status=ReservationStatus.CANCELLED, cancelled_at=at
    )
