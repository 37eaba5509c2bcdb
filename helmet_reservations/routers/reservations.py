from __future__ import annotations
import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_db, scan_rate_limit
from ..schemas import (
    CancelResponse, ReservationCreate, ReservationCreated, ReservationRead,
    ScanRequest, ScanResponse, UserReservations,
)
from ..services import reservations as lifecycle

router = APIRouter(prefix="/reservations", tags=["reservations"])

# --- 1) Student books a helmet for a class
@router.post("", response_model=ReservationCreated)
async def create_reservation(payload: ReservationCreate, db: AsyncSession = Depends(get_db)):
    reservation, qr = await lifecycle.create_reservation(
        db, user_id=payload.user_id, schedule_id=payload.schedule_id
    )
    return ReservationCreated(reservation_id=reservation.id, qr_code=qr.qr_code_image)

# --- 2) Coach scans a student's QR at the door. Business outcomes are always 200.
@router.post(
    "/scan",
    response_model=ScanResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(scan_rate_limit)],
)
async def scan_and_checkin(payload: ScanRequest, db: AsyncSession = Depends(get_db)):
    result = await lifecycle.check_in(db, qr_token=payload.qr_code_data, schedule_id=payload.schedule_id)
    return ScanResponse(**result.as_dict())

# --- 3) Student or coach cancels a booking
@router.delete("/{reservation_id}", response_model=CancelResponse)
async def cancel_reservation(reservation_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await lifecycle.cancel_reservation(db, reservation_id)
    return CancelResponse()

# --- 4) Student history + their QR identity
@router.get("/user/{user_id}", response_model=UserReservations)
async def user_reservations(user_id: str, db: AsyncSession = Depends(get_db)):
    rows, identity = await lifecycle.list_user_reservations(db, user_id)
    return UserReservations(
        reservations=[ReservationRead.model_validate(r) for r in rows],
        qr_code=identity.qr_code_image if identity else None,
        qr_code_data=identity.qr_code_data if identity else None,
    )

# --- 5) Coach roster for one class
@router.get("/schedule/{schedule_id}", response_model=list[ReservationRead])
async def schedule_roster(schedule_id: str, db: AsyncSession = Depends(get_db)):
    rows = await lifecycle.list_schedule_reservations(db, schedule_id)
    return [ReservationRead.model_validate(r) for r in rows]
