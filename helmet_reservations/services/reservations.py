"""
Helmet reservation lifecycle.

A reservation starts ``booked`` and ends either ``checked_in`` (scanned at the
venue) or ``cancelled``. Both end states are final. Every transition re-reads
the reservation before acting and writes through a conditional update, so a
concurrent transition that got there first is reported, not overwritten.

Scanning never raises for business outcomes: ``check_in`` returns one of the
``ScanResult`` variants below and callers branch on ``status``.
"""
from __future__ import annotations
import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Awaitable, ClassVar, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.errors import DuplicateReservation, InvalidStateTransition, NotFound
from ..core.instants import studio_tz, to_instant
from ..core.nats import publish_cancellation, publish_checkin, publish_notification
from ..deps import send_reservation_email
from ..models import ACTIVE_STATUSES, HelmetReservation, ReservationStatus, UserQRCode
from . import directory, qr_identity, store

logger = logging.getLogger(__name__)

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _iso(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")

async def _best_effort(what: str, aw: Awaitable) -> None:
    try:
        await aw
    except Exception:
        logger.exception("%s failed; continuing", what)

# ---- scan results ----

@dataclass(frozen=True)
class _ScanOutcome:
    status: ClassVar[str]
    valid: ClassVar[bool] = False

    def as_dict(self) -> dict:
        return {"status": self.status, "valid": self.valid, **asdict(self)}

@dataclass(frozen=True)
class InvalidQR(_ScanOutcome):
    status: ClassVar[str] = "invalid_qr"
    message: str = "Invalid QR code"

@dataclass(frozen=True)
class InvalidSchedule(_ScanOutcome):
    status: ClassVar[str] = "invalid_schedule"
    message: str = "Schedule not found"

@dataclass(frozen=True)
class NoReservation(_ScanOutcome):
    status: ClassVar[str] = "no_reservation"
    message: str = "No reservation found for this class"
    user_name: str = ""

@dataclass(frozen=True)
class AlreadyCheckedIn(_ScanOutcome):
    status: ClassVar[str] = "already_checked_in"
    user_name: str
    reservation_id: str
    checkin_time: str | None = None
    message: str = "Already checked in"

@dataclass(frozen=True)
class Cancelled(_ScanOutcome):
    status: ClassVar[str] = "cancelled"
    user_name: str
    reservation_id: str
    message: str = "Reservation was cancelled"

@dataclass(frozen=True)
class CheckedIn(_ScanOutcome):
    status: ClassVar[str] = "success"
    valid: ClassVar[bool] = True
    user_name: str
    user_email: str
    course_name: str
    location: str | None
    reservation_id: str
    checkin_time: str | None
    message: str = ""

    def __post_init__(self):
        if not self.message:
            object.__setattr__(self, "message", f"Welcome {self.user_name}!")

ScanResult = Union[InvalidQR, InvalidSchedule, NoReservation, AlreadyCheckedIn, Cancelled, CheckedIn]

# ---- create ----

def _format_class_slot(start: datetime | None, end: datetime | None) -> tuple[str, str]:
    if start is None:
        return "", ""
    local = start.astimezone(studio_tz(get_settings().studio_timezone))
    day = f"{local:%A}, {local:%B} {local.day}, {local.year}"
    slot = f"{local:%I:%M %p}"
    if end is not None:
        slot += f" - {end.astimezone(local.tzinfo):%I:%M %p}"
    return day, slot

async def _announce_booking(
    reservation: HelmetReservation, qr: UserQRCode, start: datetime | None, end: datetime | None
) -> None:
    day, slot = _format_class_slot(start, end)
    message = f"Your helmet is reserved for {reservation.course_name}"
    if day:
        message += f" on {day}"
    await _best_effort("Booking notification", publish_notification({
        "user_id": reservation.user_id,
        "title": "Helmet Reserved!",
        "message": message,
        "type": "booking",
        "read": False,
    }))
    await _best_effort("Booking email", send_reservation_email(
        user_email=reservation.user_email,
        user_name=reservation.user_name,
        course_name=reservation.course_name,
        class_date=day,
        class_time=slot,
        location=reservation.location,
        qr_code_image=qr.qr_code_image,
    ))

async def create_reservation(
    db: AsyncSession, *, user_id: str, schedule_id: str
) -> tuple[HelmetReservation, UserQRCode]:
    user = await directory.get_user(db, user_id)
    if not user:
        raise NotFound("User not found")
    schedule = await directory.get_schedule(db, schedule_id)
    if not schedule:
        raise NotFound("Schedule not found")

    existing = await store.get_by_user_and_schedule(db, user_id, schedule_id)
    if existing and existing.status in ACTIVE_STATUSES:
        raise DuplicateReservation("You already have a reservation for this class")

    tz = studio_tz(get_settings().studio_timezone)
    start = to_instant(schedule.start_time, tz)
    end = to_instant(schedule.end_time, tz)
    reservation = HelmetReservation(
        user_id=user.id,
        user_name=user.full_name,
        user_email=user.email,
        course_id=schedule.course_id,
        course_name=schedule.title,
        schedule_id=schedule.id,
        coach_id=schedule.created_by,
        reservation_date=_now(),
        class_date=start,
        class_start_time=start,
        class_end_time=end,
        location=schedule.location,
        status=ReservationStatus.BOOKED,
    )
    qr = await qr_identity.resolve_or_create(db, user_id)
    reservation.qr_code = qr.qr_code_data
    try:
        await store.add(db, reservation)
    except IntegrityError:
        # lost a race with a concurrent booking for the same pair
        await db.rollback()
        raise DuplicateReservation("You already have a reservation for this class")
    logger.info("Reservation %s booked: user=%s schedule=%s", reservation.id, user_id, schedule_id)

    await _announce_booking(reservation, qr, start, end)
    return reservation, qr

# ---- check-in ----

def _describe(reservation: HelmetReservation) -> ScanResult | None:
    if reservation.status == ReservationStatus.CHECKED_IN:
        return AlreadyCheckedIn(
            user_name=reservation.user_name,
            reservation_id=str(reservation.id),
            checkin_time=_iso(reservation.checkin_time),
        )
    if reservation.status == ReservationStatus.CANCELLED:
        return Cancelled(user_name=reservation.user_name, reservation_id=str(reservation.id))
    return None

async def check_in(db: AsyncSession, *, qr_token: str, schedule_id: str) -> ScanResult:
    identity = await qr_identity.lookup_by_token(db, qr_token)
    if identity is None:
        return InvalidQR()
    schedule = await directory.get_schedule(db, schedule_id)
    if schedule is None:
        return InvalidSchedule()
    reservation = await store.get_by_user_and_schedule(db, identity.user_id, schedule_id)
    if reservation is None:
        return NoReservation()

    settled = _describe(reservation)
    if settled is not None:
        return settled

    at = _now()
    if not await store.mark_checked_in(db, reservation.id, at):
        # someone else moved it out of booked between our read and write
        current = await store.get_by_id(db, reservation.id)
        return (_describe(current) if current else None) or NoReservation()

    reservation = await store.get_by_id(db, reservation.id)
    logger.info("Reservation %s checked in (user=%s schedule=%s)", reservation.id, reservation.user_id, schedule_id)
    await _best_effort("Check-in event", publish_checkin({
        "reservation_id": str(reservation.id),
        "schedule_id": schedule_id,
        "user_id": reservation.user_id,
        "checked_at": _iso(at),
        "idempotency_key": str(reservation.id),
    }))
    return CheckedIn(
        user_name=reservation.user_name,
        user_email=reservation.user_email,
        course_name=reservation.course_name,
        location=reservation.location,
        reservation_id=str(reservation.id),
        checkin_time=_iso(reservation.checkin_time),
    )

# ---- cancel ----

async def cancel_reservation(db: AsyncSession, reservation_id: uuid.UUID) -> tuple[HelmetReservation, bool]:
    """
    Cancel a booked reservation. Returns the reservation and whether this call
    changed it; cancelling an already-cancelled reservation is a no-op.
    """
    reservation = await store.get_by_id(db, reservation_id)
    if not reservation:
        raise NotFound("Reservation not found")
    if reservation.status == ReservationStatus.CHECKED_IN:
        raise InvalidStateTransition("Cannot cancel a reservation that has already been checked in")
    if reservation.status == ReservationStatus.CANCELLED:
        return reservation, False

    changed = await store.mark_cancelled(db, reservation_id, _now())
    reservation = await store.get_by_id(db, reservation_id)
    if not changed and reservation.status == ReservationStatus.CHECKED_IN:
        raise InvalidStateTransition("Cannot cancel a reservation that has already been checked in")
    if changed:
        logger.info("Reservation %s cancelled", reservation_id)
        await _best_effort("Cancellation event", publish_cancellation({
            "reservation_id": str(reservation.id),
            "schedule_id": reservation.schedule_id,
            "user_id": reservation.user_id,
            "cancelled_at": _iso(reservation.cancelled_at),
        }))
    return reservation, changed

# ---- reads ----

async def list_user_reservations(db: AsyncSession, user_id: str) -> tuple[list[HelmetReservation], UserQRCode | None]:
    reservations = await store.list_by_user(db, user_id)
    identity = await qr_identity.get_for_user(db, user_id)
    return reservations, identity

async def list_schedule_reservations(db: AsyncSession, schedule_id: str) -> list[HelmetReservation]:
    if await directory.get_schedule(db, schedule_id) is None:
        raise NotFound("Schedule not found")
    return await store.list_by_schedule(db, schedule_id)
