"""
Coach-driven bulk deletion of schedules.

Nothing here is transactional across rows: each schedule is handled as its
own small saga (cancel open reservations, then delete the schedule) and the
outcome of every step is logged, so a partial run reports exactly what was
done.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.errors import Forbidden, NotFound, ValidationFailed
from ..core.instants import day_bounds, parse_day, studio_tz, to_instant
from ..models import ReservationStatus, Schedule
from . import directory, store
from .reservations import cancel_reservation

logger = logging.getLogger(__name__)

NO_MATCH_MESSAGE = "No sessions found matching the selected criteria"

@dataclass
class ScheduleOutcome:
    schedule_id: str
    cancelled_reservations: int = 0
    deleted: bool = False
    error: str | None = None

@dataclass
class BulkDeleteResult:
    success: bool
    deleted_count: int
    cancelled_reservations_count: int = 0
    errors: list[str] = field(default_factory=list)
    message: str = ""
    outcomes: list[ScheduleOutcome] = field(default_factory=list)

def _parse_filter_day(value: str | None, name: str) -> date | None:
    if not value:
        return None
    try:
        return parse_day(value, name)
    except ValueError as exc:
        raise ValidationFailed(str(exc))

async def _owned_schedules(db: AsyncSession, coach_id: str, course_id: str | None) -> list[Schedule]:
    if course_id:
        course = await directory.get_course(db, course_id)
        if not course:
            raise NotFound("Course not found")
        if str(course.coach_id or "") != str(coach_id):
            raise Forbidden("You do not have permission to delete schedules for this course")
        schedules = await directory.list_schedules(db)
        return [s for s in schedules if str(s.course_id) == str(course_id)]

    schedules = await directory.list_schedules(db)
    coach_courses = {str(c.id) for c in await directory.list_courses_by_coach(db, coach_id)}
    return [
        s for s in schedules
        if (s.created_by and str(s.created_by) == str(coach_id)) or str(s.course_id) in coach_courses
    ]

def _within(schedules: list[Schedule], lo: datetime | None, hi: datetime | None) -> list[Schedule]:
    tz = studio_tz(get_settings().studio_timezone)
    kept = []
    for s in schedules:
        starts = to_instant(s.start_time, tz)
        if starts is None:
            logger.warning("Schedule %s has an unreadable startTime %r; skipping", s.id, s.start_time)
            continue
        if lo and starts < lo:
            continue
        if hi and starts > hi:
            continue
        kept.append(s)
    return kept

async def _retire_schedule(db: AsyncSession, outcome: ScheduleOutcome) -> None:
    schedule_id = outcome.schedule_id
    for reservation in await store.list_by_schedule(db, schedule_id):
        if reservation.status in (ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED):
            continue
        _, changed = await cancel_reservation(db, reservation.id)
        if changed:
            outcome.cancelled_reservations += 1
    await directory.delete_schedule(db, schedule_id)
    outcome.deleted = True

async def bulk_delete_schedules(
    db: AsyncSession,
    *,
    coach_id: str | None,
    course_id: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> BulkDeleteResult:
    if not coach_id:
        raise ValidationFailed("Coach ID is required")
    if not (course_id or start_date or end_date):
        raise ValidationFailed("At least one filter (course or date range) must be provided")

    first_day = _parse_filter_day(start_date, "startDate")
    last_day = _parse_filter_day(end_date, "endDate")

    schedules = await _owned_schedules(db, coach_id, course_id)
    logger.info("Bulk delete for coach %s: %d owned schedule(s) before date filter", coach_id, len(schedules))

    if first_day or last_day:
        lo, hi = day_bounds(first_day, last_day, studio_tz(get_settings().studio_timezone))
        schedules = _within(schedules, lo, hi)

    if not schedules:
        return BulkDeleteResult(success=False, deleted_count=0, message=NO_MATCH_MESSAGE)

    result = BulkDeleteResult(success=True, deleted_count=0)
    # ids up front: a failed step rolls the session back and expires loaded rows
    for schedule_id in [s.id for s in schedules]:
        outcome = ScheduleOutcome(schedule_id=schedule_id)
        result.outcomes.append(outcome)
        try:
            await _retire_schedule(db, outcome)
        except Exception as exc:
            await db.rollback()
            outcome.error = f"Error deleting schedule {schedule_id}: {exc}"
            logger.exception("Bulk delete step failed for schedule %s", schedule_id)
            result.errors.append(outcome.error)
        else:
            result.deleted_count += 1
        # cancellations commit one by one, so they count even when the delete failed
        result.cancelled_reservations_count += outcome.cancelled_reservations

    result.message = f"{result.deleted_count} session(s) deleted successfully"
    if result.cancelled_reservations_count:
        result.message += f" and {result.cancelled_reservations_count} reservation(s) cancelled"
    logger.info(
        "Bulk delete for coach %s finished: deleted=%d cancelled=%d errors=%d",
        coach_id, result.deleted_count, result.cancelled_reservations_count, len(result.errors),
    )
    return result
