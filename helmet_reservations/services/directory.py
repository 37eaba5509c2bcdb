"""Lookups against collaborator-owned users, courses and schedules."""
from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Course, Schedule, User

async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()

async def get_schedule(db: AsyncSession, schedule_id: str) -> Schedule | None:
    return (await db.execute(select(Schedule).where(Schedule.id == schedule_id))).scalar_one_or_none()

async def list_schedules(db: AsyncSession) -> list[Schedule]:
    return list((await db.execute(select(Schedule))).scalars().all())

async def delete_schedule(db: AsyncSession, schedule_id: str) -> None:
    await db.execute(delete(Schedule).where(Schedule.id == schedule_id))
    await db.commit()

async def get_course(db: AsyncSession, course_id: str) -> Course | None:
    return (await db.execute(select(Course).where(Course.id == course_id))).scalar_one_or_none()

async def list_courses_by_coach(db: AsyncSession, coach_id: str) -> list[Course]:
    return list((await db.execute(select(Course).where(Course.coach_id == coach_id))).scalars().all())
