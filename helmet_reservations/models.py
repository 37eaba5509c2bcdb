from __future__ import annotations
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import Enum as SqlEnum, Index, String, Text, text
from sqlalchemy.orm import Mapped, declarative_base, mapped_column
from sqlalchemy.types import JSON, DateTime

Base = declarative_base()

def utcnow():
    return datetime.now(timezone.utc)

class ReservationStatus(str, Enum):
    BOOKED = "booked"
    CHECKED_IN = "checked_in"
    CANCELLED = "cancelled"

ACTIVE_STATUSES = (ReservationStatus.BOOKED, ReservationStatus.CHECKED_IN)

# ---- collaborator-owned documents (read here, written elsewhere) ----

class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    first_name: Mapped[str] = mapped_column(String(120), default="")
    last_name: Mapped[str] = mapped_column(String(120), default="")
    email: Mapped[str] = mapped_column(String(255), index=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

class Course(Base):
    __tablename__ = "courses"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    coach_id: Mapped[str | None] = mapped_column(String(64), index=True)

class Schedule(Base):
    __tablename__ = "course_schedules"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    course_id: Mapped[str | None] = mapped_column(String(64), index=True)
    title: Mapped[str] = mapped_column(String(255), default="")
    # raw values as written by the scheduling side; see core.instants
    start_time: Mapped[Any] = mapped_column(JSON, nullable=True)
    end_time: Mapped[Any] = mapped_column(JSON, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255))
    created_by: Mapped[str | None] = mapped_column(String(64), index=True)

# ---- owned by this service ----

class UserQRCode(Base):
    __tablename__ = "user_qr_codes"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    qr_code_data: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    qr_code_image: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

class HelmetReservation(Base):
    __tablename__ = "helmet_reservations"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), default="")
    user_email: Mapped[str] = mapped_column(String(255), default="")
    course_id: Mapped[str | None] = mapped_column(String(64))
    course_name: Mapped[str] = mapped_column(String(255), default="")
    schedule_id: Mapped[str] = mapped_column(String(64), nullable=False)
    coach_id: Mapped[str | None] = mapped_column(String(64))
    coach_name: Mapped[str] = mapped_column(String(255), default="")
    reservation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    class_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    class_start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    class_end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    location: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[ReservationStatus] = mapped_column(
        SqlEnum(
            ReservationStatus,
            name="helmet_reservation_status",
            values_callable=lambda e: [m.value for m in e],
            native_enum=False,
            length=16,
        ),
        default=ReservationStatus.BOOKED,
        nullable=False,
    )
    qr_code: Mapped[str] = mapped_column(String(255), nullable=False)
    checkin_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        # one booked/checked-in reservation per (user, schedule); cancelled ones don't count
        Index(
            "uq_helmet_active_user_schedule",
            "user_id",
            "schedule_id",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("ix_helmet_user", "user_id"),
        Index("ix_helmet_schedule", "schedule_id"),
        Index("ix_helmet_status", "status"),
    )
