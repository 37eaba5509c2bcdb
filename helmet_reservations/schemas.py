from __future__ import annotations
from typing import Annotated, Literal
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import ReservationStatus

DocId = Annotated[str, Field(min_length=1, max_length=64)]

class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ---- requests ----
class ReservationCreate(_Camel):
    user_id: DocId
    schedule_id: DocId

class ScanRequest(_Camel):
    qr_code_data: Annotated[str, Field(min_length=1)]  # raw payload decoded from the QR, any length
    schedule_id: DocId

class BulkDeleteRequest(_Camel):
    coach_id: str | None = None
    course_id: str | None = None
    start_date: str | None = None  # YYYY-MM-DD, studio-local
    end_date: str | None = None

# ---- responses ----
class ReservationCreated(_Camel):
    success: bool = True
    reservation_id: UUID
    qr_code: str  # PNG data URL
    message: str = "Helmet reservation created successfully"

class ScanResponse(_Camel):
    valid: bool
    status: Literal["invalid_qr", "invalid_schedule", "no_reservation", "already_checked_in", "cancelled", "success"]
    message: str
    user_name: str | None = None
    user_email: str | None = None
    course_name: str | None = None
    location: str | None = None
    checkin_time: str | None = None
    reservation_id: str | None = None

class ReservationRead(_Camel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    user_id: str
    user_name: str
    user_email: str
    course_id: str | None
    course_name: str
    schedule_id: str
    coach_id: str | None
    coach_name: str
    reservation_date: datetime
    class_date: datetime | None
    class_start_time: datetime | None
    class_end_time: datetime | None
    location: str | None
    status: ReservationStatus
    qr_code: str
    checkin_time: datetime | None = None
    cancelled_at: datetime | None = None

class UserReservations(_Camel):
    success: bool = True
    reservations: list[ReservationRead]
    qr_code: str | None = None
    qr_code_data: str | None = None

class CancelResponse(_Camel):
    success: bool = True
    message: str = "Reservation cancelled successfully"

class BulkDeleteResponse(_Camel):
    success: bool
    deleted_count: int
    cancelled_reservations_count: int | None = None
    errors: list[str] | None = None
    message: str
