from __future__ import annotations
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_db
from ..schemas import BulkDeleteRequest, BulkDeleteResponse
from ..services.bulk_delete import bulk_delete_schedules

router = APIRouter(prefix="/schedules", tags=["schedules"])

@router.post("/bulk-delete", response_model=BulkDeleteResponse, response_model_exclude_none=True)
async def bulk_delete(payload: BulkDeleteRequest, db: AsyncSession = Depends(get_db)):
    result = await bulk_delete_schedules(
        db,
        coach_id=payload.coach_id,
        course_id=payload.course_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    return BulkDeleteResponse(
        success=result.success,
        deleted_count=result.deleted_count,
        cancelled_reservations_count=result.cancelled_reservations_count if result.success else None,
        errors=result.errors or None,
        message=result.message,
    )
